from concurrent.futures import ThreadPoolExecutor

from weathermaster.runtime import MemoCache


def test_get_or_compute_counts_hits():
  cache = MemoCache("t")
  calls = []
  assert cache.get_or_compute("k", lambda: calls.append(1) or 5) == 5
  assert cache.get_or_compute("k", lambda: calls.append(1) or 6) == 5
  assert len(calls) == 1
  assert cache.stats() == {"name": "t", "entries": 1, "hits": 1, "misses": 1}


def test_put_is_insert_or_ignore():
  cache = MemoCache("t")
  assert cache.put("k", 1) == 1
  assert cache.put("k", 2) == 1
  assert cache.get("k") == 1
  assert cache.get("missing", "d") == "d"


def test_bounded_eviction_drops_oldest():
  cache = MemoCache("t", max_entries=10)
  for i in range(11):
    cache.put(i, i)
  assert len(cache) <= 10
  assert 0 not in cache
  assert 10 in cache


def test_clear_resets():
  cache = MemoCache("t")
  cache.get_or_compute("a", lambda: 1)
  cache.clear()
  assert len(cache) == 0
  assert cache.stats()["misses"] == 0


def test_concurrent_population_agrees():
  cache = MemoCache("t")
  with ThreadPoolExecutor(max_workers=8) as pool:
    results = list(pool.map(lambda i: cache.get_or_compute(i % 5, lambda: object()), range(200)))
  for i, value in enumerate(results):
    assert value is cache.get(i % 5)
