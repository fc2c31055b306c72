import json
import os
from typing import Iterable


def write_jsonl(rows_iter: Iterable[dict], path: str) -> int:
  os.makedirs(os.path.dirname(path), exist_ok=True)
  n = 0
  with open(path, "w", encoding="utf-8") as f:
    for r in rows_iter:
      f.write(json.dumps(r, ensure_ascii=False) + "\n")
      n += 1
  return n


def read_jsonl(path: str) -> list:
  with open(path, encoding="utf-8") as f:
    return [json.loads(line) for line in f if line.strip()]
