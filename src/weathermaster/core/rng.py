from dataclasses import dataclass, field
from typing import Sequence
import math

from .timebase import GameDate

_MASK32 = 0xFFFFFFFF
_GOLDEN = 0x6D2B79F5


def _imul(a: int, b: int) -> int:
  return (a * b) & _MASK32


def _utf16_units(s: str):
  for ch in s:
    code = ord(ch)
    if code > 0xFFFF:
      code -= 0x10000
      yield 0xD800 + (code >> 10)
      yield 0xDC00 + (code & 0x3FF)
    else:
      yield code


def hash_string(s: str) -> int:
  """Order-sensitive 32-bit string hash ((h << 5) - h + c), returned as |int32|."""
  h = 0
  for unit in _utf16_units(s):
    h = ((h << 5) - h + unit) & _MASK32
  if h & 0x80000000:
    h -= 0x100000000
  return abs(h)


def generate_seed(region_id: str, date: GameDate, context: str = "") -> int:
  return hash_string(f"{region_id}:{date.year}-{date.month}-{date.day}:{context}")


def generate_pattern_seed(region_id: str, date: GameDate, cycle_length: int = 4, context: str = "") -> int:
  period = date.absolute_day // cycle_length
  return hash_string(f"{region_id}:pattern{period}:{context}")


@dataclass
class SeededRandom:
  """Mulberry32 stream; identical seeds give identical float sequences."""
  seed: int
  state: int = field(init=False, repr=False)

  def __post_init__(self):
    self.state = int(self.seed) & _MASK32

  def next(self) -> float:
    self.state = (self.state + _GOLDEN) & _MASK32
    t = self.state
    t = _imul(t ^ (t >> 15), t | 1)
    t ^= (t + _imul(t ^ (t >> 7), t | 61)) & _MASK32
    return ((t ^ (t >> 14)) & _MASK32) / 4294967296

  def range(self, low: float, high: float) -> float:
    return low + self.next() * (high - low)

  def int(self, low: int, high: int) -> int:
    return math.floor(self.range(low, high + 1))

  def choice(self, items: Sequence):
    return items[math.floor(self.next() * len(items))]

  def weighted_choice(self, items: Sequence, weights: Sequence[float]):
    total = sum(weights)
    if total <= 0:
      return self.choice(items)
    roll = self.next() * total
    for item, w in zip(items, weights):
      roll -= w
      if roll < 0:
        return item
    return items[-1]

  def dice(self, count: int, sides: int) -> int:
    return sum(self.int(1, sides) for _ in range(count))

  def gaussian(self) -> float:
    # Box-Muller; 1 - u keeps the log argument in (0, 1]
    u1 = 1.0 - self.next()
    u2 = self.next()
    return math.sqrt(-2.0 * math.log(u1)) * math.cos(2.0 * math.pi * u2)


def _anchor_normal(region_id: str, absolute_hour: int, context: str) -> float:
  d = GameDate.from_absolute_hour(absolute_hour)
  return SeededRandom(generate_seed(region_id, d, f"{context}@{d.hour}")).gaussian()


def correlated_normal(region_id: str, absolute_hour: int, context: str, period: int) -> float:
  """Standard-normal noise that drifts smoothly between anchors every `period` hours."""
  start = (absolute_hour // period) * period
  frac = (absolute_hour - start) / period
  z0 = _anchor_normal(region_id, start, context)
  if frac == 0:
    return z0
  z1 = _anchor_normal(region_id, start + period, context)
  w0, w1 = 1.0 - frac, frac
  return (w0 * z0 + w1 * z1) / math.sqrt(w0 * w0 + w1 * w1)


def correlated_uniform(region_id: str, absolute_hour: int, context: str, period: int) -> float:
  z = correlated_normal(region_id, absolute_hour, context, period)
  return 0.5 * (1.0 + math.erf(z / math.sqrt(2.0)))


def hourly_random(region_id: str, date: GameDate, context: str) -> SeededRandom:
  return SeededRandom(generate_seed(region_id, date, f"{context}:{date.hour}"))
