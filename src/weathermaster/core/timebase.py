from dataclasses import dataclass
from typing import Iterator, Optional

from ..errors import InvalidDateError

DAYS_PER_MONTH = (31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31)
DAYS_PER_YEAR = sum(DAYS_PER_MONTH)
HOURS_PER_DAY = 24

MONTH_NAMES = (
  "January", "February", "March", "April", "May", "June",
  "July", "August", "September", "October", "November", "December",
)

SEASONS = ("winter", "spring", "summer", "fall")

# first day-of-year (1-based) of each month
_MONTH_START = tuple(1 + sum(DAYS_PER_MONTH[:i]) for i in range(12))


def days_in_month(month: int) -> int:
  if not 1 <= month <= 12:
    raise InvalidDateError(f"Month must be between 1 and 12, got {month}")
  return DAYS_PER_MONTH[month - 1]


def season_for_month(month: int) -> str:
  if month in (12, 1, 2):
    return "winter"
  if month in (3, 4, 5):
    return "spring"
  if month in (6, 7, 8):
    return "summer"
  return "fall"


@dataclass(frozen=True, order=True)
class GameDate:
  year: int
  month: int
  day: int = 1
  hour: int = 0

  def __post_init__(self):
    dim = days_in_month(self.month)
    if not 1 <= self.day <= dim:
      raise InvalidDateError(f"Day must be between 1 and {dim} for month {self.month}, got {self.day}")
    if not 0 <= self.hour < HOURS_PER_DAY:
      raise InvalidDateError(f"Hour must be between 0 and 23, got {self.hour}")

  @classmethod
  def normalized(cls, year: int, month: int, day: int = 1, hour: int = 0) -> "GameDate":
    """Build a date, rolling day/hour overflow or underflow into neighbouring days."""
    days_in_month(month)
    base = cls(year, month, 1, 0)
    return base.advance((day - 1) * HOURS_PER_DAY + hour)

  @classmethod
  def from_absolute_hour(cls, absolute_hour: int) -> "GameDate":
    absolute_day, hour = divmod(int(absolute_hour), HOURS_PER_DAY)
    year_index, day_index = divmod(absolute_day, DAYS_PER_YEAR)
    month = 1
    while month < 12 and day_index + 1 >= _MONTH_START[month]:
      month += 1
    return cls(year_index + 1, month, day_index + 2 - _MONTH_START[month - 1], hour)

  @classmethod
  def from_dict(cls, data: dict) -> "GameDate":
    try:
      return cls(int(data["year"]), int(data["month"]), int(data.get("day", 1)), int(data.get("hour", 0)))
    except (KeyError, TypeError, ValueError) as e:
      raise InvalidDateError(f"Malformed date record {data!r}: {e}") from e

  @property
  def day_of_year(self) -> int:
    return _MONTH_START[self.month - 1] + self.day - 1

  @property
  def absolute_day(self) -> int:
    return (self.year - 1) * DAYS_PER_YEAR + self.day_of_year - 1

  @property
  def absolute_hour(self) -> int:
    return self.absolute_day * HOURS_PER_DAY + self.hour

  @property
  def season(self) -> str:
    return season_for_month(self.month)

  @property
  def season_phase(self) -> str:
    # winter runs Dec, Jan, Feb so December is its first month
    position = (self.month % 12) % 3
    return ("Early", "Mid", "Late")[position]

  @property
  def month_name(self) -> str:
    return MONTH_NAMES[self.month - 1]

  def advance(self, hours: int) -> "GameDate":
    return GameDate.from_absolute_hour(self.absolute_hour + int(hours))

  def with_hour(self, hour: int) -> "GameDate":
    return GameDate(self.year, self.month, self.day, hour)

  def start_of_day(self) -> "GameDate":
    return self.with_hour(0)

  def hours_until(self, other: "GameDate") -> int:
    return other.absolute_hour - self.absolute_hour

  def to_dict(self) -> dict:
    return {"year": self.year, "month": self.month, "day": self.day, "hour": self.hour}

  def format(self) -> str:
    return f"{self.month_name} {self.day}, Year {self.year}"

  def __str__(self):
    return f"{self.year:04d}-{self.month:02d}-{self.day:02d} {self.hour:02d}:00"


def compare_dates(a: GameDate, b: GameDate) -> int:
  return (a > b) - (a < b)


def format_decimal_hour(hour: Optional[float]) -> str:
  if hour is None:
    return "N/A"
  total_minutes = int(round(hour * 60)) % (24 * 60)
  h, m = divmod(total_minutes, 60)
  suffix = "AM" if h < 12 else "PM"
  display = h % 12 or 12
  return f"{display}:{m:02d} {suffix}"


def format_day_length(hours: float) -> str:
  if hours <= 0:
    return "No daylight"
  if hours >= 24:
    return "24 hours (Always day)"
  total_minutes = int(round(hours * 60))
  h, m = divmod(total_minutes, 60)
  return f"{h} hr {m} min"


@dataclass
class Timebase:
  start: GameDate
  end: GameDate

  def hours(self) -> Iterator[GameDate]:
    h = self.start.absolute_hour
    while h <= self.end.absolute_hour:
      yield GameDate.from_absolute_hour(h)
      h += 1

  def days(self) -> Iterator[GameDate]:
    d = self.start.start_of_day()
    while d <= self.end:
      yield d
      d = d.advance(HOURS_PER_DAY)

  @classmethod
  def for_year(cls, year: int, first_month: int = 1, last_month: int = 12) -> "Timebase":
    last = GameDate(year, last_month, days_in_month(last_month), 23)
    return cls(GameDate(year, first_month, 1, 0), last)
