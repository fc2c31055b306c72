import pytest

from weathermaster.core.timebase import (
  GameDate,
  Timebase,
  compare_dates,
  format_day_length,
  format_decimal_hour,
)
from weathermaster.errors import InvalidDateError


def test_rejects_out_of_domain_fields():
  for args in ((1, 13, 1), (1, 0, 1), (1, 2, 29), (1, 4, 31), (1, 1, 0)):
    with pytest.raises(InvalidDateError):
      GameDate(*args)
  with pytest.raises(InvalidDateError):
    GameDate(1, 1, 1, 24)
  with pytest.raises(ValueError):
    GameDate(1, 1, 1, -1)


def test_normalized_rolls_overflow():
  assert GameDate.normalized(1, 1, 32) == GameDate(1, 2, 1)
  assert GameDate.normalized(1, 3, 0) == GameDate(1, 2, 28)
  assert GameDate.normalized(1, 12, 31, 30) == GameDate(2, 1, 1, 6)
  with pytest.raises(InvalidDateError):
    GameDate.normalized(1, 13, 1)


def test_advance_across_year_boundaries():
  d = GameDate(5, 12, 31, 23)
  assert d.advance(1) == GameDate(6, 1, 1, 0)
  assert d.advance(1).advance(-1) == d
  assert GameDate(1, 1, 1, 0).advance(-1) == GameDate(0, 12, 31, 23)
  assert GameDate(1, 1, 1).advance(-24 * 365 * 2).year == -1


def test_advance_round_trip():
  d = GameDate(3, 6, 15, 12)
  for hours in (-10000, -25, -1, 0, 1, 24, 8760, 12345):
    assert d.advance(hours).advance(-hours) == d


def test_absolute_indices():
  assert GameDate(1, 1, 1).absolute_day == 0
  assert GameDate(1, 1, 1, 5).absolute_hour == 5
  assert GameDate(2, 1, 1).absolute_day == 365
  assert GameDate(1, 3, 1).day_of_year == 60
  assert GameDate(1, 12, 31).day_of_year == 365
  d = GameDate(7, 8, 9, 10)
  assert GameDate.from_absolute_hour(d.absolute_hour) == d


def test_seasons_and_phases():
  assert GameDate(1, 12, 1).season == "winter"
  assert GameDate(1, 2, 1).season == "winter"
  assert GameDate(1, 4, 1).season == "spring"
  assert GameDate(1, 7, 1).season == "summer"
  assert GameDate(1, 10, 1).season == "fall"
  assert GameDate(1, 12, 1).season_phase == "Early"
  assert GameDate(1, 1, 1).season_phase == "Mid"
  assert GameDate(1, 2, 1).season_phase == "Late"


def test_ordering():
  a, b = GameDate(1, 5, 1, 3), GameDate(1, 5, 1, 4)
  assert a < b
  assert compare_dates(a, b) == -1
  assert compare_dates(b, a) == 1
  assert compare_dates(a, a) == 0


def test_from_dict_validates():
  assert GameDate.from_dict({"year": 2, "month": 3, "day": 4, "hour": 5}) == GameDate(2, 3, 4, 5)
  assert GameDate.from_dict({"year": 2, "month": 3}) == GameDate(2, 3, 1, 0)
  with pytest.raises(InvalidDateError):
    GameDate.from_dict({"month": 3})
  with pytest.raises(InvalidDateError):
    GameDate.from_dict({"year": "x", "month": 3})


def test_formatting():
  assert format_decimal_hour(6.5) == "6:30 AM"
  assert format_decimal_hour(0) == "12:00 AM"
  assert format_decimal_hour(13.25) == "1:15 PM"
  assert format_decimal_hour(None) == "N/A"
  assert format_day_length(0) == "No daylight"
  assert format_day_length(24) == "24 hours (Always day)"
  assert format_day_length(10.5) == "10 hr 30 min"


def test_timebase_month_hours():
  hours = list(Timebase.for_year(1, 2, 2).hours())
  assert len(hours) == 28 * 24
  assert hours[0] == GameDate(1, 2, 1, 0)
  assert hours[-1] == GameDate(1, 2, 28, 23)
  assert len(list(Timebase.for_year(1).days())) == 365
