import pytest

from weathermaster.core.timebase import GameDate
from weathermaster.weather.generator import WeatherGenerator
from weathermaster.weather.sea import (
  BEAUFORT_SCALE,
  SAILING_RATINGS,
  SeaStateService,
  beaufort_index,
  sailing_rating,
  wave_height,
)


@pytest.fixture
def sea(settings):
  return SeaStateService(WeatherGenerator(settings))


def test_beaufort_table():
  assert len(BEAUFORT_SCALE) == 13
  assert beaufort_index(0) == 0
  assert beaufort_index(10) == 3
  assert beaufort_index(80) == 12


def test_wave_height_monotonic_in_wind():
  heights = [wave_height(w / 2) for w in range(0, 180)]
  assert all(a <= b for a, b in zip(heights, heights[1:]))


def test_fetch_scales_waves():
  assert wave_height(30, 0.4) == pytest.approx(wave_height(30) * 0.4)


def test_sailing_rating_thresholds():
  assert sailing_rating(95) == "excellent"
  assert sailing_rating(60) == "fair"
  assert sailing_rating(0) == "dangerous"


def test_sea_state_for_ocean(sea, ocean):
  state = sea.get_sea_state(ocean, GameDate(1, 11, 3, 9))
  assert 0 <= state.beaufort_force <= 12
  assert state.wave_height >= 0
  assert state.combined_sea_height >= state.wave_height
  assert state.sailing_condition in SAILING_RATINGS
  assert 0 <= state.sailing_score <= 100
  assert state.swell_direction == "W"


def test_local_swell_follows_wind(sea, templates):
  strait = templates["strait-passage"]
  date = GameDate(1, 4, 3, 9)
  weather = sea.weather(strait, date)
  state = sea.get_sea_state(strait, date, weather)
  assert state.swell_direction == weather.wind.direction
  assert "Strong currents" in state.hazards


def test_forecast_shape(sea, ocean):
  forecast = sea.get_sea_state_forecast(ocean, GameDate(1, 11, 3, 9))
  assert [f["hours_ahead"] for f in forecast["forecasts"]] == [1, 2, 3, 6]
  assert forecast["trend"] in ("deteriorating_rapidly", "deteriorating", "steady", "improving", "improving_rapidly")
  if forecast["peak"] is not None:
    assert forecast["peak"]["wave_height"] > forecast["current"]["wave_height"]
