from weathermaster.core.timebase import GameDate
from weathermaster.model.records import PrecipType
from weathermaster.model.regions import region_from_record
from weathermaster.model.settings import EngineSettings
from weathermaster.weather.effects import gameplay_effects, weather_effects
from weathermaster.weather.generator import (
  COMPASS_POINTS,
  WeatherGenerator,
  compass_index,
  precipitation_condition,
  sky_condition,
)

CONDITIONS = {
  "Clear", "Partly Cloudy", "Cloudy", "Overcast", "Fog", "Mist",
  "Light Rain", "Rain", "Heavy Rain", "Light Snow", "Snow", "Heavy Snow",
  "Sleet", "Freezing Rain", "Thunderstorm", "Blizzard",
}


def test_snapshot_is_deterministic(settings, prairie):
  date = GameDate(5, 7, 12, 16)
  a = WeatherGenerator(settings).generate(prairie, date)
  b = WeatherGenerator(settings).generate(prairie, date)
  assert a == b


def test_snapshot_invariants(settings, templates):
  generator = WeatherGenerator(settings)
  for region in templates.values():
    for h in range(0, 24 * 10, 5):
      snap = generator.generate(region, GameDate(2, 1, 1).advance(h * 17))
      assert snap.condition in CONDITIONS
      assert 0 <= snap.humidity <= 100
      assert snap.dew_point <= snap.temperature
      assert snap.wind.speed >= 0
      assert snap.wind.direction in COMPASS_POINTS
      assert 0 <= snap.cloud_cover.percent <= 100
      assert snap.precipitation.rate >= 0
      if snap.precipitation.type is PrecipType.NONE:
        assert snap.precipitation.intensity is None
        assert snap.precipitation.rate == 0
      assert 1 <= snap.pattern.day_of_pattern <= settings.cycle_length_days
      assert snap.gameplay_effects == gameplay_effects(snap.condition)


def test_fallbacks_recorded(settings):
  region = region_from_record({"id": "nowhere", "latitudeBand": "atlantis"})
  snap = WeatherGenerator(settings).generate(region, GameDate(1, 5, 5, 12))
  assert "temperature_profile" in snap.fallbacks
  assert "humidity_profile" in snap.fallbacks
  assert "latitude_band" in snap.fallbacks


def test_debug_only_when_enabled(prairie):
  settings = EngineSettings()
  date = GameDate(1, 5, 5, 12)
  assert WeatherGenerator(settings).generate(prairie, date).debug is None
  debug = WeatherGenerator(settings, debug=True).generate(prairie, date).debug
  assert debug["archetype"] == "continental"
  assert "precip_probability" in debug


def test_snapshots_are_cached(settings, prairie):
  generator = WeatherGenerator(settings)
  date = GameDate(1, 5, 5, 12)
  first = generator.generate(prairie, date)
  assert generator.generate(prairie, date) is first
  stats = generator.cache_stats()
  assert stats["weather-snapshots"]["hits"] >= 1
  generator.clear_cache()
  assert generator.cache_stats()["weather-snapshots"]["entries"] == 0


def test_to_row_is_flat(settings, prairie):
  row = WeatherGenerator(settings).generate(prairie, GameDate(1, 5, 5, 12)).to_row()
  assert row["region_id"] == "continental-prairie"
  assert (row["year"], row["month"], row["day"], row["hour"]) == (1, 5, 5, 12)
  assert all(not isinstance(v, (dict, list, tuple)) for v in row.values())


def test_condition_helpers():
  assert sky_condition(5) == "Clear"
  assert sky_condition(30) == "Partly Cloudy"
  assert sky_condition(95) == "Overcast"
  assert precipitation_condition(PrecipType.NONE, None) is None
  assert compass_index("nne") == 1
  assert compass_index("bogus") == COMPASS_POINTS.index("W")


def test_effects():
  assert any("Extreme cold" in e for e in weather_effects("Clear", -20, 5, False))
  assert any("Gale" in e for e in weather_effects("Cloudy", 50, 45, False))
  assert weather_effects("Clear", 60, 5, False) == []
  assert any("Blizzard" in e for e in weather_effects("Blizzard", 10, 35, True))
  assert "icy_ground" in gameplay_effects("Freezing Rain")
  assert gameplay_effects("Clear") == ()
