import pytest

from weathermaster import GameDate, InvalidDateError, InvalidRegionError, UnknownRegionError, WeatherService
from weathermaster.service import coerce_date, group_into_periods


def test_default_service_loads_packaged_regions():
  service = WeatherService()
  assert "continental-prairie" in service.regions
  assert service.get_region("temperate-ocean").is_ocean


def test_unknown_region(service):
  with pytest.raises(UnknownRegionError):
    service.generate_weather("atlantis", GameDate(1, 1, 1))


def test_accepts_dicts(service):
  by_id = service.generate_weather("continental-prairie", {"year": 1, "month": 4, "day": 2, "hour": 9})
  by_profile = service.generate_weather(service.get_region("continental-prairie"), GameDate(1, 4, 2, 9))
  assert by_id == by_profile
  custom = service.generate_weather({"id": "custom", "latitudeBand": "boreal"}, GameDate(1, 4, 2, 9))
  assert custom.region_id == "custom"


def test_same_id_with_different_parameters_does_not_share_cache(service):
  date = GameDate(1, 6, 10, 15)
  cold = {"id": "ad-hoc", "temperatureProfile": {"annual": {"mean": 10, "variance": 5}}}
  hot = {"id": "ad-hoc", "temperatureProfile": {"annual": {"mean": 95, "variance": 5}}}
  cold_hour = service.generate_weather(cold, date)
  hot_hour = service.generate_weather(hot, date)
  assert hot_hour.temperature - cold_hour.temperature > 40
  assert service.generate_weather(dict(cold), date) == cold_hour
  cold_snow = service.get_accumulation(cold, date)
  hot_snow = service.get_accumulation(hot, date)
  assert hot_snow.ground_temperature > cold_snow.ground_temperature


def test_boundary_validation(service):
  with pytest.raises(InvalidDateError):
    service.generate_weather("continental-prairie", {"year": 1, "month": 13})
  with pytest.raises(InvalidRegionError):
    service.generate_weather({"name": "no id"}, GameDate(1, 1, 1))
  with pytest.raises(InvalidDateError):
    coerce_date("1-1-1")


def test_legacy_nesting_registers(service):
  profile = service.register_region({
    "id": "legacy",
    "climate": {"band": "subarctic", "maritimeInfluence": 0.2},
  })
  assert profile.band == "subarctic"
  assert service.get_region("legacy") is profile


def test_forecast_is_consecutive(service):
  start = GameDate(1, 12, 31, 20)
  forecast = service.get_forecast("continental-prairie", start, hours=10)
  assert [s.date for s in forecast] == [start.advance(k) for k in range(10)]


def test_forecast_matches_single_queries(service, settings, templates):
  start = GameDate(2, 3, 10, 0)
  forecast = service.get_forecast("maritime-forest", start, hours=48)
  cold = WeatherService(settings=settings, regions=templates)
  assert cold.generate_weather("maritime-forest", start.advance(37)) == forecast[37]


def test_daily_forecast(service):
  days = service.get_daily_forecast("continental-prairie", GameDate(1, 7, 1, 15), days=3)
  assert [d.date for d in days] == [GameDate(1, 7, 1), GameDate(1, 7, 2), GameDate(1, 7, 3)]
  for d in days:
    assert d.low <= d.mean <= d.high
    assert 0 <= d.precipitation_hours <= 24
    assert sum(d.conditions.values()) == 24
    assert d.condition in d.conditions


def test_group_into_periods(service):
  forecast = service.get_forecast("continental-prairie", GameDate(1, 5, 1), hours=48)
  periods = group_into_periods(forecast)
  assert sum(p["hours"] for p in periods) == 48
  assert periods[0]["start"] == forecast[0].date
  assert periods[-1]["end"] == forecast[-1].date
  for a, b in zip(periods, periods[1:]):
    assert a["condition"] != b["condition"]
  assert service.group_into_periods(forecast) == periods


def test_celestial_state(service):
  state = service.get_celestial_state("tundra-plain", GameDate(1, 6, 21, 12))
  assert state.latitude_band == "polar"
  assert state.sun.is_permanent_day
  assert state.distance_to_sun > 0
  d = state.to_dict()
  assert d["sun"]["day_length"] == "24 hours (Always day)"
  assert "moonrise" in d["moon"]


def test_current_conditions_land_and_ocean(service):
  date = GameDate(2, 1, 15, 8)
  land = service.get_current_conditions("cold-continental-prairie", date)
  assert {"weather", "celestial", "ground", "accumulation", "environment", "active_alerts"} <= set(land)
  assert "sea_state" not in land
  sea = service.get_current_conditions("temperate-ocean", date)
  assert {"weather", "celestial", "sea_state", "sea_forecast"} <= set(sea)
  assert "ground" not in sea


def test_cache_management(service):
  service.generate_weather("continental-prairie", GameDate(1, 1, 1, 1))
  stats = service.cache_stats()
  assert stats["weather-snapshots"]["entries"] >= 1
  assert {"ground-temperature", "snow-accumulation", "sea-state", "environmental-conditions"} <= set(stats)
  service.clear_cache()
  assert all(s["entries"] == 0 for s in service.cache_stats().values())
