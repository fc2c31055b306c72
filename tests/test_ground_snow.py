import numpy as np
import pytest

from weathermaster.core.daylight import SunriseSunsetService
from weathermaster.core.timebase import GameDate
from weathermaster.model.records import (
  CloudCover,
  Intensity,
  PatternInfo,
  PrecipType,
  Precipitation,
  Pressure,
  Visibility,
  WeatherSnapshot,
  Wind,
)
from weathermaster.model.regions import region_from_record
from weathermaster.weather.generator import WeatherGenerator
from weathermaster.weather.ground import (
  GroundTemperatureService,
  ewma,
  ground_condition,
  snow_insulation_factor,
)
from weathermaster.weather.precipitation import ICE_RATES, SNOW_RATES
from weathermaster.weather.snow import (
  SnowAccumulationService,
  SnowPack,
  classify_ground,
  melt_amounts,
  step_pack,
  sticking_factor,
  travel_impact,
)


@pytest.fixture
def services(settings):
  generator = WeatherGenerator(settings)
  ground = GroundTemperatureService(generator)
  snow = SnowAccumulationService(generator, ground, SunriseSunsetService())
  return generator, ground, snow


def hour(temp, humidity=80, kind=PrecipType.NONE, intensity=None, wind=5, clouds=20):
  return WeatherSnapshot(
    region_id="test",
    date=GameDate(2, 1, 10, 3),
    temperature=temp,
    feels_like=temp,
    condition="Clear",
    wind=Wind(wind, "N"),
    humidity=humidity,
    dew_point=float(temp - 10),
    precipitation=Precipitation(kind, intensity, 0.0, 0),
    pressure=Pressure(30.0, "Steady", "Normal"),
    cloud_cover=CloudCover(clouds, "Few"),
    visibility=Visibility(10.0, "Clear"),
    effects=(),
    pattern=PatternInfo("Stable", 1, 4),
  )


def test_ewma_weights_recent_hours():
  values = np.array([0.0, 0.0, 0.0, 10.0])
  assert ewma(values, 0.5) > values.mean()
  assert ewma(np.full(5, 7.0), 0.9) == pytest.approx(7.0)


def test_higher_inertia_damps_diurnal_range():
  hours = np.arange(200)
  air = 40 + 15 * np.sin(2 * np.pi * hours / 24)

  def daily_range(inertia):
    smoothed = [ewma(air[max(0, i - 72):i + 1], inertia) for i in range(100, 200)]
    return max(smoothed) - min(smoothed)

  assert daily_range(0.98) < daily_range(0.85) < daily_range(0.70)


def test_insulation_and_condition():
  assert snow_insulation_factor(2) == 0.0
  assert snow_insulation_factor(8) == pytest.approx(0.5)
  assert snow_insulation_factor(20) == 1.0
  assert ground_condition(20) == "frozen"
  assert ground_condition(33) == "near-freezing"
  assert ground_condition(38) == "cool"
  assert ground_condition(60) == "warm"


def test_unknown_ground_type_falls_back_to_soil(services):
  _, ground, _ = services
  region = region_from_record({"id": "g", "specialFactors": {"groundType": "cheese"}})
  assert ground.ground_type(region) == "soil"


def test_ground_respects_floor_and_snow_warms(services, templates):
  _, ground, _ = services
  tundra = templates["tundra-plain"]
  date = GameDate(2, 1, 20, 6)
  bare = ground.get_ground_temperature(tundra, date)
  assert bare.temperature >= -40
  covered = ground.get_ground_temperature(tundra, date, snow_depth=12)
  assert covered.snow_insulation == 1.0
  if bare.temperature < 32:
    assert covered.temperature > bare.temperature


def test_no_melt_at_or_below_freezing():
  for temp in (-20, 0, 31.9, 32):
    assert melt_amounts(temp, True, 1.0, 1.5, Intensity.HEAVY) == (0.0, 0.0)
  snow, ice = melt_amounts(40, False, 0.0, 1.0)
  assert snow == pytest.approx(8 * 0.06)
  assert ice == pytest.approx(8 * 0.02)
  assert melt_amounts(40, True, 0.0, 1.0)[0] > snow
  assert melt_amounts(40, False, 0.0, 1.0, Intensity.LIGHT)[0] > snow


def test_sticking_factor():
  assert sticking_factor(30) == 1.0
  assert sticking_factor(35.5) == pytest.approx(0.5)
  assert sticking_factor(40) == 0.0


def test_travel_impact_text():
  assert travel_impact(0, 0, "Dry") == "Normal travel conditions"
  assert "Deep snow" in travel_impact(14, 0, "Snow Covered")
  assert "Severe ice" in travel_impact(0, 0.3, "Icy")
  assert classify_ground(1.0, 0, []) == "Snow Covered"
  assert classify_ground(0, 0.2, []) == "Icy"


def test_accumulation_non_negative(services, templates):
  _, _, snow = services
  for key in ("tundra-plain", "cold-continental-prairie", "continental-taiga"):
    region = templates[key]
    for month in (1, 3, 7):
      state = snow.get_accumulation(region, GameDate(2, month, 20, 12))
      assert state.snow_depth >= 0
      assert state.snow_water_equivalent >= 0
      assert state.ice_thickness >= 0
      assert 0 <= state.snow_fill_percent <= 100


def test_warm_region_has_no_snow(services, templates):
  _, _, snow = services
  state = snow.get_accumulation(templates["rainforest-basin"], GameDate(2, 7, 20, 12))
  assert state.snow_depth == 0
  assert state.ice_thickness == 0


def test_accumulation_cached(services, prairie):
  _, _, snow = services
  date = GameDate(2, 2, 2, 2)
  assert snow.get_accumulation(prairie, date) is snow.get_accumulation(prairie, date)


def test_fresh_snow_adds_depth_and_resets_age():
  pack = SnowPack(depth=2.0, swe=0.2, age_hours=10)
  after = step_pack(pack, hour(25, kind=PrecipType.SNOW, intensity=Intensity.MODERATE), 30, False, 0.0, 1.0)
  assert after.depth == pytest.approx(2.0 + SNOW_RATES[Intensity.MODERATE])
  assert after.swe == pytest.approx(0.2 + SNOW_RATES[Intensity.MODERATE] / 10)
  assert after.age_hours == 0

  warm_ground = step_pack(SnowPack(), hour(30, kind=PrecipType.SNOW, intensity=Intensity.HEAVY), 40, False, 0.0, 1.0)
  assert warm_ground.depth == 0


def test_freezing_rain_ices_only_frozen_ground():
  glaze = hour(31, kind=PrecipType.FREEZING_RAIN, intensity=Intensity.LIGHT)
  assert step_pack(SnowPack(), glaze, 30, False, 0.0, 1.0).ice == pytest.approx(ICE_RATES[Intensity.LIGHT])
  assert step_pack(SnowPack(), glaze, 34, False, 0.0, 1.0).ice == 0


def test_compaction_never_below_water_equivalent_floor():
  after = step_pack(SnowPack(depth=1.0, swe=0.19, age_hours=72), hour(30), 20, False, 0.0, 1.0)
  assert after.depth == pytest.approx(0.19 * 5)
  assert after.age_hours == 73


def test_sublimation_needs_cold_dry_air():
  pack = SnowPack(depth=5.0, swe=0.5)
  cold_dry_night = step_pack(pack, hour(10, humidity=30), 10, False, 0.0, 1.0)
  assert cold_dry_night.swe == pytest.approx(0.499)
  warm_sunny_windy = step_pack(pack, hour(45, humidity=30, wind=15, clouds=5), 30, True, 0.0, 1.0)
  assert warm_sunny_windy.swe == pytest.approx(0.5)
  cold_humid = step_pack(pack, hour(10, humidity=60), 10, False, 0.0, 1.0)
  assert cold_humid.swe == pytest.approx(0.5)
  # dry climates sublimate up to 25°F, faster
  assert step_pack(pack, hour(22, humidity=30), 10, False, 1.0, 1.0).swe == pytest.approx(0.5 - 0.0015)
  assert step_pack(pack, hour(22, humidity=30), 10, False, 0.0, 1.0).swe == pytest.approx(0.5)


def test_cold_region_builds_snow_cover(services, templates):
  _, _, snow = services
  tundra = templates["tundra-plain"]
  states = [snow.get_accumulation(tundra, GameDate(2, m, d, 12)) for m, d in ((1, 20), (2, 10), (2, 28), (12, 20))]
  assert any(s.snow_depth > 0 for s in states)
  for s in states:
    if s.snow_depth >= 0.6:
      assert s.ground_condition == "Snow Covered"
