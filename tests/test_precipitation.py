import pytest

from weathermaster.core.rng import SeededRandom
from weathermaster.core.timebase import GameDate
from weathermaster.model.records import Intensity, PrecipType
from weathermaster.model.regions import region_from_record
from weathermaster.model.settings import StreakCaps
from weathermaster.weather.generator import WeatherGenerator
from weathermaster.weather.precipitation import (
  aridity_multiplier,
  classify_storm,
  climate_archetype,
  precipitation_rate,
  resolve_type,
  streak_multiplier,
  thunderstorm_probability,
)

RAIN_SNOW = {PrecipType.RAIN, PrecipType.SNOW}


def test_archetypes(templates):
  assert climate_archetype(templates["tundra-plain"]) == "polar"
  assert climate_archetype(templates["continental-prairie"]) == "continental"
  assert climate_archetype(templates["monsoon-coast"]) == "monsoon"
  explicit = region_from_record({"id": "x", "specialFactors": {"climateType": "maritime"}})
  assert climate_archetype(explicit) == "maritime"


def test_streak_multiplier_shape():
  caps = StreakCaps(soft=6, hard=12)
  floor = 0.15
  values = [streak_multiplier(n, caps, floor) for n in range(15)]
  assert values[:6] == [1.0] * 6
  assert all(a >= b for a, b in zip(values, values[1:]))
  assert values[11] == pytest.approx(floor)
  assert values[12] == 0.0 and values[14] == 0.0


def test_resolve_type_never_jumps_rain_to_snow():
  assert resolve_type(PrecipType.RAIN, 5, 15, False, True, 0.9) is PrecipType.SLEET
  assert resolve_type(PrecipType.SNOW, 5, 50, True, False, 0.9) is PrecipType.SLEET
  assert resolve_type(PrecipType.RAIN, 1, 25, False, False, 0.9) is PrecipType.SLEET
  assert resolve_type(PrecipType.SNOW, 1, 40, False, False, 0.9) is PrecipType.SLEET
  for temp in range(-10, 60, 2):
    for regime in (PrecipType.RAIN, PrecipType.SNOW):
      for streak in (1, 5):
        for warming, cooling in ((False, False), (True, False), (False, True)):
          for roll in (0.1, 0.5, 0.9):
            kind = resolve_type(regime, streak, temp, warming, cooling, roll)
            assert {regime, kind} != RAIN_SNOW


def test_fresh_event_types():
  assert resolve_type(None, 0, 10, False, False, 0.5) is PrecipType.SNOW
  assert resolve_type(None, 0, 50, False, False, 0.5) is PrecipType.RAIN
  assert resolve_type(None, 0, 25, False, False, 0.5) is PrecipType.SNOW
  assert resolve_type(None, 0, 40, False, False, 0.5) is PrecipType.RAIN
  assert resolve_type(None, 0, 33, False, False, 0.2) is PrecipType.SLEET
  assert resolve_type(None, 0, 33, False, False, 0.8) is PrecipType.FREEZING_RAIN


def test_established_snow_persists_above_freezing():
  assert resolve_type(PrecipType.SNOW, 4, 35, False, False, 0.5) is PrecipType.SNOW
  assert resolve_type(PrecipType.SNOW, 4, 35, True, False, 0.5) is PrecipType.SLEET


def test_buffer_commits_with_trend():
  assert resolve_type(PrecipType.SLEET, 2, 26, False, True, 0.5) is PrecipType.SNOW
  assert resolve_type(PrecipType.SLEET, 2, 40, True, False, 0.5) is PrecipType.RAIN
  assert resolve_type(PrecipType.FREEZING_RAIN, 2, 33, False, False, 0.5) is PrecipType.FREEZING_RAIN


def test_rates():
  assert precipitation_rate(PrecipType.NONE, None) == 0.0
  assert precipitation_rate(PrecipType.SNOW, Intensity.HEAVY) == 1.0
  assert precipitation_rate(PrecipType.RAIN, Intensity.LIGHT) == 0.05
  assert precipitation_rate(PrecipType.SLEET, Intensity.MODERATE) == 0.05


def test_aridity_floor():
  desert = region_from_record({
    "id": "d",
    "specialFactors": {"dryAir": 1.0, "permanentIce": 0.9, "coldOceanCurrent": 1.0, "rainShadowEffect": 1.0},
  })
  assert aridity_multiplier(desert) == pytest.approx(0.02)


def test_thunderstorm_probability_formula():
  assert thunderstorm_probability(0.7, 2, 1, 60) == pytest.approx(0.42)
  assert thunderstorm_probability(0.7, 15, 7, 85) == pytest.approx(0.77)
  assert thunderstorm_probability(1.0, 15, 7, 90) == pytest.approx(0.95)


def test_thunderstorm_frequency_tracks_formula():
  p = thunderstorm_probability(0.7, 15, 7, 85)
  rng = SeededRandom(2024)
  n = 5000
  storms = sum(
    classify_storm(PrecipType.RAIN, Intensity.HEAVY, 85, 10, p, rng.next()) == "Thunderstorm"
    for _ in range(n)
  )
  assert storms / n == pytest.approx(p, abs=0.03)


def test_storm_rules():
  assert classify_storm(PrecipType.RAIN, Intensity.MODERATE, 85, 10, 1.0, 0.0) is None
  assert classify_storm(PrecipType.RAIN, Intensity.HEAVY, 50, 10, 1.0, 0.0) is None
  assert classify_storm(PrecipType.SNOW, Intensity.HEAVY, 10, 35, 0.0, 0.5) == "Blizzard"
  assert classify_storm(PrecipType.SNOW, Intensity.HEAVY, 25, 35, 0.0, 0.5) is None


@pytest.fixture
def generator(settings):
  return WeatherGenerator(settings)


def test_no_rain_snow_adjacency_within_event(generator, cold_prairie):
  model = generator.precipitation
  start = GameDate(1, 3, 1).absolute_hour
  prev = model.hour_state(cold_prairie, start - 1)
  for h in range(start, start + 24 * 60):
    state = model.hour_state(cold_prairie, h)
    if state.wet and prev.regime is not None:
      assert {prev.regime, state.kind} != RAIN_SNOW
    prev = state


def test_streaks_respect_hard_cap(generator, templates):
  model = generator.precipitation
  for key in ("rainforest-basin", "maritime-forest", "monsoon-coast"):
    region = templates[key]
    hard = model.caps(region).hard
    start = GameDate(2, 6, 1).absolute_hour
    for h in range(start, start + 24 * 30):
      state = model.hour_state(region, h)
      assert state.event_wet_hours <= hard
      assert state.consecutive_wet <= hard


def test_every_block_has_a_lull(generator, prairie, settings):
  model = generator.precipitation
  block = settings.lull_block_hours
  for b in range(10):
    hours = range(b * block, (b + 1) * block)
    lulls = [h for h in hours if model.in_lull(prairie, h)]
    assert len(lulls) == settings.lull_hours
    assert all(model.base(prairie, h).raw_dry for h in lulls)


def test_replay_cold_matches_sequential(settings, templates):
  region = templates["maritime-forest"]
  target = GameDate(3, 11, 10, 14).absolute_hour
  sequential = WeatherGenerator(settings).precipitation
  states = [sequential.hour_state(region, h) for h in range(target - 300, target + 1)]
  for offset in (0, 7, 53, 120):
    cold = WeatherGenerator(settings).precipitation
    assert cold.hour_state(region, target - offset) == states[-1 - offset]


def test_replay_order_does_not_matter(settings, prairie):
  a = WeatherGenerator(settings).precipitation
  b = WeatherGenerator(settings).precipitation
  hours = list(range(GameDate(2, 7, 1).absolute_hour, GameDate(2, 7, 6).absolute_hour))
  forward = [a.hour_state(prairie, h) for h in hours]
  backward = [b.hour_state(prairie, h) for h in reversed(hours)]
  assert forward == list(reversed(backward))


def test_precipitation_occurs_in_wet_regions(generator, templates):
  region = templates["rainforest-basin"]
  start = GameDate(1, 6, 1).absolute_hour
  wet = sum(generator.precipitation.hour_state(region, h).wet for h in range(start, start + 24 * 30))
  assert 0 < wet < 24 * 30
