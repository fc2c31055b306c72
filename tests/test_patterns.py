from weathermaster.core.timebase import GameDate
from weathermaster.model.settings import EngineSettings
from weathermaster.weather.patterns import (
  PATTERNS,
  TRANSITIONS,
  PatternType,
  WeatherPatternService,
)


def test_pattern_constant_within_cycle(settings, prairie):
  patterns = WeatherPatternService(settings)
  start = GameDate(2, 1, 1)
  cycle = patterns.cycle_index(start)
  names = {patterns.current_pattern(prairie, start.advance(h)).name for h in range(settings.cycle_length_days * 24)}
  assert len(names) == 1
  assert patterns.cycle_index(start.advance(settings.cycle_length_days * 24)) == cycle + 1


def test_day_of_pattern_counts_up(settings, prairie):
  patterns = WeatherPatternService(settings)
  start = GameDate(1, 1, 1)
  assert [patterns.day_of_pattern(start.advance(24 * k)) for k in range(5)] == [1, 2, 3, 4, 1]


def test_epoch_cache_is_order_independent(settings, prairie):
  forward = WeatherPatternService(settings)
  backward = WeatherPatternService(settings)
  cycles = range(0, 80)
  a = [forward.pattern_for_cycle(prairie, c).pattern for c in cycles]
  b = [backward.pattern_for_cycle(prairie, c).pattern for c in reversed(cycles)]
  assert a == list(reversed(b))


def test_fatigue_lowers_repeat_weight(settings, prairie):
  patterns = WeatherPatternService(settings)
  fresh = TRANSITIONS[PatternType.STABLE][PatternType.STABLE]
  w1 = patterns.transition_weights(prairie, PatternType.STABLE, 1)[PatternType.STABLE]
  w2 = patterns.transition_weights(prairie, PatternType.STABLE, 2)[PatternType.STABLE]
  w3 = patterns.transition_weights(prairie, PatternType.STABLE, 3)[PatternType.STABLE]
  assert fresh > w1 > w2 > w3
  other = patterns.transition_weights(prairie, PatternType.STABLE, 3)[PatternType.HIGH_PRESSURE]
  assert other == TRANSITIONS[PatternType.STABLE][PatternType.HIGH_PRESSURE]


def test_run_length_tracks_repeats(settings, prairie):
  patterns = WeatherPatternService(settings)
  instances = [patterns.pattern_for_cycle(prairie, c) for c in range(settings.pattern_epoch_cycles)]
  assert instances[0].previous is None and instances[0].run_length == 1
  for prev, cur in zip(instances, instances[1:]):
    assert cur.previous == prev.pattern
    assert cur.run_length == (prev.run_length + 1 if cur.pattern == prev.pattern else 1)


def test_total_days_within_pattern_duration(settings, prairie):
  patterns = WeatherPatternService(settings)
  for c in range(64):
    inst = patterns.pattern_for_cycle(prairie, c)
    low, high = PATTERNS[inst.pattern].duration
    assert low <= inst.total_days <= high


def test_blend_is_continuous_at_boundary(prairie):
  settings = EngineSettings(blend_hours=12)
  patterns = WeatherPatternService(settings)
  boundary = patterns.hours_per_cycle * 10
  before = patterns.temperature_modifier(prairie, boundary - 1)
  after = patterns.temperature_modifier(prairie, boundary)
  spread = max(abs(s.temp_modifier) for s in PATTERNS.values()) * 2
  assert abs(after - before) <= spread / 12 + 1e-9


def test_patterns_differ_between_regions(settings, prairie, ocean):
  patterns = WeatherPatternService(settings)
  a = [patterns.pattern_for_cycle(prairie, c).pattern for c in range(40)]
  b = [patterns.pattern_for_cycle(ocean, c).pattern for c in range(40)]
  assert a != b
