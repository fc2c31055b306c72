"""Synoptic weather patterns: a weighted Markov chain over 4-day cycles."""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional, Tuple
import logging

from ..core.rng import SeededRandom, generate_pattern_seed
from ..core.timebase import GameDate, HOURS_PER_DAY
from ..model.regions import RegionProfile
from ..model.settings import EngineSettings
from ..runtime.cache import MemoCache

logger = logging.getLogger(__name__)


class PatternType(str, Enum):
    HIGH_PRESSURE = "High Pressure"
    LOW_PRESSURE = "Low Pressure"
    WARM_FRONT = "Warm Front"
    COLD_FRONT = "Cold Front"
    STABLE = "Stable"


@dataclass(frozen=True)
class PatternSpec:
    """Static characteristics of a pattern type."""
    duration: Tuple[int, int]
    clear_skies: float
    precipitation_chance: float
    wind_multiplier: float
    temp_modifier: float
    pressure_range: Tuple[float, float]
    wind_shift: int
    description: str

    @property
    def pressure_mid(self) -> float:
        return sum(self.pressure_range) / 2

    @property
    def pressure_span(self) -> float:
        return self.pressure_range[1] - self.pressure_range[0]


PATTERNS: Dict[PatternType, PatternSpec] = {
    PatternType.HIGH_PRESSURE: PatternSpec(
        duration=(3, 5), clear_skies=0.8, precipitation_chance=0.1, wind_multiplier=0.6,
        temp_modifier=2.0, pressure_range=(30.20, 30.70), wind_shift=2,
        description="Clear skies and calm, settled weather",
    ),
    PatternType.LOW_PRESSURE: PatternSpec(
        duration=(2, 4), clear_skies=0.2, precipitation_chance=0.7, wind_multiplier=1.3,
        temp_modifier=-2.0, pressure_range=(29.20, 29.70), wind_shift=-4,
        description="Unsettled weather with clouds and precipitation",
    ),
    PatternType.WARM_FRONT: PatternSpec(
        duration=(2, 3), clear_skies=0.4, precipitation_chance=0.5, wind_multiplier=0.8,
        temp_modifier=4.0, pressure_range=(29.70, 30.00), wind_shift=-3,
        description="Warming trend with steady light precipitation",
    ),
    PatternType.COLD_FRONT: PatternSpec(
        duration=(1, 3), clear_skies=0.3, precipitation_chance=0.6, wind_multiplier=1.5,
        temp_modifier=-5.0, pressure_range=(29.40, 29.80), wind_shift=2,
        description="Sharp cooling with gusty winds and showers",
    ),
    PatternType.STABLE: PatternSpec(
        duration=(4, 7), clear_skies=0.6, precipitation_chance=0.3, wind_multiplier=0.7,
        temp_modifier=0.0, pressure_range=(29.80, 30.10), wind_shift=0,
        description="Typical seasonal weather",
    ),
}

PATTERN_ORDER: Tuple[PatternType, ...] = tuple(PatternType)

# Relative likelihood of the next cycle's pattern given the current one
TRANSITIONS: Dict[PatternType, Dict[PatternType, float]] = {
    PatternType.HIGH_PRESSURE: {
        PatternType.HIGH_PRESSURE: 2, PatternType.LOW_PRESSURE: 1, PatternType.WARM_FRONT: 3,
        PatternType.COLD_FRONT: 1, PatternType.STABLE: 3,
    },
    PatternType.LOW_PRESSURE: {
        PatternType.HIGH_PRESSURE: 2, PatternType.LOW_PRESSURE: 1, PatternType.WARM_FRONT: 1,
        PatternType.COLD_FRONT: 4, PatternType.STABLE: 2,
    },
    PatternType.WARM_FRONT: {
        PatternType.HIGH_PRESSURE: 1, PatternType.LOW_PRESSURE: 3, PatternType.WARM_FRONT: 1,
        PatternType.COLD_FRONT: 2, PatternType.STABLE: 2,
    },
    PatternType.COLD_FRONT: {
        PatternType.HIGH_PRESSURE: 5, PatternType.LOW_PRESSURE: 1, PatternType.WARM_FRONT: 1,
        PatternType.COLD_FRONT: 1, PatternType.STABLE: 2,
    },
    PatternType.STABLE: {
        PatternType.HIGH_PRESSURE: 3, PatternType.LOW_PRESSURE: 2, PatternType.WARM_FRONT: 2,
        PatternType.COLD_FRONT: 1, PatternType.STABLE: 2,
    },
}

# Weights for the first cycle of an epoch, where no predecessor is known
BASE_WEIGHTS: Dict[PatternType, float] = {
    PatternType.HIGH_PRESSURE: 3, PatternType.LOW_PRESSURE: 2, PatternType.WARM_FRONT: 2,
    PatternType.COLD_FRONT: 2, PatternType.STABLE: 3,
}

# Long-run average precipitation chance, used as the "expected" climate
CLIMATOLOGICAL_PRECIP_CHANCE = (
    sum(BASE_WEIGHTS[p] * PATTERNS[p].precipitation_chance for p in PATTERN_ORDER)
    / sum(BASE_WEIGHTS.values())
)


@dataclass(frozen=True)
class PatternInstance:
    """The pattern bound to one cycle of one region."""
    cycle: int
    pattern: PatternType
    total_days: int
    run_length: int
    previous: Optional[PatternType]

    @property
    def spec(self) -> PatternSpec:
        return PATTERNS[self.pattern]

    @property
    def name(self) -> str:
        return self.pattern.value


class WeatherPatternService:
    """Selects and caches the synoptic pattern for each region cycle.

    Cycles are evaluated in fixed epochs: the first cycle of an epoch draws
    from BASE_WEIGHTS and every later cycle draws from its predecessor's
    transition row with fatigue applied. A whole epoch is computed at once and
    cached, so a cycle's pattern never depends on which query asked first.
    """

    def __init__(self, settings: EngineSettings):
        """Initialize pattern service.

        Args:
            settings: Engine tunables (cycle length, epoch size, fatigue)
        """
        self.settings = settings
        self.cache = MemoCache("weather-patterns", max_entries=settings.cache_max_entries)

    @property
    def hours_per_cycle(self) -> int:
        return self.settings.cycle_length_days * HOURS_PER_DAY

    def cycle_index(self, date: GameDate) -> int:
        return date.absolute_day // self.settings.cycle_length_days

    def day_of_pattern(self, date: GameDate) -> int:
        return date.absolute_day % self.settings.cycle_length_days + 1

    def region_weights(self, region: RegionProfile, weights: Dict[PatternType, float]) -> Dict[PatternType, float]:
        """Apply region-level pattern biases.

        Args:
            region: Region profile
            weights: Raw weights by pattern

        Returns:
            New weight dict
        """
        storms = region.factor("stormFrequency")
        if not storms:
            return dict(weights)
        adjusted = dict(weights)
        for p in (PatternType.LOW_PRESSURE, PatternType.COLD_FRONT):
            adjusted[p] = adjusted[p] * (1 + storms)
        return adjusted

    def transition_weights(
        self,
        region: RegionProfile,
        previous: PatternType,
        run_length: int,
    ) -> Dict[PatternType, float]:
        """Weights for the cycle following `previous`.

        Args:
            region: Region profile
            previous: Pattern of the preceding cycle
            run_length: How many consecutive cycles `previous` has held

        Returns:
            Weight per pattern, with fatigue applied to a repeat of `previous`
        """
        weights = self.region_weights(region, TRANSITIONS[previous])
        if run_length > 0:
            fatigue = self.settings.pattern_fatigue
            weights[previous] *= fatigue[min(run_length, len(fatigue)) - 1]
        return weights

    def _compute_epoch(self, region: RegionProfile, epoch: int) -> Tuple[PatternInstance, ...]:
        size = self.settings.pattern_epoch_cycles
        cycle_len = self.settings.cycle_length_days
        instances = []
        previous: Optional[PatternType] = None
        run = 0
        for cycle in range(epoch * size, (epoch + 1) * size):
            first_day = GameDate.from_absolute_hour(cycle * self.hours_per_cycle)
            if previous is None:
                weights = self.region_weights(region, BASE_WEIGHTS)
            else:
                weights = self.transition_weights(region, previous, run)
            rng = SeededRandom(generate_pattern_seed(region.id, first_day, cycle_len, "weather-pattern"))
            pattern = rng.weighted_choice(PATTERN_ORDER, [weights[p] for p in PATTERN_ORDER])
            low, high = PATTERNS[pattern].duration
            total_days = rng.int(low, high)
            run = run + 1 if pattern == previous else 1
            instances.append(PatternInstance(cycle, pattern, total_days, run, previous))
            previous = pattern
        logger.debug(f"Computed pattern epoch {epoch} for {region.id}")
        return tuple(instances)

    def pattern_for_cycle(self, region: RegionProfile, cycle: int) -> PatternInstance:
        """Get the pattern bound to a cycle.

        Args:
            region: Region profile
            cycle: Cycle index (absolute day // cycle length)

        Returns:
            PatternInstance for that cycle
        """
        size = self.settings.pattern_epoch_cycles
        epoch = cycle // size
        instances = self.cache.get_or_compute(
            (region.cache_key, epoch), lambda: self._compute_epoch(region, epoch)
        )
        return instances[cycle - epoch * size]

    def current_pattern(self, region: RegionProfile, date: GameDate) -> PatternInstance:
        return self.pattern_for_cycle(region, self.cycle_index(date))

    def pattern_at_hour(self, region: RegionProfile, absolute_hour: int) -> PatternInstance:
        return self.pattern_for_cycle(region, absolute_hour // self.hours_per_cycle)

    def blended(
        self,
        region: RegionProfile,
        absolute_hour: int,
        value_fn: Callable[[PatternSpec], float],
    ) -> float:
        """Pattern-driven value, linearly blended across cycle boundaries.

        Within `blend_hours` of a boundary the value moves along a straight
        line through the midpoint of the two neighbouring cycles' values.

        Args:
            region: Region profile
            absolute_hour: Hour index since the calendar epoch
            value_fn: Extracts the quantity from a PatternSpec

        Returns:
            Blended value
        """
        per_cycle = self.hours_per_cycle
        cycle = absolute_hour // per_cycle
        since = absolute_hour - cycle * per_cycle
        until = per_cycle - since
        window = self.settings.blend_hours
        current = value_fn(self.pattern_for_cycle(region, cycle).spec)
        if window and since < window:
            previous = value_fn(self.pattern_for_cycle(region, cycle - 1).spec)
            return previous + (current - previous) * (0.5 + 0.5 * since / window)
        if window and until <= window:
            upcoming = value_fn(self.pattern_for_cycle(region, cycle + 1).spec)
            return current + (upcoming - current) * (0.5 - 0.5 * until / window)
        return current

    def temperature_modifier(self, region: RegionProfile, absolute_hour: int) -> float:
        return self.blended(region, absolute_hour, lambda spec: spec.temp_modifier)

    def clear_cache(self) -> None:
        self.cache.clear()
