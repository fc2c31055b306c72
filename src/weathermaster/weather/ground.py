"""Ground temperature as an exponentially weighted average of recent air temperature."""

from dataclasses import dataclass
from typing import Any, Dict
import logging
import math

import numpy as np

from ..core.timebase import GameDate
from ..model.records import GroundTemperature
from ..model.regions import RegionProfile
from .base import DerivedService
from .generator import WeatherGenerator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GroundType:
    inertia: float
    lag_hours: int
    min_temp: float
    melt_factor: float


GROUND_TYPES: Dict[str, GroundType] = {
    "permafrost": GroundType(0.98, 72, -40.0, 0.5),
    "rock": GroundType(0.95, 48, -30.0, 1.3),
    "clay": GroundType(0.90, 36, -20.0, 0.85),
    "soil": GroundType(0.85, 24, -20.0, 1.0),
    "peat": GroundType(0.85, 24, -15.0, 0.7),
    "sand": GroundType(0.70, 12, -25.0, 1.5),
}
DEFAULT_GROUND_TYPE = "soil"

INSULATION_START_DEPTH = 4.0
INSULATION_FULL_DEPTH = 12.0
INSULATED_TEMP = 32.0


def ground_condition(temp_f: float) -> str:
    if temp_f <= 28:
        return "frozen"
    if temp_f <= 35:
        return "near-freezing"
    if temp_f <= 40:
        return "cool"
    return "warm"


def snow_insulation_factor(snow_depth: float) -> float:
    if snow_depth < INSULATION_START_DEPTH:
        return 0.0
    return min(1.0, (snow_depth - INSULATION_START_DEPTH) / (INSULATION_FULL_DEPTH - INSULATION_START_DEPTH))


def ewma(values: np.ndarray, inertia: float) -> float:
    """Weighted mean with weight inertia**hours_ago; `values` is oldest first."""
    hours_ago = np.arange(len(values) - 1, -1, -1)
    weights = np.power(inertia, hours_ago)
    return float(np.dot(values, weights) / weights.sum())


class GroundTemperatureService(DerivedService):
    """Lagged ground temperature with snow insulation and type-specific floors."""

    def __init__(self, generator: WeatherGenerator):
        """Initialize ground temperature service.

        Args:
            generator: Shared weather generator
        """
        super().__init__("ground-temperature", generator)

    def ground_type(self, region: RegionProfile) -> str:
        name = region.text("groundType", DEFAULT_GROUND_TYPE)
        if name not in GROUND_TYPES:
            logger.debug(f"Unknown ground type {name!r} for {region.id}, using {DEFAULT_GROUND_TYPE}")
            return DEFAULT_GROUND_TYPE
        return name

    def lookback_hours(self, ground: GroundType) -> int:
        return max(1, int(math.ceil(ground.lag_hours * self.settings.ground_lookback_multiplier)))

    def air_average(self, region: RegionProfile, date: GameDate) -> float:
        """EWMA of air temperature over the ground type's lookback window (cached)."""
        ground = GROUND_TYPES[self.ground_type(region)]

        def compute():
            temps = np.array(
                [s.temperature for s in self.history(region, date, self.lookback_hours(ground) + 1)],
                dtype=float,
            )
            return ewma(temps, ground.inertia)

        return self.cached((region.cache_key, date.absolute_hour), compute)

    def get_ground_temperature(
        self,
        region: RegionProfile,
        date: GameDate,
        snow_depth: float = 0.0,
    ) -> GroundTemperature:
        """Ground temperature for an hour.

        Args:
            region: Region profile
            date: Hour to evaluate
            snow_depth: Snow on the ground in inches, for insulation

        Returns:
            GroundTemperature record
        """
        name = self.ground_type(region)
        ground = GROUND_TYPES[name]
        temp = self.air_average(region, date)
        factor = snow_insulation_factor(snow_depth)
        if factor > 0 and temp < INSULATED_TEMP:
            temp += (INSULATED_TEMP - temp) * factor * 0.5
        temp = max(temp, ground.min_temp)
        return GroundTemperature(
            temperature=round(temp, 1),
            ground_type=name,
            condition=ground_condition(temp),
            can_accumulate_snow=temp <= 33,
            snow_insulation=round(factor, 2),
        )

    def melt_factor(self, region: RegionProfile) -> float:
        return GROUND_TYPES[self.ground_type(region)].melt_factor

    def describe(self) -> Dict[str, Any]:
        return {
            "ground_types": {k: vars(v) for k, v in GROUND_TYPES.items()},
            "lookback_multiplier": self.settings.ground_lookback_multiplier,
        }
