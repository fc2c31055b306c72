"""Snow and ice accumulation replayed from the recent hourly history."""

from dataclasses import dataclass, replace
from typing import Any, Dict, List, Tuple
import logging

from ..core.daylight import SunriseSunsetService
from ..core.timebase import GameDate, HOURS_PER_DAY
from ..model.records import Intensity, PrecipType, SnowIceState, WeatherSnapshot
from ..model.regions import RegionProfile
from .base import DerivedService
from .generator import WeatherGenerator
from .ground import GroundTemperatureService
from .precipitation import ICE_RATES, SNOW_RATES

logger = logging.getLogger(__name__)

SNOW_TO_WATER = 10.0
SNOW_MELT_PER_DEGREE_HOUR = 0.06
ICE_MELT_PER_DEGREE_HOUR = 0.02
DAYTIME_MELT_MULTIPLIER = 1.5
RAIN_ON_SNOW_MULTIPLIER = 2.5
SUBLIMATION_RATE = 0.01
SUBLIMATION_MAX_TEMP = 20
DRY_SUBLIMATION_MAX_TEMP = 25
SUBLIMATION_MAX_HUMIDITY = 40
COMPACTION_RATE = 0.03
MAX_COMPACTION = 0.65
COMPACTION_AGE_CAP = 72
MIN_DEPTH_PER_SWE = 5.0
FULL_FILL_DEPTH = 24.0
RECENT_HOURS = 48


@dataclass(frozen=True)
class SnowPack:
    depth: float = 0.0
    swe: float = 0.0
    ice: float = 0.0
    age_hours: int = 0


def sticking_factor(ground_temp: float) -> float:
    """Fraction of falling snow that stays: full at 33°F ground, none at 38°F."""
    if ground_temp <= 33:
        return 1.0
    if ground_temp >= 38:
        return 0.0
    return 1.0 - (ground_temp - 33) / 5.0


def melt_amounts(
    ground_temp: float,
    daytime: bool,
    dry_air: float,
    melt_factor: float,
    rain_intensity: Any = None,
) -> Tuple[float, float]:
    """(snow melt, ice melt) in inches for one hour; both zero at or below 32°F."""
    if ground_temp <= 32:
        return 0.0, 0.0
    degrees = ground_temp - 32
    snow = degrees * SNOW_MELT_PER_DEGREE_HOUR * melt_factor
    ice = degrees * ICE_MELT_PER_DEGREE_HOUR * melt_factor
    if daytime:
        snow *= DAYTIME_MELT_MULTIPLIER * (1 + 0.4 * dry_air)
        ice *= DAYTIME_MELT_MULTIPLIER
    if rain_intensity is not None:
        # rain transfers less heat into snow over barely-thawed ground
        rain_factor = 1.0 if ground_temp > 36 else 0.2 + 0.8 * (ground_temp - 32) / 4
        snow *= 1 + (RAIN_ON_SNOW_MULTIPLIER - 1) * rain_factor
        if rain_intensity is Intensity.HEAVY:
            snow += 0.5 * rain_factor
    return snow, ice


def step_pack(
    pack: SnowPack,
    weather: WeatherSnapshot,
    ground_temp: float,
    daytime: bool,
    dry_air: float,
    melt_factor: float,
) -> SnowPack:
    """Advance the snowpack by one hour of weather."""
    depth, swe, ice, age = pack.depth, pack.swe, pack.ice, pack.age_hours
    precip = weather.precipitation

    if precip.type is PrecipType.SNOW and precip.intensity is not None:
        fresh = SNOW_RATES[precip.intensity] * sticking_factor(ground_temp)
        depth += fresh
        swe += fresh / SNOW_TO_WATER
        age = 0
    else:
        age += 1
    if precip.type is PrecipType.FREEZING_RAIN and precip.intensity is not None and ground_temp <= 32:
        ice += ICE_RATES[precip.intensity]

    if depth > 0 or ice > 0:
        rain = precip.intensity if precip.type is PrecipType.RAIN and depth > 0 else None
        snow_melt, ice_melt = melt_amounts(ground_temp, daytime, dry_air, melt_factor, rain)
        depth = max(0.0, depth - snow_melt)
        swe = max(0.0, swe - snow_melt / SNOW_TO_WATER)
        ice = max(0.0, ice - ice_melt)

    # cold dry air only; dry climates sublimate at a higher temperature
    threshold = DRY_SUBLIMATION_MAX_TEMP if dry_air > 0.5 else SUBLIMATION_MAX_TEMP
    if depth > 0 and weather.temperature < threshold and weather.humidity < SUBLIMATION_MAX_HUMIDITY:
        loss = SUBLIMATION_RATE * (1 + 0.5 * dry_air)
        depth = max(0.0, depth - loss)
        swe = max(0.0, swe - loss / SNOW_TO_WATER)

    if depth > 0 and age > 0:
        compaction = min(MAX_COMPACTION, COMPACTION_RATE * min(age, COMPACTION_AGE_CAP))
        depth = max(swe * MIN_DEPTH_PER_SWE, depth * (1 - compaction * 0.5))

    return replace(pack, depth=depth, swe=swe, ice=ice, age_hours=age)


def classify_ground(depth: float, ice: float, recent: List[WeatherSnapshot]) -> str:
    if depth >= 0.5:
        return "Snow Covered"
    if ice >= 0.1:
        return "Icy"
    below = sum(1 for w in recent if w.temperature <= 32)
    freezing_ratio = below / (len(recent) or 1)
    latest = recent[-1].temperature if recent else 40
    wet_hours = sum(1 for w in recent if w.precipitation.is_occurring)
    if freezing_ratio > 0.7 and latest <= 32:
        return "Frozen"
    if 0.3 < freezing_ratio <= 0.7 and latest > 32:
        return "Thawing"
    if wet_hours > 12 or (0.2 < freezing_ratio <= 0.5 and wet_hours > 6):
        return "Muddy"
    return "Dry"


def travel_impact(depth: float, ice: float, ground: str) -> str:
    impacts = []
    if depth >= 12:
        impacts.append("Deep snow: travel extremely difficult without snowshoes")
    elif depth >= 6:
        impacts.append("Significant snow: movement speed halved on foot")
    elif depth >= 2:
        impacts.append("Snow accumulation: slightly slowed travel")
    if ice >= 0.25:
        impacts.append("Severe ice: treacherous footing, high fall risk")
    elif ice >= 0.1:
        impacts.append("Icy surfaces: DEX saves to avoid slipping")
    if ground == "Muddy":
        impacts.append("Muddy conditions: difficult terrain for wheeled vehicles")
    elif ground == "Thawing":
        impacts.append("Thawing ground: unstable footing")
    return "; ".join(impacts) if impacts else "Normal travel conditions"


def pack_effects(depth: float, ice: float, ground: str) -> Tuple[str, ...]:
    effects = []
    if depth >= 12:
        effects += ["Difficult terrain (half speed)", "Tracks clearly visible"]
    elif depth >= 6:
        effects += ["Difficult terrain for Small creatures", "Easy to track through snow"]
    elif depth >= 1:
        effects.append("Tracking through snow has advantage")
    if ice >= 0.25:
        effects.append("DC 15 DEX save or fall prone when moving")
    elif ice >= 0.1:
        effects.append("DC 10 DEX save or fall prone when dashing")
    if ground == "Frozen":
        effects.append("Ground cannot be easily dug")
    elif ground == "Muddy":
        effects.append("Wheeled vehicles move at half speed")
    return tuple(effects)


class SnowAccumulationService(DerivedService):
    """Snow depth, water equivalent and ice from a bounded hourly replay."""

    def __init__(self, generator: WeatherGenerator, ground: GroundTemperatureService, daylight: SunriseSunsetService):
        """Initialize snow accumulation service.

        Args:
            generator: Shared weather generator
            ground: Ground temperature service (sticking, melt, ice)
            daylight: Sun service deciding daytime melt
        """
        super().__init__("snow-accumulation", generator)
        self.ground = ground
        self.daylight = daylight

    @property
    def replay_hours(self) -> int:
        return self.settings.snow_replay_days * HOURS_PER_DAY

    def replay(self, region: RegionProfile, date: GameDate) -> SnowPack:
        """Snowpack at the end of `date`'s hour, starting bare `replay_hours` earlier."""
        dry_air = region.factor("dryAir")
        melt_factor = self.ground.melt_factor(region)
        pack = SnowPack()
        for weather in self.history(region, date, self.replay_hours + 1):
            ground = self.ground.get_ground_temperature(region, weather.date, pack.depth)
            daytime = self.daylight.is_daytime(region.band, weather.date)
            pack = step_pack(pack, weather, ground.temperature, daytime, dry_air, melt_factor)
        return pack

    def get_accumulation(self, region: RegionProfile, date: GameDate) -> SnowIceState:
        """Snow and ice on the ground for an hour (cached).

        Args:
            region: Region profile
            date: Hour to evaluate

        Returns:
            SnowIceState record
        """
        def compute():
            pack = self.replay(region, date)
            recent = self.history(region, date, RECENT_HOURS + 1)
            ground_condition = classify_ground(pack.depth, pack.ice, recent)
            ground = self.ground.get_ground_temperature(region, date, pack.depth)
            return SnowIceState(
                snow_depth=round(pack.depth, 1),
                snow_water_equivalent=round(pack.swe, 2),
                ice_thickness=round(pack.ice, 2),
                snow_age_hours=min(pack.age_hours, self.replay_hours),
                ground_condition=ground_condition,
                ground_temperature=ground.temperature,
                travel_impact=travel_impact(pack.depth, pack.ice, ground_condition),
                gameplay_effects=pack_effects(pack.depth, pack.ice, ground_condition),
                snow_fill_percent=round(min(100.0, pack.depth / FULL_FILL_DEPTH * 100), 1),
            )

        return self.cached((region.cache_key, date.absolute_hour), compute)

    def describe(self) -> Dict[str, Any]:
        return {
            "replay_hours": self.replay_hours,
            "snow_melt_per_degree_hour": SNOW_MELT_PER_DEGREE_HOUR,
            "ice_melt_per_degree_hour": ICE_MELT_PER_DEGREE_HOUR,
            "max_compaction": MAX_COMPACTION,
        }
