"""Precipitation occurrence, type hysteresis, intensity and storm rules.

Occurrence and type both depend on the recent past (wet-streak length and the
prevailing precipitation type). Rather than storing that state, every hour is
recovered by replaying forward from the nearest sync point: a run of raw-dry
hours after which the state is known exactly. Each 48-hour block carries a
seeded lull that is always raw-dry, which bounds how far back a replay can
reach. Live queries and historical lookbacks share the same replay, so an hour
always resolves to the same state regardless of how it was reached.
"""

from dataclasses import dataclass, replace
from typing import Optional, Tuple
import logging
import math

from ..core.rng import SeededRandom, correlated_uniform, generate_seed, hourly_random
from ..core.timebase import GameDate
from ..model.records import Intensity, PrecipType
from ..model.regions import RegionProfile
from ..model.settings import ARCHETYPES, EngineSettings, StreakCaps
from ..runtime.cache import MemoCache
from .atmosphere import AtmosphericModel, relative_humidity
from .patterns import PatternInstance, PatternType, WeatherPatternService
from .temperature import TemperatureModel

logger = logging.getLogger(__name__)

SNOW_LINE = 22.0
RAIN_LINE = 45.0
SNOW_PERSIST_MAX = 36.0
SNOW_EXIT_MIN = 34.0
RAIN_PERSIST_MIN = 30.0
RAIN_EXIT_MAX = 32.0
BUFFER_SNOW_COMMIT = 28.0
BUFFER_RAIN_COMMIT = 38.0
MIXED_ZONE = (30.0, 36.0)
ESTABLISHED_STREAK = 3

THUNDERSTORM_MIN_TEMP = 55.0
BLIZZARD_MIN_WIND = 30
BLIZZARD_MAX_TEMP = 20.0
DEFAULT_CONVECTIVE_FACTOR = 0.3

SNOW_RATES = {Intensity.LIGHT: 0.2, Intensity.MODERATE: 0.5, Intensity.HEAVY: 1.0}
ICE_RATES = {Intensity.LIGHT: 0.02, Intensity.MODERATE: 0.05, Intensity.HEAVY: 0.1}
RAIN_RATES = {Intensity.LIGHT: 0.05, Intensity.MODERATE: 0.2, Intensity.HEAVY: 0.5}

INTENSITY_BIAS = {
    PatternType.LOW_PRESSURE: 0.1,
    PatternType.COLD_FRONT: 0.1,
    PatternType.HIGH_PRESSURE: -0.15,
}


def climate_archetype(region: RegionProfile) -> str:
    """Classify a region into one of the precipitation-streak archetypes."""
    explicit = region.text("climateType")
    if explicit in ARCHETYPES:
        return explicit
    if region.flag("hasMonsoonSeason"):
        return "monsoon"
    band = region.band
    summer = region.temperature_profile.for_season("summer") if region.temperature_profile else None
    if band in ("polar", "subarctic") or region.factor("permanentIce") >= 0.5 or (summer and summer.mean < 50):
        return "polar"
    if region.flag("highRainfall") and band in ("tropical", "subtropical"):
        return "tropical_wet"
    if region.maritime_influence >= 0.6:
        return "maritime"
    if region.maritime_influence <= 0.3 or region.flag("highDiurnalVariation"):
        return "continental"
    return "temperate"


def aridity_multiplier(region: RegionProfile) -> float:
    m = 1.0
    m *= 1.0 - 0.8 * region.factor("dryAir")
    ice = region.factor("permanentIce")
    if ice > 0.7:
        m *= 0.15
    elif ice > 0:
        m *= 1.0 - 0.5 * ice
    if region.text("groundType") == "permafrost":
        m *= 0.8
    m *= 1.0 - 0.85 * region.factor("coldOceanCurrent")
    m *= 1.0 - 0.6 * region.factor("rainShadowEffect")
    if region.flag("highRainfall"):
        m *= 1.6
    return max(0.02, m)


def humidity_band_multiplier(humidity: float) -> float:
    if humidity < 30:
        return 0.35
    if humidity < 45:
        return 0.6
    if humidity < 60:
        return 0.85
    if humidity < 75:
        return 1.0
    if humidity < 90:
        return 1.25
    return 1.5


def seasonal_multiplier(region: RegionProfile, date: GameDate) -> float:
    season = date.season
    m = 1.0
    if region.flag("hasMonsoonSeason"):
        m *= {"summer": 2.5, "winter": 0.3}.get(season, 1.0)
    if region.flag("hasDrySeason"):
        if region.band == "tropical":
            m *= {"winter": 0.3, "summer": 1.2}.get(season, 1.0)
        else:
            m *= {"summer": 0.25, "winter": 1.4}.get(season, 1.0)
    elif region.flag("mediterranean"):
        m *= {"summer": 0.25, "winter": 1.4}.get(season, 1.0)
    return m


def convective_multiplier(hour: int) -> float:
    if 14 <= hour <= 20:
        return 1.3
    if 3 <= hour <= 8:
        return 0.85
    return 1.0


def streak_multiplier(event_wet_hours: int, caps: StreakCaps, floor: float) -> float:
    """Probability multiplier for continuing a wet streak.

    Full strength below the soft cap, exponential decay to `floor` at the
    hour before the hard cap, zero at the hard cap.
    """
    if event_wet_hours >= caps.hard:
        return 0.0
    if event_wet_hours < caps.soft:
        return 1.0
    rate = math.log(1.0 / floor) / (caps.hard - caps.soft)
    return max(floor, math.exp(-rate * (event_wet_hours - caps.soft + 1)))


def resolve_type(
    regime: Optional[PrecipType],
    regime_streak: int,
    temp_f: float,
    warming: bool,
    cooling: bool,
    roll: float,
) -> PrecipType:
    """Pick the precipitation type for a wet hour.

    Args:
        regime: Type of the most recent wet hour in the current event, if any
        regime_streak: Consecutive wet hours that regime has held
        temp_f: Air temperature
        warming: Sustained warming over the trend window
        cooling: Sustained cooling over the trend window
        roll: Uniform draw used for sleet/freezing-rain choices

    Returns:
        The type; Rain and Snow are never adjacent within an event
    """
    if temp_f <= SNOW_LINE:
        return PrecipType.SLEET if regime is PrecipType.RAIN else PrecipType.SNOW
    if temp_f >= RAIN_LINE:
        return PrecipType.SLEET if regime is PrecipType.SNOW else PrecipType.RAIN

    established = regime is not None and regime_streak >= ESTABLISHED_STREAK
    if regime is PrecipType.SNOW and established:
        if temp_f > SNOW_PERSIST_MAX or (warming and temp_f >= SNOW_EXIT_MIN):
            return PrecipType.SLEET
        return PrecipType.SNOW
    if regime is PrecipType.RAIN and established:
        if temp_f < RAIN_PERSIST_MIN or (cooling and temp_f <= RAIN_EXIT_MAX):
            freezing_share = 0.6 if temp_f > 30 else 0.35
            return PrecipType.FREEZING_RAIN if roll < freezing_share else PrecipType.SLEET
        return PrecipType.RAIN
    if regime is not None and regime.is_buffer:
        if cooling and temp_f < BUFFER_SNOW_COMMIT:
            return PrecipType.SNOW
        if warming and temp_f > BUFFER_RAIN_COMMIT:
            return PrecipType.RAIN
        return regime

    low, high = MIXED_ZONE
    if temp_f < low:
        fresh = PrecipType.SNOW
    elif temp_f > high:
        fresh = PrecipType.RAIN
    else:
        fresh = PrecipType.SLEET if roll < 0.5 else PrecipType.FREEZING_RAIN
    if regime is PrecipType.RAIN and fresh is PrecipType.SNOW:
        return PrecipType.SLEET
    if regime is PrecipType.SNOW and fresh is PrecipType.RAIN:
        return PrecipType.SLEET
    return fresh


def intensity_for(roll: float) -> Intensity:
    if roll < 0.45:
        return Intensity.LIGHT
    if roll < 0.85:
        return Intensity.MODERATE
    return Intensity.HEAVY


def precipitation_rate(kind: PrecipType, intensity: Optional[Intensity]) -> float:
    if intensity is None or kind is PrecipType.NONE:
        return 0.0
    if kind is PrecipType.SNOW:
        return SNOW_RATES[intensity]
    if kind.is_buffer:
        return ICE_RATES[intensity]
    return RAIN_RATES[intensity]


def thunderstorm_probability(convective: float, hour: int, month: int, temp_f: float) -> float:
    """Chance that heavy rain at or above 55°F is a thunderstorm.

    p = min(0.95, 0.6·convective + 0.15 afternoon + 0.10 summer + 0.10 heat),
    so a region with thunderstorms=0.7 starts from 0.42.
    """
    p = 0.6 * convective
    if 12 <= hour <= 20:
        p += 0.15
    if month in (6, 7, 8):
        p += 0.10
    if temp_f >= 80:
        p += 0.10
    return min(0.95, p)


def convective_factor(region: RegionProfile) -> float:
    if "thunderstorms" in region.special_factors:
        return region.factor("thunderstorms")
    return DEFAULT_CONVECTIVE_FACTOR


def classify_storm(
    kind: PrecipType,
    intensity: Optional[Intensity],
    temp_f: float,
    wind_speed: float,
    thunder_probability: float,
    roll: float,
) -> Optional[str]:
    """Return "Thunderstorm" or "Blizzard" when the derived condition applies."""
    if intensity is not Intensity.HEAVY:
        return None
    if kind is PrecipType.RAIN and temp_f >= THUNDERSTORM_MIN_TEMP and roll < thunder_probability:
        return "Thunderstorm"
    if kind is PrecipType.SNOW and wind_speed >= BLIZZARD_MIN_WIND and temp_f <= BLIZZARD_MAX_TEMP:
        return "Blizzard"
    return None


def storm_wind_boost(rng: SeededRandom, storm: Optional[str], tornado_risk: float) -> int:
    if storm is None:
        return 0
    boost = rng.dice(3, 6)
    if storm == "Thunderstorm" and tornado_risk > 0:
        boost += int(round(rng.dice(6, 6) * tornado_risk))
    return boost


@dataclass(frozen=True)
class HourlyBase:
    """Pre-precipitation atmosphere for one hour; everything here is stateless."""
    temperature: float
    dew_point: float
    humidity: float
    pattern: PatternInstance
    probability: float
    roll: float
    lull: bool
    fallbacks: Tuple[str, ...]

    @property
    def raw_dry(self) -> bool:
        return self.lull or self.roll >= self.probability


@dataclass(frozen=True)
class PrecipHourState:
    """Replayed precipitation state at the end of one hour."""
    wet: bool
    kind: PrecipType
    intensity: Optional[Intensity]
    event_wet_hours: int
    dry_gap: int
    forced_break: int
    regime: Optional[PrecipType]
    regime_streak: int
    consecutive_wet: int


class PrecipitationModel:
    """Hour-by-hour precipitation with streak limits and type momentum."""

    def __init__(
        self,
        settings: EngineSettings,
        patterns: WeatherPatternService,
        temperature: TemperatureModel,
        atmosphere: AtmosphericModel,
    ):
        """Initialize precipitation model.

        Args:
            settings: Engine tunables (caps, lull, replay bounds)
            patterns: Shared pattern service
            temperature: Shared temperature model
            atmosphere: Shared atmospheric model
        """
        self.settings = settings
        self.patterns = patterns
        self.temperature = temperature
        self.atmosphere = atmosphere
        self.base_cache = MemoCache("hourly-base", max_entries=settings.cache_max_entries)
        self.state_cache = MemoCache("precip-state", max_entries=settings.cache_max_entries)

    def canonical_state(self) -> PrecipHourState:
        return PrecipHourState(
            wet=False, kind=PrecipType.NONE, intensity=None, event_wet_hours=0,
            dry_gap=self.settings.event_reset_hours, forced_break=0,
            regime=None, regime_streak=0, consecutive_wet=0,
        )

    def caps(self, region: RegionProfile) -> StreakCaps:
        return self.settings.caps_for(climate_archetype(region))

    def in_lull(self, region: RegionProfile, absolute_hour: int) -> bool:
        block_len = self.settings.lull_block_hours
        block_start = (absolute_hour // block_len) * block_len
        rng = SeededRandom(generate_seed(region.id, GameDate.from_absolute_hour(block_start), "precip-lull"))
        start = block_start + rng.int(0, block_len - self.settings.lull_hours)
        return start <= absolute_hour < start + self.settings.lull_hours

    def base_probability(self, region: RegionProfile, date: GameDate, humidity: float) -> float:
        chance = self.patterns.blended(region, date.absolute_hour, lambda s: s.precipitation_chance)
        p = (
            chance * self.settings.hourly_precip_scale
            * aridity_multiplier(region)
            * humidity_band_multiplier(humidity)
            * seasonal_multiplier(region, date)
            * convective_multiplier(date.hour)
        )
        return max(0.0, min(self.settings.max_hourly_precip, p))

    def base(self, region: RegionProfile, absolute_hour: int) -> HourlyBase:
        """Stateless atmosphere for an hour (cached).

        Args:
            region: Region profile
            absolute_hour: Hour index since the calendar epoch

        Returns:
            HourlyBase record
        """
        def compute():
            date = GameDate.from_absolute_hour(absolute_hour)
            temp = self.temperature.temperature(region, date)
            _, _, temp_fallbacks = self.temperature.seasonal(region, date)
            dew, dew_fallbacks = self.atmosphere.base_dew_point(region, date, temp)
            humidity = relative_humidity(temp, dew)
            return HourlyBase(
                temperature=temp,
                dew_point=dew,
                humidity=humidity,
                pattern=self.patterns.pattern_at_hour(region, absolute_hour),
                probability=self.base_probability(region, date, humidity),
                roll=correlated_uniform(region.id, absolute_hour, "precip-roll", 3),
                lull=self.in_lull(region, absolute_hour),
                fallbacks=tuple(temp_fallbacks + dew_fallbacks),
            )

        return self.base_cache.get_or_compute((region.cache_key, absolute_hour), compute)

    def trend(self, region: RegionProfile, absolute_hour: int) -> Tuple[bool, bool]:
        """(warming, cooling) when every step over the trend window moves the same way."""
        n = self.settings.trend_hours
        temps = [self.base(region, absolute_hour - k).temperature for k in range(n, -1, -1)]
        steps = [b - a for a, b in zip(temps, temps[1:])]
        return all(s > 0 for s in steps), all(s < 0 for s in steps)

    def _intensity(self, region: RegionProfile, absolute_hour: int, base: HourlyBase) -> Intensity:
        date = GameDate.from_absolute_hour(absolute_hour)
        bias = INTENSITY_BIAS.get(base.pattern.pattern, 0.0)
        if 14 <= date.hour <= 20 and base.temperature >= 60:
            bias += 0.05
        if region.flag("highRainfall"):
            bias += 0.05
        return intensity_for(correlated_uniform(region.id, absolute_hour, "precip-intensity", 2) + bias)

    def _step(self, region: RegionProfile, prev: PrecipHourState, absolute_hour: int) -> PrecipHourState:
        base = self.base(region, absolute_hour)
        caps = self.caps(region)
        reset = self.settings.event_reset_hours
        if prev.forced_break > 0:
            wet = False
            forced = prev.forced_break - 1
        else:
            forced = 0
            p = base.probability * streak_multiplier(prev.event_wet_hours, caps, self.settings.streak_decay_floor)
            wet = not base.lull and base.roll < p

        if not wet:
            gap = min(prev.dry_gap + 1, reset)
            if gap >= reset:
                return replace(self.canonical_state(), forced_break=forced)
            return replace(
                prev, wet=False, kind=PrecipType.NONE, intensity=None,
                dry_gap=gap, forced_break=forced, consecutive_wet=0,
            )

        warming, cooling = self.trend(region, absolute_hour)
        date = GameDate.from_absolute_hour(absolute_hour)
        roll = hourly_random(region.id, date, "precip-type").next()
        kind = resolve_type(prev.regime, prev.regime_streak, base.temperature, warming, cooling, roll)
        streak = prev.regime_streak + 1 if kind is prev.regime else 1
        event = prev.event_wet_hours + 1
        return PrecipHourState(
            wet=True,
            kind=kind,
            intensity=self._intensity(region, absolute_hour, base),
            event_wet_hours=event,
            dry_gap=0,
            forced_break=self.settings.forced_break_hours if event >= caps.hard else 0,
            regime=kind,
            regime_streak=min(streak, 99),
            consecutive_wet=prev.consecutive_wet + 1,
        )

    def hour_state(self, region: RegionProfile, absolute_hour: int) -> PrecipHourState:
        """Replayed precipitation state for an hour.

        Walks back to the nearest cached hour or sync point, then steps
        forward, caching every hour it passes.

        Args:
            region: Region profile
            absolute_hour: Hour index since the calendar epoch

        Returns:
            PrecipHourState for that hour
        """
        cached = self.state_cache.get((region.cache_key, absolute_hour))
        if cached is not None:
            return cached

        reset = self.settings.event_reset_hours
        limit = self.settings.replay_limit_hours
        start, state = None, None
        dry_run = 0
        t = absolute_hour - 1
        while start is None:
            known = self.state_cache.get((region.cache_key, t))
            if known is not None:
                start, state = t, known
            elif self.base(region, t).raw_dry:
                dry_run += 1
                if dry_run >= reset:
                    start, state = t + reset - 1, self.canonical_state()
                    self.state_cache.put((region.cache_key, start), state)
            else:
                dry_run = 0
            if start is None and absolute_hour - t >= limit:
                logger.debug(f"Precipitation replay for {region.id} hit the {limit}h limit at {t}")
                start, state = t, self.canonical_state()
            t -= 1

        for h in range(start + 1, absolute_hour + 1):
            state = self.state_cache.put((region.cache_key, h), self._step(region, state, h))
        return state

    def clear_cache(self) -> None:
        self.base_cache.clear()
        self.state_cache.clear()
