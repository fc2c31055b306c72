"""Hourly weather snapshot composition."""

from typing import Any, Dict, Optional
import logging

from ..core.geometry import LATITUDE_BAND_RADIUS, BAND_ALIASES
from ..core.rng import correlated_normal, correlated_uniform, hourly_random
from ..core.timebase import GameDate
from ..model.records import (
    Intensity,
    PatternInfo,
    Precipitation,
    PrecipType,
    WeatherSnapshot,
    Wind,
)
from ..model.regions import RegionProfile
from ..model.settings import EngineSettings
from ..runtime.cache import MemoCache
from .atmosphere import AtmosphericModel, relative_humidity
from .effects import gameplay_effects, weather_effects
from .patterns import WeatherPatternService
from .precipitation import (
    PrecipitationModel,
    classify_storm,
    climate_archetype,
    convective_factor,
    precipitation_rate,
    storm_wind_boost,
    thunderstorm_probability,
)
from .temperature import TemperatureModel, feels_like

logger = logging.getLogger(__name__)

COMPASS_POINTS = (
    "N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE",
    "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW",
)
DEFAULT_PREVAILING_WIND = "W"

PRECIP_CONDITIONS = {
    PrecipType.RAIN: {Intensity.LIGHT: "Light Rain", Intensity.MODERATE: "Rain", Intensity.HEAVY: "Heavy Rain"},
    PrecipType.SNOW: {Intensity.LIGHT: "Light Snow", Intensity.MODERATE: "Snow", Intensity.HEAVY: "Heavy Snow"},
}


def sky_condition(cloud_percent: float) -> str:
    if cloud_percent < 15:
        return "Clear"
    if cloud_percent < 50:
        return "Partly Cloudy"
    if cloud_percent < 87:
        return "Cloudy"
    return "Overcast"


def precipitation_condition(kind: PrecipType, intensity: Optional[Intensity]) -> Optional[str]:
    if kind is PrecipType.NONE or intensity is None:
        return None
    if kind in PRECIP_CONDITIONS:
        return PRECIP_CONDITIONS[kind][intensity]
    return kind.value


def compass_index(direction: str) -> int:
    try:
        return COMPASS_POINTS.index(direction.upper())
    except (AttributeError, ValueError):
        return COMPASS_POINTS.index(DEFAULT_PREVAILING_WIND)


class WeatherGenerator:
    """Composes one hourly WeatherSnapshot from the underlying models.

    The generator owns the pattern, temperature, atmosphere and precipitation
    models and caches finished snapshots by (region parameters, absolute hour).
    """

    def __init__(self, settings: EngineSettings, debug: bool = False):
        """Initialize generator.

        Args:
            settings: Engine tunables shared by every model
            debug: Attach the debug dict to each snapshot
        """
        self.settings = settings
        self.debug = debug
        self.patterns = WeatherPatternService(settings)
        self.temperature = TemperatureModel(self.patterns)
        self.atmosphere = AtmosphericModel(self.patterns, self.temperature)
        self.precipitation = PrecipitationModel(settings, self.patterns, self.temperature, self.atmosphere)
        self.cache = MemoCache("weather-snapshots", max_entries=settings.cache_max_entries)

    def wind_speed(self, region: RegionProfile, absolute_hour: int) -> float:
        """Sustained wind before any storm boost."""
        u = correlated_uniform(region.id, absolute_hour, "wind-speed", 3)
        multiplier = self.patterns.blended(region, absolute_hour, lambda s: s.wind_multiplier)
        return (
            (5 + 10 * u)
            * (1 + 0.5 * region.maritime_influence)
            * (1 + 0.3 * region.terrain_roughness)
            * multiplier
            * (1 + 0.5 * region.factor("highWinds"))
        )

    def wind_direction(self, region: RegionProfile, absolute_hour: int) -> str:
        prevailing = compass_index(region.text("prevailingWind", DEFAULT_PREVAILING_WIND))
        shift = self.patterns.pattern_at_hour(region, absolute_hour).spec.wind_shift
        noise = int(round(correlated_normal(region.id, absolute_hour, "wind-direction", 6) * 1.5))
        return COMPASS_POINTS[(prevailing + shift + noise) % len(COMPASS_POINTS)]

    def generate(self, region: RegionProfile, date: GameDate) -> WeatherSnapshot:
        """Weather for one region-hour (cached).

        Args:
            region: Region profile
            date: Hour to simulate

        Returns:
            WeatherSnapshot
        """
        return self.cache.get_or_compute((region.cache_key, date.absolute_hour), lambda: self._compose(region, date))

    def _compose(self, region: RegionProfile, date: GameDate) -> WeatherSnapshot:
        h = date.absolute_hour
        base = self.precipitation.base(region, h)
        state = self.precipitation.hour_state(region, h)
        temp = base.temperature
        intensity = state.intensity if state.wet else None

        dew = self.atmosphere.moistened_dew_point(base.dew_point, temp, intensity)
        humidity = relative_humidity(temp, dew)

        raw_wind = self.wind_speed(region, h)
        rng = hourly_random(region.id, date, "storm")
        thunder_p = None
        storm = None
        if state.wet:
            thunder_p = thunderstorm_probability(convective_factor(region), date.hour, date.month, temp)
            storm = classify_storm(state.kind, intensity, temp, raw_wind, thunder_p, rng.next())
        speed = int(round(raw_wind)) + storm_wind_boost(rng, storm, region.factor("tornadoRisk"))

        clouds = self.atmosphere.cloud_cover(region, date, intensity)
        condition = storm or precipitation_condition(state.kind, intensity)
        if condition is None:
            if humidity >= 97 and speed <= 10:
                condition = "Fog"
            elif humidity >= 90:
                condition = "Mist"
            else:
                condition = sky_condition(clouds.percent)

        pressure = self.atmosphere.pressure(region, date)
        temperature = int(round(temp))
        humidity_pct = int(round(humidity))

        fallbacks = list(base.fallbacks)
        band_key = (region.latitude_band or "").strip().lower()
        if band_key not in LATITUDE_BAND_RADIUS and band_key not in BAND_ALIASES:
            fallbacks.append("latitude_band")
        if fallbacks:
            logger.debug(f"{region.id} {date}: defaults used for {', '.join(fallbacks)}")

        pattern = base.pattern
        debug: Optional[Dict[str, Any]] = None
        if self.debug:
            debug = {
                "archetype": climate_archetype(region),
                "precip_probability": round(base.probability, 4),
                "precip_roll": round(base.roll, 4),
                "lull": base.lull,
                "event_wet_hours": state.event_wet_hours,
                "regime": state.regime.value if state.regime else None,
                "thunder_probability": thunder_p,
                "raw_wind": round(raw_wind, 2),
                "anomaly": round(self.temperature.anomaly(region, h), 2),
                "pattern_modifier": round(self.patterns.temperature_modifier(region, h), 2),
            }

        return WeatherSnapshot(
            region_id=region.id,
            date=date,
            temperature=temperature,
            feels_like=feels_like(temp, humidity, speed, pressure.value),
            condition=condition,
            wind=Wind(speed=speed, direction=self.wind_direction(region, h)),
            humidity=humidity_pct,
            dew_point=min(round(dew, 1), float(temperature)),
            precipitation=Precipitation(
                type=state.kind if state.wet else PrecipType.NONE,
                intensity=intensity,
                rate=precipitation_rate(state.kind, intensity),
                streak_hours=state.consecutive_wet,
            ),
            pressure=pressure,
            cloud_cover=clouds,
            visibility=self.atmosphere.visibility(intensity, condition, humidity, clouds.percent),
            effects=tuple(weather_effects(condition, temp, speed, intensity is Intensity.HEAVY)),
            gameplay_effects=gameplay_effects(condition),
            pattern=PatternInfo(
                name=pattern.name,
                day_of_pattern=self.patterns.day_of_pattern(date),
                total_days=pattern.total_days,
            ),
            fallbacks=tuple(fallbacks),
            debug=debug,
        )

    def clear_cache(self) -> None:
        self.cache.clear()
        self.precipitation.clear_cache()
        self.patterns.clear_cache()
        logger.debug("Cleared weather generator caches")

    def cache_stats(self) -> Dict[str, Dict[str, Any]]:
        caches = (self.cache, self.precipitation.base_cache, self.precipitation.state_cache, self.patterns.cache)
        return {c.name: c.stats() for c in caches}
