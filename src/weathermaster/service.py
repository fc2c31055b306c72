"""WeatherService: the single entry point that wires every model and service together."""

from collections import Counter
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union
import logging

import numpy as np

from .core.daylight import SunriseSunsetService
from .core.geometry import (
    DEFAULT_MOON_PHASE_OFFSET,
    DEFAULT_OBSERVER_ANGLE,
    DEFAULT_SUN_PHASE_OFFSET,
    MOON_ORBITAL_RADIUS,
    distance,
    observer_radius,
    sun_angle,
    sun_orbital_radius,
)
from .core.moon import MoonService
from .core.timebase import GameDate, HOURS_PER_DAY
from .errors import InvalidDateError, UnknownRegionError
from .model.records import (
    AlertSet,
    CelestialState,
    DailySummary,
    LunarPhase,
    MoonTimes,
    SeaStateSnapshot,
    SnowIceState,
    SunTimes,
    WeatherSnapshot,
)
from .model.regions import RegionProfile, load_region_templates, region_from_record
from .model.settings import EngineSettings, load_settings
from .weather import (
    EnvironmentalConditionsService,
    GroundTemperatureService,
    SeaStateService,
    SnowAccumulationService,
    WeatherGenerator,
)

logger = logging.getLogger(__name__)

RegionLike = Union[RegionProfile, Mapping[str, Any], str]
DateLike = Union[GameDate, Mapping[str, Any]]


def coerce_date(date: DateLike) -> GameDate:
    if isinstance(date, GameDate):
        return date
    if isinstance(date, Mapping):
        return GameDate.from_dict(dict(date))
    raise InvalidDateError(f"Expected a GameDate or mapping, got {type(date).__name__}")


def group_into_periods(snapshots: Iterable[WeatherSnapshot]) -> List[Dict[str, Any]]:
    """Collapse consecutive snapshots with the same condition into periods.

    Args:
        snapshots: Hourly snapshots in time order

    Returns:
        List of {condition, start, end, hours} dicts
    """
    periods: List[Dict[str, Any]] = []
    for snap in snapshots:
        if periods and periods[-1]["condition"] == snap.condition:
            periods[-1]["end"] = snap.date
            periods[-1]["hours"] += 1
        else:
            periods.append({"condition": snap.condition, "start": snap.date, "end": snap.date, "hours": 1})
    return periods


class WeatherService:
    """Facade over the weather generator, celestial services and derived services."""

    def __init__(
        self,
        settings: Optional[EngineSettings] = None,
        regions: Optional[Mapping[str, RegionProfile]] = None,
        debug: bool = False,
    ):
        """Initialize the weather service.

        Args:
            settings: Engine tunables (default: packaged config/engine.yaml)
            regions: Registered regions by id (default: packaged templates)
            debug: Attach debug details to every snapshot
        """
        self.settings = settings or load_settings()
        self.regions: Dict[str, RegionProfile] = dict(regions) if regions is not None else load_region_templates()
        self.debug = debug

        self.generator = WeatherGenerator(self.settings, debug=debug)
        self.daylight = SunriseSunsetService()
        self.moon = MoonService()
        self.ground = GroundTemperatureService(self.generator)
        self.snow = SnowAccumulationService(self.generator, self.ground, self.daylight)
        self.sea = SeaStateService(self.generator)
        self.environment = EnvironmentalConditionsService(self.generator, self.snow)

        logger.info(f"Weather service initialized with {len(self.regions)} regions")

    def register_region(self, region: Union[RegionProfile, Mapping[str, Any]]) -> RegionProfile:
        profile = region_from_record(dict(region) if isinstance(region, Mapping) else region)
        self.regions[profile.id] = profile
        return profile

    def get_region(self, region_id: str) -> RegionProfile:
        try:
            return self.regions[region_id]
        except KeyError:
            raise UnknownRegionError(f"Unknown region: {region_id}") from None

    def coerce_region(self, region: RegionLike) -> RegionProfile:
        if isinstance(region, RegionProfile):
            return region
        if isinstance(region, str):
            return self.get_region(region)
        return region_from_record(dict(region))

    # Weather

    def generate_weather(self, region: RegionLike, date: DateLike) -> WeatherSnapshot:
        return self.generator.generate(self.coerce_region(region), coerce_date(date))

    def get_forecast(self, region: RegionLike, date: DateLike, hours: int = 24) -> List[WeatherSnapshot]:
        profile, start = self.coerce_region(region), coerce_date(date)
        return [self.generator.generate(profile, start.advance(k)) for k in range(hours)]

    def get_daily_forecast(self, region: RegionLike, date: DateLike, days: int = 7) -> List[DailySummary]:
        """Per-day summaries starting with the day containing `date`.

        Args:
            region: Region (profile, dict or registered id)
            date: Any hour of the first day
            days: Number of days

        Returns:
            List of DailySummary
        """
        profile = self.coerce_region(region)
        first = coerce_date(date).start_of_day()
        summaries = []
        for d in range(days):
            day = first.advance(d * HOURS_PER_DAY)
            hours = self.get_forecast(profile, day, HOURS_PER_DAY)
            temps = np.array([h.temperature for h in hours], dtype=float)
            counts = Counter(h.condition for h in hours)
            summaries.append(DailySummary(
                date=day,
                high=int(temps.max()),
                low=int(temps.min()),
                mean=round(float(temps.mean()), 1),
                condition=counts.most_common(1)[0][0],
                precipitation_hours=sum(1 for h in hours if h.precipitation.is_occurring),
                max_wind=max(h.wind.speed for h in hours),
                conditions=dict(counts),
            ))
        return summaries

    def group_into_periods(self, snapshots: Iterable[WeatherSnapshot]) -> List[Dict[str, Any]]:
        return group_into_periods(snapshots)

    # Celestial

    def get_sunrise_sunset(
        self,
        latitude_band: str,
        date: DateLike,
        observer_angle: float = DEFAULT_OBSERVER_ANGLE,
    ) -> SunTimes:
        return self.daylight.get_sunrise_sunset(latitude_band, coerce_date(date), observer_angle)

    def get_lunar_phase(
        self,
        date: DateLike,
        moon_offset: float = DEFAULT_MOON_PHASE_OFFSET,
        sun_offset: float = DEFAULT_SUN_PHASE_OFFSET,
    ) -> LunarPhase:
        return self.moon.get_lunar_phase(coerce_date(date), moon_offset, sun_offset)

    def get_moon_rise_set(self, date: DateLike, observer_angle: float = DEFAULT_OBSERVER_ANGLE) -> MoonTimes:
        return self.moon.get_moon_rise_set(coerce_date(date), observer_angle)

    def get_celestial_state(self, region: RegionLike, date: DateLike) -> CelestialState:
        """Sun and moon geometry plus rise/set times for a region-hour.

        Args:
            region: Region (profile, dict or registered id)
            date: Hour to evaluate

        Returns:
            CelestialState record
        """
        profile, when = self.coerce_region(region), coerce_date(date)
        band = profile.band
        observer = DEFAULT_OBSERVER_ANGLE
        r_obs = observer_radius(band)
        theta_sun = sun_angle(when.hour, self.daylight.sun_offset)
        r_sun = sun_orbital_radius(when.day_of_year)
        theta_moon = self.moon.moon_angle_at(when)
        return CelestialState(
            date=when,
            latitude_band=band,
            observer_angle=observer,
            sun_angle=round(float(theta_sun), 2),
            sun_orbital_radius=round(float(r_sun), 1),
            distance_to_sun=round(float(distance(r_obs, observer, r_sun, theta_sun)), 1),
            moon_angle=round(float(theta_moon), 2),
            moon_orbital_radius=MOON_ORBITAL_RADIUS,
            distance_to_moon=round(float(distance(r_obs, observer, MOON_ORBITAL_RADIUS, theta_moon)), 1),
            sun=self.daylight.get_sunrise_sunset(band, when, observer),
            moon=self.moon.get_moon_rise_set(when, observer),
            phase=self.moon.get_lunar_phase(when),
        )

    # Derived services

    def get_ground_temperature(self, region: RegionLike, date: DateLike, snow_depth: float = 0.0):
        return self.ground.get_ground_temperature(self.coerce_region(region), coerce_date(date), snow_depth)

    def get_accumulation(self, region: RegionLike, date: DateLike) -> SnowIceState:
        return self.snow.get_accumulation(self.coerce_region(region), coerce_date(date))

    def get_sea_state(
        self,
        region: RegionLike,
        date: DateLike,
        weather: Optional[WeatherSnapshot] = None,
    ) -> SeaStateSnapshot:
        return self.sea.get_sea_state(self.coerce_region(region), coerce_date(date), weather)

    def get_sea_state_forecast(self, region: RegionLike, date: DateLike) -> Dict[str, Any]:
        return self.sea.get_sea_state_forecast(self.coerce_region(region), coerce_date(date))

    def get_environmental_conditions(self, region: RegionLike, date: DateLike) -> AlertSet:
        return self.environment.get_environmental_conditions(self.coerce_region(region), coerce_date(date))

    def get_current_conditions(self, region: RegionLike, date: DateLike) -> Dict[str, Any]:
        """Merged report for a region-hour.

        Ocean regions get sea state and its forecast; land regions get ground,
        snow and environmental conditions.

        Args:
            region: Region (profile, dict or registered id)
            date: Hour to evaluate

        Returns:
            Plain dict ready for JSON serialization
        """
        profile, when = self.coerce_region(region), coerce_date(date)
        weather = self.generator.generate(profile, when)
        report: Dict[str, Any] = {
            "region_id": profile.id,
            "weather": weather.to_dict(),
            "celestial": self.get_celestial_state(profile, when).to_dict(),
        }
        if profile.is_ocean:
            report["sea_state"] = self.sea.get_sea_state(profile, when, weather).to_dict()
            report["sea_forecast"] = self.sea.get_sea_state_forecast(profile, when)
        else:
            snow = self.snow.get_accumulation(profile, when)
            report["ground"] = self.ground.get_ground_temperature(profile, when, snow.snow_depth).to_dict()
            report["accumulation"] = snow.to_dict()
            alerts = self.environment.get_environmental_conditions(profile, when)
            report["environment"] = alerts.to_dict()
            report["active_alerts"] = [a.to_dict() for a in alerts.active]
        return report

    # Caches

    def clear_cache(self) -> None:
        """Drop every cached value held by this service and its components."""
        self.generator.clear_cache()
        for service in (self.ground, self.snow, self.sea, self.environment):
            service.clear_cache()
        self.daylight.clear_cache()
        self.moon.clear_cache()

    def cache_stats(self) -> Dict[str, Dict[str, Any]]:
        stats = self.generator.cache_stats()
        for cache in (self.ground.cache, self.snow.cache, self.sea.cache, self.environment.cache,
                      self.daylight.cache, self.moon.cache):
            stats[cache.name] = cache.stats()
        return stats
