"""Drought, flood, heat wave, cold snap and wildfire tracking from recent history."""

from typing import Any, Dict, List, Tuple
import logging

from ..core.timebase import GameDate, HOURS_PER_DAY
from ..model.records import Alert, AlertSet, Intensity
from ..model.regions import DEFAULT_HUMIDITY, RegionProfile
from .base import DerivedService
from .generator import WeatherGenerator
from .patterns import CLIMATOLOGICAL_PRECIP_CHANCE
from .precipitation import aridity_multiplier, humidity_band_multiplier, seasonal_multiplier
from .snow import SnowAccumulationService

logger = logging.getLogger(__name__)

DROUGHT_LABELS = ("Normal", "Abnormally Dry", "Moderate Drought", "Severe Drought", "Extreme Drought")
FLOOD_LABELS = ("Normal", "Elevated", "Moderate Risk", "High Risk")
HEAT_LABELS = ("Normal", "Heat Advisory", "Heat Warning", "Extreme Heat")
COLD_LABELS = ("Normal", "Cold Advisory", "Cold Warning", "Extreme Cold")
WILDFIRE_LABELS = ("Low", "Moderate", "High", "Very High", "Extreme")

DROUGHT_DEFICITS = (15, 30, 50, 70)
WILDFIRE_LEVELS = (20, 40, 60, 80)
RUN_LEVELS = (3, 5, 7)

HEAT_HOUR = 14
HEAT_FLOORS = (85, 90, 95)
COLD_HOUR = 6
COLD_CEILINGS = (25, 10, 0)
ANOMALY_DEGREES = 10
NOON = 12
SNOW_SUPPRESSION_DEPTH = 2.0
HEAVY_DAY_HOURS = 3
RECENT_RAIN_DAYS = 7

IMPACTS: Dict[str, Tuple[Tuple[str, ...], ...]] = {
    "drought": (
        ("Water sources may be scarce",),
        ("Crops and vegetation stressed",),
        ("Water rationing likely", "Grazing animals affected"),
        ("Emergency water restrictions", "Critical fire danger"),
    ),
    "flood": (
        ("Low-lying areas soggy", "Minor stream flooding"),
        ("Roads may be impassable", "Bridges at risk"),
        ("Evacuations likely", "Swift water dangers"),
    ),
    "heat_wave": (
        ("Heat exhaustion risk for strenuous activity",),
        ("Avoid midday exertion", "Animals need extra water"),
        ("Heat stroke danger", "Outdoor work hazardous"),
    ),
    "cold_snap": (
        ("Frostbite risk with prolonged exposure",),
        ("Livestock need shelter", "Limit outdoor time"),
        ("Life-threatening cold", "Emergency shelter needed"),
    ),
    "wildfire": (
        ("Campfires require caution",),
        ("Open burning restricted", "Watch for smoke"),
        ("No open flames", "Have evacuation plan ready"),
        ("Extreme fire behavior possible", "Evacuate if fire spotted"),
    ),
}


def impacts_for(kind: str, level: int) -> Tuple[str, ...]:
    """Cumulative gameplay impacts up to and including `level`."""
    impacts: List[str] = []
    for tier in IMPACTS[kind][:level]:
        impacts.extend(tier)
    return tuple(impacts)


def level_from_thresholds(value: float, thresholds: Tuple[float, ...]) -> int:
    return sum(1 for t in thresholds if value >= t)


def run_length(flags: List[bool]) -> int:
    """Consecutive True values counted back from the end of `flags`."""
    n = 0
    for flag in reversed(flags):
        if not flag:
            break
        n += 1
    return n


def make_alert(kind: str, level: int, labels: Tuple[str, ...], **detail: Any) -> Alert:
    return Alert(kind=kind, level=level, label=labels[level], detail=detail, impacts=impacts_for(kind, level))


class EnvironmentalConditionsService(DerivedService):
    """Multi-day environmental alerts for land regions."""

    def __init__(self, generator: WeatherGenerator, snow: SnowAccumulationService):
        """Initialize environmental conditions service.

        Args:
            generator: Shared weather generator
            snow: Snow service, used to suppress drought and fire under snow cover
        """
        super().__init__("environmental-conditions", generator)
        self.snow = snow

    def expected_hourly_rate(self, region: RegionProfile, date: GameDate) -> float:
        """Climatological chance of a wet hour on this day."""
        humidity = DEFAULT_HUMIDITY
        if region.humidity_profile is not None:
            mean = region.humidity_profile.interpolate(date, "mean")
            if mean is not None:
                humidity = mean
        rate = (
            CLIMATOLOGICAL_PRECIP_CHANCE
            * self.settings.hourly_precip_scale
            * aridity_multiplier(region)
            * humidity_band_multiplier(humidity)
            * seasonal_multiplier(region, date)
        )
        return min(self.settings.max_hourly_precip, rate)

    def precipitation_history(self, region: RegionProfile, date: GameDate, days: int) -> Dict[str, Any]:
        """Wet-hour counts over the `days` days ending with `date`'s day."""
        model = self.generator.precipitation
        actual = heavy = 0
        expected = 0.0
        wet_days = heavy_days = 0
        for day in self.days_back(date, days):
            expected += self.expected_hourly_rate(region, day) * HOURS_PER_DAY
            day_wet = day_heavy = 0
            for hour in range(HOURS_PER_DAY):
                state = model.hour_state(region, day.absolute_hour + hour)
                if state.wet:
                    day_wet += 1
                    if state.intensity is Intensity.HEAVY:
                        day_heavy += 1
            actual += day_wet
            heavy += day_heavy
            wet_days += day_wet > 0
            heavy_days += day_heavy >= HEAVY_DAY_HOURS
        return {
            "actual_hours": actual,
            "expected_hours": round(expected, 1),
            "heavy_hours": heavy,
            "wet_days": wet_days,
            "heavy_days": heavy_days,
        }

    def drought(self, region: RegionProfile, date: GameDate) -> Alert:
        days = self.settings.drought_lookback_days
        history = self.precipitation_history(region, date, days)
        expected = history["expected_hours"]
        deficit = (expected - history["actual_hours"]) / expected * 100 if expected > 0 else 0.0
        level = level_from_thresholds(deficit, DROUGHT_DEFICITS)
        return make_alert("drought", level, DROUGHT_LABELS, deficit_percent=round(deficit), lookback_days=days, **history)

    def flood(self, region: RegionProfile, date: GameDate) -> Alert:
        days = self.settings.flood_lookback_days
        history = self.precipitation_history(region, date, days)
        expected = history["expected_hours"]
        if expected > 0:
            excess = (history["actual_hours"] - expected) / expected * 100
        else:
            excess = 100.0 if history["actual_hours"] else 0.0
        heavy_hour_share = history["heavy_hours"] / max(history["actual_hours"], 1)
        heavy_day_share = history["heavy_days"] / days
        if excess >= 100 and heavy_day_share >= 0.3:
            level = 3
        elif excess >= 60 or heavy_day_share >= 0.3:
            level = 2
        elif excess >= 30 or heavy_day_share >= 0.15 or (excess >= 15 and heavy_hour_share >= 0.4):
            level = 1
        else:
            level = 0
        return make_alert("flood", level, FLOOD_LABELS, excess_percent=round(excess), lookback_days=days, **history)

    def _daily_deviations(self, region: RegionProfile, date: GameDate, hour: int) -> List[float]:
        """Temperature minus expectation at `hour` for each lookback day, oldest first."""
        days = self.settings.temperature_lookback_days
        temperature = self.generator.temperature
        deviations = []
        for day in self.days_back(date, days):
            at = day.with_hour(hour)
            deviations.append(self.weather(region, at).temperature - temperature.expected(region, at))
        return deviations

    def heat_wave(self, region: RegionProfile, date: GameDate) -> Alert:
        current = self.weather(region, date.with_hour(HEAT_HOUR)).temperature
        if current < HEAT_FLOORS[0]:
            return make_alert("heat_wave", 0, HEAT_LABELS, consecutive_days=0, temperature=current)
        deviations = self._daily_deviations(region, date, HEAT_HOUR)
        run = run_length([d >= ANOMALY_DEGREES for d in deviations])
        level = 0
        for lvl, (days_needed, floor) in enumerate(zip(RUN_LEVELS, HEAT_FLOORS), start=1):
            if run >= days_needed and current >= floor:
                level = lvl
        above = sum(deviations[-run:]) / run if run else 0.0
        return make_alert(
            "heat_wave", level, HEAT_LABELS,
            consecutive_days=run, temperature=current, degrees_above_normal=round(above, 1),
        )

    def cold_snap(self, region: RegionProfile, date: GameDate) -> Alert:
        current = self.weather(region, date.with_hour(COLD_HOUR)).temperature
        if current > COLD_CEILINGS[0]:
            return make_alert("cold_snap", 0, COLD_LABELS, consecutive_days=0, temperature=current)
        deviations = self._daily_deviations(region, date, COLD_HOUR)
        run = run_length([d <= -ANOMALY_DEGREES for d in deviations])
        level = 0
        for lvl, (days_needed, ceiling) in enumerate(zip(RUN_LEVELS, COLD_CEILINGS), start=1):
            if run >= days_needed and current <= ceiling:
                level = lvl
        below = -sum(deviations[-run:]) / run if run else 0.0
        return make_alert(
            "cold_snap", level, COLD_LABELS,
            consecutive_days=run, temperature=current, degrees_below_normal=round(below, 1),
        )

    def wildfire(self, region: RegionProfile, date: GameDate, drought: Alert, heat: Alert) -> Alert:
        afternoon = self.weather(region, date.with_hour(HEAT_HOUR))
        humidity, wind = afternoon.humidity, afternoon.wind.speed
        humidity_bonus = next((b for limit, b in ((20, 20), (30, 15), (40, 10), (50, 5)) if humidity < limit), 0)
        wind_bonus = next((b for limit, b in ((30, 20), (20, 15), (15, 10), (10, 5)) if wind >= limit), 0)
        rain_days = self.precipitation_history(region, date, RECENT_RAIN_DAYS)["wet_days"]
        rain_penalty = 20 if rain_days > 3 else 10 if rain_days > 1 else 0
        score = drought.level * 10 + heat.level * 10 + humidity_bonus + wind_bonus - rain_penalty
        score = max(0, min(100, score))
        level = level_from_thresholds(score, WILDFIRE_LEVELS)
        return make_alert(
            "wildfire", level, WILDFIRE_LABELS,
            score=score, humidity_bonus=humidity_bonus, wind_bonus=wind_bonus, rain_penalty=rain_penalty,
        )

    def suppression_reason(self, region: RegionProfile, date: GameDate) -> str:
        """Why drought and wildfire are suppressed today: "snow", "freezing" or empty."""
        noon = date.with_hour(NOON)
        if self.snow.get_accumulation(region, noon).snow_depth >= SNOW_SUPPRESSION_DEPTH:
            return "snow"
        yesterday = noon.advance(-HOURS_PER_DAY)
        if self.weather(region, noon).temperature <= 32 and self.weather(region, yesterday).temperature <= 32:
            return "freezing"
        return ""

    def not_applicable(self, region: RegionProfile, date: GameDate) -> AlertSet:
        def none(kind):
            return Alert(kind=kind, level=0, label="Not applicable")
        return AlertSet(
            region_id=region.id,
            date=date.start_of_day(),
            applicable=False,
            drought=none("drought"),
            flood=none("flood"),
            heat_wave=none("heat_wave"),
            cold_snap=none("cold_snap"),
            wildfire=none("wildfire"),
        )

    def get_environmental_conditions(self, region: RegionProfile, date: GameDate) -> AlertSet:
        """Alerts for the day containing `date` (cached per region-day).

        Args:
            region: Region profile
            date: Any hour of the day to evaluate

        Returns:
            AlertSet; ocean regions get a not-applicable set
        """
        if region.is_ocean:
            return self.not_applicable(region, date)

        def compute():
            drought = self.drought(region, date)
            heat = self.heat_wave(region, date)
            wildfire = self.wildfire(region, date, drought, heat)
            suppressed: List[str] = []
            reason = self.suppression_reason(region, date)
            if reason:
                if drought.level > 0:
                    drought = make_alert("drought", 0, DROUGHT_LABELS, suppressed_by=reason, **drought.detail)
                    suppressed.append("drought")
                if wildfire.level > 0:
                    wildfire = make_alert("wildfire", 0, WILDFIRE_LABELS, suppressed_by=reason, **wildfire.detail)
                    suppressed.append("wildfire")
                logger.debug(f"{region.id} {date.start_of_day()}: drought/wildfire suppressed by {reason}")
            return AlertSet(
                region_id=region.id,
                date=date.start_of_day(),
                applicable=True,
                drought=drought,
                flood=self.flood(region, date),
                heat_wave=heat,
                cold_snap=self.cold_snap(region, date),
                wildfire=wildfire,
                suppressed=tuple(suppressed),
            )

        return self.cached((region.cache_key, date.absolute_day), compute)

    def describe(self) -> Dict[str, Any]:
        return {
            "drought_lookback_days": self.settings.drought_lookback_days,
            "flood_lookback_days": self.settings.flood_lookback_days,
            "temperature_lookback_days": self.settings.temperature_lookback_days,
            "climatological_precip_chance": round(CLIMATOLOGICAL_PRECIP_CHANCE, 3),
        }
