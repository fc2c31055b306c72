"""Sea state for ocean regions: Beaufort waves, swell, sailing conditions and a short forecast."""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple
import logging

from ..core.rng import correlated_uniform
from ..core.timebase import GameDate
from ..model.records import Intensity, SeaStateSnapshot, WeatherSnapshot
from ..model.regions import RegionProfile
from .base import DerivedService
from .generator import WeatherGenerator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BeaufortForce:
    force: int
    wind_min: float
    wave_height: float
    sea_state: str
    description: str


BEAUFORT_SCALE: Tuple[BeaufortForce, ...] = (
    BeaufortForce(0, 0, 0.0, "Calm", "Calm"),
    BeaufortForce(1, 1, 0.1, "Calm", "Light air"),
    BeaufortForce(2, 4, 0.5, "Smooth", "Light breeze"),
    BeaufortForce(3, 8, 2.0, "Slight", "Gentle breeze"),
    BeaufortForce(4, 13, 4.0, "Moderate", "Moderate breeze"),
    BeaufortForce(5, 19, 8.0, "Moderate", "Fresh breeze"),
    BeaufortForce(6, 25, 13.0, "Rough", "Strong breeze"),
    BeaufortForce(7, 32, 19.0, "Rough", "Near gale"),
    BeaufortForce(8, 39, 25.0, "Very Rough", "Gale"),
    BeaufortForce(9, 47, 32.0, "High", "Strong gale"),
    BeaufortForce(10, 55, 41.0, "Very High", "Storm"),
    BeaufortForce(11, 64, 52.0, "Phenomenal", "Violent storm"),
    BeaufortForce(12, 73, 60.0, "Phenomenal", "Hurricane"),
)

FETCH_FACTORS = {"open": 1.0, "coastal": 0.7, "enclosed": 0.5, "gulf": 0.6, "strait": 0.4}
SWELL_DIRECTIONS = {"trade": "NE", "westerlies": "W", "polar": "N"}
DEFAULT_SWELL_HEIGHT = 4.0
DEFAULT_SWELL_PERIOD = 8.0

SAILING_RATINGS = ("excellent", "good", "fair", "challenging", "hazardous", "dangerous")
SAILING_THRESHOLDS = ((90, "excellent"), (75, "good"), (55, "fair"), (35, "challenging"), (15, "hazardous"))
FORECAST_HOURS = (1, 2, 3, 6)


def beaufort_index(wind_speed: float) -> int:
    index = 0
    for i, entry in enumerate(BEAUFORT_SCALE):
        if wind_speed >= entry.wind_min:
            index = i
    return index


def wave_height(wind_speed: float, fetch: float = 1.0) -> float:
    """Wind-sea height in feet, interpolated toward the next Beaufort force."""
    i = beaufort_index(wind_speed)
    entry = BEAUFORT_SCALE[i]
    if i + 1 < len(BEAUFORT_SCALE):
        upper = BEAUFORT_SCALE[i + 1]
        frac = (wind_speed - entry.wind_min) / (upper.wind_min - entry.wind_min)
        height = entry.wave_height + (upper.wave_height - entry.wave_height) * min(1.0, max(0.0, frac))
    else:
        height = entry.wave_height
    return height * fetch


def sailing_rating(score: int) -> str:
    for threshold, rating in SAILING_THRESHOLDS:
        if score >= threshold:
            return rating
    return "dangerous"


class SeaStateService(DerivedService):
    """Wave, swell and sailing conditions derived from hourly wind."""

    def __init__(self, generator: WeatherGenerator):
        """Initialize sea state service.

        Args:
            generator: Shared weather generator
        """
        super().__init__("sea-state", generator)

    def fetch_factor(self, region: RegionProfile) -> float:
        return FETCH_FACTORS.get(region.text("seaType", "open"), 1.0)

    def swell(self, region: RegionProfile, weather: WeatherSnapshot) -> Tuple[float, float, str]:
        """(height ft, period s, direction) of the background swell."""
        height = region.factor("baseSwellHeight", DEFAULT_SWELL_HEIGHT)
        period = region.factor("baseSwellPeriod", DEFAULT_SWELL_PERIOD)
        source = region.text("swellSource", "westerlies")
        direction = weather.wind.direction if source == "local" else SWELL_DIRECTIONS.get(source, "W")
        modifier = 1.0
        if weather.condition == "Thunderstorm":
            modifier = 1.5
        elif weather.condition == "Clear":
            modifier = 0.8
        modifier *= 1 + 0.3 * region.factor("stormFrequency")
        modifier *= 0.85 + 0.3 * correlated_uniform(region.id, weather.date.absolute_hour, "swell", 6)
        return round(height * modifier, 1), period, direction

    def sailing_score(self, region: RegionProfile, waves: float, combined: float, weather: WeatherSnapshot) -> int:
        score = 100.0
        if waves > 20:
            score -= 60
        elif waves > 13:
            score -= 40
        elif waves > 8:
            score -= 25
        elif waves > 4:
            score -= 10
        if combined > 25:
            score -= 20
        elif combined > 15:
            score -= 10
        wind = weather.wind.speed
        if wind > 45:
            score -= 40
        elif wind > 30:
            score -= 20
        elif wind > 20:
            score -= 10
        if wind < 5:
            score -= 15
        if weather.visibility.miles <= 0.5:
            score -= 20
        elif weather.visibility.miles <= 3:
            score -= 10
        if weather.precipitation.is_occurring:
            score -= 20 if weather.precipitation.intensity is Intensity.HEAVY else 10
        score -= region.factor("icebergs") * 30
        score -= region.factor("reefs") * 20
        score -= region.factor("fog") * 15
        score -= region.factor("tidalCurrents") * 15
        return int(round(max(0.0, min(100.0, score))))

    def hazards_and_effects(
        self,
        region: RegionProfile,
        waves: float,
        swell_height: float,
        swell_direction: str,
        weather: WeatherSnapshot,
    ) -> Tuple[Tuple[str, ...], Tuple[str, ...]]:
        hazards: List[str] = []
        effects: List[str] = []
        if waves >= 20:
            hazards.append("Extreme waves")
            effects += ["Ship damage possible without expert handling", "Deck work extremely dangerous"]
        elif waves >= 13:
            hazards.append("High seas")
            effects.append("All crew should secure themselves")
        elif waves >= 8:
            hazards.append("Rough seas")
            effects.append("Seasickness likely for unaccustomed sailors")
        wind = weather.wind.speed
        if wind >= 45:
            hazards.append("Gale force winds")
            effects.append("Reduced sail or bare poles recommended")
        elif wind >= 30:
            hazards.append("Strong winds")
            effects.append("Reef sails")
        elif wind < 5:
            hazards.append("Becalmed")
            effects.append("No wind for sailing: row, drift, or wait")
        if weather.visibility.miles <= 0.5 or region.factor("fog") > 0.5:
            hazards.append("Reduced visibility")
            effects.append("Navigation by dead reckoning")
        if region.factor("icebergs") > 0.5:
            hazards.append("Iceberg danger")
            effects.append("Lookouts required at all times")
        if region.factor("reefs") > 0.5:
            hazards.append("Reef hazards")
            effects.append("Daytime passage only advised")
        if region.factor("tidalCurrents") > 0.5:
            hazards.append("Strong currents")
            effects.append("Time passage for slack water if possible")
        if region.factor("squalls") > 0.3 and weather.precipitation.is_occurring:
            hazards.append("Squalls")
            effects.append("Sudden wind shifts and heavy rain possible")
        if swell_direction != weather.wind.direction and waves > 4 and swell_height > 3:
            hazards.append("Crossing seas")
            effects.append("Confused wave pattern, uncomfortable motion")
        return tuple(hazards), tuple(effects)

    def get_sea_state(
        self,
        region: RegionProfile,
        date: GameDate,
        weather: Optional[WeatherSnapshot] = None,
    ) -> SeaStateSnapshot:
        """Sea state for an hour.

        Args:
            region: Region profile (normally an ocean region)
            date: Hour to evaluate
            weather: Snapshot to use; generated when omitted

        Returns:
            SeaStateSnapshot record
        """
        if weather is None:
            return self.cached((region.cache_key, date.absolute_hour), lambda: self._compute(region, self.weather(region, date)))
        return self._compute(region, weather)

    def _compute(self, region: RegionProfile, weather: WeatherSnapshot) -> SeaStateSnapshot:
        force = BEAUFORT_SCALE[beaufort_index(weather.wind.speed)]
        waves = round(wave_height(weather.wind.speed, self.fetch_factor(region)), 1)
        swell_height, swell_period, swell_direction = self.swell(region, weather)
        combined = round(waves + swell_height * 0.5, 1)
        score = self.sailing_score(region, waves, combined, weather)
        hazards, effects = self.hazards_and_effects(region, waves, swell_height, swell_direction, weather)
        return SeaStateSnapshot(
            beaufort_force=force.force,
            beaufort_description=force.description,
            sea_state=force.sea_state,
            wave_height=waves,
            swell_height=swell_height,
            swell_period=swell_period,
            swell_direction=swell_direction,
            combined_sea_height=combined,
            sailing_condition=sailing_rating(score),
            sailing_score=score,
            hazards=hazards,
            effects=effects,
        )

    def get_sea_state_forecast(self, region: RegionProfile, date: GameDate) -> Dict[str, Any]:
        """Sea state at +1/+2/+3/+6 hours with a wave trend.

        Args:
            region: Region profile
            date: Current hour

        Returns:
            Dict with current, forecasts, trend and peak conditions
        """
        current = self.get_sea_state(region, date)
        forecasts = []
        for ahead in FORECAST_HOURS:
            state = self.get_sea_state(region, date.advance(ahead))
            forecasts.append({
                "hours_ahead": ahead,
                "wave_height": state.wave_height,
                "sea_state": state.sea_state,
                "sailing_condition": state.sailing_condition,
                "beaufort_force": state.beaufort_force,
            })
        by_hour = {f["hours_ahead"]: f for f in forecasts}
        now = current.wave_height
        change3 = (by_hour[3]["wave_height"] - now) / max(now, 1.0)
        change6 = (by_hour[6]["wave_height"] - now) / max(now, 1.0)
        if change3 > 0.5 or change6 > 0.75:
            trend = "deteriorating_rapidly"
        elif change3 > 0.25 or change6 > 0.5:
            trend = "deteriorating"
        elif change3 < -0.5 or change6 < -0.75:
            trend = "improving_rapidly"
        elif change3 < -0.25 or change6 < -0.5:
            trend = "improving"
        else:
            trend = "steady"

        warning = None
        now_rank = SAILING_RATINGS.index(current.sailing_condition)
        later = by_hour[3]["sailing_condition"]
        later_rank = SAILING_RATINGS.index(later)
        if later_rank > now_rank + 1:
            warning = f"Sailing conditions expected to become {later} within 3 hours"
        elif later_rank < now_rank - 1:
            warning = f"Sailing conditions expected to improve to {later} within 3 hours"

        peak = max(forecasts, key=lambda f: f["wave_height"])
        return {
            "current": {
                "wave_height": now,
                "sea_state": current.sea_state,
                "sailing_condition": current.sailing_condition,
            },
            "forecasts": forecasts,
            "trend": trend,
            "sailing_warning": warning,
            "peak": peak if peak["wave_height"] > now else None,
        }

    def describe(self) -> Dict[str, Any]:
        return {"fetch_factors": dict(FETCH_FACTORS), "forecast_hours": list(FORECAST_HOURS)}
