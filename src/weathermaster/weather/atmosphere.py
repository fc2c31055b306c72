"""Moisture, pressure, cloud and visibility models."""

from typing import List, Optional, Tuple
import math

from ..core.rng import correlated_normal, correlated_uniform
from ..core.timebase import GameDate
from ..model.records import CloudCover, Intensity, Pressure, Visibility
from ..model.regions import DEFAULT_HUMIDITY, DEFAULT_HUMIDITY_VARIANCE, RegionProfile
from .patterns import WeatherPatternService
from .temperature import TemperatureModel

MAGNUS_A = 17.625
MAGNUS_B = 243.04

PRESSURE_TREND_HOURS = 3
PRESSURE_TREND_THRESHOLD = 0.02

CLOUD_COVER_TYPES = (
    (10, "Clear"),
    (25, "Few"),
    (50, "Scattered"),
    (87, "Broken"),
    (101, "Overcast"),
)

PRECIP_MOISTURE_BOOST = {
    Intensity.LIGHT: 0.5,
    Intensity.MODERATE: 0.7,
    Intensity.HEAVY: 0.85,
}


def f_to_c(temp_f: float) -> float:
    return (temp_f - 32.0) * 5.0 / 9.0


def c_to_f(temp_c: float) -> float:
    return temp_c * 9.0 / 5.0 + 32.0


def relative_humidity(temp_f: float, dew_point_f: float) -> float:
    """Magnus relative humidity, clamped to [0, 100].

    The dew point is first capped at the air temperature, so the result can
    never exceed saturation.
    """
    t = f_to_c(temp_f)
    td = f_to_c(min(dew_point_f, temp_f))
    rh = 100.0 * math.exp(MAGNUS_A * td / (MAGNUS_B + td)) / math.exp(MAGNUS_A * t / (MAGNUS_B + t))
    return max(0.0, min(100.0, rh))


def dew_point_from_humidity(temp_f: float, humidity: float) -> float:
    t = f_to_c(temp_f)
    rh = max(1.0, min(100.0, humidity))
    gamma = math.log(rh / 100.0) + MAGNUS_A * t / (MAGNUS_B + t)
    return c_to_f(MAGNUS_B * gamma / (MAGNUS_A - gamma))


def cloud_label(percent: float) -> str:
    for limit, label in CLOUD_COVER_TYPES:
        if percent < limit:
            return label
    return CLOUD_COVER_TYPES[-1][1]


def pressure_description(value: float) -> str:
    if value >= 30.20:
        return "High"
    if value < 29.50:
        return "Very Low"
    if value < 29.80:
        return "Low"
    return "Normal"


class AtmosphericModel:
    """Dew point, humidity, pressure, cloud cover and visibility."""

    def __init__(self, patterns: WeatherPatternService, temperature: TemperatureModel):
        """Initialize atmospheric model.

        Args:
            patterns: Shared pattern service
            temperature: Shared temperature model
        """
        self.patterns = patterns
        self.temperature = temperature

    def base_dew_point(self, region: RegionProfile, date: GameDate, temp_f: float) -> Tuple[float, List[str]]:
        """Dew point before any precipitation moisture boost.

        Args:
            region: Region profile
            date: Hour being simulated
            temp_f: Air temperature at that hour

        Returns:
            (dew point °F capped at temp_f, fallbacks used)
        """
        h = date.absolute_hour
        fallbacks: List[str] = []
        dew: Optional[float] = None
        profile = region.dew_point_profile
        if profile is not None:
            mean = profile.interpolate(date, "mean")
            variance = profile.interpolate(date, "variance")
            if mean is not None and variance is not None:
                dew = mean + correlated_normal(region.id, h, "dew-point", 12) * variance * 0.5
                # warm or cold spells carry their own air mass moisture
                dew += 0.5 * (self.temperature.anomaly(region, h) + self.patterns.temperature_modifier(region, h))
                cap = profile.interpolate(date, "max")
                if cap is not None:
                    dew = min(dew, cap)
        if dew is None:
            rh_mean, rh_var = DEFAULT_HUMIDITY, DEFAULT_HUMIDITY_VARIANCE
            hp = region.humidity_profile
            if hp is not None and hp.interpolate(date, "mean") is not None:
                rh_mean, rh_var = hp.interpolate(date, "mean"), hp.interpolate(date, "variance")
            else:
                fallbacks.append("humidity_profile")
            rh = rh_mean + correlated_normal(region.id, h, "humidity", 12) * rh_var * 0.5
            rh = max(5.0, min(100.0, rh))
            dew = dew_point_from_humidity(self.temperature.daily_mean(region, date), rh)
        chance = self.patterns.blended(region, h, lambda s: s.precipitation_chance)
        dew += (chance - 0.4) * 6.0
        return min(dew, temp_f), fallbacks

    @staticmethod
    def moistened_dew_point(dew_f: float, temp_f: float, intensity: Optional[Intensity]) -> float:
        if intensity is None:
            return min(dew_f, temp_f)
        boosted = dew_f + (temp_f - dew_f) * PRECIP_MOISTURE_BOOST[intensity]
        return min(boosted, temp_f)

    def pressure_value(self, region: RegionProfile, absolute_hour: int) -> float:
        mid = self.patterns.blended(region, absolute_hour, lambda s: s.pressure_mid)
        span = self.patterns.blended(region, absolute_hour, lambda s: s.pressure_span)
        u = correlated_uniform(region.id, absolute_hour, "pressure", 24)
        tide = 0.02 * math.sin(2 * math.pi * (absolute_hour % 24) / 12.0)
        return mid + (u - 0.5) * span + tide

    def pressure(self, region: RegionProfile, date: GameDate) -> Pressure:
        """Pressure reading with a 3-hour tendency.

        Args:
            region: Region profile
            date: Hour being simulated

        Returns:
            Pressure record in inHg
        """
        h = date.absolute_hour
        now = self.pressure_value(region, h)
        change = now - self.pressure_value(region, h - PRESSURE_TREND_HOURS)
        if change > PRESSURE_TREND_THRESHOLD:
            trend = "rising"
        elif change < -PRESSURE_TREND_THRESHOLD:
            trend = "falling"
        else:
            trend = "steady"
        value = round(now, 2)
        return Pressure(value=value, trend=trend, description=pressure_description(value))

    def cloud_cover(
        self,
        region: RegionProfile,
        date: GameDate,
        intensity: Optional[Intensity] = None,
    ) -> CloudCover:
        h = date.absolute_hour
        clear = self.patterns.blended(region, h, lambda s: s.clear_skies)
        u = correlated_uniform(region.id, h, "clouds", 3)
        percent = (1.0 - clear) * 100.0 + (u - 0.5) * 50.0
        if intensity is not None:
            floor = {Intensity.LIGHT: 85, Intensity.MODERATE: 92, Intensity.HEAVY: 97}[intensity]
            percent = max(percent, floor)
        percent = int(round(max(0.0, min(100.0, percent))))
        return CloudCover(percent=percent, label=cloud_label(percent))

    @staticmethod
    def visibility(
        intensity: Optional[Intensity],
        condition: str,
        humidity: float,
        cloud_percent: float,
    ) -> Visibility:
        if condition == "Fog":
            return Visibility(0.25, "Very poor (fog)")
        if condition == "Blizzard":
            return Visibility(0.25, "Whiteout")
        if intensity is Intensity.HEAVY:
            return Visibility(0.5, "Poor (heavy precipitation)")
        if intensity is Intensity.MODERATE:
            return Visibility(2.0, "Reduced (precipitation)")
        if intensity is Intensity.LIGHT:
            return Visibility(5.0, "Moderate (light precipitation)")
        if condition == "Mist":
            return Visibility(3.0, "Reduced (mist)")
        if humidity > 85 and cloud_percent > 50:
            return Visibility(3.0, "Reduced (haze)")
        return Visibility(10.0, "Clear")
