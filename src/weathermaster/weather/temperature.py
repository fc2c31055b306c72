"""Air temperature: seasonal curve, diurnal cycle, daily anomaly and pattern influence."""

from typing import List, Tuple
import math

from ..core.rng import correlated_normal
from ..core.timebase import GameDate
from ..model.regions import DEFAULT_TEMPERATURE, DEFAULT_TEMPERATURE_VARIANCE, RegionProfile
from .patterns import WeatherPatternService

DIURNAL_MIN_HOUR = 5.0
DIURNAL_MAX_HOUR = 15.0
ANOMALY_SIGMA = 3.0
ANOMALY_SIGMA_HIGH_VARIATION = 8.0
ANOMALY_CLAMP = 2.5


def diurnal_shape(hour: float) -> float:
    """-1 at the 05:00 minimum, +1 at the 15:00 maximum, cosine in between."""
    rise = DIURNAL_MAX_HOUR - DIURNAL_MIN_HOUR
    if DIURNAL_MIN_HOUR <= hour < DIURNAL_MAX_HOUR:
        return -math.cos(math.pi * (hour - DIURNAL_MIN_HOUR) / rise)
    since_peak = (hour - DIURNAL_MAX_HOUR) % 24.0
    return math.cos(math.pi * since_peak / (24.0 - rise))


def wind_chill(temp_f: float, wind_mph: float) -> float:
    v = wind_mph ** 0.16
    return 35.74 + 0.6215 * temp_f - 35.75 * v + 0.4275 * temp_f * v


def heat_index(temp_f: float, humidity: float) -> float:
    simple = 0.5 * (temp_f + 61.0 + (temp_f - 68.0) * 1.2 + humidity * 0.094)
    if (simple + temp_f) / 2 < 80:
        return simple
    t, rh = temp_f, humidity
    return (
        -42.379 + 2.04901523 * t + 10.14333127 * rh - 0.22475541 * t * rh
        - 0.00683783 * t * t - 0.05481717 * rh * rh + 0.00122874 * t * t * rh
        + 0.00085282 * t * rh * rh - 0.00000199 * t * t * rh * rh
    )


def feels_like(temp_f: float, humidity: float, wind_mph: float, pressure_inhg: float = 29.92) -> int:
    """Apparent temperature from wind chill, heat index and a small pressure/humidity term.

    Args:
        temp_f: Air temperature in °F
        humidity: Relative humidity percent
        wind_mph: Sustained wind speed
        pressure_inhg: Barometric pressure

    Returns:
        Rounded apparent temperature in °F
    """
    if temp_f <= 50 and wind_mph > 3:
        value = wind_chill(temp_f, wind_mph)
    elif temp_f >= 80:
        value = heat_index(temp_f, humidity)
    else:
        value = temp_f
        if temp_f >= 70 and humidity > 60:
            value += min(3.0, (humidity - 60) / 10)
    if temp_f <= 50 and pressure_inhg < 29.8 and wind_mph > 10:
        value -= min(2.0, (29.8 - pressure_inhg) * 4)
    return int(round(value))


class TemperatureModel:
    """Hourly air temperature for a region."""

    def __init__(self, patterns: WeatherPatternService):
        """Initialize temperature model.

        Args:
            patterns: Shared pattern service supplying the blended modifier
        """
        self.patterns = patterns

    def seasonal(self, region: RegionProfile, date: GameDate) -> Tuple[float, float, List[str]]:
        """Seasonal mean and variance for the date.

        Returns:
            (mean, variance, fallbacks) where fallbacks names any defaults used
        """
        profile = region.temperature_profile
        if profile is not None:
            mean = profile.interpolate(date, "mean")
            variance = profile.interpolate(date, "variance")
            if mean is not None and variance is not None:
                return mean, variance, []
        return DEFAULT_TEMPERATURE, DEFAULT_TEMPERATURE_VARIANCE, ["temperature_profile"]

    def anomaly(self, region: RegionProfile, absolute_hour: int) -> float:
        sigma = ANOMALY_SIGMA_HIGH_VARIATION if region.flag("highDiurnalVariation") else ANOMALY_SIGMA
        z = correlated_normal(region.id, absolute_hour, "temp-anomaly", 24)
        z = max(-ANOMALY_CLAMP, min(ANOMALY_CLAMP, z))
        return z * sigma

    def daily_mean(self, region: RegionProfile, date: GameDate) -> float:
        """Temperature without the diurnal term."""
        mean, _, _ = self.seasonal(region, date)
        h = date.absolute_hour
        return mean + self.anomaly(region, h) + self.patterns.temperature_modifier(region, h)

    def diurnal(self, region: RegionProfile, date: GameDate) -> float:
        _, variance, _ = self.seasonal(region, date)
        return variance * 0.5 * diurnal_shape(date.hour)

    def temperature(self, region: RegionProfile, date: GameDate) -> float:
        """Unrounded air temperature in °F."""
        return self.daily_mean(region, date) + self.diurnal(region, date)

    def expected(self, region: RegionProfile, date: GameDate) -> float:
        """Climatological expectation for this hour: seasonal mean plus diurnal term."""
        mean, variance, _ = self.seasonal(region, date)
        return mean + variance * 0.5 * diurnal_shape(date.hour)
