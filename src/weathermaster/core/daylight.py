from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple
import logging

import numpy as np

from ..model.records import SunTimes
from ..runtime.cache import MemoCache
from .geometry import (
  DEFAULT_OBSERVER_ANGLE, DEFAULT_SUN_PHASE_OFFSET, SUN_ILLUMINATION_RADIUS, TWILIGHT_CIVIL,
  canonical_band, distance, illumination_level, observer_radius, sun_angle, sun_orbital_radius,
)
from .timebase import GameDate

logger = logging.getLogger(__name__)

SAMPLE_STEP_HOURS = 0.25
BISECTION_TOLERANCE = 0.001


@dataclass(frozen=True)
class Crossing:
  hour: float
  entering: bool


def bisect_crossing(fn: Callable[[float], float], lo: float, hi: float, tolerance: float = BISECTION_TOLERANCE) -> float:
  """Root of fn in [lo, hi] where fn(lo) and fn(hi) differ in sign."""
  f_lo = fn(lo)
  while hi - lo > tolerance:
    mid = (lo + hi) / 2
    f_mid = fn(mid)
    if (f_mid > 0) == (f_lo > 0):
      lo, f_lo = mid, f_mid
    else:
      hi = mid
  return (lo + hi) / 2


@dataclass(frozen=True)
class DaySun:
  sunrise: Optional[float]
  sunset: Optional[float]
  day_length: float
  civil_dawn: Optional[float]
  civil_dusk: Optional[float]


class SunriseSunsetService:
  def __init__(self, sun_offset: float = DEFAULT_SUN_PHASE_OFFSET):
    self.sun_offset = sun_offset
    self.cache = MemoCache("sunrise-sunset", max_entries=20000)

  def _distance_fn(self, band: str, date: GameDate, observer_angle: float):
    r_obs = observer_radius(band)
    r_sun = sun_orbital_radius(date.day_of_year)
    def fn(hour):
      return distance(r_obs, observer_angle, r_sun, sun_angle(hour, self.sun_offset))
    return fn

  def find_crossings(self, band: str, date: GameDate, threshold: float, observer_angle: float = DEFAULT_OBSERVER_ANGLE) -> List[Crossing]:
    fn = self._distance_fn(band, date, observer_angle)
    hours = np.arange(0.0, 24.0 + SAMPLE_STEP_HOURS / 2, SAMPLE_STEP_HOURS)
    diff = fn(hours) - threshold
    crossings = []
    for i in np.nonzero(np.sign(diff[:-1]) != np.sign(diff[1:]))[0]:
      lo, hi = float(hours[i]), float(hours[i + 1])
      hour = bisect_crossing(lambda h: fn(h) - threshold, lo, hi)
      crossings.append(Crossing(hour=hour % 24.0, entering=bool(diff[i] > 0)))
    return crossings

  def _rise_set(self, band, date, threshold, observer_angle) -> Tuple[Optional[float], Optional[float], float]:
    crossings = self.find_crossings(band, date, threshold, observer_angle)
    rise = next((c.hour for c in crossings if c.entering), None)
    setting = next((c.hour for c in reversed(crossings) if not c.entering), None)
    if rise is not None and setting is not None:
      length = setting - rise if setting > rise else 24.0 - rise + setting
    elif rise is None and setting is None:
      fn = self._distance_fn(band, date, observer_angle)
      length = 24.0 if fn(0.0) <= threshold else 0.0
    elif rise is not None:
      length = 24.0 - rise
    else:
      length = setting
    return rise, setting, length

  def day_sun(self, band: str, date: GameDate, observer_angle: float = DEFAULT_OBSERVER_ANGLE) -> DaySun:
    band = canonical_band(band)
    key = (band, date.year, date.month, date.day, observer_angle)

    def compute():
      rise, setting, length = self._rise_set(band, date, SUN_ILLUMINATION_RADIUS, observer_angle)
      dawn, dusk, _ = self._rise_set(band, date, TWILIGHT_CIVIL, observer_angle)
      return DaySun(rise, setting, length, dawn, dusk)

    return self.cache.get_or_compute(key, compute)

  def distance_to_sun(self, band: str, date: GameDate, observer_angle: float = DEFAULT_OBSERVER_ANGLE) -> float:
    return self._distance_fn(canonical_band(band), date, observer_angle)(float(date.hour))

  def is_daytime(self, band: str, date: GameDate, observer_angle: float = DEFAULT_OBSERVER_ANGLE) -> bool:
    return self.distance_to_sun(band, date, observer_angle) <= SUN_ILLUMINATION_RADIUS

  def get_sunrise_sunset(self, band: str, date: GameDate, observer_angle: float = DEFAULT_OBSERVER_ANGLE) -> SunTimes:
    day = self.day_sun(band, date, observer_angle)
    d = self.distance_to_sun(band, date, observer_angle)
    return SunTimes(
      latitude_band=canonical_band(band),
      sunrise_hour=day.sunrise,
      sunset_hour=day.sunset,
      day_length_hours=day.day_length,
      civil_dawn_hour=day.civil_dawn,
      civil_dusk_hour=day.civil_dusk,
      is_daytime=d <= SUN_ILLUMINATION_RADIUS,
      twilight_level=illumination_level(d),
      distance_to_sun=round(d, 1),
      is_permanent_day=day.day_length >= 24.0,
      is_permanent_night=day.day_length <= 0.0,
    )

  def clear_cache(self):
    self.cache.clear()
