from typing import List, Optional
import logging

import numpy as np

from ..model.records import LunarPhase, MoonTimes
from ..runtime.cache import MemoCache
from .daylight import bisect_crossing
from .geometry import (
  DEFAULT_MOON_PHASE_OFFSET, DEFAULT_OBSERVER_ANGLE, DEFAULT_SUN_PHASE_OFFSET,
  angular_difference, is_waxing, lunar_illumination, lunar_phase_angle, moon_angle,
  normalize_angle, phase_for_angle, sun_angle,
)
from .timebase import GameDate

logger = logging.getLogger(__name__)

MOON_SAMPLE_STEP_HOURS = 0.5


def hours_since_year_start(date: GameDate, hour: Optional[float] = None) -> float:
  h = date.hour if hour is None else hour
  return (date.day_of_year - 1) * 24 + h


def did_cross_angle(prev_angle: float, curr_angle: float, target: float) -> bool:
  """True when motion from prev to curr (the short way round) passes through target."""
  step = angular_difference(curr_angle, prev_angle)
  if step == 0:
    return False
  to_target = angular_difference(target, prev_angle)
  if step > 0:
    return 0 < to_target <= step
  return step <= to_target < 0


class MoonService:
  def __init__(self, moon_offset: float = DEFAULT_MOON_PHASE_OFFSET, sun_offset: float = DEFAULT_SUN_PHASE_OFFSET):
    self.moon_offset = moon_offset
    self.sun_offset = sun_offset
    self.cache = MemoCache("moon-rise-set", max_entries=20000)

  def moon_angle_at(self, date: GameDate, hour: Optional[float] = None, moon_offset: Optional[float] = None) -> float:
    offset = self.moon_offset if moon_offset is None else moon_offset
    return moon_angle(hours_since_year_start(date, hour), offset)

  def get_lunar_phase(self, date: GameDate, moon_offset: Optional[float] = None, sun_offset: Optional[float] = None) -> LunarPhase:
    s_off = self.sun_offset if sun_offset is None else sun_offset
    theta_sun = sun_angle(date.hour, s_off)
    theta_moon = self.moon_angle_at(date, moon_offset=moon_offset)
    angle = lunar_phase_angle(theta_sun, theta_moon)
    name, icon = phase_for_angle(angle)
    return LunarPhase(
      name=name,
      icon=icon,
      phase_angle=round(angle, 2),
      illumination=int(round(lunar_illumination(angle))),
      is_waxing=is_waxing(angle),
      sun_angle=round(theta_sun, 2),
      moon_angle=round(theta_moon, 2),
    )

  def _find_angle_crossings(self, date: GameDate, target: float) -> List[float]:
    target = normalize_angle(target)
    hours = np.arange(0.0, 24.0 + MOON_SAMPLE_STEP_HOURS / 2, MOON_SAMPLE_STEP_HOURS)
    angles = [self.moon_angle_at(date, float(h)) for h in hours]
    found = []
    for i in range(len(hours) - 1):
      if not did_cross_angle(angles[i], angles[i + 1], target):
        continue
      def offset(h):
        return angular_difference(self.moon_angle_at(date, h), target)
      hour = bisect_crossing(offset, float(hours[i]), float(hours[i + 1]))
      found.append(hour % 24.0)
    return found

  def get_moon_rise_set(self, date: GameDate, observer_angle: float = DEFAULT_OBSERVER_ANGLE) -> MoonTimes:
    key = (date.year, date.month, date.day, observer_angle, self.moon_offset)

    def compute():
      rises = self._find_angle_crossings(date, observer_angle - 90.0)
      sets = self._find_angle_crossings(date, observer_angle + 90.0)
      logger.debug(f"Moon crossings for {date}: rises={rises} sets={sets}")
      return (rises[0] if rises else None, sets[-1] if sets else None)

    moonrise, moonset = self.cache.get_or_compute(key, compute)
    theta = self.moon_angle_at(date)
    return MoonTimes(
      moonrise_hour=moonrise,
      moonset_hour=moonset,
      is_visible=self.is_moon_visible(theta, observer_angle),
      moon_angle=round(theta, 2),
    )

  @staticmethod
  def is_moon_visible(theta_moon: float, observer_angle: float = DEFAULT_OBSERVER_ANGLE) -> bool:
    relative = normalize_angle(theta_moon - observer_angle)
    return relative <= 90.0 or relative >= 270.0

  def clear_cache(self):
    self.cache.clear()
