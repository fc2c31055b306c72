"""Flat-disc celestial geometry: sun and moon as point lights circling the disc."""
from typing import Dict, Tuple
import math

import numpy as np

SUN_ILLUMINATION_RADIUS = 10000.0
TWILIGHT_CIVIL = 11000.0
TWILIGHT_NAUTICAL = 12000.0
TWILIGHT_ASTRONOMICAL = 13000.0

SUN_ORBITAL_RADIUS_MEAN = 9500.0
SUN_ORBITAL_RADIUS_AMPLITUDE = 1500.0
YEAR_LENGTH_DAYS = 365.2422

MOON_ORBITAL_PERIOD_HOURS = 24.8
MOON_ORBITAL_RADIUS = 7000.0
LUNAR_CYCLE_DAYS = 29.53059

DEFAULT_SUN_PHASE_OFFSET = 180.0
DEFAULT_MOON_PHASE_OFFSET = 0.0
DEFAULT_OBSERVER_ANGLE = 0.0
DISC_RADIUS = 7000.0

DAYLIGHT = "daylight"
CIVIL_TWILIGHT = "civil_twilight"
NAUTICAL_TWILIGHT = "nautical_twilight"
ASTRONOMICAL_TWILIGHT = "astronomical_twilight"
NIGHT = "night"

LATITUDE_BAND_RADIUS: Dict[str, float] = {
  "polar": 750.0,
  "subarctic": 2000.0,
  "boreal": 3000.0,
  "temperate": 4000.0,
  "subtropical": 5000.0,
  "tropical": 6100.0,
}
BAND_ALIASES = {"central": "polar", "rim": "tropical"}
DEFAULT_BAND = "temperate"

# (start angle, end angle, name, icon); New Moon wraps through 0
MOON_PHASES: Tuple[Tuple[float, float, str, str], ...] = (
  (337.5, 22.5, "New Moon", "🌑"),
  (22.5, 67.5, "Waxing Crescent", "🌒"),
  (67.5, 112.5, "First Quarter", "🌓"),
  (112.5, 157.5, "Waxing Gibbous", "🌔"),
  (157.5, 202.5, "Full Moon", "🌕"),
  (202.5, 247.5, "Waning Gibbous", "🌖"),
  (247.5, 292.5, "Last Quarter", "🌗"),
  (292.5, 337.5, "Waning Crescent", "🌘"),
)


def canonical_band(band: str) -> str:
  key = (band or "").strip().lower()
  key = BAND_ALIASES.get(key, key)
  return key if key in LATITUDE_BAND_RADIUS else DEFAULT_BAND


def observer_radius(band: str) -> float:
  return LATITUDE_BAND_RADIUS[canonical_band(band)]


def normalize_angle(angle):
  return np.mod(angle, 360.0) if isinstance(angle, np.ndarray) else angle % 360.0


def sun_orbital_radius(day_of_year: float) -> float:
  return SUN_ORBITAL_RADIUS_MEAN + SUN_ORBITAL_RADIUS_AMPLITUDE * math.cos(2 * math.pi * day_of_year / YEAR_LENGTH_DAYS)


def sun_angle(hour, phase_offset: float = DEFAULT_SUN_PHASE_OFFSET):
  return normalize_angle((360.0 / 24.0) * hour + phase_offset)


def moon_angle(hours_since_year_start, phase_offset: float = DEFAULT_MOON_PHASE_OFFSET):
  return normalize_angle((360.0 / MOON_ORBITAL_PERIOD_HOURS) * hours_since_year_start + phase_offset)


def distance(observer_r: float, observer_theta: float, body_r: float, body_theta):
  """Law of cosines; accepts scalar or numpy array body angles."""
  delta = np.radians(np.asarray(body_theta) - observer_theta)
  d = np.sqrt(observer_r ** 2 + body_r ** 2 - 2 * observer_r * body_r * np.cos(delta))
  return float(d) if np.ndim(d) == 0 else d


def illumination_level(d: float) -> str:
  if d <= SUN_ILLUMINATION_RADIUS:
    return DAYLIGHT
  if d <= TWILIGHT_CIVIL:
    return CIVIL_TWILIGHT
  if d <= TWILIGHT_NAUTICAL:
    return NAUTICAL_TWILIGHT
  if d <= TWILIGHT_ASTRONOMICAL:
    return ASTRONOMICAL_TWILIGHT
  return NIGHT


def lunar_phase_angle(sun_theta: float, moon_theta: float) -> float:
  return normalize_angle(sun_theta - moon_theta)


def lunar_illumination(phase_angle: float) -> float:
  return 50.0 * (1.0 - math.cos(math.radians(phase_angle)))


def is_waxing(phase_angle: float) -> bool:
  return 0.0 < phase_angle < 180.0


def phase_for_angle(phase_angle: float) -> Tuple[str, str]:
  a = normalize_angle(phase_angle)
  for start, end, name, icon in MOON_PHASES[1:]:
    if start <= a < end:
      return name, icon
  return MOON_PHASES[0][2], MOON_PHASES[0][3]


def angular_difference(a: float, b: float) -> float:
  """Signed shortest rotation from b to a, in (-180, 180]."""
  diff = normalize_angle(a - b)
  return diff - 360.0 if diff > 180.0 else diff


def is_angle_in_range(angle: float, start: float, end: float) -> bool:
  angle, start, end = normalize_angle(angle), normalize_angle(start), normalize_angle(end)
  if start <= end:
    return start <= angle <= end
  return angle >= start or angle <= end
