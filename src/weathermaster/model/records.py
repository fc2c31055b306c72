from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from ..core.timebase import GameDate, format_day_length, format_decimal_hour


class PrecipType(str, Enum):
  NONE = "None"
  RAIN = "Rain"
  SNOW = "Snow"
  SLEET = "Sleet"
  FREEZING_RAIN = "Freezing Rain"

  @property
  def is_buffer(self) -> bool:
    return self in (PrecipType.SLEET, PrecipType.FREEZING_RAIN)


class Intensity(str, Enum):
  LIGHT = "Light"
  MODERATE = "Moderate"
  HEAVY = "Heavy"


def _plain(value):
  if isinstance(value, Enum):
    return value.value
  if isinstance(value, GameDate):
    return value.to_dict()
  if isinstance(value, dict):
    return {k: _plain(v) for k, v in value.items()}
  if isinstance(value, (list, tuple)):
    return [_plain(v) for v in value]
  return value


class Record:
  def to_dict(self) -> dict:
    return _plain(asdict(self))


@dataclass(frozen=True)
class SunTimes(Record):
  latitude_band: str
  sunrise_hour: Optional[float]
  sunset_hour: Optional[float]
  day_length_hours: float
  civil_dawn_hour: Optional[float]
  civil_dusk_hour: Optional[float]
  is_daytime: bool
  twilight_level: str
  distance_to_sun: float
  is_permanent_day: bool
  is_permanent_night: bool

  def to_dict(self) -> dict:
    d = super().to_dict()
    d["sunrise"] = format_decimal_hour(self.sunrise_hour)
    d["sunset"] = format_decimal_hour(self.sunset_hour)
    d["day_length"] = format_day_length(self.day_length_hours)
    return d


@dataclass(frozen=True)
class LunarPhase(Record):
  name: str
  icon: str
  phase_angle: float
  illumination: int
  is_waxing: bool
  sun_angle: float
  moon_angle: float


@dataclass(frozen=True)
class MoonTimes(Record):
  moonrise_hour: Optional[float]
  moonset_hour: Optional[float]
  is_visible: bool
  moon_angle: float

  def to_dict(self) -> dict:
    d = super().to_dict()
    d["moonrise"] = format_decimal_hour(self.moonrise_hour)
    d["moonset"] = format_decimal_hour(self.moonset_hour)
    return d


@dataclass(frozen=True)
class CelestialState(Record):
  date: GameDate
  latitude_band: str
  observer_angle: float
  sun_angle: float
  sun_orbital_radius: float
  distance_to_sun: float
  moon_angle: float
  moon_orbital_radius: float
  distance_to_moon: float
  sun: SunTimes
  moon: MoonTimes
  phase: LunarPhase

  def to_dict(self) -> dict:
    d = super().to_dict()
    d["sun"] = self.sun.to_dict()
    d["moon"] = self.moon.to_dict()
    return d


@dataclass(frozen=True)
class Wind(Record):
  speed: int
  direction: str


@dataclass(frozen=True)
class Pressure(Record):
  value: float
  trend: str
  description: str


@dataclass(frozen=True)
class CloudCover(Record):
  percent: int
  label: str


@dataclass(frozen=True)
class Visibility(Record):
  miles: float
  description: str


@dataclass(frozen=True)
class Precipitation(Record):
  type: PrecipType
  intensity: Optional[Intensity]
  rate: float
  streak_hours: int

  @property
  def is_occurring(self) -> bool:
    return self.type is not PrecipType.NONE


@dataclass(frozen=True)
class PatternInfo(Record):
  name: str
  day_of_pattern: int
  total_days: int


@dataclass(frozen=True)
class WeatherSnapshot(Record):
  region_id: str
  date: GameDate
  temperature: int
  feels_like: int
  condition: str
  wind: Wind
  humidity: int
  dew_point: float
  precipitation: Precipitation
  pressure: Pressure
  cloud_cover: CloudCover
  visibility: Visibility
  effects: Tuple[str, ...]
  pattern: PatternInfo
  gameplay_effects: Tuple[str, ...] = ()
  fallbacks: Tuple[str, ...] = ()
  debug: Optional[Dict[str, Any]] = None

  def to_row(self) -> dict:
    """Flatten into a single-level dict for tabular export."""
    return {
      "region_id": self.region_id,
      "year": self.date.year,
      "month": self.date.month,
      "day": self.date.day,
      "hour": self.date.hour,
      "temperature": self.temperature,
      "feels_like": self.feels_like,
      "condition": self.condition,
      "wind_speed": self.wind.speed,
      "wind_direction": self.wind.direction,
      "humidity": self.humidity,
      "dew_point": self.dew_point,
      "precip_type": self.precipitation.type.value,
      "precip_intensity": self.precipitation.intensity.value if self.precipitation.intensity else None,
      "precip_rate": self.precipitation.rate,
      "pressure": self.pressure.value,
      "pressure_trend": self.pressure.trend,
      "cloud_cover": self.cloud_cover.percent,
      "visibility": self.visibility.miles,
      "pattern": self.pattern.name,
    }


@dataclass(frozen=True)
class GroundTemperature(Record):
  temperature: float
  ground_type: str
  condition: str
  can_accumulate_snow: bool
  snow_insulation: float


@dataclass(frozen=True)
class SnowIceState(Record):
  snow_depth: float
  snow_water_equivalent: float
  ice_thickness: float
  snow_age_hours: int
  ground_condition: str
  ground_temperature: float
  travel_impact: str
  gameplay_effects: Tuple[str, ...]
  snow_fill_percent: float


@dataclass(frozen=True)
class SeaStateSnapshot(Record):
  beaufort_force: int
  beaufort_description: str
  sea_state: str
  wave_height: float
  swell_height: float
  swell_period: float
  swell_direction: str
  combined_sea_height: float
  sailing_condition: str
  sailing_score: int
  hazards: Tuple[str, ...]
  effects: Tuple[str, ...]


@dataclass(frozen=True)
class Alert(Record):
  kind: str
  level: int
  label: str
  detail: Dict[str, Any] = field(default_factory=dict)
  impacts: Tuple[str, ...] = ()


@dataclass(frozen=True)
class AlertSet(Record):
  region_id: str
  date: GameDate
  applicable: bool
  drought: Alert
  flood: Alert
  heat_wave: Alert
  cold_snap: Alert
  wildfire: Alert
  suppressed: Tuple[str, ...] = ()

  @property
  def active(self) -> List[Alert]:
    alerts = (self.drought, self.flood, self.heat_wave, self.cold_snap, self.wildfire)
    return [a for a in alerts if a.level > 0]


@dataclass(frozen=True)
class DailySummary(Record):
  date: GameDate
  high: int
  low: int
  mean: float
  condition: str
  precipitation_hours: int
  max_wind: int
  conditions: Dict[str, int] = field(default_factory=dict)
