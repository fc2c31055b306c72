from functools import cached_property
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union
import hashlib
import math

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..core.geometry import canonical_band
from ..core.timebase import DAYS_PER_YEAR, GameDate
from ..errors import InvalidRegionError

DEFAULT_TEMPERATURE = 70.0
DEFAULT_TEMPERATURE_VARIANCE = 10.0
DEFAULT_HUMIDITY = 50.0
DEFAULT_HUMIDITY_VARIANCE = 10.0

# mid-season anchor days (0-based day of year): Jan 15, Apr 15, Jul 15, Oct 15
SEASON_ANCHORS = (("winter", 14.0), ("spring", 104.0), ("summer", 195.0), ("fall", 287.0))

FactorValue = Union[bool, float, str]


def _invalid(data: dict, error: ValidationError) -> InvalidRegionError:
  if not data.get("id"):
    return InvalidRegionError(f"Region record is missing an id: {error}")
  return InvalidRegionError(f"Invalid region {data.get('id')!r}: {error}")


class SeasonStat(BaseModel):
  model_config = ConfigDict(frozen=True)

  mean: float
  variance: float = DEFAULT_TEMPERATURE_VARIANCE
  max: Optional[float] = None


class SeasonalProfile(BaseModel):
  model_config = ConfigDict(frozen=True)

  annual: Optional[SeasonStat] = None
  winter: Optional[SeasonStat] = None
  spring: Optional[SeasonStat] = None
  summer: Optional[SeasonStat] = None
  fall: Optional[SeasonStat] = None

  def for_season(self, season: str) -> Optional[SeasonStat]:
    return getattr(self, season, None) or self.annual

  def interpolate(self, date: GameDate, attr: str = "mean") -> Optional[float]:
    """Cosine-interpolate a season attribute between mid-season anchors."""
    points = []
    for season, day in SEASON_ANCHORS:
      stat = self.for_season(season)
      if stat is None:
        return None
      value = getattr(stat, attr)
      if value is None:
        return None
      points.append((day, value))
    points.append((points[0][0] + DAYS_PER_YEAR, points[0][1]))
    t = (date.day_of_year - 1) + date.hour / 24.0
    if t < points[0][0]:
      t += DAYS_PER_YEAR
    for (d0, v0), (d1, v1) in zip(points, points[1:]):
      if d0 <= t <= d1:
        frac = (t - d0) / (d1 - d0)
        weight = (1 - math.cos(frac * math.pi)) / 2
        return v0 + (v1 - v0) * weight
    return points[0][1]


class RegionProfile(BaseModel):
  model_config = ConfigDict(frozen=True, populate_by_name=True)

  id: str = Field(min_length=1)
  name: Optional[str] = None
  latitude_band: str = Field(default="temperate", alias="latitudeBand")
  latitude: float = 45.0
  elevation: float = 0.0
  maritime_influence: float = Field(default=0.5, ge=0.0, le=1.0, alias="maritimeInfluence")
  terrain_roughness: float = Field(default=0.5, ge=0.0, le=1.0, alias="terrainRoughness")
  special_factors: Dict[str, FactorValue] = Field(default_factory=dict, alias="specialFactors")
  temperature_profile: Optional[SeasonalProfile] = Field(default=None, alias="temperatureProfile")
  humidity_profile: Optional[SeasonalProfile] = Field(default=None, alias="humidityProfile")
  dew_point_profile: Optional[SeasonalProfile] = Field(default=None, alias="dewPointProfile")
  biome: Optional[str] = None

  def __init__(self, **data: Any):
    try:
      super().__init__(**data)
    except ValidationError as e:
      raise _invalid(data, e) from e

  @classmethod
  def model_validate(cls, obj: Any, **kwargs: Any) -> "RegionProfile":
    try:
      return super().model_validate(obj, **kwargs)
    except ValidationError as e:
      raise _invalid(obj if isinstance(obj, dict) else {}, e) from e

  @cached_property
  def cache_key(self) -> Tuple[str, str]:
    """Id plus a digest of every parameter; two profiles sharing an id never share cache entries."""
    digest = hashlib.sha1(self.model_dump_json().encode("utf-8")).hexdigest()[:12]
    return self.id, digest

  @property
  def band(self) -> str:
    return canonical_band(self.latitude_band)

  def factor(self, key: str, default: float = 0.0) -> float:
    """Numeric view of a special factor; booleans map to 1.0/0.0."""
    value = self.special_factors.get(key, default)
    if isinstance(value, bool):
      return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
      return float(value)
    return default

  def flag(self, key: str) -> bool:
    return bool(self.special_factors.get(key, False))

  def text(self, key: str, default: Optional[str] = None) -> Optional[str]:
    value = self.special_factors.get(key)
    return value if isinstance(value, str) else default

  @property
  def is_ocean(self) -> bool:
    return self.flag("isOcean") or self.biome == "ocean"


def region_from_record(record: Union[dict, RegionProfile]) -> RegionProfile:
  """Normalize a region record (including legacy `climate`/`parameters` nesting) into a RegionProfile."""
  if isinstance(record, RegionProfile):
    return record
  if not isinstance(record, dict):
    raise InvalidRegionError(f"Region must be a mapping, got {type(record).__name__}")
  data = dict(record)
  nested = data.pop("climate", None) or data.pop("parameters", None)
  if isinstance(nested, dict):
    data = {**nested, **data}
  if "latitudeBand" not in data and "latitude_band" not in data and "band" in data:
    data["latitudeBand"] = data.pop("band")
  if data.get("defaultBiome") and not data.get("biome"):
    data["biome"] = data.pop("defaultBiome")
  if not data.get("id"):
    raise InvalidRegionError("Region record is missing an id")
  return RegionProfile.model_validate(data)


def load_region_templates(path: Optional[Union[str, Path]] = None) -> Dict[str, RegionProfile]:
  if path is None:
    path = Path(__file__).parent.parent / "config" / "regions.yaml"
  raw = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
  regions = {}
  for key, v in (raw.get("regions") or {}).items():
    regions[key] = region_from_record({"id": key, **v})
  return regions
