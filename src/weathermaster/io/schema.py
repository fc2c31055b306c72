from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class WeatherRow(BaseModel):
  model_config = ConfigDict(extra="forbid")

  region_id: str
  year: int
  month: int = Field(ge=1, le=12)
  day: int = Field(ge=1, le=31)
  hour: int = Field(ge=0, le=23)
  temperature: int
  feels_like: int
  condition: str
  wind_speed: int = Field(ge=0)
  wind_direction: str
  humidity: int = Field(ge=0, le=100)
  dew_point: float
  precip_type: str
  precip_intensity: Optional[str]
  precip_rate: float = Field(ge=0)
  pressure: float
  pressure_trend: str
  cloud_cover: int = Field(ge=0, le=100)
  visibility: float = Field(ge=0)
  pattern: str


class RegionRow(BaseModel):
  region_id: str
  name: Optional[str]
  latitude_band: str
  biome: Optional[str]
  is_ocean: bool


def region_row(region) -> dict:
  return RegionRow(
    region_id=region.id,
    name=region.name,
    latitude_band=region.band,
    biome=region.biome,
    is_ocean=region.is_ocean,
  ).model_dump()
