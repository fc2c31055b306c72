"""Deterministic weather and celestial simulation for fictional regions."""

from .core.timebase import GameDate
from .errors import InvalidDateError, InvalidRegionError, UnknownRegionError, WeatherMasterError
from .model.regions import RegionProfile, load_region_templates, region_from_record
from .model.settings import EngineSettings, load_settings
from .service import WeatherService, group_into_periods

__all__ = [
    "GameDate",
    "InvalidDateError",
    "InvalidRegionError",
    "UnknownRegionError",
    "WeatherMasterError",
    "RegionProfile",
    "load_region_templates",
    "region_from_record",
    "EngineSettings",
    "load_settings",
    "WeatherService",
    "group_into_periods",
]
