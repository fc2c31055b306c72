"""Weather models and the services derived from hourly weather history."""

from .base import DerivedService
from .environment import EnvironmentalConditionsService
from .generator import WeatherGenerator
from .ground import GroundTemperatureService
from .patterns import PatternType, WeatherPatternService
from .precipitation import PrecipitationModel, climate_archetype, thunderstorm_probability
from .sea import SeaStateService
from .snow import SnowAccumulationService

__all__ = [
    "DerivedService",
    "EnvironmentalConditionsService",
    "WeatherGenerator",
    "GroundTemperatureService",
    "PatternType",
    "WeatherPatternService",
    "PrecipitationModel",
    "climate_archetype",
    "thunderstorm_probability",
    "SeaStateService",
    "SnowAccumulationService",
]
