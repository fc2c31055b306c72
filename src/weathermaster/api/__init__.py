"""Read-only HTTP API for the weather service."""

from .rest import WeatherAPI, create_app

__all__ = [
    "WeatherAPI",
    "create_app",
]
