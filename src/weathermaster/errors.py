"""Exceptions raised at the weathermaster input boundary.

The simulation itself never raises for structurally valid input; these are
reserved for callers that hand in a region without an id or a date outside
the calendar's domain.
"""


class WeatherMasterError(Exception):
    """Base class for all weathermaster errors."""


class InvalidDateError(WeatherMasterError, ValueError):
    """Raised when a GameDate field is outside the calendar domain."""


class InvalidRegionError(WeatherMasterError, ValueError):
    """Raised when a region record cannot be turned into a RegionProfile."""


class UnknownRegionError(WeatherMasterError, LookupError):
    """Raised when a region id is not registered with the service."""
