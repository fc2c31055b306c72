"""Base class for services derived from the hourly weather history."""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Hashable, Iterator, List
import logging

from ..core.timebase import GameDate
from ..model.records import WeatherSnapshot
from ..model.regions import RegionProfile
from ..runtime.cache import MemoCache
from .generator import WeatherGenerator

logger = logging.getLogger(__name__)


class DerivedService(ABC):
    """Shared plumbing for ground, snow, sea and environment services."""

    def __init__(self, name: str, generator: WeatherGenerator):
        """Initialize derived service.

        Args:
            name: Service name, also used to label its cache
            generator: Shared weather generator (source of hourly history)
        """
        self.name = name
        self.generator = generator
        self.settings = generator.settings
        self.cache = MemoCache(name, max_entries=generator.settings.cache_max_entries)

    def weather(self, region: RegionProfile, date: GameDate) -> WeatherSnapshot:
        return self.generator.generate(region, date)

    def history(self, region: RegionProfile, end: GameDate, hours: int) -> List[WeatherSnapshot]:
        """Snapshots for the `hours` hours ending at (and including) `end`, oldest first."""
        return [self.weather(region, end.advance(-k)) for k in range(hours - 1, -1, -1)]

    def days_back(self, end: GameDate, days: int) -> Iterator[GameDate]:
        """Start of each of the `days` days ending with `end`'s day, oldest first."""
        today = end.start_of_day()
        for k in range(days - 1, -1, -1):
            yield today.advance(-24 * k)

    def cached(self, key: Hashable, factory: Callable[[], Any]) -> Any:
        return self.cache.get_or_compute(key, factory)

    @abstractmethod
    def describe(self) -> Dict[str, Any]:
        """Static parameters of this service, for diagnostics.

        Returns:
            Dict of tunables the service uses
        """
        pass

    def clear_cache(self) -> None:
        self.cache.clear()
        logger.debug(f"Cleared {self.name} cache")
