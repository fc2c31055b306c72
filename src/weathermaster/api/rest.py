"""Read-only REST API over WeatherService."""

from typing import Optional
import logging

from fastapi import FastAPI, HTTPException, Query

from ..core.timebase import GameDate
from ..errors import InvalidDateError, InvalidRegionError, UnknownRegionError
from ..model.regions import RegionProfile
from ..service import WeatherService, group_into_periods

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


class WeatherAPI:
    """FastAPI application exposing weather, celestial and derived conditions."""

    def __init__(self, service: WeatherService):
        """Initialize REST API.

        Args:
            service: Weather service answering every request
        """
        self.service = service
        self.app = FastAPI(
            title="WeatherMaster API",
            description="Deterministic weather and celestial data for fictional regions",
            version=API_VERSION,
        )
        self._setup_routes()

    def _region(self, region_id: str) -> RegionProfile:
        try:
            return self.service.get_region(region_id)
        except UnknownRegionError:
            raise HTTPException(status_code=404, detail=f"Region not found: {region_id}")

    @staticmethod
    def _date(year: int, month: int, day: int, hour: int) -> GameDate:
        try:
            return GameDate(year, month, day, hour)
        except InvalidDateError as e:
            raise HTTPException(status_code=400, detail=str(e))

    def _setup_routes(self) -> None:
        """Setup all API routes."""

        @self.app.get("/health")
        async def health():
            """Health check."""
            return {"status": "ok", "version": API_VERSION, "regions": len(self.service.regions)}

        @self.app.get("/api/regions")
        async def list_regions():
            """List registered regions."""
            return [
                {"id": r.id, "name": r.name, "latitude_band": r.band, "biome": r.biome, "is_ocean": r.is_ocean}
                for r in self.service.regions.values()
            ]

        @self.app.get("/api/regions/{region_id}")
        async def get_region(region_id: str):
            """Get one region profile."""
            return self._region(region_id).model_dump(by_alias=True)

        @self.app.get("/api/regions/{region_id}/weather")
        async def get_weather(
            region_id: str,
            year: int = Query(...),
            month: int = Query(...),
            day: int = 1,
            hour: int = 0,
        ):
            """Weather snapshot for one hour."""
            region = self._region(region_id)
            return self.service.generate_weather(region, self._date(year, month, day, hour)).to_dict()

        @self.app.get("/api/regions/{region_id}/forecast")
        async def get_forecast(
            region_id: str,
            year: int = Query(...),
            month: int = Query(...),
            day: int = 1,
            hour: int = 0,
            hours: int = Query(24, ge=1, le=24 * 14),
        ):
            """Hourly forecast with condition periods."""
            region = self._region(region_id)
            snapshots = self.service.get_forecast(region, self._date(year, month, day, hour), hours)
            periods = group_into_periods(snapshots)
            return {
                "hours": [s.to_dict() for s in snapshots],
                "periods": [{**p, "start": p["start"].to_dict(), "end": p["end"].to_dict()} for p in periods],
            }

        @self.app.get("/api/regions/{region_id}/daily")
        async def get_daily(
            region_id: str,
            year: int = Query(...),
            month: int = Query(...),
            day: int = 1,
            days: int = Query(7, ge=1, le=30),
        ):
            """Daily summaries."""
            region = self._region(region_id)
            return [s.to_dict() for s in self.service.get_daily_forecast(region, self._date(year, month, day, 0), days)]

        @self.app.get("/api/regions/{region_id}/celestial")
        async def get_celestial(
            region_id: str,
            year: int = Query(...),
            month: int = Query(...),
            day: int = 1,
            hour: int = 0,
        ):
            """Sun and moon state."""
            region = self._region(region_id)
            return self.service.get_celestial_state(region, self._date(year, month, day, hour)).to_dict()

        @self.app.get("/api/regions/{region_id}/accumulation")
        async def get_accumulation(
            region_id: str,
            year: int = Query(...),
            month: int = Query(...),
            day: int = 1,
            hour: int = 0,
        ):
            """Snow and ice on the ground."""
            region = self._region(region_id)
            return self.service.get_accumulation(region, self._date(year, month, day, hour)).to_dict()

        @self.app.get("/api/regions/{region_id}/sea-state")
        async def get_sea_state(
            region_id: str,
            year: int = Query(...),
            month: int = Query(...),
            day: int = 1,
            hour: int = 0,
        ):
            """Sea state and short forecast."""
            region = self._region(region_id)
            date = self._date(year, month, day, hour)
            return {
                "sea_state": self.service.get_sea_state(region, date).to_dict(),
                "forecast": self.service.get_sea_state_forecast(region, date),
            }

        @self.app.get("/api/regions/{region_id}/environment")
        async def get_environment(
            region_id: str,
            year: int = Query(...),
            month: int = Query(...),
            day: int = 1,
        ):
            """Drought, flood, heat, cold and wildfire alerts for the day."""
            region = self._region(region_id)
            alerts = self.service.get_environmental_conditions(region, self._date(year, month, day, 12))
            return {**alerts.to_dict(), "active": [a.to_dict() for a in alerts.active]}

        @self.app.get("/api/sun/{band}")
        async def get_sun(
            band: str,
            year: int = Query(...),
            month: int = Query(...),
            day: int = 1,
            hour: int = 0,
            observer_angle: float = 0.0,
        ):
            """Sunrise, sunset and twilight for a latitude band."""
            date = self._date(year, month, day, hour)
            return self.service.get_sunrise_sunset(band, date, observer_angle).to_dict()

        @self.app.get("/api/moon")
        async def get_moon(
            year: int = Query(...),
            month: int = Query(...),
            day: int = 1,
            hour: int = 0,
            observer_angle: float = 0.0,
            moon_offset: float = 0.0,
            sun_offset: float = 180.0,
        ):
            """Lunar phase and moonrise/moonset."""
            date = self._date(year, month, day, hour)
            return {
                "phase": self.service.get_lunar_phase(date, moon_offset, sun_offset).to_dict(),
                "times": self.service.get_moon_rise_set(date, observer_angle).to_dict(),
            }

        @self.app.post("/api/cache/clear")
        async def clear_cache():
            """Drop all cached results."""
            self.service.clear_cache()
            return {"cleared": True}

        @self.app.get("/api/cache")
        async def cache_stats():
            """Cache statistics."""
            return self.service.cache_stats()

    def get_app(self) -> FastAPI:
        return self.app


def create_app(service: Optional[WeatherService] = None) -> FastAPI:
    """Build the FastAPI app, constructing a default WeatherService when none is given."""
    try:
        return WeatherAPI(service or WeatherService()).get_app()
    except InvalidRegionError:
        logger.error("Packaged region templates failed validation")
        raise
