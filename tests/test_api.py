import pytest
from fastapi.testclient import TestClient

from weathermaster.api import create_app


@pytest.fixture
def client(service):
  return TestClient(create_app(service))


def test_health(client):
  r = client.get("/health")
  assert r.status_code == 200
  assert r.json()["status"] == "ok"


def test_regions(client):
  ids = [r["id"] for r in client.get("/api/regions").json()]
  assert "continental-prairie" in ids
  r = client.get("/api/regions/continental-prairie")
  assert r.status_code == 200
  assert r.json()["latitudeBand"] == "temperate"


def test_unknown_region_404(client):
  assert client.get("/api/regions/atlantis").status_code == 404
  assert client.get("/api/regions/atlantis/weather", params={"year": 1, "month": 1}).status_code == 404


def test_invalid_date_400(client):
  r = client.get("/api/regions/continental-prairie/weather", params={"year": 1, "month": 13})
  assert r.status_code == 400
  r = client.get("/api/regions/continental-prairie/weather", params={"year": 1, "month": 2, "day": 30})
  assert r.status_code == 400
  assert client.get("/api/sun/temperate", params={"year": 1, "month": 1, "hour": 25}).status_code == 400


def test_weather(client):
  r = client.get("/api/regions/continental-prairie/weather", params={"year": 1, "month": 7, "day": 4, "hour": 15})
  assert r.status_code == 200
  body = r.json()
  assert body["date"] == {"year": 1, "month": 7, "day": 4, "hour": 15}
  assert body["humidity"] <= 100


def test_forecast_and_daily(client):
  r = client.get("/api/regions/continental-prairie/forecast", params={"year": 1, "month": 7, "hours": 12})
  assert len(r.json()["hours"]) == 12
  assert sum(p["hours"] for p in r.json()["periods"]) == 12
  r = client.get("/api/regions/continental-prairie/daily", params={"year": 1, "month": 7, "days": 2})
  assert len(r.json()) == 2


def test_derived_endpoints(client):
  params = {"year": 2, "month": 1, "day": 10, "hour": 12}
  assert client.get("/api/regions/tundra-plain/celestial", params=params).status_code == 200
  assert "snow_depth" in client.get("/api/regions/tundra-plain/accumulation", params=params).json()
  sea = client.get("/api/regions/temperate-ocean/sea-state", params=params).json()
  assert "sea_state" in sea and "forecast" in sea
  env = client.get("/api/regions/continental-prairie/environment", params=params).json()
  assert env["applicable"] is True
  assert isinstance(env["active"], list)


def test_sun_and_moon(client):
  sun = client.get("/api/sun/central", params={"year": 1, "month": 6, "day": 21}).json()
  assert sun["latitude_band"] == "polar"
  assert sun["is_permanent_day"] is True
  moon = client.get("/api/moon", params={"year": 1, "month": 3, "day": 3}).json()
  assert 0 <= moon["phase"]["illumination"] <= 100
  assert "moonrise" in moon["times"]
