import pytest

from weathermaster.model.regions import load_region_templates, region_from_record
from weathermaster.model.settings import load_settings
from weathermaster.service import WeatherService


@pytest.fixture(scope="session")
def templates():
  return load_region_templates()


@pytest.fixture(scope="session")
def settings():
  return load_settings()


@pytest.fixture
def service(settings, templates):
  return WeatherService(settings=settings, regions=templates)


@pytest.fixture
def prairie(templates):
  return templates["continental-prairie"]


@pytest.fixture
def cold_prairie(templates):
  return templates["cold-continental-prairie"]


@pytest.fixture
def ocean(templates):
  return templates["temperate-ocean"]


@pytest.fixture
def bare_region():
  return region_from_record({"id": "bare", "latitudeBand": "temperate"})
