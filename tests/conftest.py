import django
import pyproj
import pytest

from mapmlserver import conf
from mapmlserver.layers import MapDefinition
from tests.test_mapmlserver.views import build_city_map


def pytest_configure():
    print(f'Running with Django {django.__version__}, pyproj="{pyproj.__version__}"')
    print(f"Using MAPML_LEGACY_WGS84_BINDING={conf.MAPML_LEGACY_WGS84_BINDING}")


@pytest.fixture()
def city_map() -> MapDefinition:
    return build_city_map()


@pytest.fixture()
def legacy_binding(settings):
    """Switch to the older binding where WGS84 means EPSG:4326."""
    settings.MAPML_LEGACY_WGS84_BINDING = True


@pytest.fixture()
def canonical_binding(settings):
    settings.MAPML_LEGACY_WGS84_BINDING = False
