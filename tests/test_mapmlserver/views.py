from pathlib import Path

from django.http import HttpResponse

from mapmlserver.layers import LayerDefinition, MapDefinition
from mapmlserver.output import QueryFeature, QueryResult
from mapmlserver.views import MapMLView
from tests.utils import SERVER_URL

MAP_FILE = Path(__file__).parent.parent.joinpath("files/city.json")

FEATURES = {
    "roads": [QueryFeature(1, {"name": "Main street", "lanes": 2})],
    "buildings": [
        QueryFeature(12, {"name": "City hall", "height": 40, "secret": "vault"}),
        QueryFeature(13, {"name": "Library", "height": None, "secret": "none"}),
    ],
}


def build_city_map(**metadata) -> MapDefinition:
    """Create the test map, fresh objects so tests can't affect each other."""
    return MapDefinition(
        name="city",
        extent=(500000, 6800000, 600000, 6900000),
        projection="EPSG:3857",
        metadata={
            "wms_title": "City map",
            "wms_onlineresource": SERVER_URL,
            "wms_srs": "EPSG:3857 EPSG:3978 EPSG:4326 CRS:84",
            "wms_enable_request": "*",
            "wms_attribution_title": "City of Example",
            "wms_attribution_onlineresource": "https://example.com/license",
            **metadata,
        },
        layers=[
            LayerDefinition(
                "roads",
                group="infra",
                title="Roads",
                metadata={
                    "wms_layer_group": "/transport/ground",
                    "wms_srs": "EPSG:3857 EPSG:3978",
                },
            ),
            LayerDefinition("rivers", group="water", metadata={"wms_enable_request": "!*"}),
            LayerDefinition(
                "parks",
                metadata={
                    "wms_title": "Parks & gardens",
                    "wms_srs": "EPSG:3857",
                    "mapml_wms_mode": "tile",
                    "wms_attribution_title": "Parks department",
                },
            ),
            LayerDefinition(
                "buildings",
                group="infra",
                metadata={
                    "wms_enable_request": "!GetMapML",
                    "gml_include_items": "all",
                    "gml_exclude_items": "secret",
                    "gml_geomtype": "polygon25d",
                },
            ),
            LayerDefinition(
                "airports",
                group="transport",
                metadata={"wms_srs": "EPSG:4326 CRS:84 EPSG:3857"},
            ),
        ],
    )


class CityMapMLView(MapMLView):
    """A view that exposes the test map, with a static feature source."""

    map_definition = build_city_map()

    def query_features(self, layers, ows_request):
        return [QueryResult(layer, list(FEATURES.get(layer.name, []))) for layer in layers]


class RequestURLMapMLView(MapMLView):
    """A map without online resource, so the links are derived from the request."""

    map_definition = build_city_map(wms_onlineresource="")


def fallback_view(request, *args, **kwargs):
    return HttpResponse("fallback response", content_type="text/plain")


class FallbackMapMLView(CityMapMLView):
    """A view in front of another map server."""

    fallback_view = staticmethod(fallback_view)


class MapFileMapMLView(MapMLView):
    """A view that reads the map from a JSON file."""

    map_file = str(MAP_FILE)
