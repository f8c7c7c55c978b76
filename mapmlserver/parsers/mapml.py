"""Request objects for the MapML operations.

These convert the Key-Value-Pair parameters into a request object,
so the operations don't have to deal with the request format.
"""

from __future__ import annotations

from dataclasses import dataclass

from mapmlserver import conf
from mapmlserver.crs import CRS
from mapmlserver.exceptions import InvalidParameterValue
from mapmlserver.geometries import BoundingBox
from mapmlserver.parsers.ows import BaseOwsRequest, KVPRequest
from mapmlserver.parsers.ows.requests import register

__all__ = (
    "GetMapML",
    "GetFeatureInfo",
)


@dataclass
@register("GetMapML")
class GetMapML(BaseOwsRequest):
    """Request parsing for GetMapML.

    This parses the syntax::

        ?SERVICE=MAPMLTILE&REQUEST=GetMapML&LAYER=...&PROJECTION=OSMTILE&STYLE=...&MAPML_MODE=image
    """

    layer: str
    projection: str
    style: str
    mapml_mode: str | None = None  # None means: take from the layer/map metadata.

    @classmethod
    def from_kvp_request(cls, kvp: KVPRequest):
        """Build this object from an HTTP GET (key-value-pair) request."""
        return cls(
            **cls.base_kvp_init_parameters(kvp),
            layer=kvp.get_str("LAYER"),
            # Only an absent PROJECTION takes the default, an empty one is rejected later.
            projection=kvp.get_str(
                "PROJECTION", default=conf.MAPML_DEFAULT_PROJECTION, allow_empty=True
            ),
            # The style is not validated, it's passed as-is to the WMS requests.
            style=kvp.get_str("STYLE", default="", allow_empty=True),
            mapml_mode=kvp.get_str("MAPML_MODE", default=None, allow_empty=True),
        )

    @classmethod
    def base_kvp_init_parameters(cls, kvp: KVPRequest) -> dict:
        # GetMapML has no versioning, the VERSION parameter is ignored.
        return dict(service=kvp.get_str("SERVICE").upper(), version=None)


def _parse_bbox(value: str) -> tuple[float, float, float, float]:
    coords = value.split(",")
    if len(coords) != 4:
        raise ValueError("Expected 4 coordinates: minx,miny,maxx,maxy")
    return tuple(map(float, coords))


@dataclass
@register("GetFeatureInfo")
class GetFeatureInfo(BaseOwsRequest):
    """Request parsing for the WMS 1.3 GetFeatureInfo, as linked by the ``rel="query"`` template.

    This parses the syntax::

        ?SERVICE=WMS&REQUEST=GetFeatureInfo&INFO_FORMAT=text/mapml&QUERY_LAYERS=...
         &CRS=EPSG:3857&BBOX=...&WIDTH=...&HEIGHT=...&I=...&J=...&FEATURE_COUNT=1

    The WMS 1.1 notations (``SRS``, ``X``, ``Y``) are also accepted.
    The bounding box is stored in x/y ordering, also for ``EPSG:4326``.
    """

    query_layers: list[str]
    info_format: str
    crs: CRS
    bbox: BoundingBox
    width: int
    height: int
    i: int
    j: int
    feature_count: int = 1

    @classmethod
    def from_kvp_request(cls, kvp: KVPRequest):
        """Build this object from an HTTP GET (key-value-pair) request."""
        crs = kvp.get_custom("CRS", alias="SRS", parser=CRS.from_string)
        min_x, min_y, max_x, max_y = kvp.get_custom("BBOX", parser=_parse_bbox)
        if crs.is_latlon_bbox:
            min_x, min_y, max_x, max_y = min_y, min_x, max_y, max_x

        width = kvp.get_int("WIDTH")
        height = kvp.get_int("HEIGHT")
        i = kvp.get_int("I", alias="X")
        j = kvp.get_int("J", alias="Y")
        if width < 1 or height < 1:
            raise InvalidParameterValue(
                "WIDTH and HEIGHT should be positive numbers.", locator="width"
            )
        if not (0 <= i < width and 0 <= j < height):
            raise InvalidParameterValue(
                f"The I,J position {i},{j} is outside the {width}x{height} image.", locator="i"
            )

        feature_count = kvp.get_int("FEATURE_COUNT", default=1)
        if feature_count < 1:
            raise InvalidParameterValue(
                "FEATURE_COUNT should be a positive number.", locator="feature_count"
            )

        return cls(
            **cls.base_kvp_init_parameters(kvp),
            query_layers=kvp.get_list("QUERY_LAYERS"),
            info_format=kvp.get_str("INFO_FORMAT", default="text/mapml"),
            crs=crs,
            bbox=BoundingBox(min_x, min_y, max_x, max_y, crs=crs),
            width=width,
            height=height,
            i=i,
            j=j,
            feature_count=feature_count,
        )
