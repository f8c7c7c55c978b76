"""The output modes of a MapML document.

The mode decides what a client requests to display the layer:

* ``image``: full page WMS GetMap images, with a GetFeatureInfo query link.
* ``tile``: tiled WMS GetMap requests.
* ``cgitile``: tiles served by the ``mode=tile&tilemode=gmap`` CGI syntax.
* ``features``: reserved for WFS GetFeature links, renders nothing yet.

Each mode fills the ``<extent>`` element with its ``<input>`` and ``<link>`` elements.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from xml.etree.ElementTree import Element

from mapmlserver.crs import CRS
from mapmlserver.exceptions import InvalidParameterValue
from mapmlserver.geometries import BoundingBox

from .utils import format_number, sub_element, url_value

logger = logging.getLogger(__name__)

__all__ = (
    "ModeContext",
    "MapMLMode",
    "ImageMode",
    "TileMode",
    "CGITileMode",
    "FeaturesMode",
    "MAPML_MODES",
    "resolve_mode",
)

#: The size of the tiles that the "tile" mode requests.
TILE_SIZE = 256


@dataclass(frozen=True)
class ModeContext:
    """All information an output mode needs to render its part of the document."""

    #: The CRS of the requested projection.
    crs: CRS
    #: The extent, already expressed in :attr:`crs`.
    extent: BoundingBox
    #: The requested LAYER name.
    layer_name: str
    #: The requested STYLE name.
    style: str
    #: The base URL of the server, ending with "?" or "&".
    script_url: str
    #: Whether the layer name refers to the whole map.
    is_map_layer: bool = False


def bbox_template(crs: CRS, xmin: str, ymin: str, xmax: str, ymax: str) -> str:
    """Generate the WMS 1.3 BBOX value with placeholders.
    The coordinates are given as X,Y, except for EPSG:4326 which uses lat,lon ordering.
    """
    if crs.is_latlon_bbox:
        return f"{{{ymin}}},{{{xmin}}},{{{ymax}}},{{{xmax}}}"
    else:
        return f"{{{xmin}}},{{{ymin}}},{{{xmax}}},{{{ymax}}}"


class MapMLMode:
    """Base class for the output modes."""

    #: The name, as used in the MAPML_MODE parameter.
    name = None

    def __init__(self, context: ModeContext):
        self.context = context

    def render(self, extent_node: Element):
        """Add the inputs and links to the ``<extent>`` element."""
        raise NotImplementedError()

    def add_location_inputs(self, extent_node: Element, names: tuple[str, str, str, str], units):
        """Add the 4 inputs that describe the corners of the requested area.
        The allowed range of each input is the extent of the map on that axis.
        """
        extent = self.context.extent
        xmin, ymin, xmax, ymax = names
        for name, position, axis in (
            (xmin, "top-left", "easting"),
            (ymin, "bottom-left", "northing"),
            (xmax, "top-right", "easting"),
            (ymax, "top-left", "northing"),
        ):
            if axis == "easting":
                low, high = extent.min_x, extent.max_x
            else:
                low, high = extent.min_y, extent.max_y

            sub_element(
                extent_node,
                "input",
                {
                    "name": name,
                    "type": "location",
                    "units": units,
                    "position": position,
                    "axis": axis,
                    "min": format_number(low),
                    "max": format_number(high),
                },
            )

    def get_map_url(self, width: str, height: str, bbox: str) -> str:
        """Generate the WMS GetMap URL template."""
        context = self.context
        return (
            f"{context.script_url}SERVICE=WMS&REQUEST=GetMap&FORMAT=image/png&TRANSPARENT=TRUE"
            f"&VERSION=1.3.0&LAYERS={url_value(context.layer_name)}"
            f"&STYLES={url_value(context.style)}"
            f"&WIDTH={width}&HEIGHT={height}&CRS={context.crs}&BBOX={bbox}&m4h=t"
        )


class ImageMode(MapMLMode):
    """Produce full screen WMS GetMap requests, and GetFeatureInfo queries."""

    name = "image"

    def render(self, extent_node: Element):
        context = self.context
        sub_element(extent_node, "input", {"name": "w", "type": "width"})
        sub_element(extent_node, "input", {"name": "h", "type": "height"})
        self.add_location_inputs(extent_node, ("xmin", "ymin", "xmax", "ymax"), units="pcrs")

        bbox = bbox_template(context.crs, "xmin", "ymin", "xmax", "ymax")
        sub_element(
            extent_node,
            "link",
            {"rel": "image", "tref": self.get_map_url(width="{w}", height="{h}", bbox=bbox)},
        )

        # The pixel location that is clicked on, for GetFeatureInfo.
        for axis in ("i", "j"):
            sub_element(
                extent_node,
                "input",
                {
                    "name": axis,
                    "type": "location",
                    "axis": axis,
                    "units": "map",
                    "min": format_number(0),
                    "max": format_number(0),
                },
            )

        layer = url_value(context.layer_name)
        query_url = (
            f"{context.script_url}SERVICE=WMS&REQUEST=GetFeatureInfo&INFO_FORMAT=text/mapml"
            f"&FEATURE_COUNT=1&TRANSPARENT=TRUE&VERSION=1.3.0&LAYERS={layer}"
            f"&STYLES={url_value(context.style)}&QUERY_LAYERS={layer}"
            f"&WIDTH={{w}}&HEIGHT={{h}}&CRS={context.crs}&BBOX={bbox}&x={{i}}&y={{j}}&m4h=t"
        )
        sub_element(extent_node, "link", {"rel": "query", "tref": query_url})


class TileMode(MapMLMode):
    """Serve the requested layer as tiled WMS GetMap requests."""

    name = "tile"

    def render(self, extent_node: Element):
        context = self.context
        self.add_location_inputs(
            extent_node, ("txmin", "tymin", "txmax", "tymax"), units="tilematrix"
        )

        bbox = bbox_template(context.crs, "txmin", "tymin", "txmax", "tymax")
        tile_url = self.get_map_url(width=str(TILE_SIZE), height=str(TILE_SIZE), bbox=bbox)
        sub_element(extent_node, "link", {"rel": "tile", "tref": tile_url})


class CGITileMode(MapMLMode):
    """Serve the requested layer as tiles, using the ``mode=tile&tilemode=gmap`` CGI syntax."""

    name = "cgitile"

    def render(self, extent_node: Element):
        context = self.context

        # The top-level map is known as "all" in the CGI tile syntax.
        layer_name = "all" if context.is_map_layer else context.layer_name

        sub_element(
            extent_node,
            "input",
            {
                "name": "z",
                "type": "zoom",
                "value": format_number(10),
                "min": format_number(4),
                "max": format_number(15),
            },
        )
        for name, axis in (("y", "row"), ("x", "column")):
            sub_element(
                extent_node,
                "input",
                {
                    "name": name,
                    "type": "location",
                    "units": "tilematrix",
                    "axis": axis,
                    "min": format_number(0),
                    "max": format_number(32768),
                },
            )

        tile_url = (
            f"{context.script_url}mode=tile&tilemode=gmap&FORMAT=image/png"
            f"&LAYERS={url_value(layer_name)}&tile={{x}}+{{y}}+{{z}}&m4h=t"
        )
        sub_element(extent_node, "link", {"rel": "tile", "tref": tile_url})


class FeaturesMode(MapMLMode):
    """Reserved for links to WFS GetFeature requests.

    There is no WFS counterpart yet, so the extent stays empty.
    """

    name = "features"

    def render(self, extent_node: Element):
        logger.debug("MapML features mode has no content for '%s'", self.context.layer_name)


#: All supported output modes.
MAPML_MODES: dict[str, type[MapMLMode]] = {
    mode.name: mode for mode in (ImageMode, TileMode, CGITileMode, FeaturesMode)
}


def resolve_mode(name: str) -> type[MapMLMode]:
    """Find the output mode for the MAPML_MODE value."""
    try:
        return MAPML_MODES[name.lower()]
    except KeyError:
        raise InvalidParameterValue(
            "Requested MapML output mode not supported."
            " Use one of image, tile, cgitile or features.",
            locator="mapml_mode",
        ) from None
