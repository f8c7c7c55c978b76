from xml.etree import ElementTree

import pytest

from mapmlserver.crs import CRS84, WEB_MERCATOR, WGS84
from mapmlserver.exceptions import InvalidParameterValue
from mapmlserver.geometries import BoundingBox
from mapmlserver.output.modes import (
    CGITileMode,
    FeaturesMode,
    ImageMode,
    ModeContext,
    TileMode,
    bbox_template,
    resolve_mode,
)

SCRIPT_URL = "http://example.com/wms?"


def _render(mode_class, **kwargs) -> ElementTree.Element:
    context = ModeContext(
        **{
            "crs": WEB_MERCATOR,
            "extent": BoundingBox(-10.5, 0.25, 1234567.0, 7, crs=WEB_MERCATOR),
            "layer_name": "roads",
            "style": "",
            "script_url": SCRIPT_URL,
            **kwargs,
        }
    )
    extent = ElementTree.Element("extent")
    mode_class(context).render(extent)
    return extent


@pytest.mark.parametrize(
    "crs,expect",
    [
        (WEB_MERCATOR, "{xmin},{ymin},{xmax},{ymax}"),
        (CRS84, "{xmin},{ymin},{xmax},{ymax}"),
        (WGS84, "{ymin},{xmin},{ymax},{xmax}"),
    ],
)
def test_bbox_template(crs, expect):
    """Prove that only EPSG:4326 swaps the axis."""
    assert bbox_template(crs, "xmin", "ymin", "xmax", "ymax") == expect


@pytest.mark.parametrize(
    "name,expect",
    [
        ("image", ImageMode),
        ("IMAGE", ImageMode),
        ("tile", TileMode),
        ("CgiTile", CGITileMode),
        ("features", FeaturesMode),
    ],
)
def test_resolve_mode(name, expect):
    assert resolve_mode(name) is expect


@pytest.mark.parametrize("name", ["", "vector", "images"])
def test_resolve_mode_invalid(name):
    with pytest.raises(InvalidParameterValue) as exc_info:
        resolve_mode(name)

    assert exc_info.value.locator == "mapml_mode"
    assert exc_info.value.code == "InvalidRequest"


class TestImageMode:
    def test_inputs(self):
        """Prove that the inputs follow the extent, with %g number formatting."""
        extent = _render(ImageMode)
        inputs = extent.findall("input")
        assert [node.get("name") for node in inputs] == [
            "w",
            "h",
            "xmin",
            "ymin",
            "xmax",
            "ymax",
            "i",
            "j",
        ]
        xmin = inputs[2].attrib
        assert xmin == {
            "name": "xmin",
            "type": "location",
            "units": "pcrs",
            "position": "top-left",
            "axis": "easting",
            "min": "-10.5",
            "max": "1.23457e+06",
        }
        assert inputs[3].get("position") == "bottom-left"
        assert (inputs[3].get("min"), inputs[3].get("max")) == ("0.25", "7")
        assert inputs[4].get("position") == "top-right"
        assert inputs[5].get("position") == "top-left"

    def test_links(self):
        extent = _render(ImageMode, crs=WGS84, style="dark")
        assert [node.tag for node in extent] == ["input"] * 6 + ["link"] + ["input"] * 2 + ["link"]
        image, query = extent.findall("link")
        assert image.get("rel") == "image"
        assert image.get("tref") == (
            f"{SCRIPT_URL}SERVICE=WMS&REQUEST=GetMap&FORMAT=image/png&TRANSPARENT=TRUE"
            "&VERSION=1.3.0&LAYERS=roads&STYLES=dark&WIDTH={w}&HEIGHT={h}"
            "&CRS=EPSG:4326&BBOX={ymin},{xmin},{ymax},{xmax}&m4h=t"
        )
        assert query.get("rel") == "query"
        assert query.get("tref") == (
            f"{SCRIPT_URL}SERVICE=WMS&REQUEST=GetFeatureInfo&INFO_FORMAT=text/mapml"
            "&FEATURE_COUNT=1&TRANSPARENT=TRUE&VERSION=1.3.0&LAYERS=roads&STYLES=dark"
            "&QUERY_LAYERS=roads&WIDTH={w}&HEIGHT={h}&CRS=EPSG:4326"
            "&BBOX={ymin},{xmin},{ymax},{xmax}&x={i}&y={j}&m4h=t"
        )

    def test_quoting(self):
        """Prove that the layer name is URL-encoded, and placeholders are not."""
        extent = _render(ImageMode, layer_name="roads & paths", style="a/b:c")
        tref = extent.find("link").get("tref")
        assert "&LAYERS=roads%20%26%20paths&STYLES=a%2Fb:c&WIDTH={w}&" in tref


class TestTileMode:
    def test_render(self):
        extent = _render(TileMode)
        inputs = extent.findall("input")
        assert [node.get("name") for node in inputs] == ["txmin", "tymin", "txmax", "tymax"]
        assert {node.get("units") for node in inputs} == {"tilematrix"}
        assert [node.get("axis") for node in inputs] == [
            "easting",
            "northing",
            "easting",
            "northing",
        ]

        (link,) = extent.findall("link")
        assert link.get("rel") == "tile"
        assert link.get("tref") == (
            f"{SCRIPT_URL}SERVICE=WMS&REQUEST=GetMap&FORMAT=image/png&TRANSPARENT=TRUE"
            "&VERSION=1.3.0&LAYERS=roads&STYLES=&WIDTH=256&HEIGHT=256"
            "&CRS=EPSG:3857&BBOX={txmin},{tymin},{txmax},{tymax}&m4h=t"
        )

    def test_latlon(self):
        extent = _render(TileMode, crs=WGS84)
        assert "&BBOX={tymin},{txmin},{tymax},{txmax}&" in extent.find("link").get("tref")


class TestCGITileMode:
    @pytest.mark.parametrize(
        "is_map_layer,expect_layer", [(False, "roads"), (True, "all")], ids=["layer", "map"]
    )
    def test_render(self, is_map_layer, expect_layer):
        extent = _render(CGITileMode, is_map_layer=is_map_layer)
        zoom, row, column = extent.findall("input")
        assert zoom.attrib == {"name": "z", "type": "zoom", "value": "10", "min": "4", "max": "15"}
        assert (row.get("name"), row.get("axis")) == ("y", "row")
        assert (column.get("name"), column.get("axis")) == ("x", "column")
        assert (row.get("min"), row.get("max")) == ("0", "32768")

        assert extent.find("link").get("tref") == (
            f"{SCRIPT_URL}mode=tile&tilemode=gmap&FORMAT=image/png"
            f"&LAYERS={expect_layer}&tile={{x}}+{{y}}+{{z}}&m4h=t"
        )


def test_features_mode():
    """Prove the features mode leaves the extent empty."""
    extent = _render(FeaturesMode)
    assert len(extent) == 0
