import pytest

from mapmlserver.exceptions import InvalidParameterValue, MissingParameterValue
from mapmlserver.parsers.ows import KVPRequest


class TestKVPRequest:
    def test_case_insensitive(self):
        kvp = KVPRequest({"layer": "roads", "Projection": "OSMTILE"})
        assert "LAYER" in kvp
        assert "projection" in kvp
        assert kvp.get_str("Layer") == "roads"
        assert kvp.get_str("PROJECTION") == "OSMTILE"

    def test_missing(self):
        with pytest.raises(MissingParameterValue) as exc_info:
            KVPRequest({}).get_str("layer")

        assert exc_info.value.locator == "layer"
        assert exc_info.value.text == "Mandatory LAYER parameter missing in request."

    def test_empty(self):
        kvp = KVPRequest({"LAYER": "", "STYLE": ""})
        with pytest.raises(InvalidParameterValue, match="Empty 'LAYER' parameter"):
            kvp.get_str("LAYER")

        assert kvp.get_str("LAYER", default=None) is None
        assert kvp.get_str("STYLE", allow_empty=True) == ""

    def test_alias(self):
        kvp = KVPRequest({"X": "10", "J": "20"})
        assert kvp.get_int("I", alias="X") == 10
        assert kvp.get_int("J", alias="Y") == 20

    def test_parser_error(self):
        kvp = KVPRequest({"WIDTH": "wide"})
        with pytest.raises(InvalidParameterValue) as exc_info:
            kvp.get_int("WIDTH")

        assert exc_info.value.locator == "WIDTH"
        assert exc_info.value.text.startswith("Invalid WIDTH argument:")

    def test_list(self):
        kvp = KVPRequest({"QUERY_LAYERS": "roads,parks"})
        assert kvp.get_list("QUERY_LAYERS") == ["roads", "parks"]
        assert kvp.get_list("LAYERS", default=None) is None
