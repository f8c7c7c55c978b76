import json
from io import StringIO

import pytest
from django.core.management import CommandError, call_command
from lxml import etree

from tests.test_mapmlserver.views import MAP_FILE


def _call_getmapml(*args) -> etree._Element:
    stdout = StringIO()
    call_command("getmapml", *args, stdout=stdout)
    content = stdout.getvalue()
    assert content.startswith("<mapml>\n")
    return etree.fromstring(content.encode())


class TestGetMapMLCommand:
    def test_default(self):
        xml_doc = _call_getmapml(str(MAP_FILE), "--layer=roads")
        assert xml_doc.findtext("head/title") == "Roads"
        assert xml_doc.find("body/extent").get("units") == "OSMTILE"

        link = xml_doc.find("body/extent/link[@rel='image']")
        assert link.get("tref").startswith(
            "https://maps.example.com/mapml?map=city&SERVICE=WMS&REQUEST=GetMap&"
        )

    def test_options(self):
        xml_doc = _call_getmapml(
            str(MAP_FILE), "-l", "parks", "-p", "CBMTILE", "--mode=TILE", "--style=dark"
        )
        assert xml_doc.find("body/extent").get("units") == "CBMTILE"
        link = xml_doc.find("body/extent/link[@rel='tile']")
        assert "&STYLES=dark&WIDTH=256&HEIGHT=256&CRS=EPSG:3978&" in link.get("tref")

    def test_mode_from_metadata(self):
        """Prove that the map file metadata selects the cgitile mode."""
        xml_doc = _call_getmapml(str(MAP_FILE), "--layer=parks")
        link = xml_doc.find("body/extent/link[@rel='tile']")
        assert "mode=tile&tilemode=gmap" in link.get("tref")

    def test_service(self):
        xml_doc = _call_getmapml(str(MAP_FILE), "--layer=roads", "--service=mapmltile")
        alternate = xml_doc.find("head/link[@rel='alternate']")
        assert "SERVICE=MAPMLTILE&REQUEST=GetMapML" in alternate.get("href")

    def test_url(self, tmp_path):
        data = json.loads(MAP_FILE.read_text())
        del data["metadata"]["wms_onlineresource"]
        map_file = tmp_path / "city.json"
        map_file.write_text(json.dumps(data))

        xml_doc = _call_getmapml(str(map_file), "--layer=roads", "--url=http://gis.local/mapml")
        link = xml_doc.find("body/extent/link[@rel='image']")
        assert link.get("tref").startswith("http://gis.local/mapml?SERVICE=WMS&")

    def test_unknown_layer(self):
        with pytest.raises(CommandError, match="Invalid layer given in the LAYER parameter"):
            _call_getmapml(str(MAP_FILE), "--layer=lakes")

    def test_missing_file(self, tmp_path):
        with pytest.raises(CommandError, match="Unable to read map file"):
            _call_getmapml(str(tmp_path / "missing.json"), "--layer=roads")
