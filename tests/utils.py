from __future__ import annotations

import logging
from doctest import Example

from django.http.response import HttpResponseBase
from lxml import etree
from lxml.doctestcompare import PARSE_XML, LXMLOutputChecker

logger = logging.getLogger(__name__)

# A minimal online resource, to make the expected URLs readable.
SERVER_URL = "https://maps.example.com/mapml?map=city&"


def read_response(response: HttpResponseBase) -> str:
    # works for all HttpResponse subclasses.
    return b"".join(response).decode()


def parse_mapml(response: HttpResponseBase) -> etree._Element:
    """Perform the standard checks for a MapML response, and parse it."""
    content = read_response(response)
    assert response.status_code == 200, content
    assert response["content-type"] == "text/mapml", content
    return etree.fromstring(content.encode())


def get_extent_children(xml_doc: etree._Element) -> list[etree._Element]:
    """Provide the elements that the output mode wrote."""
    return list(xml_doc.find("body/extent"))


def assert_xml_equal(got: bytes | str, want: str):
    """Compare two XML strings."""
    checker = LXMLOutputChecker()

    if isinstance(want, str) and isinstance(got, bytes):
        got = got.decode()

    if isinstance(got, str) and got.startswith("<?"):
        # Strip <?xml version='1.0' encoding="UTF-8" ?>
        # because it's not supported on utf-8 strings
        got = got[got.index("?>") + 3 :]

    if not checker.check_output(want, got, PARSE_XML):
        example = Example("", "")
        example.want = want  # unencoded, avoid doctest for bytes type.
        message = checker.output_difference(example, got, PARSE_XML)
        raise AssertionError(message)


def assert_mapml_exception(
    response: HttpResponseBase,
    expect_code="InvalidRequest",
    expect_message=None,
    expect_status=400,
) -> etree._Element:
    """Utility to perform all assertion checks for a returned exception message."""
    content = read_response(response)

    # Test response
    assert response["content-type"] == "text/xml; charset=UTF-8", content
    assert response.status_code == expect_status, content
    assert content.startswith("<?xml version='1.0' encoding=\"UTF-8\" standalone=\"no\" ?>\n")
    assert "</ServiceExceptionReport>" in content

    # Find XML tags
    xml_doc = etree.fromstring(content.encode())
    assert xml_doc.tag == "ServiceExceptionReport"
    exception = xml_doc.find("ServiceException")
    message = exception.text.strip()

    # Compare content
    assert exception.attrib.get("code") == expect_code, content
    if expect_message is not None:
        assert expect_message in message, message

    return exception
