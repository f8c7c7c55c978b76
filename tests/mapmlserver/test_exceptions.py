from lxml import etree

from mapmlserver.exceptions import ConfigurationError, InvalidParameterValue


def test_as_response():
    exception = InvalidParameterValue("Invalid layer <b> & more", locator="layer")
    response = exception.as_response()
    assert response.status_code == 400
    assert response["content-type"] == "text/xml; charset=UTF-8"

    xml_doc = etree.fromstring(response.content)
    node = xml_doc.find("ServiceException")
    assert node.get("code") == "InvalidRequest"
    assert node.text.strip() == "Invalid layer <b> & more"


def test_without_code():
    """Prove that server errors are reported without exception code."""
    exception = ConfigurationError("Missing OnlineResource.")
    assert exception.status_code == 500
    assert exception.as_xml() == (
        "<?xml version='1.0' encoding=\"UTF-8\" standalone=\"no\" ?>\n"
        "<ServiceExceptionReport>\n"
        "<ServiceException>\n"
        "Missing OnlineResource.\n"
        "</ServiceException>\n"
        "</ServiceExceptionReport>\n"
    )


def test_text_template():
    exception = InvalidParameterValue(locator="style")
    assert exception.text == "Invalid value for 'style' parameter."
