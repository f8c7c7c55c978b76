"""Exceptions for the MapML operations.

Every error is reported to the client as a ``<ServiceExceptionReport>``,
the same envelope MapServer uses for its WMS 1.1 style exceptions.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager

from django.http import HttpResponse
from django.utils.html import format_html

logger = logging.getLogger(__name__)


@contextmanager
def wrap_parser_errors(name: str, locator: str):
    """Convert the value into a Python format.
    This catches any typical exceptions and transforms them into a MapMLException.
    """
    try:
        yield
    except (TypeError, ValueError) as e:
        raise InvalidParameterValue(f"Invalid {name} argument: {e}", locator=locator) from None


class MapMLException(Exception):
    """Base class for XML based exceptions in this module."""

    status_code = 400
    reason = None
    code = None
    text_template = None

    def __init__(self, text=None, code=None, locator=None, status_code=None):
        text = text or self.text_template.format(code=self.code, locator=locator)
        if locator and len(text) < len(locator):
            raise ValueError(f"text/locator arguments are switched: {text!r}, locator={locator!r}")

        super().__init__(text)
        self.locator = locator
        self.text = text
        self.code = code or self.code
        self.status_code = status_code or self.status_code

    def as_response(self) -> HttpResponse:
        """Return the exception as HTTP response."""
        logger.debug("Returning HTTP %d for %s: %s", self.status_code, self.code, self.text)
        return HttpResponse(
            self.as_xml().encode("utf-8"),
            content_type="text/xml; charset=UTF-8",
            status=self.status_code,
            reason=self.reason,
        )

    def as_xml(self) -> str:
        """Serialize the exception to an XML string."""
        return format_html(
            "<?xml version='1.0' encoding=\"UTF-8\" standalone=\"no\" ?>\n"
            "<ServiceExceptionReport>\n"
            "<ServiceException{code_attr}>\n"
            "{text}\n"
            "</ServiceException>\n"
            "</ServiceExceptionReport>\n",
            code_attr=format_html(' code="{code}"', code=self.code) if self.code else "",
            text=self.text,
        )

    def __html__(self):
        return self.as_xml()


class OperationNotSupported(MapMLException):
    """The operation is called, but does not exist on this server."""

    status_code = 400
    reason = "Not Implemented"
    code = "InvalidRequest"
    text_template = "Operation is not implemented."


class MissingParameterValue(MapMLException):
    """Required parameter is missing"""

    status_code = 400
    code = "InvalidRequest"
    text_template = "Missing required '{locator}' parameter."


class InvalidParameterValue(MapMLException):
    """Unsupported choice, e.g. unknown layer, projection or output mode."""

    status_code = 400
    code = "InvalidRequest"
    text_template = "Invalid value for '{locator}' parameter."


class ProjectionNotEnabled(InvalidParameterValue):
    """The projection is valid, but its CRS is not enabled for the layer."""

    text_template = "The requested projection is not enabled for this layer."


class ConfigurationError(MapMLException):
    """The server configuration is incomplete, e.g. missing online resource."""

    status_code = 500
    reason = "Server configuration error"
    text_template = "The server is not properly configured."


class ReprojectionFailed(MapMLException):
    """The map extent could not be transformed into the requested CRS."""

    status_code = 500
    reason = "Server processing failed"
    text_template = "Failed to reproject the extent to the requested projection."


class SerializationFailed(MapMLException):
    """Writing the MapML document failed."""

    status_code = 500
    reason = "Server processing failed"
    text_template = "Writing MapML XML output failed."
