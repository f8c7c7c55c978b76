"""General utilities for outputting XML content"""

from __future__ import annotations

from urllib.parse import quote
from xml.etree.ElementTree import Element, SubElement

__all__ = (
    "attr_escape",
    "tag_escape",
    "format_number",
    "sub_element",
    "url_value",
)


def tag_escape(s: str):
    """Escape a value for usage in XML text."""
    return s.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def attr_escape(s: str):
    """Escape a value for usage in an XML attribute.
    This is slightly faster than ``html.escape()`` as it doesn't replace single quotes.
    """
    return s.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;").replace('"', "&quot;")


def format_number(value: float | int) -> str:
    """Format a number for an XML attribute.
    Floats use the shortest notation with 6 significant digits, like C's ``%g``.
    """
    if isinstance(value, int):
        return str(value)
    return f"{value:g}"


def url_value(value: str) -> str:
    """Encode a value for usage inside a query string template."""
    return quote(value, safe=",:")


def sub_element(parent: Element, tag: str, attrib: dict | None = None, text=None) -> Element:
    """Add a child element. Attributes with a ``None`` value are skipped."""
    node = SubElement(
        parent,
        tag,
        {name: value for name, value in (attrib or {}).items() if value is not None},
    )
    if text is not None:
        node.text = text
    return node
