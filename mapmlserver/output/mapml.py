"""Output rendering logic for the MapML document of a single layer."""

from __future__ import annotations

import logging
import typing
from xml.etree import ElementTree

from mapmlserver.crs import ALTERNATE_PROJECTIONS, resolve_crs
from mapmlserver.exceptions import SerializationFailed
from mapmlserver.output.modes import ModeContext

from .base import OutputRenderer
from .utils import sub_element, url_value

if typing.TYPE_CHECKING:
    from mapmlserver.operations.mapml import GetMapMLOperation

logger = logging.getLogger(__name__)

__all__ = ("MapMLRenderer",)


class MapMLRenderer(OutputRenderer):
    """Render the ``<mapml>`` document that describes how a client displays the layer.

    The document has a ``<head>`` with the title, the content type with the
    projection, the license, legend and alternate projection links,
    and a ``<body>`` with a single ``<extent>`` that the output mode fills.
    """

    content_type = "text/mapml"
    operation: GetMapMLOperation

    def render_stream(self) -> str:
        root = self.build_document()
        try:
            ElementTree.indent(root, space="  ")
            return ElementTree.tostring(root, encoding="unicode") + "\n"
        except (TypeError, ValueError) as e:
            logger.error("Unable to serialize MapML document for %s: %s", self.operation, e)
            raise SerializationFailed() from e

    def build_document(self) -> ElementTree.Element:
        """Construct the element tree of the document."""
        root = ElementTree.Element("mapml")
        self.render_head(sub_element(root, "head"))
        self.render_body(sub_element(root, "body"))
        return root

    def render_head(self, head: ElementTree.Element):
        operation = self.operation
        match = operation.layer_match
        projection = operation.ows_request.projection

        title = operation.map_definition.get_title() if match.is_map else match.layer.get_title()
        if title:
            sub_element(head, "title", text=title)

        sub_element(head, "meta", {"charset": "UTF-8"})
        sub_element(
            head,
            "meta",
            {"http-equiv": "Content-Type", "content": f"text/mapml;projection={projection}"},
        )

        # The attribution is optional, either half of it may be missing.
        license_href = match.layer.lookup_metadata("attribution_onlineresource")
        license_title = match.layer.lookup_metadata("attribution_title")
        if license_href or license_title:
            sub_element(
                head, "link", {"rel": "license", "href": license_href, "title": license_title}
            )

        sub_element(head, "link", {"rel": "legend", "href": self.get_legend_url()})

        for keyword in ALTERNATE_PROJECTIONS:
            if keyword.lower() == projection.lower():
                continue
            if resolve_crs(keyword, match.layer, quiet=True) is None:
                continue
            sub_element(
                head,
                "link",
                {
                    "rel": "alternate",
                    "projection": keyword,
                    "href": self.get_alternate_url(keyword),
                },
            )

    def render_body(self, body: ElementTree.Element):
        operation = self.operation
        extent = sub_element(body, "extent", {"units": operation.ows_request.projection})
        mode = operation.mode_class(self.get_mode_context())
        logger.debug(
            "Rendering MapML %s mode for layer '%s'", mode.name, operation.ows_request.layer
        )
        mode.render(extent)

    def get_mode_context(self) -> ModeContext:
        operation = self.operation
        return ModeContext(
            crs=operation.crs,
            extent=operation.extent,
            layer_name=operation.ows_request.layer,
            style=operation.ows_request.style,
            script_url=operation.script_url,
            is_map_layer=operation.layer_match.is_map,
        )

    def get_legend_url(self) -> str:
        ows_request = self.operation.ows_request
        return (
            f"{self.operation.script_url}SERVICE=WMS&REQUEST=GetLegendGraphic&VERSION=1.3.0"
            f"&FORMAT=image/png&LAYER={url_value(ows_request.layer)}"
            f"&STYLE={url_value(ows_request.style)}&SLD_VERSION=1.1.0"
        )

    def get_alternate_url(self, projection: str) -> str:
        ows_request = self.operation.ows_request
        return (
            f"{self.operation.script_url}SERVICE={ows_request.service}&REQUEST=GetMapML"
            f"&LAYER={url_value(ows_request.layer)}&STYLE={url_value(ows_request.style)}"
            f"&PROJECTION={projection}"
        )
