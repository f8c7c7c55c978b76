"""Output rendering of the GetFeatureInfo results in the ``text/mapml`` format.

Each feature is written as a ``<feature>`` with an HTML ``<table>`` of its properties,
which MapML clients show in a popup.
"""

from __future__ import annotations

import typing
from dataclasses import dataclass, field

from mapmlserver.layers import LayerDefinition, lookup_metadata

from .base import OutputRenderer
from .buffer import StringBuffer
from .utils import attr_escape, tag_escape

if typing.TYPE_CHECKING:
    from mapmlserver.operations.mapml import GetFeatureInfoOperation

__all__ = (
    "QueryFeature",
    "QueryResult",
    "MapMLQueryRenderer",
    "get_visible_items",
)


@dataclass
class QueryFeature:
    """A single feature that was found by the query."""

    #: The identifier, rendered as ``id="{layer}.{id}"``.
    id: int | str

    #: The attribute values, in the order of the layer items.
    values: dict[str, typing.Any] = field(default_factory=dict)


@dataclass
class QueryResult:
    """The features that were found in a single layer."""

    layer: LayerDefinition
    features: list[QueryFeature]


def _split_items(value: str | None) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()] if value else []


def get_visible_items(layer: LayerDefinition, items: typing.Iterable[str]) -> list[str]:
    """Tell which items are exposed, using the ``gml_include_items`` and
    ``gml_exclude_items`` metadata. No items are exposed by default.
    """
    include = _split_items(lookup_metadata(layer.metadata, "G", "include_items"))
    exclude = set(_split_items(lookup_metadata(layer.metadata, "G", "exclude_items")))
    include_all = len(include) == 1 and include[0].lower() == "all"
    return [item for item in items if (include_all or item in include) and item not in exclude]


class MapMLQueryRenderer(OutputRenderer):
    """Render the GetFeatureInfo results as MapML features.

    The features are written in chunks, so large results don't have to be kept in memory.
    """

    content_type = "text/mapml"
    chunk_size = 40_000
    operation: GetFeatureInfoOperation

    def __init__(self, operation, results: list[QueryResult]):
        super().__init__(operation)
        self.results = results

    def render_stream(self):
        self.output = output = StringBuffer(self.chunk_size)
        output.write(
            "<mapml>\n"
            "  <head>\n"
            "  <title>GetFeatureInfo Results</title>\n"
            '  <meta charset="utf-8" />\n'
            '  <meta http-equiv="Content-Type" content="text/mapml" />\n'
            "  </head>\n"
            "  <body>\n"
            "    <extent />\n"
        )

        for result in self.results:
            if not result.features:
                continue

            layer = result.layer
            geomtype = lookup_metadata(layer.metadata, "OFG", "geomtype")
            if geomtype and "25d" in geomtype.lower():
                output.write(
                    f"<!-- WARNING: 25d requested for layer '{tag_escape(str(layer))}'"
                    " but MapML only supports 2D. -->\n"
                )

            for feature in result.features:
                self.write_feature(layer, feature)

                # Only perform a 'yield' every once in a while,
                # as it goes back-and-forth for writing it to the client.
                if output.is_full():
                    yield output.flush()

        output.write("  </body>\n</mapml>\n")
        yield output.flush()

    def write_feature(self, layer: LayerDefinition, feature: QueryFeature):
        """Write a single ``<feature>`` with its properties table."""
        write = self.output.write
        layer_name = attr_escape(str(layer))
        feature_id = attr_escape(str(feature.id))
        write(
            f'      <feature id="{layer_name}.{feature_id}" class="{layer_name}">\n'
            "        <properties>\n"
            "          <table>\n"
            "            <thead>\n"
            "              <tr>\n"
            '                <th role="columnheader" scope="col">Property Name</th>\n'
            '                <th role="columnheader" scope="col">Property Value</th>\n'
            "              </tr>\n"
            "            </thead>\n"
        )

        for item in get_visible_items(layer, feature.values):
            value = feature.values[item]
            write(
                "            <tbody>\n"
                "              <tr>\n"
                f'                <th scope="row">{tag_escape(item)}</th>\n'
                f'                <td itemprop="{attr_escape(item)}">'
                f"{tag_escape('' if value is None else str(value))}</td>\n"
                "              </tr>\n"
                "            </tbody>\n"
            )

        write("          </table>\n        </properties>\n      </feature>\n")
