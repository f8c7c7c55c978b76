"""The operations that serve MapML content.

``GetMapML`` is a vendor-specific request, that is accepted both as
``SERVICE=WMS`` and ``SERVICE=MAPMLTILE``. The ``GetFeatureInfo`` request
handles the ``rel="query"`` links that the "image" mode generates.
"""

from __future__ import annotations

import logging

from mapmlserver import conf
from mapmlserver.crs import CRS, resolve_crs
from mapmlserver.exceptions import InvalidParameterValue, ProjectionNotEnabled
from mapmlserver.geometries import BoundingBox, resolve_extent
from mapmlserver.layers import LayerMatch, get_enabled_layers, locate_layer
from mapmlserver.output import MapMLQueryRenderer, MapMLRenderer, QueryResult, resolve_mode
from mapmlserver.output.modes import MapMLMode
from mapmlserver.parsers import mapml

from .base import MapMLOperation

logger = logging.getLogger(__name__)

__all__ = (
    "GetMapMLOperation",
    "GetFeatureInfoOperation",
)


class GetMapMLOperation(MapMLOperation):
    """Return the MapML document of the requested layer, group or the whole map.

    Which layer is returned, depends on the ``LAYER`` parameter and which
    layers allow the ``GetMapML`` request in their ``wms_enable_request`` metadata.
    """

    parser_class = mapml.GetMapML
    ows_request: mapml.GetMapML

    layer_match: LayerMatch
    crs: CRS
    mode_class: type[MapMLMode]
    extent: BoundingBox

    def validate_request(self, ows_request: mapml.GetMapML):
        # The links can't be generated without knowing where this server lives.
        _ = self.script_url

        enabled_layers = get_enabled_layers(self.map_definition, "GetMapML")
        self.layer_match = locate_layer(ows_request.layer, self.map_definition, enabled_layers)
        self.apply_layer_status(self.layer_match.statuses)

        self.crs = resolve_crs(ows_request.projection, self.layer_match.layer)
        self.mode_class = resolve_mode(self.get_mode_name(ows_request))

    def get_mode_name(self, ows_request: mapml.GetMapML) -> str:
        """Tell which output mode is used.

        The ``MAPML_MODE`` parameter takes precedence over the
        ``mapml_wms_mode`` metadata of the layer and map.
        """
        if ows_request.mapml_mode is not None:
            return ows_request.mapml_mode
        return (
            self.layer_match.layer.lookup_metadata("mapml_wms_mode", namespaces=None)
            or conf.MAPML_DEFAULT_MODE
        )

    def process_request(self, ows_request: mapml.GetMapML):
        logger.debug(
            "GetMapML for '%s' in %s (%s), mode %s",
            ows_request.layer,
            ows_request.projection,
            self.crs,
            self.mode_class.name,
        )
        self.extent = resolve_extent(self.map_definition, self.crs)
        return MapMLRenderer(self).get_response()


class GetFeatureInfoOperation(MapMLOperation):
    """Return the features at the clicked location, as MapML document.

    The features are provided by :meth:`MapMLView.query_features`,
    as this server doesn't read the data sources itself.
    """

    parser_class = mapml.GetFeatureInfo
    ows_request: mapml.GetFeatureInfo

    #: The supported values of INFO_FORMAT.
    info_formats = ("text/mapml",)

    def validate_request(self, ows_request: mapml.GetFeatureInfo):
        if ows_request.info_format.lower() not in self.info_formats:
            raise InvalidParameterValue(
                f"Unsupported INFO_FORMAT value '{ows_request.info_format}',"
                f" supported are: {', '.join(self.info_formats)}.",
                locator="info_format",
            )

        enabled_layers = get_enabled_layers(self.map_definition, "GetFeatureInfo")
        for name in ows_request.query_layers:
            match = locate_layer(name, self.map_definition, enabled_layers)
            self.apply_layer_status((index, True) for index in match.active_indexes)

            if not match.layer.is_crs_enabled(ows_request.crs):
                raise ProjectionNotEnabled(
                    f"CRS {ows_request.crs} is not enabled for layer '{name}'.", locator="crs"
                )

    def process_request(self, ows_request: mapml.GetFeatureInfo):
        layers = self.active_layers
        logger.debug(
            "GetFeatureInfo at %d,%d for layers: %s",
            ows_request.i,
            ows_request.j,
            ", ".join(map(str, layers)),
        )
        results = [
            QueryResult(result.layer, result.features[: ows_request.feature_count])
            for result in self.view.query_features(layers, ows_request)
        ]
        return MapMLQueryRenderer(self, results).get_response()
