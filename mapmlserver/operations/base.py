"""The base protocol to implement an operation.

The request itself is parsed by :mod:`mapmlserver.parsers.mapml`, and handled here.
It can be seen as the "controller" that handles the actual request type.

Each :class:`MapMLOperation` can define a :attr:`~MapMLOperation.parser_class`,
or let it autodetect from the ``REQUEST`` parameter.
"""

from __future__ import annotations

import logging
import typing
from functools import cached_property

from mapmlserver import conf
from mapmlserver.exceptions import ConfigurationError
from mapmlserver.layers import MAPML_NAMESPACES, MapDefinition, lookup_metadata
from mapmlserver.parsers import ows

if typing.TYPE_CHECKING:
    from mapmlserver.views import MapMLView

logger = logging.getLogger(__name__)

__all__ = ("MapMLOperation", "get_script_url")


def get_script_url(online_resource: str) -> str:
    """Make sure the online resource can be extended with query parameters.
    The URL will end with a ``?`` or ``&``.
    """
    if online_resource.endswith(("?", "&")):
        return online_resource
    elif "?" in online_resource:
        return f"{online_resource}&"
    else:
        return f"{online_resource}?"


class MapMLOperation:
    """Basic interface to implement an operation of the MapML server.

    An instance is created for each request, so any state of the request
    (such as the active layers) can be stored on the operation.
    """

    #: Optionally, mention explicitly what the parser class should be used.
    #: Otherwise, it's automatically resolved from the registered types.
    parser_class: type[ows.BaseOwsRequest] = None

    def __init__(self, view: MapMLView, ows_request: ows.BaseOwsRequest):
        self.view = view
        self.ows_request = ows_request

        #: Which layers are switched on by this request, as ``{index: active}``.
        self.layer_status: dict[int, bool] = {}

    def __str__(self):
        return f"{self.__class__.__name__} ({self.ows_request.service})"

    @cached_property
    def map_definition(self) -> MapDefinition:
        return self.view.get_map_definition()

    @cached_property
    def script_url(self) -> str:
        """The base URL of this server, used to construct all links.

        This is read from the ``wms_onlineresource`` metadata of the map,
        or derived from the current request.
        """
        online_resource = lookup_metadata(
            self.map_definition.metadata, MAPML_NAMESPACES, "onlineresource"
        )
        if not online_resource:
            if not conf.MAPML_ALLOW_REQUEST_ONLINE_RESOURCE:
                logger.error(
                    "No wms_onlineresource metadata configured for %r", self.map_definition
                )
                raise ConfigurationError("Missing OnlineResource.")
            online_resource = self.view.server_url

        return get_script_url(online_resource)

    def apply_layer_status(self, statuses: typing.Iterable[tuple[int, bool]]):
        """Store which layers are active for this request."""
        self.layer_status.update(statuses)

    @property
    def active_layers(self):
        """The layers that are switched on for this request, in their declared order."""
        return [
            layer for layer in self.map_definition.layers if self.layer_status.get(layer.index)
        ]

    def validate_request(self, ows_request: ows.BaseOwsRequest):
        """Validate the request."""

    def process_request(self, ows_request: ows.BaseOwsRequest):
        """Handle the request, return the HTTP response."""
        raise NotImplementedError()
