"""The main configuration for exposing map layers in the MapML server.

The "map definition" describes what the server exposes: the map itself (which
can be requested as a layer on its own), its extent and native projection,
and an ordered list of layers. Both the map and each layer carry a metadata
dictionary, following the MapServer conventions for OWS metadata keys
(e.g. ``wms_title``, ``ows_srs``, ``wms_enable_request``).

These objects are shared between requests, and are never changed while
processing a request. Any per-request state (such as which layers are
active) is kept by the operation.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from django.core.exceptions import ImproperlyConfigured

from mapmlserver.crs import CRS
from mapmlserver.exceptions import InvalidParameterValue
from mapmlserver.geometries import BoundingBox

__all__ = [
    "MapDefinition",
    "LayerDefinition",
    "LayerMatch",
    "lookup_metadata",
    "get_enabled_layers",
    "locate_layer",
]

logger = logging.getLogger(__name__)

#: The letters used to scope metadata keys, e.g. "MO" looks for "wms_..." then "ows_...".
NAMESPACE_PREFIXES = {
    "O": "ows",
    "M": "wms",
    "F": "wfs",
    "C": "wcs",
    "G": "gml",
    "S": "sos",
}

#: The namespaces used by the MapML service.
MAPML_NAMESPACES = "MO"


def lookup_metadata(metadata: dict[str, str], namespaces: str | None, name: str) -> str | None:
    """Find a metadata value within the given namespaces, in order of preference.

    When ``namespaces`` is ``None``, the name is looked up without prefix.
    """
    if namespaces is None:
        return metadata.get(name)

    for letter in namespaces:
        try:
            prefix = NAMESPACE_PREFIXES[letter]
        except KeyError:
            raise ImproperlyConfigured(f"Unknown metadata namespace '{letter}'") from None

        value = metadata.get(f"{prefix}_{name}")
        if value is not None:
            return value
    return None


def _parse_enable_request(value: str | None, request_name: str) -> bool | None:
    """Tell whether a ``*_enable_request`` value enables the request.

    The value is a space-separated list of ``*``, ``!*``, ``Name`` and ``!Name``
    tokens, where the last applicable token wins.
    Returns ``None`` when no token applies to the request.
    """
    if not value:
        return None

    request_name = request_name.lower()
    enabled = None
    for token in value.lower().split():
        negate = token.startswith("!")
        name = token[1:] if negate else token
        if name in ("*", request_name):
            enabled = not negate
    return enabled


@dataclass
class LayerDefinition:
    """A single layer of the map.

    :param name: The name, used in the ``LAYER`` parameter.
    :param group: Optional group name, requesting the group selects this layer too.
    :param title: Human readable title, used when no ``wms_title`` metadata is set.
    :param metadata: OWS metadata (e.g. ``wms_srs``, ``wms_layer_group``, ``mapml_wms_mode``).
    """

    name: str | None
    group: str | None = None
    title: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)

    #: The map this layer is part of, assigned by :class:`MapDefinition`.
    map: MapDefinition | None = field(default=None, init=False, repr=False, compare=False)

    #: Position of the layer within the map.
    index: int = field(default=-1, init=False, compare=False)

    def __str__(self):
        return self.name or f"layer #{self.index}"

    def bind(self, map_definition: MapDefinition, index: int):
        """Associate the layer with its map."""
        if self.map is not None and self.map is not map_definition:
            raise ImproperlyConfigured(f"Layer '{self}' is already part of map '{self.map}'.")
        self.map = map_definition
        self.index = index

    def lookup_metadata(self, name: str, namespaces: str | None = MAPML_NAMESPACES) -> str | None:
        """Find metadata of the layer, falling back to the metadata of the map."""
        value = lookup_metadata(self.metadata, namespaces, name)
        if value is None and self.map is not None:
            value = lookup_metadata(self.map.metadata, namespaces, name)
        return value

    @property
    def nested_groups(self) -> list[str]:
        """The group names of the ``wms_layer_group`` path (e.g. ``/roads/highways``)."""
        path = lookup_metadata(self.metadata, MAPML_NAMESPACES, "layer_group")
        if not path:
            return []
        return [group for group in path.split("/") if group]

    def get_title(self) -> str | None:
        """The title of the layer, this falls back to the name of the layer."""
        return lookup_metadata(self.metadata, MAPML_NAMESPACES, "title") or self.title or self.name

    def get_supported_crs(self) -> list[str]:
        """The CRS identifiers from the ``wms_srs`` metadata of the layer or map.
        Without such metadata, only the native projection of the map is supported.
        """
        value = self.lookup_metadata("srs")
        if value:
            return value.upper().split()
        elif self.map is not None:
            return [str(self.map.projection).upper()]
        else:
            return []

    def is_crs_enabled(self, crs: CRS) -> bool:
        """Tell whether the CRS may be used for this layer."""
        return str(crs).upper() in self.get_supported_crs()

    def is_request_enabled(self, request_name: str) -> bool:
        """Tell whether the request is enabled by the ``*_enable_request`` metadata.

        The setting of the layer takes precedence over the setting of the map.
        """
        enabled = _parse_enable_request(
            lookup_metadata(self.metadata, MAPML_NAMESPACES, "enable_request"), request_name
        )
        if enabled is None and self.map is not None:
            enabled = _parse_enable_request(
                lookup_metadata(self.map.metadata, MAPML_NAMESPACES, "enable_request"),
                request_name,
            )
        return bool(enabled)

    def matches_name(self, name: str) -> bool:
        """Tell whether the layer, its group or one of its nested groups has the name."""
        name = name.lower()
        return (
            (self.name is not None and self.name.lower() == name)
            or (self.group is not None and self.group.lower() == name)
            or any(group.lower() == name for group in self.nested_groups)
        )


class MapDefinition:
    """The map that is exposed by the server.

    :param name: The name of the map, requesting it as ``LAYER`` selects the whole map.
    :param extent: The extent as ``(minx, miny, maxx, maxy)`` in the native projection.
    :param projection: The native projection of the map, e.g. ``"EPSG:28992"``.
    :param title: Human readable title, used when no ``wms_title`` metadata is set.
    :param metadata: OWS metadata (e.g. ``wms_onlineresource``, ``wms_enable_request``).
    :param layers: The layers, in their declared order.
    """

    def __init__(
        self,
        name: str | None,
        extent: Iterable[float] | BoundingBox,
        projection: CRS | str,
        title: str | None = None,
        metadata: dict[str, str] | None = None,
        layers: list[LayerDefinition] | None = None,
    ):
        self.name = name
        self.title = title
        self.metadata = metadata or {}
        self.projection = (
            projection if isinstance(projection, CRS) else CRS.from_string(projection)
        )
        if isinstance(extent, BoundingBox):
            self.extent = BoundingBox(
                extent.min_x, extent.min_y, extent.max_x, extent.max_y, crs=self.projection
            )
        else:
            min_x, min_y, max_x, max_y = map(float, extent)
            self.extent = BoundingBox(min_x, min_y, max_x, max_y, crs=self.projection)

        self.layers = list(layers or ())
        for index, layer in enumerate(self.layers):
            layer.bind(self, index)

    def __str__(self):
        return self.name or "(unnamed map)"

    def __repr__(self):
        return f"<MapDefinition: {self} ({len(self.layers)} layers)>"

    def is_map_name(self, name: str) -> bool:
        """Tell whether the requested name refers to the whole map."""
        return self.name is not None and self.name.lower() == name.lower()

    def get_title(self) -> str | None:
        """The title of the map, this falls back to the name of the map."""
        return lookup_metadata(self.metadata, MAPML_NAMESPACES, "title") or self.title or self.name


@dataclass(frozen=True)
class LayerMatch:
    """The result of resolving the ``LAYER`` parameter."""

    #: The matched layer
    layer: LayerDefinition

    #: Whether the name selected the whole map instead of a layer or group.
    is_map: bool

    #: The ``(index, active)`` state of each layer that was visited.
    statuses: list[tuple[int, bool]]

    @property
    def active_indexes(self) -> set[int]:
        return {index for index, active in self.statuses if active}


def get_enabled_layers(map_definition: MapDefinition, request_name: str) -> set[int]:
    """Find the indexes of the layers that allow the request."""
    return {
        layer.index
        for layer in map_definition.layers
        if layer.is_request_enabled(request_name)
    }


def locate_layer(name: str, map_definition: MapDefinition, enabled_layers: set[int]) -> LayerMatch:
    """Find the single layer that the requested name refers to.

    The name may refer to the map itself, a layer, a group or a nested group.
    The layers are scanned in declared order, and the first enabled match wins.
    The statuses are returned, so the caller can apply them to its own state.
    """
    is_map = map_definition.is_map_name(name)
    statuses = []
    matches = []
    for layer in map_definition.layers:
        if (is_map or layer.matches_name(name)) and layer.index in enabled_layers:
            statuses.append((layer.index, True))
            matches.append(layer)
            break  # only the first match is used
        else:
            statuses.append((layer.index, False))

    if len(matches) != 1:
        logger.debug(
            "Unable to locate layer '%s' in %r, enabled layers are: %r",
            name,
            map_definition,
            sorted(enabled_layers),
        )
        raise InvalidParameterValue(
            "Invalid layer given in the LAYER parameter. A layer might be disabled for"
            " this request. Check wms/ows_enable_request settings.",
            locator="layer",
        )

    return LayerMatch(layer=matches[0], is_map=is_map, statuses=statuses)
