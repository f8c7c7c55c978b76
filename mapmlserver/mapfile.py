"""Loading the map definition from a JSON "map file".

The file has the structure::

    {
        "name": "city",
        "title": "City map",
        "extent": [110000, 470000, 135000, 500000],
        "projection": "EPSG:28992",
        "metadata": {"wms_srs": "EPSG:28992 EPSG:3857", "wms_enable_request": "*"},
        "layers": [
            {"name": "roads", "group": "infra", "title": "Roads", "metadata": {...}},
            ...
        ]
    }
"""

from __future__ import annotations

import logging
import os

import orjson
from django.core.exceptions import ImproperlyConfigured

from mapmlserver.layers import LayerDefinition, MapDefinition

logger = logging.getLogger(__name__)

__all__ = ("load_map_file", "parse_map_definition")

_MAP_KEYS = {"name", "title", "extent", "projection", "metadata", "layers"}
_LAYER_KEYS = {"name", "group", "title", "metadata"}


def load_map_file(path_or_data: str | os.PathLike | dict) -> MapDefinition:
    """Read the map definition from a JSON file (or an already parsed ``dict``)."""
    if isinstance(path_or_data, dict):
        return parse_map_definition(path_or_data)

    logger.debug("Reading map file %s", path_or_data)
    try:
        with open(path_or_data, "rb") as f:
            data = orjson.loads(f.read())
    except OSError as e:
        raise ImproperlyConfigured(f"Unable to read map file {path_or_data}: {e}") from e
    except orjson.JSONDecodeError as e:
        raise ImproperlyConfigured(f"Invalid JSON in map file {path_or_data}: {e}") from e

    return parse_map_definition(data, source=str(path_or_data))


def _check_metadata(metadata, source) -> dict[str, str]:
    if metadata is None:
        return {}
    if not isinstance(metadata, dict) or not all(
        isinstance(value, str) for value in metadata.values()
    ):
        raise ImproperlyConfigured(f"{source}: 'metadata' should be an object of strings.")
    return metadata


def _check_keys(data, allowed: set[str], source: str):
    if not isinstance(data, dict):
        raise ImproperlyConfigured(f"{source}: expected an object, not {type(data).__name__}.")
    unknown = set(data) - allowed
    if unknown:
        raise ImproperlyConfigured(f"{source}: unknown keys: {', '.join(sorted(unknown))}.")


def parse_map_definition(data: dict, source: str = "map file") -> MapDefinition:
    """Convert the parsed JSON data into the map definition objects."""
    _check_keys(data, _MAP_KEYS, source)

    extent = data.get("extent")
    if (
        not isinstance(extent, list)
        or len(extent) != 4
        or not all(isinstance(value, (int, float)) for value in extent)
    ):
        raise ImproperlyConfigured(f"{source}: 'extent' should be [minx, miny, maxx, maxy].")

    layers = []
    for i, layer_data in enumerate(data.get("layers") or ()):
        layer_source = f"{source}: layers[{i}]"
        _check_keys(layer_data, _LAYER_KEYS, layer_source)
        layers.append(
            LayerDefinition(
                name=layer_data.get("name"),
                group=layer_data.get("group"),
                title=layer_data.get("title"),
                metadata=_check_metadata(layer_data.get("metadata"), layer_source),
            )
        )

    try:
        return MapDefinition(
            name=data.get("name"),
            extent=extent,
            projection=data.get("projection") or "",
            title=data.get("title"),
            metadata=_check_metadata(data.get("metadata"), source),
            layers=layers,
        )
    except ValueError as e:
        raise ImproperlyConfigured(f"{source}: {e}") from e
