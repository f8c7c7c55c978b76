"""Helper classes to handle the map extent.

The extent is declared in the native projection of the map,
and transformed into the CRS of the requested MapML projection.
"""

from __future__ import annotations

import logging
import math
import typing
from dataclasses import dataclass
from functools import lru_cache

import pyproj
from pyproj.exceptions import CRSError, ProjError

from mapmlserver import conf
from mapmlserver.crs import CRS
from mapmlserver.exceptions import ReprojectionFailed

if typing.TYPE_CHECKING:
    from mapmlserver.layers import MapDefinition

__all__ = [
    "BoundingBox",
    "resolve_extent",
]

logger = logging.getLogger(__name__)


@lru_cache(maxsize=100)
def _get_transformer(source: CRS, target: CRS) -> pyproj.Transformer:
    """Get an efficient coordinate transformation object.

    The results are always in x/y (easting/northing, or longitude/latitude) ordering,
    as that's how the extent is stored and how MapML describes its ``pcrs`` inputs.
    """
    return pyproj.Transformer.from_crs(source.as_proj(), target.as_proj(), always_xy=True)


@dataclass(frozen=True)
class BoundingBox:
    """An axis-aligned rectangle in a given CRS.

    The coordinates are always in x/y ordering, also for ``EPSG:4326``.
    The swap to latitude/longitude only happens in the WMS ``BBOX`` templates.
    """

    min_x: float
    min_y: float
    max_x: float
    max_y: float
    crs: CRS | None = None

    def transform_to(self, crs: CRS) -> BoundingBox:
        """Reproject the rectangle into another CRS.

        The edges are densified, so the result encloses the whole
        source rectangle, even when the edges curve in the target CRS.
        """
        if self.crs is None:
            raise ReprojectionFailed("Unable to reproject an extent without projection.")
        try:
            transformer = _get_transformer(self.crs, crs)
            bounds = transformer.transform_bounds(
                self.min_x,
                self.min_y,
                self.max_x,
                self.max_y,
                densify_pts=conf.MAPML_TRANSFORM_DENSIFY,
            )
        except (CRSError, ProjError) as e:
            logger.error("Failed to reproject extent %r to %s: %s", self, crs, e)
            raise ReprojectionFailed(
                f"Failed to reproject the extent from {self.crs} to {crs}: {e}"
            ) from e

        if not all(math.isfinite(value) for value in bounds):
            logger.error("Reprojecting extent %r to %s gave %r", self, crs, bounds)
            raise ReprojectionFailed(
                f"Failed to reproject the extent from {self.crs} to {crs}: out of bounds."
            )

        return BoundingBox(*bounds, crs=crs)


def resolve_extent(map_definition: MapDefinition, target_crs: CRS) -> BoundingBox:
    """Provide the extent to advertise, expressed in the target CRS.

    This always uses the map extent, the extent of the individual
    layers or groups is not taken into account.
    """
    extent = map_definition.extent
    if extent.crs == target_crs:
        return extent
    return extent.transform_to(target_crs)
