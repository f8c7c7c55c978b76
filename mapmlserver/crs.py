"""Coordinate Reference System handling for MapML projections.

MapML names its projections by keyword (e.g. ``OSMTILE``), while the WMS
requests that the documents link to need the matching CRS identifier.
This module holds that binding, and checks whether a layer permits the CRS.
"""

from __future__ import annotations

import logging
import re
import typing
from dataclasses import dataclass
from functools import lru_cache
from types import MappingProxyType

import pyproj

from mapmlserver import conf
from mapmlserver.exceptions import InvalidParameterValue, ProjectionNotEnabled

if typing.TYPE_CHECKING:
    from mapmlserver.layers import LayerDefinition

CRS_URN_REGEX = re.compile(
    r"^urn:ogc:def:crs:(?P<authority>[a-z]+)"
    r":(?P<version>[0-9]+(\.[0-9]+(\.[0-9]+)?)?)?"
    r":(?P<id>[0-9]+|crs84)"
    r"$",
    re.IGNORECASE,
)

__all__ = [
    "CRS",
    "CRS84",
    "WEB_MERCATOR",
    "WGS84",
    "ProjectionBinding",
    "MAPML_PROJECTIONS",
    "get_projection_binding",
    "resolve_crs",
]

logger = logging.getLogger(__name__)

_get_proj_crs_from_user_input = lru_cache(maxsize=20)(pyproj.CRS.from_user_input)


@dataclass(frozen=True)
class CRS:
    """A CRS identifier in the notation WMS 1.3 uses in its ``CRS=`` parameter.

    That is either :samp:`EPSG:{code}` or ``CRS:84``.
    """

    #: Either "EPSG" or "CRS".
    authority: str

    #: The code within the authority, e.g. "3857" or "84".
    crsid: str

    @classmethod
    def from_string(cls, value: str | int) -> CRS:
        """Parse a CRS notation.

        Accepted are :samp:`EPSG:{code}`, ``CRS:84``, a numeric EPSG code,
        and the OGC URN notation (:samp:`urn:ogc:def:crs:EPSG::{code}`).
        """
        if isinstance(value, int) or value.isdigit():
            return cls(authority="EPSG", crsid=str(int(value)))

        urn_match = CRS_URN_REGEX.match(value)
        if urn_match:
            authority = urn_match.group("authority").upper()
            crsid = urn_match.group("id").upper()
            if authority == "OGC" and crsid == "CRS84":
                return cls(authority="CRS", crsid="84")
            elif authority == "EPSG" and crsid.isdigit():
                return cls(authority="EPSG", crsid=crsid)
            raise ValueError(f"Unknown CRS URN [{value}] specified")

        authority, _, crsid = value.strip().upper().partition(":")
        if authority not in ("EPSG", "CRS") or not crsid.isdigit():
            raise ValueError(f"Unknown CRS [{value}] specified")
        if authority == "CRS" and crsid != "84":
            raise ValueError(f"Unsupported CRS [{value}] specified")
        return cls(authority=authority, crsid=crsid)

    def __str__(self):
        return f"{self.authority}:{self.crsid}"

    @property
    def is_latlon_bbox(self) -> bool:
        """Tell whether a WMS 1.3 BBOX is given in latitude/longitude ordering.

        Following the OGC convention, only the geographic ``EPSG:4326`` has
        a ``{ymin},{xmin},{ymax},{xmax}`` ordering. ``CRS:84`` stays in x/y.
        """
        return self.authority == "EPSG" and self.crsid == "4326"

    def as_proj(self) -> pyproj.CRS:
        """Generate the PROJ CRS object"""
        if self.authority == "CRS":
            return _get_proj_crs_from_user_input("OGC:CRS84")
        return _get_proj_crs_from_user_input(f"EPSG:{self.crsid}")


#: Worldwide GPS, latitude/longitude (y/x). https://epsg.io/4326
WGS84 = CRS("EPSG", "4326")

#: Like WGS84 but with longitude/latitude (x/y).
CRS84 = CRS("CRS", "84")

#: Spherical Mercator (Google Maps, Bing Maps, OpenStreetMap, ...), see https://epsg.io/3857
WEB_MERCATOR = CRS("EPSG", "3857")

#: Canada Atlas Lambert (the MapML CBMTILE grid), see https://epsg.io/3978
CANADA_LCC = CRS("EPSG", "3978")

#: Alaska Polar Stereographic (the MapML APSTILE grid), see https://epsg.io/5936
ALASKA_POLAR = CRS("EPSG", "5936")


class ProjectionBinding:
    """Read-only mapping of MapML projection keywords to their CRS.

    Keywords are matched case-insensitively.
    """

    def __init__(self, crs_by_keyword: dict[str, CRS]):
        self.crs_by_keyword = MappingProxyType(
            {keyword.upper(): crs for keyword, crs in crs_by_keyword.items()}
        )

    def __contains__(self, keyword: str) -> bool:
        return keyword.upper() in self.crs_by_keyword

    def get(self, keyword: str) -> CRS | None:
        """Find the CRS for a keyword, or return ``None``."""
        return self.crs_by_keyword.get(keyword.upper())

    def __repr__(self):
        items = ", ".join(f"{key}={crs}" for key, crs in self.crs_by_keyword.items())
        return f"<ProjectionBinding: {items}>"


#: The projections advertised in <link rel="alternate">, in this order.
ALTERNATE_PROJECTIONS = ("OSMTILE", "CBMTILE", "APSTILE", "WGS84")

MAPML_PROJECTIONS = ProjectionBinding(
    {
        "OSMTILE": WEB_MERCATOR,
        "CBMTILE": CANADA_LCC,
        "APSTILE": ALASKA_POLAR,
        "WGS84-4326": WGS84,
        "WGS84": CRS84,
    }
)

#: Before CRS:84 was supported, the WGS84 keyword used the lat/lon EPSG:4326.
LEGACY_MAPML_PROJECTIONS = ProjectionBinding(
    {
        "OSMTILE": WEB_MERCATOR,
        "CBMTILE": CANADA_LCC,
        "APSTILE": ALASKA_POLAR,
        "WGS84": WGS84,
    }
)


def get_projection_binding() -> ProjectionBinding:
    """Tell which keyword binding is active for this server."""
    return LEGACY_MAPML_PROJECTIONS if conf.MAPML_LEGACY_WGS84_BINDING else MAPML_PROJECTIONS


def resolve_crs(projection: str, layer: LayerDefinition, quiet=False) -> CRS | None:
    """Map a MapML projection keyword to the CRS, and check it's enabled for the layer.

    With ``quiet=True``, ``None`` is returned instead of raising an exception.
    This allows probing other projections without failing the whole request.
    """
    crs = get_projection_binding().get(projection)
    if crs is None:
        if quiet:
            return None
        raise InvalidParameterValue("Invalid PROJECTION parameter", locator="projection")

    if not layer.is_crs_enabled(crs):
        if quiet:
            logger.debug("Projection %s (%s) is not enabled for %s", projection, crs, layer)
            return None
        raise ProjectionNotEnabled(
            f"PROJECTION {projection} requires CRS {crs} to be enabled for this layer.",
            locator="projection",
        )

    return crs
