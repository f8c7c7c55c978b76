"""The output rendering classes for all response types."""

from .base import OutputRenderer
from .mapml import MapMLRenderer
from .modes import MAPML_MODES, MapMLMode, ModeContext, resolve_mode
from .query import MapMLQueryRenderer, QueryFeature, QueryResult

__all__ = [
    "OutputRenderer",
    "MapMLRenderer",
    "MapMLQueryRenderer",
    "MapMLMode",
    "ModeContext",
    "MAPML_MODES",
    "QueryFeature",
    "QueryResult",
    "resolve_mode",
]
