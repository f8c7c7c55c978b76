from django.conf import settings
from django.core.signals import setting_changed
from django.dispatch import receiver

_originals = {}

# -- feature flags

# Whether the older binding of the WGS84 projection keyword should be used.
# The legacy binding maps "WGS84" to EPSG:4326 (latitude/longitude ordering)
# and doesn't know about the "WGS84-4326" keyword. By default, "WGS84" maps to
# CRS:84 (longitude/latitude) and "WGS84-4326" maps to EPSG:4326.
MAPML_LEGACY_WGS84_BINDING = getattr(settings, "MAPML_LEGACY_WGS84_BINDING", False)

# Whether the online resource may be derived from the incoming request
# when no wms_onlineresource/ows_onlineresource metadata is configured.
MAPML_ALLOW_REQUEST_ONLINE_RESOURCE = getattr(
    settings, "MAPML_ALLOW_REQUEST_ONLINE_RESOURCE", True
)

# -- request defaults

# The projection to use when PROJECTION is omitted (OSMTILE as per MapML).
MAPML_DEFAULT_PROJECTION = getattr(settings, "MAPML_DEFAULT_PROJECTION", "OSMTILE")

# The output mode when neither MAPML_MODE nor mapml_wms_mode metadata is given.
MAPML_DEFAULT_MODE = getattr(settings, "MAPML_DEFAULT_MODE", "image")

# -- coordinate transforms

# Number of points to add on each edge when reprojecting the map extent.
MAPML_TRANSFORM_DENSIFY = getattr(settings, "MAPML_TRANSFORM_DENSIFY", 21)


@receiver(setting_changed)
def _on_settings_change(setting, value, enter, **kwargs):
    if not setting.startswith("MAPML_"):
        return

    conf_module = globals()
    if value is None and not enter:
        # override_settings().disable() returns what the django settings module had.
        # Revert to our defaults here instead.
        value = _originals.get(setting)
    else:
        # Track defaults of this file for reverting to them
        _originals.setdefault(setting, conf_module[setting])

    conf_module[setting] = value
