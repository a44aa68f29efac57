"""
Library default settings for rail-transform.

Projects override any of these through the ``RAIL_TRANSFORM`` dictionary
in their Django settings, using the same nested layout.
"""

from typing import Any

LIBRARY_DEFAULTS: dict[str, Any] = {
    "transform_settings": {
        # Drop denied fields from Transformer output instead of emitting None
        "omit_denied_fields": True,
        # Allow sub-transform string references to be dotted import paths
        "allow_import_paths": True,
        # Emit a debug log line every time a level is denied a field
        "log_denials": False,
    },
}
