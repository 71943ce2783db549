"""Settings file handling and construction of the resolution context."""

from ghcselect.config.settings import (
    SETTINGS_FILENAME,
    Settings,
    build_context,
    get_settings_path,
    load_settings,
    update_metadata,
)

__all__ = [
    "SETTINGS_FILENAME",
    "Settings",
    "build_context",
    "get_settings_path",
    "load_settings",
    "update_metadata",
]
