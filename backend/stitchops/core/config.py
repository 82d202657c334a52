"""Settings access point used across the application."""
from stitchops.core.settings import Settings, get_settings, settings

__all__ = ["Settings", "get_settings", "settings"]
