"""Settings package for zdplus."""

from zdplus.settings.config import Settings, get_settings

__all__ = ["Settings", "get_settings"]
