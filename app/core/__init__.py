"""Core: config, composition and application bootstrap.

Single place for settings and wiring.
"""

from app.core.config import Settings, get_settings

__all__ = ["Settings", "get_settings"]
