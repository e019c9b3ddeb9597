"""Configuration package exports."""

from .loader import ConfigLocator, ConfigRepository
from .models import DEFAULT_EXTENSIONS, DEFAULT_MIME_TYPES, KitwatchConfig, SlackConfig

__all__ = [
    "ConfigLocator",
    "ConfigRepository",
    "DEFAULT_EXTENSIONS",
    "DEFAULT_MIME_TYPES",
    "KitwatchConfig",
    "SlackConfig",
]
