"""Reporter SPI and implementations."""

from .base import BaseReporter
from .console import ConsoleReporter, describe, render_summary
from .file_reporter import JsonlReporter
from .slack import SlackReporter

__all__ = [
    "BaseReporter",
    "ConsoleReporter",
    "JsonlReporter",
    "SlackReporter",
    "describe",
    "render_summary",
]
