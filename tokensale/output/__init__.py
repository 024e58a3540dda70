"""Output formatting module."""

from .formatters import OutputFormatter, JSONFormatter, TableFormatter
from .event_trail import EventTrailFormatter

__all__ = [
    "OutputFormatter",
    "JSONFormatter",
    "TableFormatter",
    "EventTrailFormatter",
]
