"""Progress sinks and console output."""

from .base import NullProgress, NullProgressDisplay, ProgressDisplay, ProgressSink
from .console import ConsoleReporter, RichProgressDisplay, RichProgressSink

__all__ = [
    "ProgressSink",
    "ProgressDisplay",
    "NullProgress",
    "NullProgressDisplay",
    "ConsoleReporter",
    "RichProgressDisplay",
    "RichProgressSink",
]
