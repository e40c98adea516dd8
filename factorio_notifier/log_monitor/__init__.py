"""
Log monitoring for the Factorio notifier.

Replays the player log at startup and follows it afterwards.
"""

from .parser import LineKind, LogParser, ParsedLine
from .reconciler import HistoryReconciler
from .tailer import LiveTailer

__all__ = [
    "LineKind",
    "LogParser",
    "ParsedLine",
    "HistoryReconciler",
    "LiveTailer",
]
