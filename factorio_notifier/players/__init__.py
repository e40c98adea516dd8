"""
Player presence tracking.

Holds the authoritative set of players currently online.
"""

from .store import PresenceStore

__all__ = [
    "PresenceStore",
]
