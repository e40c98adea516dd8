"""In-memory set of online players."""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, FrozenSet, Optional, Set

ChangeCallback = Callable[[], object]


class PresenceStore:
    """Holds the names of currently online players.

    Mutations are serialized on a lock. Reads never await, so on the event
    loop they can't observe a half-applied mutation.

    ``add``/``remove``/``clear`` accept an ``on_change`` callback that runs
    inside the critical section only when membership actually changed
    (always, for ``clear``). Publishing from that callback keeps events in
    the same order as the mutations that produced them.
    """

    def __init__(self):
        self._players: Set[str] = set()
        self._lock = asyncio.Lock()

    async def add(
        self, player_name: str, on_change: Optional[ChangeCallback] = None
    ) -> bool:
        """Mark a player online. Returns True if they were not online before."""
        async with self._lock:
            if player_name in self._players:
                return False
            self._players.add(player_name)
            if on_change is not None:
                on_change()
            return True

    async def remove(
        self, player_name: str, on_change: Optional[ChangeCallback] = None
    ) -> bool:
        """Mark a player offline. Returns True if they were online before."""
        async with self._lock:
            if player_name not in self._players:
                return False
            self._players.discard(player_name)
            if on_change is not None:
                on_change()
            return True

    async def clear(self, on_change: Optional[ChangeCallback] = None) -> None:
        """Drop every player."""
        async with self._lock:
            self._players.clear()
            if on_change is not None:
                on_change()

    @asynccontextmanager
    async def exclusive(self) -> AsyncIterator[Set[str]]:
        """Hold the mutation lock and expose the raw set for a bulk rebuild."""
        async with self._lock:
            yield self._players

    def snapshot(self) -> FrozenSet[str]:
        return frozenset(self._players)

    def __contains__(self, player_name: object) -> bool:
        return player_name in self._players

    def __len__(self) -> int:
        return len(self._players)
