"""Per-identity event counters shared by all sessions"""
from __future__ import annotations

import threading
from typing import Dict


class EventCounter:
    """
    In-memory identity -> count mapping.

    increment() is a single read-modify-write under one lock, so concurrent
    callers for the same key each get a distinct value and no update is lost.
    Nothing is persisted; a restart starts every identity from zero.
    """

    def __init__(self, name: str = "events") -> None:
        self.name = name
        self._counts: Dict[str, int] = {}
        self._lock = threading.Lock()

    def increment(self, key: str) -> int:
        """Count one more event for ``key`` and return the new total."""
        with self._lock:
            count = self._counts.get(key, 0) + 1
            self._counts[key] = count
        return count


def join_key(ip: str, username: str) -> str:
    """Identity for login events: the same name from two IPs counts separately."""
    return f"{ip}/{username}"
