"""
Per-account stats cache that lives for one calendar day.

Entries are keyed by (account_id, today). A new day makes old entries
unreachable; purge_stale() drops them. Writes for an account call
invalidate(account_id).
"""
import logging
import threading
from datetime import date
from typing import Any

logger = logging.getLogger(__name__)


class StatsCache:
    def __init__(self):
        self._entries: dict[tuple[int, date], Any] = {}
        self._lock = threading.Lock()

    def get(self, account_id: int, today: date) -> Any | None:
        with self._lock:
            return self._entries.get((account_id, today))

    def set(self, account_id: int, today: date, value: Any) -> None:
        with self._lock:
            self._entries[(account_id, today)] = value

    def invalidate(self, account_id: int) -> None:
        with self._lock:
            for key in [k for k in self._entries if k[0] == account_id]:
                del self._entries[key]

    def purge_stale(self, today: date) -> int:
        """Drop entries computed for any day other than today."""
        with self._lock:
            stale = [k for k in self._entries if k[1] != today]
            for key in stale:
                del self._entries[key]
        if stale:
            logger.info("Stats cache: purged %d stale entr(ies)", len(stale))
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
