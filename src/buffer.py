"""Metric buffer — coalesces updates per key until the next flush."""

import logging
import threading

from src.encoder import format_entry

logger = logging.getLogger(__name__)


class MetricBuffer:
    def __init__(self):
        self._entries: dict[str, str] = {}
        self._sealed = False
        self._lock = threading.Lock()

    def put(self, key: str, fragment: str) -> bool:
        """Store the latest encoded value for key, replacing any earlier one.

        Returns False, storing nothing, once the buffer has been sealed.
        """
        with self._lock:
            if self._sealed:
                return False
            self._entries[key] = fragment
            return True

    def drain_all(self) -> list[str]:
        """Swap out the buffered entries and return them as ``key:fragment`` strings.

        Only the swap happens under the lock; formatting runs on the snapshot
        so concurrent puts never wait on it.
        """
        with self._lock:
            snapshot = self._swap()
        return self._format(snapshot)

    def seal(self) -> list[str]:
        """Drain the buffer and refuse every later put."""
        with self._lock:
            self._sealed = True
            snapshot = self._swap()
        return self._format(snapshot)

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._entries)

    def _swap(self) -> dict[str, str]:
        """Replace the entries with an empty dict. Must be called with self._lock held."""
        if not self._entries:
            return {}
        snapshot = self._entries
        self._entries = {}
        return snapshot

    @staticmethod
    def _format(snapshot: dict[str, str]) -> list[str]:
        if not snapshot:
            return []
        entries = [format_entry(key, fragment) for key, fragment in snapshot.items()]
        logger.debug("Drained %d buffered metrics", len(entries))
        return entries
