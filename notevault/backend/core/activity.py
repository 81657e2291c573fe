"""
Activity Logging.

Audit records for user actions on notes, with short-window deduplication.

A single logical operation can try to write the same audit record more
than once. ActivityDeduplicator suppresses repeats of an identical
(owner, action, details) triple inside a configurable window (default
1000 ms). It is a cost-reduction measure, not an exactly-once guarantee.

The deduplicator is owned by the FastAPI app (app.state) and handed to
request handlers through a dependency:

    deduplicator = ActivityDeduplicator(window_seconds=1.0, max_entries=1000)
    recorder = ActivityRecorder(deduplicator)
    recorder.record("CREATE_NOTE", owner_id, {"note_id": note.id})

Concurrency:
    The check-and-insert step holds a threading.Lock, so two simultaneous
    first emissions of the same key cannot both pass. The lock works
    from the event loop and from worker threads alike. Expired entries
    are swept inline once the cache grows past max_entries; the sweep is
    a single scan of the current entries.
"""

import hashlib
import json
import threading
import time
from collections.abc import Callable
from typing import Any

from notevault.backend.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_WINDOW_SECONDS = 1.0
DEFAULT_MAX_ENTRIES = 1000


class ActivityAction:
    """Audit action names."""

    CREATE_NOTE = "CREATE_NOTE"
    VIEW_NOTE = "VIEW_NOTE"
    UPDATE_NOTE = "UPDATE_NOTE"
    DELETE_NOTE = "DELETE_NOTE"
    ARCHIVE_NOTE = "ARCHIVE_NOTE"
    UNARCHIVE_NOTE = "UNARCHIVE_NOTE"
    PIN_NOTE = "PIN_NOTE"
    UNPIN_NOTE = "UNPIN_NOTE"
    BULK_DELETE_NOTES = "BULK_DELETE_NOTES"
    SEARCH_NOTES = "SEARCH_NOTES"


def build_activity_key(owner_id: str, action: str, details: dict[str, Any] | None) -> str:
    """
    Build the deduplication key for an activity record.

    Details are serialized with sorted keys and hashed, so payloads that
    differ in any value produce different keys.
    """
    serialized = json.dumps(details or {}, sort_keys=True, default=str)
    digest = hashlib.sha256(serialized.encode("utf-8")).hexdigest()
    return f"{owner_id}:{action}:{digest}"


class ActivityDeduplicator:
    """
    Time-windowed, size-bounded cache of recently emitted activity keys.

    Args:
        window_seconds: Repeats inside this window are suppressed
        max_entries: Entry count above which expired entries are swept
        clock: Monotonic time source in seconds (injectable for tests)
    """

    def __init__(
        self,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.window_seconds = window_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: dict[str, float] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def should_emit(self, key: str) -> bool:
        """
        Decide whether a record with this key should be written.

        Returns True and records the time on the first call for a key, or
        once the window since the last recorded emission has passed.
        Returns False inside the window, leaving the recorded time as is.
        """
        with self._lock:
            now = self._clock()
            last_emitted = self._entries.get(key)
            if last_emitted is not None and now - last_emitted < self.window_seconds:
                return False

            self._entries[key] = now
            if len(self._entries) > self.max_entries:
                self._sweep(now)
            return True

    def should_emit_activity(
        self,
        owner_id: str,
        action: str,
        details: dict[str, Any] | None = None,
    ) -> bool:
        """Convenience wrapper building the key from its parts."""
        return self.should_emit(build_activity_key(owner_id, action, details))

    def _sweep(self, now: float) -> None:
        """Drop entries older than the window. Caller holds the lock."""
        cutoff = now - self.window_seconds
        expired = [key for key, emitted_at in self._entries.items() if emitted_at < cutoff]
        for key in expired:
            del self._entries[key]
        logger.debug(
            "Activity cache swept",
            extra={"removed": len(expired), "remaining": len(self._entries)},
        )

    def clear(self) -> None:
        """Forget every recorded key."""
        with self._lock:
            self._entries.clear()


class ActivityRecorder:
    """
    Writes audit records for user actions.

    Every record is checked against the deduplicator first; suppressed
    records are dropped silently.
    """

    def __init__(self, deduplicator: ActivityDeduplicator) -> None:
        self._deduplicator = deduplicator

    @property
    def deduplicator(self) -> ActivityDeduplicator:
        return self._deduplicator

    def record(
        self,
        action: str,
        owner_id: str,
        details: dict[str, Any] | None = None,
    ) -> bool:
        """
        Record an activity unless an identical one was just written.

        Returns:
            True if a log record was written
        """
        details = details or {}
        if not self._deduplicator.should_emit_activity(owner_id, action, details):
            return False

        logger.info(
            "User activity",
            source="api",
            extra={
                "action": action,
                "user_id": owner_id,
                "details": details,
            },
        )
        return True
