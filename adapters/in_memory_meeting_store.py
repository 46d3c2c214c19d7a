"""
In-memory meeting store adapter.

Implements MeetingStorePort with an insertion-ordered dict guarded by a lock.
Listing reverses insertion order, which equals "most recent first" because
ids are created in order, records are never reordered and never deleted.
Records are copied on the way in and out, so a stored meeting cannot be
changed through a reference held by a caller.

No persistence across restarts.
"""

from __future__ import annotations

import threading
from typing import Dict, List, Optional

from domain.models import Meeting, MeetingSummaryView
from shared_utils.constants import Defaults, LogScope
from shared_utils.error_handler import StorageError
from shared_utils.logging_utils import get_scoped_logger


logger = get_scoped_logger(LogScope.ADAPTER)


class InMemoryMeetingStoreAdapter:
    """Thread-safe, process-lifetime implementation of MeetingStorePort."""

    def __init__(self, preview_chars: int = Defaults.SUMMARY_PREVIEW_CHARS) -> None:
        self._store: Dict[str, Meeting] = {}
        self._lock = threading.Lock()
        self._preview_chars = preview_chars

    # ------------------------------------------------------------------
    # MeetingStorePort implementation
    # ------------------------------------------------------------------

    def put(self, meeting: Meeting) -> None:
        """Store a meeting; ids are write-once."""
        with self._lock:
            if meeting.id in self._store:
                raise StorageError(
                    f"Meeting {meeting.id} already exists",
                    context={"meeting_id": meeting.id},
                )
            self._store[meeting.id] = meeting.model_copy(deep=True)
            total = len(self._store)
        logger.info("meeting_stored", meeting_id=meeting.id, total=total)

    def get(self, meeting_id: str) -> Optional[Meeting]:
        """Look up a meeting by id."""
        with self._lock:
            meeting = self._store.get(meeting_id)
        return meeting.model_copy(deep=True) if meeting is not None else None

    def list(self) -> List[MeetingSummaryView]:
        """Summaries of every stored meeting, most recent first."""
        with self._lock:
            meetings = list(self._store.values())
        return [self._summarise(m) for m in reversed(meetings)]

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _summarise(self, meeting: Meeting) -> MeetingSummaryView:
        preview = meeting.summary.overview[: self._preview_chars] + "..."
        return MeetingSummaryView(
            id=meeting.id,
            filename=meeting.filename,
            timestamp=meeting.timestamp,
            summary=preview,
        )
