"""
Port interface for meeting storage.

Implementations: InMemoryMeetingStoreAdapter (adapters/)
"""

from __future__ import annotations

from typing import List, Optional, Protocol, runtime_checkable

from domain.models import Meeting, MeetingSummaryView


@runtime_checkable
class MeetingStorePort(Protocol):
    """Abstract interface for process-lifetime meeting records."""

    def put(self, meeting: Meeting) -> None:
        """Store a newly created meeting.

        Args:
            meeting: Complete, immutable meeting record.

        Raises:
            StorageError: If a meeting with the same id already exists.
        """
        ...

    def get(self, meeting_id: str) -> Optional[Meeting]:
        """Retrieve a meeting by id.

        Returns:
            Meeting if found, None otherwise.
        """
        ...

    def list(self) -> List[MeetingSummaryView]:
        """List all meetings, most recently created first."""
        ...
