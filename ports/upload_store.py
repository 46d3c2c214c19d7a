"""
Port interface for transient upload staging.

Implementations: TempUploadStoreAdapter (adapters/)
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable


@runtime_checkable
class UploadStorePort(Protocol):
    """Stage an uploaded payload on disk only as long as a request needs it."""

    def stage(self, filename: str, content: bytes) -> Path:
        """Write *content* to a new temporary file and return its path."""
        ...

    def read(self, path: Path) -> bytes:
        """Read a staged file back."""
        ...

    def discard(self, path: Path) -> None:
        """Delete a staged file. Best-effort: never raises."""
        ...
