"""
Temporary-file upload staging adapter.

Implements UploadStorePort. Files are named ``{millis}-{sanitized name}``
inside *upload_dir* (the system temp directory when not configured).
"""

from __future__ import annotations

import os
import tempfile
import time
from pathlib import Path
from typing import Optional

from shared_utils.constants import LogScope
from shared_utils.error_handler import StorageError
from shared_utils.logging_utils import get_scoped_logger
from shared_utils.validation import InputValidator


logger = get_scoped_logger(LogScope.ADAPTER)


class TempUploadStoreAdapter:
    """Stages uploads on local disk for the lifetime of one request."""

    def __init__(self, upload_dir: Optional[str] = None) -> None:
        self.upload_dir = Path(upload_dir or tempfile.gettempdir())

    # ------------------------------------------------------------------
    # UploadStorePort implementation
    # ------------------------------------------------------------------

    def stage(self, filename: str, content: bytes) -> Path:
        """Write *content* to a fresh file and return its path."""
        safe_name = InputValidator.safe_upload_name(filename)
        try:
            self.upload_dir.mkdir(parents=True, exist_ok=True)
            fd, raw_path = tempfile.mkstemp(
                prefix=f"{int(time.time() * 1000)}-",
                suffix=f"-{safe_name}",
                dir=self.upload_dir,
            )
            with os.fdopen(fd, "wb") as handle:
                handle.write(content)
        except OSError as exc:
            logger.error("upload_stage_failed", filename=filename, error=str(exc))
            raise StorageError(f"Failed to stage upload: {exc}") from exc

        path = Path(raw_path)
        logger.debug("upload_staged", path=str(path), size_bytes=len(content))
        return path

    def read(self, path: Path) -> bytes:
        """Read a staged file back into memory."""
        try:
            return path.read_bytes()
        except OSError as exc:
            logger.error("upload_read_failed", path=str(path), error=str(exc))
            raise StorageError(f"Failed to read staged upload: {exc}") from exc

    def discard(self, path: Path) -> None:
        """Delete a staged file, logging instead of raising on failure."""
        try:
            path.unlink(missing_ok=True)
            logger.debug("upload_discarded", path=str(path))
        except OSError as exc:
            logger.warning("upload_discard_failed", path=str(path), error=str(exc))
