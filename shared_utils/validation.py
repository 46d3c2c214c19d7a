"""
Request input checks shared by the HTTP layer, the chat service and upload
staging. Failures raise the 400-class errors from ``error_handler``.
"""

from typing import Iterable, Optional
import re

from shared_utils.error_handler import InvalidUploadError, ValidationError
from shared_utils.logging_utils import get_scoped_logger
from shared_utils.constants import LogScope


logger = get_scoped_logger(LogScope.VALIDATION)

UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9._-]")


class InputValidator:
    """Stateless input checks."""

    @staticmethod
    def validate_non_empty_string(value: object, field_name: str) -> str:
        """Return *value* stripped; reject non-strings and blank strings."""
        if not isinstance(value, str):
            raise ValidationError(f"{field_name} must be a string", context={"field": field_name})
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field_name} cannot be empty", context={"field": field_name})
        return stripped

    @staticmethod
    def validate_audio_type(content_type: Optional[str], allowed_types: Iterable[str]) -> str:
        """Validate an uploaded file's declared MIME type.

        Args:
            content_type: MIME type declared by the client
            allowed_types: Accepted MIME types

        Returns:
            The normalised content type (parameters stripped, lower-cased)

        Raises:
            InvalidUploadError: If the type is not allowed
        """
        normalised = (content_type or "").split(";", 1)[0].strip().lower()
        allowed = [t.lower() for t in allowed_types]
        if normalised not in allowed:
            logger.warning("upload_type_rejected", content_type=content_type)
            raise InvalidUploadError(
                "Invalid file type. Only audio files are allowed.",
                context={"content_type": content_type, "allowed": allowed},
            )
        return normalised

    @staticmethod
    def validate_upload_size(size_bytes: int, max_bytes: int) -> int:
        """Validate an uploaded payload is non-empty and within *max_bytes*.

        Raises:
            InvalidUploadError: If the size is out of range
        """
        if size_bytes <= 0:
            raise InvalidUploadError("Uploaded audio file is empty")

        if size_bytes > max_bytes:
            logger.warning("upload_too_large", size_bytes=size_bytes, max_bytes=max_bytes)
            raise InvalidUploadError(
                f"File too large (max {max_bytes} bytes)",
                context={"size_bytes": size_bytes, "max_bytes": max_bytes},
            )

        return size_bytes

    @staticmethod
    def safe_upload_name(filename: Optional[str], max_length: int = 100) -> str:
        """File-system safe version of a client-supplied name.

        Directory parts are dropped, anything outside ``[A-Za-z0-9._-]``
        becomes ``_`` and leading dots are removed. Never raises; an unusable
        name becomes ``"upload"``.
        """
        base = re.split(r"[\\/]", filename or "")[-1]
        cleaned = UNSAFE_NAME_CHARS.sub("_", base).lstrip(".")
        if not cleaned.strip("_"):
            return "upload"
        if len(cleaned) > max_length:
            stem, dot, ext = cleaned.rpartition(".")
            if dot and 0 < len(ext) < max_length:
                cleaned = stem[: max_length - len(ext) - 1] + "." + ext
            else:
                cleaned = cleaned[:max_length]
        return cleaned
