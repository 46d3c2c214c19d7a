"""
Application error taxonomy and response bodies.

Subclasses declare their ``default_code`` and ``default_status``; handlers turn
any exception into the ``{error, details, code}`` body the HTTP layer returns.
"""

from typing import Any, ClassVar, Dict, Optional
import logging

from shared_utils.constants import ErrorCode, LogScope
from shared_utils.logging_utils import get_scoped_logger


class AppException(Exception):
    """Base exception for application errors."""

    default_code: ClassVar[str] = ErrorCode.INTERNAL_ERROR.value
    default_status: ClassVar[int] = 500

    def __init__(
        self,
        error_code: Optional[str] = None,
        message: str = "",
        context: Optional[Dict[str, Any]] = None,
        http_status: Optional[int] = None,
    ):
        self.error_code = error_code or self.default_code
        self.message = message
        self.context = context or {}
        self.http_status = http_status or self.default_status
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Response body: ``{error, code}`` plus ``details`` when context exists."""
        body: Dict[str, Any] = {"error": self.message, "code": self.error_code}
        if self.context:
            body["details"] = self.context
        return body


class _MessageError(AppException):
    """Errors built from a message and optional context only."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, context=context)


class ValidationError(_MessageError):
    """Malformed request input."""
    default_code = ErrorCode.INVALID_INPUT.value
    default_status = 400


class InvalidUploadError(_MessageError):
    """Rejected upload: missing file, disallowed type, empty or oversized."""
    default_code = ErrorCode.INVALID_UPLOAD.value
    default_status = 400


class ConfigurationError(_MessageError):
    default_code = ErrorCode.INVALID_CONFIG.value


class TranscriptionFailedError(_MessageError):
    """Transcription produced no text or its upstream call failed."""
    default_code = ErrorCode.TRANSCRIPTION_FAILED.value


class StorageError(_MessageError):
    default_code = ErrorCode.STORAGE_ERROR.value


class AnalysisStepFailedError(AppException):
    """One post-transcription analysis failed.

    Logged, never propagated: the pipeline substitutes the step's error shape.
    """
    default_code = ErrorCode.ANALYSIS_STEP_FAILED.value

    def __init__(self, kind: str, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, context={**(context or {}), "kind": kind})


class UpstreamUnavailableError(AppException):
    """The model provider could not be reached (network, DNS, timeout)."""
    default_code = ErrorCode.UPSTREAM_UNAVAILABLE.value

    def __init__(self, service: str, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=f"{service} unavailable: {message}",
            context={**(context or {}), "service": service},
        )


class UpstreamRejectedError(AppException):
    """The model provider answered with a non-success status."""
    default_code = ErrorCode.UPSTREAM_REJECTED.value

    def __init__(
        self,
        service: str,
        message: str,
        upstream_status: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.upstream_status = upstream_status
        ctx = {**(context or {}), "service": service}
        if upstream_status is not None:
            ctx["upstream_status"] = upstream_status
        super().__init__(message=f"{service} rejected the request: {message}", context=ctx)


class MeetingNotFoundError(AppException):
    default_code = ErrorCode.MEETING_NOT_FOUND.value
    default_status = 404

    def __init__(self, meeting_id: str):
        super().__init__(message="Meeting not found", context={"meeting_id": meeting_id})


def log_exception(
    exc: Exception,
    scope: str = LogScope.ERROR_HANDLER,
    logger: Optional[logging.Logger] = None
) -> None:
    """Log *exc* with its code and context (structlog scoped logger by default)."""
    if logger is None:
        logger = get_scoped_logger(scope)

    if isinstance(exc, AppException):
        logger.error(
            "app_exception",
            error_code=exc.error_code,
            message=exc.message,
            http_status=exc.http_status,
            context=exc.context,
        )
    else:
        logger.error(
            "unexpected_exception",
            error_type=type(exc).__name__,
            message=str(exc),
            exc_info=exc,
        )


def handle_error(
    exc: Exception,
    headline: str,
    scope: str = LogScope.ERROR_HANDLER,
    default_error_code: str = ErrorCode.INTERNAL_ERROR.value
) -> Dict[str, Any]:
    """Log *exc* and build the ``{error, details, code}`` response body.

    Args:
        exc: Exception to handle
        headline: Short user-facing summary placed under ``error``
        scope: Log scope
        default_error_code: Code reported for exceptions outside the taxonomy

    Returns:
        Response body dictionary
    """
    log_exception(exc, scope)

    if isinstance(exc, AppException):
        return {"error": headline, "details": exc.message, "code": exc.error_code}
    return {"error": headline, "details": str(exc), "code": default_error_code}
