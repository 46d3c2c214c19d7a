"""
Constants management.
Centralized configuration for all magic values, model IDs, and defaults.
"""

from enum import Enum
from typing import Final, Tuple


class Environment(str, Enum):
    """Application environment."""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class LLMProvider(str, Enum):
    """Supported LLM providers."""
    GEMINI = "gemini"


# Model IDs
class ModelIDs:
    """Centralized model identifiers."""
    GEMINI_2_5_PRO: Final[str] = "gemini-2.5-pro"


# Default values
class Defaults:
    """Defaults shared by config and services."""
    APP_VERSION: Final[str] = "3.0"
    PORT: Final[int] = 3000
    ANALYSIS_DELAY_SECONDS: Final[float] = 1.0
    MAX_RETRIES: Final[int] = 3
    RETRY_WAIT_MIN_SECONDS: Final[float] = 1.0
    RETRY_WAIT_MAX_SECONDS: Final[float] = 10.0
    REQUEST_TIMEOUT: Final[float] = 300.0
    MAX_UPLOAD_BYTES: Final[int] = 50 * 1024 * 1024
    OUTPUT_LANGUAGE: Final[str] = "English"
    SUMMARY_PREVIEW_CHARS: Final[int] = 200
    AWS_REGION: Final[str] = "eu-west-2"
    FALLBACK_AUDIO_MIME: Final[str] = "audio/mpeg"


# Upload acceptance
class AudioFormats:
    """Accepted upload content types and extension → payload mime mapping."""
    ALLOWED_MIME_TYPES: Final[Tuple[str, ...]] = (
        "audio/mpeg",
        "audio/wav",
        "audio/mp3",
        "audio/m4a",
        "audio/webm",
        "audio/mp4",
        "audio/ogg",
        "audio/flac",
    )
    EXTENSION_MIME_TYPES: Final[dict] = {
        ".mp3": "audio/mp3",
        ".wav": "audio/wav",
        ".m4a": "audio/mp4",
        ".webm": "audio/webm",
        ".ogg": "audio/ogg",
        ".flac": "audio/flac",
        ".mp4": "audio/mp4",
    }


# Logging scopes
class LogScope:
    """Standardized logging scope names."""
    CONFIG = "config_loader"
    API = "api"
    PARSER = "response_parser"
    PROMPTS = "prompt_builder"
    VALIDATION = "validation"
    ERROR_HANDLER = "error_handler"
    PROVIDER = "provider"
    ADAPTER = "adapter"
    ANALYSIS = "analysis"
    CHAT = "chat"


# API endpoints and paths
class APIEndpoints:
    """API route definitions."""
    HEALTH = "/api/health"
    PROCESS_AUDIO = "/api/process-audio"
    CHAT = "/api/chat"
    MEETINGS = "/api/meetings"
    MEETING = "/api/meeting/{meeting_id}"


# Error codes
class ErrorCode(str, Enum):
    """Standardized error codes for consistency."""
    INVALID_CONFIG = "INVALID_CONFIG"
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_UPLOAD = "INVALID_UPLOAD"
    TRANSCRIPTION_FAILED = "TRANSCRIPTION_FAILED"
    ANALYSIS_STEP_FAILED = "ANALYSIS_STEP_FAILED"
    UPSTREAM_UNAVAILABLE = "UPSTREAM_UNAVAILABLE"
    UPSTREAM_REJECTED = "UPSTREAM_REJECTED"
    MEETING_NOT_FOUND = "MEETING_NOT_FOUND"
    STORAGE_ERROR = "STORAGE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# Capabilities advertised by the health probe
class Features:
    """Feature names reported by GET /api/health."""
    ADVERTISED: Final[Tuple[str, ...]] = (
        "transcription",
        "summary",
        "tasks",
        "improvements",
        "fact-check",
        "chat",
        "live-recording",
    )
