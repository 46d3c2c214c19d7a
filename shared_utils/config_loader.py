from pydantic_settings import BaseSettings
from pydantic import field_validator, ConfigDict
from functools import lru_cache
from typing import List, Optional
import json
import logging
import boto3
from botocore.exceptions import BotoCoreError, ClientError

from shared_utils.constants import AudioFormats, Defaults, Environment, LLMProvider, ModelIDs

logger = logging.getLogger(__name__)

SECRET_KEY_FIELD = "gemini_api_key"


def get_secret_from_aws(secret_name: str, region: str = Defaults.AWS_REGION) -> str:
    """Read the Gemini key from Secrets Manager; ``""`` when unavailable.

    The secret may hold the bare key or a JSON object with a
    ``gemini_api_key`` field.
    """
    try:
        client = boto3.client("secretsmanager", region_name=region)
        secret_string = client.get_secret_value(SecretId=secret_name).get("SecretString")
    except (BotoCoreError, ClientError) as e:
        logger.warning("gemini_secret_unavailable secret=%s error=%s", secret_name, e)
        return ""

    if not secret_string:
        return ""
    if not secret_string.lstrip().startswith("{"):
        return secret_string.strip()
    try:
        return json.loads(secret_string).get(SECRET_KEY_FIELD, "")
    except ValueError:
        logger.warning("gemini_secret_malformed secret=%s", secret_name)
        return ""


class Settings(BaseSettings):
    """Application configuration with environment variable precedence.

    Precedence: 1) Environment Variables > 2) .env file > 3) Class defaults

    The Gemini API key is deliberately optional: a missing key surfaces as an
    upstream authorization failure on the first model call.
    """
    # Application metadata
    app_name: str = "Meeting Insights"
    app_version: str = Defaults.APP_VERSION
    app_description: str = "Audio meeting transcription and analysis backend"
    environment: str = "development"
    log_level: str = "INFO"

    # HTTP server
    api_host: str = "0.0.0.0"
    port: int = Defaults.PORT
    cors_origins: List[str] = ["*"]

    # LLM Configuration
    llm_provider: str = LLMProvider.GEMINI.value
    gemini_api_key: Optional[str] = None
    gemini_secret_name: Optional[str] = None
    gemini_model: str = ModelIDs.GEMINI_2_5_PRO
    gemini_timeout_seconds: float = Defaults.REQUEST_TIMEOUT
    aws_region: str = Defaults.AWS_REGION

    # Upstream call pacing / retry
    analysis_delay_seconds: float = Defaults.ANALYSIS_DELAY_SECONDS
    upstream_max_attempts: int = Defaults.MAX_RETRIES
    upstream_retry_wait_min: float = Defaults.RETRY_WAIT_MIN_SECONDS
    upstream_retry_wait_max: float = Defaults.RETRY_WAIT_MAX_SECONDS

    # Prompting
    output_language: str = Defaults.OUTPUT_LANGUAGE

    # Uploads
    max_upload_bytes: int = Defaults.MAX_UPLOAD_BYTES
    allowed_audio_types: List[str] = list(AudioFormats.ALLOWED_MIME_TYPES)
    upload_dir: Optional[str] = None

    # Meetings listing
    meeting_summary_preview_chars: int = Defaults.SUMMARY_PREVIEW_CHARS

    # Rate limiting (slowapi)
    rate_limit_enabled: bool = True
    process_audio_rate_limit: str = "10/minute"
    chat_rate_limit: str = "30/minute"

    model_config = ConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    @field_validator('llm_provider')
    @classmethod
    def validate_llm_provider(cls, v: str) -> str:
        """Validate LLM provider is supported."""
        valid_providers = {p.value for p in LLMProvider}
        if v.lower() not in valid_providers:
            raise ValueError(f"llm_provider must be one of {valid_providers}, got {v}")
        return v.lower()

    @field_validator('environment')
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment is recognized."""
        valid_envs = {e.value for e in Environment}
        if v.lower() not in valid_envs:
            raise ValueError(f"environment must be one of {valid_envs}, got {v}")
        return v.lower()

    @field_validator('upstream_max_attempts')
    @classmethod
    def validate_max_attempts(cls, v: int) -> int:
        """At least one attempt is always made."""
        if v < 1:
            raise ValueError(f"upstream_max_attempts must be >= 1, got {v}")
        return v

    @field_validator('analysis_delay_seconds', 'upstream_retry_wait_min', 'upstream_retry_wait_max')
    @classmethod
    def validate_non_negative(cls, v: float) -> float:
        """Delays cannot be negative."""
        if v < 0:
            raise ValueError(f"delay must be >= 0, got {v}")
        return v

    @property
    def gemini_configured(self) -> bool:
        """True when an API key is available (not validated against Gemini)."""
        return bool(self.gemini_api_key)


@lru_cache()
def get_settings() -> Settings:
    """Load and cache application settings.

    If GEMINI_SECRET_NAME is provided and no GEMINI_API_KEY is set, fetches
    the key from AWS Secrets Manager.

    Returns:
        Validated Settings instance

    Raises:
        ValueError: If settings are invalid
    """
    settings = Settings()

    if not settings.gemini_api_key and settings.gemini_secret_name:
        secret_key = get_secret_from_aws(settings.gemini_secret_name, settings.aws_region)
        if secret_key:
            settings.gemini_api_key = secret_key
            logger.debug("fetched_gemini_key_from_secrets_manager")

    # Log loaded configuration (sensitive values masked)
    logger.info(
        "configuration_loaded environment=%s model=%s gemini_configured=%s",
        settings.environment,
        settings.gemini_model,
        settings.gemini_configured,
    )

    return settings
