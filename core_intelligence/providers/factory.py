"""
Factory for creating configured model gateways.
Handles provider instantiation with dependency injection.
"""

from typing import Optional
import logging

from core_intelligence.providers import ModelGatewayBase
from core_intelligence.providers.gemini_gateway import GeminiModelGateway
from core_intelligence.providers.retrying_gateway import RetryingModelGateway
from shared_utils.config_loader import Settings, get_settings
from shared_utils.constants import LLMProvider, LogScope
from shared_utils.error_handler import ConfigurationError


logger = logging.getLogger(__name__)


class ModelGatewayFactory:
    """Factory for creating model gateways."""

    @staticmethod
    def create(settings: Optional[Settings] = None) -> ModelGatewayBase:
        """Create the configured provider gateway (without retries).

        Returns:
            Initialized gateway.

        Raises:
            ConfigurationError: If the provider is unknown.
        """
        settings = settings or get_settings()
        llm_provider = settings.llm_provider

        logger.info(
            "Creating model gateway",
            extra={"scope": LogScope.CONFIG, "provider": llm_provider}
        )

        if llm_provider == LLMProvider.GEMINI.value:
            gateway = GeminiModelGateway(
                model_id=settings.gemini_model,
                api_key=settings.gemini_api_key,
                timeout_seconds=settings.gemini_timeout_seconds,
            )
            gateway.initialize()
            return gateway

        logger.error(
            "Failed to create model gateway",
            extra={"scope": LogScope.CONFIG, "provider": llm_provider}
        )
        raise ConfigurationError(
            f"Unknown LLM provider: {llm_provider}",
            context={"provider": llm_provider},
        )

    @staticmethod
    def create_with_retries(settings: Optional[Settings] = None) -> RetryingModelGateway:
        """Create the configured gateway wrapped in the retry policy."""
        settings = settings or get_settings()
        return RetryingModelGateway(
            ModelGatewayFactory.create(settings),
            max_attempts=settings.upstream_max_attempts,
            wait_min=settings.upstream_retry_wait_min,
            wait_max=settings.upstream_retry_wait_max,
        )
