"""
Dependency injection container for managing application dependencies.
Centralizes provider creation and lifecycle management.

One container is built per application (see ``api_service.src.main.create_app``)
and passed by reference to request handlers, so every app instance, and every
test, owns a fresh MeetingStore.
"""

from typing import Optional
import logging

from ports.meeting_store import MeetingStorePort
from ports.model_gateway import ModelGatewayPort
from ports.pacing import PacingPort
from ports.upload_store import UploadStorePort
from shared_utils.config_loader import Settings, get_settings
from shared_utils.constants import LogScope


logger = logging.getLogger(__name__)


class DIContainer:
    """Lazily builds and caches the application's collaborators.

    Any collaborator may be supplied up front (tests inject fakes); the rest
    are created from settings on first access.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        model_gateway: Optional[ModelGatewayPort] = None,
        meeting_store: Optional[MeetingStorePort] = None,
        upload_store: Optional[UploadStorePort] = None,
        pacing: Optional[PacingPort] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._model_gateway = model_gateway
        self._meeting_store = meeting_store
        self._upload_store = upload_store
        self._pacing = pacing
        self._analysis_service: Optional[object] = None
        self._chat_service: Optional[object] = None

    def reset(self):
        """Drop every cached collaborator (the meeting store included)."""
        self._model_gateway = None
        self._meeting_store = None
        self._upload_store = None
        self._pacing = None
        self._analysis_service = None
        self._chat_service = None

    def get_model_gateway(self) -> ModelGatewayPort:
        """Get or create the retrying model gateway (lazy).

        Raises:
            RuntimeError: If gateway initialization fails.
        """
        if self._model_gateway is None:
            from core_intelligence.providers.factory import ModelGatewayFactory

            logger.info(
                "Initializing model gateway",
                extra={"scope": LogScope.CONFIG}
            )
            try:
                self._model_gateway = ModelGatewayFactory.create_with_retries(self.settings)
            except Exception as e:
                logger.error(
                    "Failed to initialize model gateway",
                    extra={"scope": LogScope.CONFIG, "error": str(e)}
                )
                raise RuntimeError(f"Model gateway initialization failed: {e}") from e
        return self._model_gateway

    def get_meeting_store(self) -> MeetingStorePort:
        """Get or create the in-memory meeting store."""
        if self._meeting_store is None:
            from adapters.in_memory_meeting_store import InMemoryMeetingStoreAdapter

            self._meeting_store = InMemoryMeetingStoreAdapter(
                preview_chars=self.settings.meeting_summary_preview_chars,
            )
            logger.info("Initialized InMemoryMeetingStoreAdapter")
        return self._meeting_store

    def get_upload_store(self) -> UploadStorePort:
        """Get or create the temporary upload store."""
        if self._upload_store is None:
            from adapters.temp_upload_store import TempUploadStoreAdapter

            self._upload_store = TempUploadStoreAdapter(upload_dir=self.settings.upload_dir)
            logger.info("Initialized TempUploadStoreAdapter")
        return self._upload_store

    def get_pacing(self) -> PacingPort:
        """Get or create the fixed-delay pacing strategy."""
        if self._pacing is None:
            from core_intelligence.engine.strategies.pacing import FixedDelayPacing

            self._pacing = FixedDelayPacing(self.settings.analysis_delay_seconds)
        return self._pacing

    def get_analysis_service(self):
        """Get or create AnalysisService."""
        if self._analysis_service is None:
            from services.analysis_service import AnalysisService

            self._analysis_service = AnalysisService(
                gateway=self.get_model_gateway(),
                meeting_store=self.get_meeting_store(),
                pacing=self.get_pacing(),
                language=self.settings.output_language,
            )
            logger.info("Initialized AnalysisService")
        return self._analysis_service

    def get_chat_service(self):
        """Get or create ChatService."""
        if self._chat_service is None:
            from services.chat_service import ChatService

            self._chat_service = ChatService(
                gateway=self.get_model_gateway(),
                meeting_store=self.get_meeting_store(),
                language=self.settings.output_language,
            )
            logger.info("Initialized ChatService")
        return self._chat_service

    def check_configuration(self) -> bool:
        """Report whether the model provider is configured.

        Never raises: a missing API key only surfaces when the first request
        reaches the provider.
        """
        configured = self.settings.gemini_configured
        if not configured:
            logger.warning(
                "Gemini API key missing; model calls will be rejected",
                extra={"scope": LogScope.CONFIG}
            )
        return configured
