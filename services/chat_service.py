"""
ChatService: answers questions about a processed meeting.

Looks the meeting up in the MeetingStorePort; when found, its transcription,
summary and tasks are prepended as context. The model's reply is returned
verbatim (no JSON parsing).
"""

from __future__ import annotations

from typing import Optional

from core_intelligence.prompts.builders import build_chat_prompt
from domain.models import PromptPart
from ports.meeting_store import MeetingStorePort
from ports.model_gateway import ModelGatewayPort
from shared_utils.constants import Defaults, LogScope
from shared_utils.logging_utils import ContextualLogger
from shared_utils.validation import InputValidator


logger = ContextualLogger(scope=LogScope.CHAT)


class ChatService:
    """Stateless chat context assembler."""

    def __init__(
        self,
        *,
        gateway: ModelGatewayPort,
        meeting_store: MeetingStorePort,
        language: str = Defaults.OUTPUT_LANGUAGE,
    ) -> None:
        self._gateway = gateway
        self._store = meeting_store
        self._language = language

    async def answer(self, question: str, meeting_id: Optional[str] = None) -> str:
        """Forward *question* (with meeting context when resolvable) to the model.

        Raises:
            ValidationError: If the question is empty.
            UpstreamUnavailableError / UpstreamRejectedError: On gateway failure.
        """
        InputValidator.validate_non_empty_string(question, "message")

        log = logger.bind(meeting_id=meeting_id)
        meeting = self._store.get(meeting_id) if meeting_id else None
        if meeting_id and meeting is None:
            log.info("chat_meeting_not_found")

        prompt = build_chat_prompt(question, meeting=meeting, language=self._language)
        log.info(
            "chat_started",
            with_context=meeting is not None,
            question_len=len(question),
        )

        reply = await self._gateway.invoke([PromptPart.from_text(prompt)])

        log.info("chat_completed", reply_len=len(reply))
        return reply
