"""
Tests for services.chat_service.
"""

import asyncio

import pytest

from domain.models import Meeting, Summary
from services.chat_service import ChatService
from shared_utils.error_handler import UpstreamUnavailableError, ValidationError


DIRECTIVE = "\n\nIMPORTANT: Respond in ENGLISH only."


def _meeting() -> Meeting:
    return Meeting(
        id="42",
        filename="a.wav",
        timestamp="2024-01-01T00:00:00.000Z",
        transcription="Ann: budget approved",
        summary=Summary(overview="Budget meeting"),
    )


class TestChatService:
    def test_without_meeting_sends_question_only(self, make_gateway, meeting_store) -> None:
        gateway = make_gateway("Hello!")
        service = ChatService(gateway=gateway, meeting_store=meeting_store)

        assert asyncio.run(service.answer("Hi there")) == "Hello!"
        assert gateway.prompts == ["Hi there" + DIRECTIVE]

    def test_unknown_meeting_sends_raw_question(self, make_gateway, meeting_store) -> None:
        gateway = make_gateway("No idea")
        service = ChatService(gateway=gateway, meeting_store=meeting_store)

        asyncio.run(service.answer("What was decided?", meeting_id="does-not-exist"))

        assert gateway.prompts == ["What was decided?" + DIRECTIVE]

    def test_known_meeting_adds_context(self, make_gateway, meeting_store) -> None:
        meeting_store.put(_meeting())
        gateway = make_gateway("The budget was approved.")
        service = ChatService(gateway=gateway, meeting_store=meeting_store)

        reply = asyncio.run(service.answer("What was decided?", meeting_id="42"))

        prompt = gateway.prompts[0]
        assert reply == "The budget was approved."
        assert "Transcription: Ann: budget approved" in prompt
        assert "Budget meeting" in prompt
        assert prompt.endswith("What was decided?" + DIRECTIVE)

    def test_question_forwarded_as_given(self, make_gateway, meeting_store) -> None:
        gateway = make_gateway("ok")
        service = ChatService(gateway=gateway, meeting_store=meeting_store)

        asyncio.run(service.answer("  Who owns the runbook?\n"))

        assert gateway.prompts == ["  Who owns the runbook?\n" + DIRECTIVE]

    def test_reply_returned_verbatim(self, make_gateway, meeting_store) -> None:
        raw = '```json\n{"not": "parsed"}\n```'
        service = ChatService(gateway=make_gateway(raw), meeting_store=meeting_store)
        assert asyncio.run(service.answer("q")) == raw

    @pytest.mark.parametrize("question", ["", "   "])
    def test_empty_question_rejected(self, make_gateway, meeting_store, question: str) -> None:
        gateway = make_gateway()
        service = ChatService(gateway=gateway, meeting_store=meeting_store)

        with pytest.raises(ValidationError):
            asyncio.run(service.answer(question))
        assert gateway.calls == []

    def test_upstream_error_propagates(self, make_gateway, meeting_store) -> None:
        service = ChatService(
            gateway=make_gateway(UpstreamUnavailableError("Gemini", "down")),
            meeting_store=meeting_store,
        )
        with pytest.raises(UpstreamUnavailableError):
            asyncio.run(service.answer("q"))
