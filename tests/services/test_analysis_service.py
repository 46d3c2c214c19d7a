"""
Tests for services.analysis_service.

Uses the scripted FakeGateway from conftest; pacing is a zero-delay strategy
or an AsyncMock when call counts matter.
"""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from core_intelligence.prompts.builders import PROMPT_BUILDERS
from domain.models import AnalysisKind, ParseStatus
from services.analysis_service import (
    AnalysisService,
    MeetingIdGenerator,
    resolve_audio_mime_type,
)
from shared_utils.error_handler import (
    TranscriptionFailedError,
    UpstreamRejectedError,
    UpstreamUnavailableError,
)


TRANSCRIPT = "Speaker 1: Let's ship on Friday."


def _service(gateway, store, pacing=None, **kwargs) -> AnalysisService:
    if pacing is None:
        pacing = AsyncMock()
    return AnalysisService(gateway=gateway, meeting_store=store, pacing=pacing, **kwargs)


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


class TestResolveAudioMimeType:
    @pytest.mark.parametrize("filename, expected", [
        ("call.mp3", "audio/mp3"),
        ("call.WAV", "audio/wav"),
        ("call.m4a", "audio/mp4"),
        ("call.mp4", "audio/mp4"),
        ("call.webm", "audio/webm"),
        ("call.ogg", "audio/ogg"),
        ("call.flac", "audio/flac"),
    ])
    def test_extension_wins(self, filename: str, expected: str) -> None:
        assert resolve_audio_mime_type(filename, "audio/mpeg") == expected

    def test_falls_back_to_content_type(self) -> None:
        assert resolve_audio_mime_type("recording", "audio/webm") == "audio/webm"

    def test_last_resort(self) -> None:
        assert resolve_audio_mime_type("recording") == "audio/mpeg"


class TestMeetingIdGenerator:
    def test_millisecond_timestamp(self) -> None:
        assert MeetingIdGenerator(clock=lambda: 1700000000.5)() == "1700000000500"

    def test_strictly_increasing_on_same_clock(self) -> None:
        gen = MeetingIdGenerator(clock=lambda: 1.0)
        assert [gen(), gen(), gen()] == ["1000", "1001", "1002"]


# ---------------------------------------------------------------------------
# process_audio: happy path
# ---------------------------------------------------------------------------


class TestProcessAudio:
    def test_full_pipeline(self, happy_gateway, meeting_store) -> None:
        service = _service(happy_gateway, meeting_store)

        meeting = asyncio.run(service.process_audio(b"RIFF", "audio/wav", "standup.wav"))

        assert meeting.filename == "standup.wav"
        assert meeting.transcription.startswith("Speaker 1:")
        assert meeting.summary.participants == ["Speaker 1", "Speaker 2"]
        assert meeting.tasks.total_tasks == 1
        assert meeting.improvements.effectiveness_score == 8
        assert meeting.fact_check.transcription_quality.rating == "good"
        assert meeting.timestamp.endswith("Z")
        assert set(meeting.analysis_outcomes.values()) == {ParseStatus.PARSED}
        assert meeting_store.get(meeting.id) == meeting

    def test_calls_are_sequential_and_ordered(self, happy_gateway, meeting_store) -> None:
        asyncio.run(_service(happy_gateway, meeting_store).process_audio(b"RIFF", "audio/wav", "a.wav"))

        assert len(happy_gateway.calls) == 5
        first = happy_gateway.calls[0]
        assert first[1].is_binary
        assert first[1].data == b"RIFF"
        assert first[1].mime_type == "audio/wav"
        assert "comprehensive summary" in happy_gateway.prompts[1]
        assert "extract all tasks" in happy_gateway.prompts[2]
        assert "recommendations for improvement" in happy_gateway.prompts[3]
        assert "fact-checking" in happy_gateway.prompts[4]

    def test_pacing_between_steps_not_after_last(self, happy_gateway, meeting_store) -> None:
        pacing = AsyncMock()
        asyncio.run(_service(happy_gateway, meeting_store, pacing).process_audio(b"x", "audio/wav", "a.wav"))

        assert pacing.pause.await_count == 3
        completed = [c.args[0] for c in pacing.pause.await_args_list]
        assert completed == [AnalysisKind.SUMMARY, AnalysisKind.TASKS, AnalysisKind.IMPROVEMENTS]

    def test_summary_builder_receives_exact_transcription(self, make_gateway, meeting_store) -> None:
        summary_builder = MagicMock(return_value="summary prompt")
        builders = {**PROMPT_BUILDERS, AnalysisKind.SUMMARY: summary_builder}
        gateway = make_gateway(TRANSCRIPT, "{}", "{}", "{}", "{}")

        asyncio.run(
            _service(gateway, meeting_store, prompt_builders=builders)
            .process_audio(b"x", "audio/wav", "a.wav")
        )

        summary_builder.assert_called_once_with(TRANSCRIPT, language="English")
        assert gateway.prompts[1] == "summary prompt"

    def test_configured_language_forwarded(self, make_gateway, meeting_store) -> None:
        gateway = make_gateway(TRANSCRIPT, "{}", "{}", "{}", "{}")
        asyncio.run(
            _service(gateway, meeting_store, language="French").process_audio(b"x", "audio/wav", "a.wav")
        )
        assert all("IN FRENCH ONLY" in prompt for prompt in gateway.prompts[1:])

    def test_ids_unique_across_meetings(self, make_gateway, meeting_store) -> None:
        gateway = make_gateway(*([TRANSCRIPT, "{}", "{}", "{}", "{}"] * 2))
        service = _service(gateway, meeting_store)

        first = asyncio.run(service.process_audio(b"x", "audio/wav", "a.wav"))
        second = asyncio.run(service.process_audio(b"x", "audio/wav", "b.wav"))

        assert first.id != second.id
        assert [v.id for v in meeting_store.list()] == [second.id, first.id]


# ---------------------------------------------------------------------------
# process_audio: transcription failure
# ---------------------------------------------------------------------------


class TestTranscriptionFailure:
    @pytest.mark.parametrize("reply", ["", "   \n"])
    def test_empty_transcription_is_fatal(self, make_gateway, meeting_store, reply: str) -> None:
        gateway = make_gateway(reply)

        with pytest.raises(TranscriptionFailedError, match="Failed to transcribe audio"):
            asyncio.run(_service(gateway, meeting_store).process_audio(b"x", "audio/wav", "a.wav"))

        assert len(meeting_store) == 0
        assert len(gateway.calls) == 1

    def test_upstream_error_is_fatal(self, make_gateway, meeting_store) -> None:
        gateway = make_gateway(UpstreamUnavailableError("Gemini", "dns failure"))

        with pytest.raises(TranscriptionFailedError) as exc_info:
            asyncio.run(_service(gateway, meeting_store).process_audio(b"x", "audio/wav", "a.wav"))

        assert "dns failure" in exc_info.value.message
        assert len(meeting_store) == 0


# ---------------------------------------------------------------------------
# process_audio: analysis degradation
# ---------------------------------------------------------------------------


GOOD = {
    AnalysisKind.SUMMARY: json.dumps({"overview": "Fine"}),
    AnalysisKind.TASKS: json.dumps({"tasks": [{"id": 1, "task": "x"}]}),
    AnalysisKind.IMPROVEMENTS: json.dumps({"effectivenessScore": 6}),
    AnalysisKind.FACT_CHECK: json.dumps({"transcriptionQuality": {"rating": "fair", "score": 70}}),
}


class TestAnalysisDegradation:
    @pytest.mark.parametrize("broken", list(AnalysisKind))
    def test_malformed_output_only_affects_its_kind(self, make_gateway, meeting_store, broken) -> None:
        replies = [GOOD[k] if k is not broken else "not json at all" for k in AnalysisKind]
        gateway = make_gateway(TRANSCRIPT, *replies)

        meeting = asyncio.run(_service(gateway, meeting_store).process_audio(b"x", "audio/wav", "a.wav"))

        assert meeting.analysis_outcomes[broken] is ParseStatus.FALLBACK
        for kind in AnalysisKind:
            if kind is not broken:
                assert meeting.analysis_outcomes[kind] is ParseStatus.PARSED

        if broken is AnalysisKind.SUMMARY:
            assert meeting.summary.overview == "Failed to parse summary"
        else:
            assert meeting.summary.overview == "Fine"
        if broken is AnalysisKind.TASKS:
            assert meeting.tasks.tasks == []
        else:
            assert meeting.tasks.total_tasks == 1
        if broken is AnalysisKind.IMPROVEMENTS:
            assert meeting.improvements.score_rationale == "Unable to analyze"
            assert meeting.improvements.effectiveness_score == 0
        else:
            assert meeting.improvements.effectiveness_score == 6
        if broken is AnalysisKind.FACT_CHECK:
            assert meeting.fact_check.transcription_quality.rating == "unknown"
        else:
            assert meeting.fact_check.transcription_quality.rating == "fair"

    def test_upstream_failure_in_step_continues(self, make_gateway, meeting_store) -> None:
        gateway = make_gateway(
            TRANSCRIPT,
            GOOD[AnalysisKind.SUMMARY],
            UpstreamRejectedError("Gemini", "quota", upstream_status=429),
            GOOD[AnalysisKind.IMPROVEMENTS],
            GOOD[AnalysisKind.FACT_CHECK],
        )

        meeting = asyncio.run(_service(gateway, meeting_store).process_audio(b"x", "audio/wav", "a.wav"))

        assert meeting.analysis_outcomes[AnalysisKind.TASKS] is ParseStatus.FAILED
        assert meeting.tasks.error == "Failed to extract tasks"
        assert "quota" in meeting.tasks.message
        assert meeting.improvements.effectiveness_score == 6
        assert len(gateway.calls) == 5
        assert meeting_store.get(meeting.id) == meeting

    def test_every_step_failing_still_stores_meeting(self, make_gateway, meeting_store) -> None:
        down = UpstreamUnavailableError("Gemini", "down")
        gateway = make_gateway(TRANSCRIPT, down, down, down, down)

        meeting = asyncio.run(_service(gateway, meeting_store).process_audio(b"x", "audio/wav", "a.wav"))

        assert set(meeting.analysis_outcomes.values()) == {ParseStatus.FAILED}
        assert meeting.summary.error == "Failed to generate summary"
        assert meeting.fact_check.error == "Failed to perform fact-check"
        assert len(meeting_store) == 1
