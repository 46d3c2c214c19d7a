"""
Root conftest.py: shared fixtures for the entire test suite.

Guidelines:
    • No __init__.py in test sub-directories (avoids shadowing root packages).
    • pytest.ini_options lives in pyproject.toml with pythonpath=["."].
    • Every test gets a fresh meeting store and a scripted fake gateway;
      nothing talks to Gemini or AWS.
"""

import json
from typing import Callable, List, Sequence, Union

import pytest
from fastapi.testclient import TestClient

from adapters.in_memory_meeting_store import InMemoryMeetingStoreAdapter
from adapters.temp_upload_store import TempUploadStoreAdapter
from core_intelligence.engine.strategies.pacing import NoDelayPacing
from domain.models import PromptPart
from shared_utils.config_loader import Settings
from shared_utils.di_container import DIContainer


# ---------------------------------------------------------------------------
# Canned model replies
# ---------------------------------------------------------------------------

SAMPLE_TRANSCRIPTION = (
    "Speaker 1: Welcome to the weekly sync.\n"
    "Speaker 2: The migration finished on Tuesday.\n"
    "Speaker 1: Great. Bob, please update the runbook by Friday."
)

SUMMARY_REPLY = {
    "overview": "Weekly sync covering the finished migration and runbook updates.",
    "duration": "5 minutes",
    "participants": ["Speaker 1", "Speaker 2"],
    "keyPoints": [
        {"title": "Migration", "description": "Finished on Tuesday", "importance": "high"},
    ],
    "decisions": [
        {"decision": "Update runbook", "rationale": "Reflect new setup", "responsible": "Bob"},
    ],
    "insights": [],
    "outcomes": ["Migration closed"],
    "nextSteps": ["Runbook update"],
}

TASKS_REPLY = {
    "tasks": [
        {
            "id": 1,
            "task": "Update the runbook",
            "assignedTo": "Bob",
            "deadline": "Friday",
            "priority": "high",
            "status": "pending",
            "context": "After migration",
            "dependencies": [],
        },
    ],
    "followUpItems": ["Check runbook next week"],
}

IMPROVEMENTS_REPLY = {
    "effectivenessScore": 8,
    "scoreRationale": "Short and focused",
    "strengths": [{"area": "Focus", "description": "Stayed on topic"}],
    "improvements": {"structure": ["Share an agenda"]},
    "recommendations": [
        {"priority": "low", "recommendation": "Timebox updates", "impact": "Shorter meetings"},
    ],
    "bestPractices": ["Send notes afterwards"],
}

FACT_CHECK_REPLY = {
    "transcriptionQuality": {"rating": "good", "score": 9, "issues": []},
    "potentialErrors": [],
    "factualClaims": [
        {"claim": "Migration finished on Tuesday", "speaker": "Speaker 2"},
    ],
    "inconsistencies": [],
    "dataPoints": [],
    "technicalTerms": [],
    "recommendations": [],
}

ANALYSIS_REPLIES = [
    json.dumps(SUMMARY_REPLY),
    json.dumps(TASKS_REPLY),
    json.dumps(IMPROVEMENTS_REPLY),
    json.dumps(FACT_CHECK_REPLY),
]


# ---------------------------------------------------------------------------
# Fake model gateway
# ---------------------------------------------------------------------------

Reply = Union[str, BaseException]


class FakeGateway:
    """Scripted ModelGatewayPort: pops one reply per call, records every call."""

    def __init__(self, replies: Sequence[Reply] = ()) -> None:
        self.replies: List[Reply] = list(replies)
        self.calls: List[List[PromptPart]] = []

    async def invoke(self, parts: Sequence[PromptPart]) -> str:
        self.calls.append(list(parts))
        if not self.replies:
            raise AssertionError("FakeGateway received more calls than scripted replies")
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return reply

    @property
    def prompts(self) -> List[str]:
        """Text of the first part of every call."""
        return [call[0].text for call in self.calls]


@pytest.fixture()
def make_gateway() -> Callable[..., FakeGateway]:
    """Factory for scripted gateways: ``make_gateway("transcript", "{...}")``."""
    return lambda *replies: FakeGateway(replies)


@pytest.fixture()
def happy_gateway() -> FakeGateway:
    """Gateway scripted for one successful process-audio run."""
    return FakeGateway([SAMPLE_TRANSCRIPTION, *ANALYSIS_REPLIES])


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------

@pytest.fixture()
def meeting_store() -> InMemoryMeetingStoreAdapter:
    """A fresh, empty meeting store."""
    return InMemoryMeetingStoreAdapter()


@pytest.fixture()
def no_delay_pacing() -> NoDelayPacing:
    return NoDelayPacing()


@pytest.fixture()
def upload_dir(tmp_path):
    """Isolated staging directory so tests can assert it is left empty."""
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture()
def test_settings(upload_dir) -> Settings:
    """Settings independent of the developer's environment and .env file."""
    return Settings(
        _env_file=None,
        gemini_api_key="test-key",
        gemini_secret_name=None,
        analysis_delay_seconds=0,
        upload_dir=str(upload_dir),
        environment="development",
        log_level="WARNING",
    )


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------

@pytest.fixture()
def build_container(test_settings, meeting_store, no_delay_pacing, upload_dir):
    """Factory building a DIContainer around a given gateway."""
    def _build(gateway) -> DIContainer:
        return DIContainer(
            test_settings,
            model_gateway=gateway,
            meeting_store=meeting_store,
            upload_store=TempUploadStoreAdapter(upload_dir=str(upload_dir)),
            pacing=no_delay_pacing,
        )
    return _build


@pytest.fixture()
def make_client(build_container):
    """Factory returning a TestClient for an app wired to *gateway*."""
    from api_service.src.main import create_app, limiter

    limiter.reset()

    def _make(gateway) -> TestClient:
        return TestClient(create_app(build_container(gateway)))
    return _make
