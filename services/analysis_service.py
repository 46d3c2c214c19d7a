"""
AnalysisService: orchestrates the audio → Meeting pipeline.

Flow:  audio bytes → transcription → summary → tasks → improvements →
fact-check → Meeting stored.

Calls are strictly sequential; the injected pacing strategy is awaited
between analysis calls (not after the last) to respect the provider's rate
limit. Only transcription failure is fatal: every analysis step that fails
upstream is replaced with its error-shaped object and the pipeline continues.

Depends only on ports (protocol interfaces), never on concrete adapters.
"""

from __future__ import annotations

import os
import threading
import time
from datetime import datetime, timezone
from typing import Callable, Dict, Mapping, Optional

from core_intelligence.parser.response_parser import ResponseParser
from core_intelligence.prompts.builders import PROMPT_BUILDERS, build_transcription_prompt
from domain.models import (
    AnalysisKind,
    Meeting,
    ParseResult,
    PromptPart,
)
from ports.meeting_store import MeetingStorePort
from ports.model_gateway import ModelGatewayPort
from ports.pacing import PacingPort
from shared_utils.constants import AudioFormats, Defaults, LogScope
from shared_utils.error_handler import (
    AnalysisStepFailedError,
    AppException,
    TranscriptionFailedError,
)
from shared_utils.logging_utils import get_scoped_logger, log_execution

logger = get_scoped_logger(LogScope.ANALYSIS)


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------

def resolve_audio_mime_type(filename: str, content_type: Optional[str] = None) -> str:
    """Mime type for the audio payload sent to the model.

    The file extension wins; the declared content type is the fallback and
    ``audio/mpeg`` the last resort.
    """
    ext = os.path.splitext(filename or "")[1].lower()
    if ext in AudioFormats.EXTENSION_MIME_TYPES:
        return AudioFormats.EXTENSION_MIME_TYPES[ext]
    return content_type or Defaults.FALLBACK_AUDIO_MIME


class MeetingIdGenerator:
    """Millisecond-timestamp ids, strictly increasing within the process."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._last = 0
        self._lock = threading.Lock()

    def __call__(self) -> str:
        with self._lock:
            candidate = int(self._clock() * 1000)
            self._last = max(candidate, self._last + 1)
            return str(self._last)


# ---------------------------------------------------------------------------
# AnalysisService
# ---------------------------------------------------------------------------

class AnalysisService:
    """Runs transcription plus the four analyses and stores the Meeting."""

    def __init__(
        self,
        *,
        gateway: ModelGatewayPort,
        meeting_store: MeetingStorePort,
        pacing: PacingPort,
        language: str = Defaults.OUTPUT_LANGUAGE,
        prompt_builders: Optional[Mapping[AnalysisKind, Callable[..., str]]] = None,
        id_generator: Optional[Callable[[], str]] = None,
    ) -> None:
        self._gateway = gateway
        self._store = meeting_store
        self._pacing = pacing
        self._language = language
        self._builders = prompt_builders or PROMPT_BUILDERS
        self._next_id = id_generator or MeetingIdGenerator()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @log_execution(scope=LogScope.ANALYSIS)
    async def process_audio(
        self,
        audio_bytes: bytes,
        mime_type: str,
        original_filename: str,
    ) -> Meeting:
        """Transcribe, analyse and store one recording.

        Raises:
            TranscriptionFailedError: If transcription errors or is empty.
                No Meeting is created in that case.
        """
        logger.info(
            "analysis_started",
            filename=original_filename,
            size_bytes=len(audio_bytes),
            mime_type=mime_type,
        )

        # 1. Transcription (fatal on failure)
        transcription = await self.transcribe(audio_bytes, mime_type)

        # 2. Analyses, sequential and paced
        results: Dict[AnalysisKind, ParseResult] = {}
        kinds = list(AnalysisKind)
        for index, kind in enumerate(kinds, start=1):
            logger.info("analysis_step_started", step=f"{index}/{len(kinds)}", kind=kind.value)
            results[kind] = await self.analyse(kind, transcription)
            if index < len(kinds):
                await self._pacing.pause(kind)

        # 3. Assemble + store
        meeting = Meeting(
            id=self._next_id(),
            filename=original_filename,
            timestamp=datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            transcription=transcription,
            summary=results[AnalysisKind.SUMMARY].value,
            tasks=results[AnalysisKind.TASKS].value,
            improvements=results[AnalysisKind.IMPROVEMENTS].value,
            fact_check=results[AnalysisKind.FACT_CHECK].value,
            analysis_outcomes={kind: result.status for kind, result in results.items()},
        )
        self._store.put(meeting)

        logger.info(
            "analysis_completed",
            meeting_id=meeting.id,
            degraded=[k.value for k, r in results.items() if r.degraded],
        )
        return meeting

    async def transcribe(self, audio_bytes: bytes, mime_type: str) -> str:
        """Transcribe the audio payload; empty output counts as failure."""
        parts = [
            PromptPart.from_text(build_transcription_prompt()),
            PromptPart.from_bytes(audio_bytes, mime_type),
        ]
        try:
            text = await self._gateway.invoke(parts)
        except AppException as exc:
            logger.error("transcription_failed", error=exc.message)
            raise TranscriptionFailedError(
                f"Failed to transcribe audio: {exc.message}",
                context={"upstream_code": exc.error_code},
            ) from exc

        if not text or not text.strip():
            logger.error("transcription_empty")
            raise TranscriptionFailedError("Failed to transcribe audio")

        logger.info("transcription_completed", chars=len(text))
        return text

    async def analyse(self, kind: AnalysisKind, transcription: str) -> ParseResult:
        """Run one analysis. Never raises for upstream or parse failures."""
        prompt = self._builders[kind](transcription, language=self._language)
        try:
            raw = await self._gateway.invoke([PromptPart.from_text(prompt)])
        except Exception as exc:
            step_error = AnalysisStepFailedError(
                kind.value, getattr(exc, "message", None) or str(exc)
            )
            logger.warning(
                "analysis_step_failed",
                kind=kind.value,
                error_code=step_error.error_code,
                error=step_error.message,
                error_type=type(exc).__name__,
            )
            return ResponseParser.failure(kind, exc)

        return ResponseParser.parse(raw, kind)
