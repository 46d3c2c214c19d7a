"""
Model reply parsing.
Turns free-text model replies into typed analysis objects.
"""

import json
import re
from typing import Callable, Dict

from pydantic import ValidationError as PydanticValidationError

from domain.models import (
    ANALYSIS_MODELS,
    AnalysisKind,
    AnalysisResult,
    FactCheck,
    Improvements,
    ParseResult,
    ParseStatus,
    Summary,
    TaskList,
)
from shared_utils.logging_utils import ContextualLogger
from shared_utils.constants import LogScope


logger = ContextualLogger(scope=LogScope.PARSER)


# ```json opening markers and ``` closing markers, each with an optional newline
FENCE_PATTERN: re.Pattern = re.compile(r"```json\n?|\n?```")

FALLBACK_FACTORIES: Dict[AnalysisKind, Callable[[], AnalysisResult]] = {
    AnalysisKind.SUMMARY: lambda: Summary(overview="Failed to parse summary"),
    AnalysisKind.TASKS: TaskList,
    AnalysisKind.IMPROVEMENTS: lambda: Improvements(score_rationale="Unable to analyze"),
    AnalysisKind.FACT_CHECK: FactCheck,
}

FAILURE_MESSAGES: Dict[AnalysisKind, str] = {
    AnalysisKind.SUMMARY: "Failed to generate summary",
    AnalysisKind.TASKS: "Failed to extract tasks",
    AnalysisKind.IMPROVEMENTS: "Failed to generate improvements",
    AnalysisKind.FACT_CHECK: "Failed to perform fact-check",
}


class ResponseParser:
    """Parser for structured model replies.

    ``parse`` never raises: an unusable reply is an expected outcome and
    yields a FALLBACK result carrying the kind's neutral shape.
    """

    @staticmethod
    def strip_code_fences(raw_text: str) -> str:
        """Remove markdown code-fence markers and surrounding whitespace."""
        return FENCE_PATTERN.sub("", raw_text or "").strip()

    @staticmethod
    def fallback(kind: AnalysisKind) -> AnalysisResult:
        """The neutral object used when a reply cannot be parsed."""
        return FALLBACK_FACTORIES[kind]()

    @staticmethod
    def parse(raw_text: str, kind: AnalysisKind) -> ParseResult:
        """Parse *raw_text* as the JSON object for analysis *kind*.

        Args:
            raw_text: Model reply, possibly wrapped in code fences
            kind: Which analysis the reply answers

        Returns:
            PARSED result with the validated model, or FALLBACK with the
            kind's fallback shape and the reason.
        """
        cleaned = ResponseParser.strip_code_fences(raw_text)

        try:
            decoded = json.loads(cleaned)
        except (json.JSONDecodeError, TypeError) as exc:
            return ResponseParser._fallback_result(kind, f"invalid JSON: {exc}")

        if not isinstance(decoded, dict):
            return ResponseParser._fallback_result(
                kind, f"expected a JSON object, got {type(decoded).__name__}"
            )

        try:
            value = ANALYSIS_MODELS[kind].model_validate(decoded)
        except PydanticValidationError as exc:
            return ResponseParser._fallback_result(
                kind, f"schema mismatch: {exc.error_count()} error(s)"
            )

        logger.debug("analysis_parsed", kind=kind.value)
        return ParseResult(kind=kind, status=ParseStatus.PARSED, value=value)

    @staticmethod
    def failure(kind: AnalysisKind, exc: Exception) -> ParseResult:
        """Error-shaped result for an analysis whose upstream call failed."""
        message = getattr(exc, "message", None) or str(exc)
        value = ANALYSIS_MODELS[kind](error=FAILURE_MESSAGES[kind], message=message)
        return ParseResult(
            kind=kind,
            status=ParseStatus.FAILED,
            value=value,
            reason=message,
        )

    @staticmethod
    def _fallback_result(kind: AnalysisKind, reason: str) -> ParseResult:
        logger.warning("analysis_parse_fallback", kind=kind.value, reason=reason)
        return ParseResult(
            kind=kind,
            status=ParseStatus.FALLBACK,
            value=ResponseParser.fallback(kind),
            reason=reason,
        )
