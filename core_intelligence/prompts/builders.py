"""
Prompt builders for transcription, the four analyses, and chat.

Pure functions: deterministic for a given input, no network access. Each
analysis prompt carries an output-language directive and the literal JSON
structure the model must return; the example structures below are the single
source of truth for those schemas.
"""

from __future__ import annotations

import json
from typing import Callable, Dict, Optional

from domain.models import AnalysisKind, Meeting
from shared_utils.constants import Defaults


TRANSCRIPTION_PROMPT = (
    "Please transcribe this audio file accurately. Include speaker labels if "
    "multiple speakers are detected (e.g., Speaker 1:, Speaker 2:). Provide only "
    "the transcription without any additional commentary. If the audio is in "
    "Arabic or any other language, transcribe it in its original language."
)

ANALYSIS_PROMPT = (
    "Analyze this meeting transcription and {instruction}\n\n"
    "IMPORTANT: ALL OUTPUT MUST BE IN {language} ONLY.\n\n"
    "Return a valid JSON object with the following structure:\n"
    "{schema}\n\n"
    "{notes}"
    "Transcription:\n"
    "\"{transcription}\""
)

CHAT_CONTEXT_PROMPT = (
    "Context from the meeting:\n"
    "Transcription: {transcription}\n"
    "Summary: {summary}\n"
    "Tasks: {tasks}\n\n"
    "Based on this meeting context, please answer the following question:\n"
)

CHAT_LANGUAGE_DIRECTIVE = "\n\nIMPORTANT: Respond in {language} only."


SUMMARY_SCHEMA = {
    "overview": "2-3 sentence overview of the meeting",
    "duration": "estimated duration if mentioned",
    "participants": ["List of participants if identifiable"],
    "keyPoints": [
        {
            "title": "Main topic discussed",
            "description": "Brief description of the topic",
            "importance": "high/medium/low",
        }
    ],
    "decisions": [
        {
            "decision": "Decision that was made",
            "rationale": "Why this decision was made",
            "responsible": "Who is responsible",
        }
    ],
    "insights": ["Important insight or information that emerged"],
    "outcomes": ["Concrete outcome or result from the meeting"],
    "nextSteps": ["What happens next after this meeting"],
}

TASKS_SCHEMA = {
    "tasks": [
        {
            "id": 1,
            "task": "Clear description of what needs to be done",
            "assignedTo": "Person responsible or 'Unassigned'",
            "deadline": "Deadline if mentioned or 'Not specified'",
            "priority": "high/medium/low",
            "status": "pending",
            "context": "Brief context about why this task was assigned",
            "dependencies": ["List any dependencies if mentioned"],
        }
    ],
    "followUpItems": ["Items that need follow-up but aren't specific tasks"],
    "totalTasks": 0,
    "highPriorityCount": 0,
    "assignedCount": 0,
    "unassignedCount": 0,
}

IMPROVEMENTS_SCHEMA = {
    "effectivenessScore": 7,
    "scoreRationale": "Explanation for the score",
    "strengths": [
        {"area": "What went well", "description": "Why it was good"}
    ],
    "improvements": {
        "structure": ["How could the meeting structure be improved"],
        "communication": ["How could communication be clearer"],
        "participation": ["How to improve engagement and participation"],
        "timeManagement": ["How to better manage time"],
        "decisionMaking": ["How to make decisions more efficiently"],
    },
    "recommendations": [
        {
            "priority": "high/medium/low",
            "recommendation": "Specific actionable recommendation",
            "impact": "Expected impact of implementing this",
        }
    ],
    "bestPractices": ["Best practice to adopt for future meetings"],
}

FACT_CHECK_SCHEMA = {
    "transcriptionQuality": {
        "rating": "excellent/good/fair/poor",
        "score": 85,
        "issues": ["List any quality issues found"],
    },
    "potentialErrors": [
        {
            "text": "The questionable text",
            "suggestion": "What it might actually be",
            "confidence": "high/medium/low",
            "type": "spelling/grammar/context",
        }
    ],
    "factualClaims": [
        {
            "claim": "What was stated",
            "speaker": "Who said it if identifiable",
            "verificationStatus": "verified/unverified/incorrect",
            "correctInformation": "Correct info if claim is incorrect",
            "source": "Source of verification if available",
        }
    ],
    "inconsistencies": [
        {
            "issue": "Description of the inconsistency",
            "location": "Where in the discussion",
            "severity": "high/medium/low",
        }
    ],
    "dataPoints": [
        {
            "type": "number/date/statistic",
            "value": "The data mentioned",
            "context": "Context of the data",
            "verification": "verified/unverified/questionable",
        }
    ],
    "technicalTerms": [
        {
            "term": "Technical term used",
            "usage": "How it was used",
            "correct": True,
            "definition": "Brief definition",
        }
    ],
    "recommendations": ["Recommendation for verifying uncertain information"],
}

SCHEMAS: Dict[AnalysisKind, dict] = {
    AnalysisKind.SUMMARY: SUMMARY_SCHEMA,
    AnalysisKind.TASKS: TASKS_SCHEMA,
    AnalysisKind.IMPROVEMENTS: IMPROVEMENTS_SCHEMA,
    AnalysisKind.FACT_CHECK: FACT_CHECK_SCHEMA,
}


def _analysis_prompt(
    kind: AnalysisKind,
    instruction: str,
    transcription: str,
    language: str,
    notes: str = "",
) -> str:
    return ANALYSIS_PROMPT.format(
        instruction=instruction,
        language=language.upper(),
        schema=json.dumps(SCHEMAS[kind], indent=2),
        notes=f"{notes}\n\n" if notes else "",
        transcription=transcription,
    )


def build_transcription_prompt() -> str:
    """Instruction sent alongside the audio payload."""
    return TRANSCRIPTION_PROMPT


def build_summary_prompt(transcription: str, language: str = Defaults.OUTPUT_LANGUAGE) -> str:
    return _analysis_prompt(
        AnalysisKind.SUMMARY,
        "provide a comprehensive summary in JSON format.",
        transcription,
        language,
    )


def build_tasks_prompt(transcription: str, language: str = Defaults.OUTPUT_LANGUAGE) -> str:
    return _analysis_prompt(
        AnalysisKind.TASKS,
        "extract all tasks and action items.",
        transcription,
        language,
        notes="If no tasks were identified, return an object with empty arrays.",
    )


def build_improvements_prompt(transcription: str, language: str = Defaults.OUTPUT_LANGUAGE) -> str:
    return _analysis_prompt(
        AnalysisKind.IMPROVEMENTS,
        "provide recommendations for improvement.",
        transcription,
        language,
    )


def build_fact_check_prompt(transcription: str, language: str = Defaults.OUTPUT_LANGUAGE) -> str:
    return _analysis_prompt(
        AnalysisKind.FACT_CHECK,
        "look for potential errors, inconsistencies, or claims that need fact-checking.",
        transcription,
        language,
    )


def build_chat_prompt(
    question: str,
    meeting: Optional[Meeting] = None,
    language: str = Defaults.OUTPUT_LANGUAGE,
) -> str:
    """Question, optionally preceded by the meeting's context block.

    The context block holds the transcription plus the summary and task list
    serialised as JSON.
    """
    context = ""
    if meeting is not None:
        context = CHAT_CONTEXT_PROMPT.format(
            transcription=meeting.transcription,
            summary=json.dumps(meeting.summary.to_response(), ensure_ascii=False),
            tasks=json.dumps(meeting.tasks.to_response(), ensure_ascii=False),
        )
    return context + question + CHAT_LANGUAGE_DIRECTIVE.format(language=language.upper())


PROMPT_BUILDERS: Dict[AnalysisKind, Callable[..., str]] = {
    AnalysisKind.SUMMARY: build_summary_prompt,
    AnalysisKind.TASKS: build_tasks_prompt,
    AnalysisKind.IMPROVEMENTS: build_improvements_prompt,
    AnalysisKind.FACT_CHECK: build_fact_check_prompt,
}
