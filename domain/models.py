"""
Pure domain models for the meeting insights service.

These models contain NO provider or framework dependencies beyond pydantic.
Analysis models are deliberately lenient: every field has a default, ``null``
values fall back to the default, unknown keys are ignored, and every list
defaults to an empty list so consumers only ever branch on emptiness.

API-facing models serialise with camelCase aliases (``by_alias=True``).
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional, Union, get_args, get_origin

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel


UNASSIGNED = "Unassigned"
NOT_SPECIFIED = "Not specified"
TASK_STATUS_PENDING = "pending"
UNKNOWN_SPEAKER = "Unknown"
BOOL_WORDS = {"true", "false", "yes", "no", "1", "0", "on", "off", "t", "f", "y", "n"}


class AnalysisKind(str, Enum):
    """The four post-transcription analyses, in pipeline order."""

    SUMMARY = "summary"
    TASKS = "tasks"
    IMPROVEMENTS = "improvements"
    FACT_CHECK = "fact_check"


class ParseStatus(str, Enum):
    """Outcome of turning one model reply into an analysis object."""

    PARSED = "PARSED"
    FALLBACK = "FALLBACK"
    FAILED = "FAILED"


class Priority(str, Enum):
    """Priority / importance tier."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------


class _CamelModel(BaseModel):
    """Lenient camelCase-aliased base for everything the UI consumes.

    Input is repaired field by field before validation: ``null`` means "use
    the default", a bare string where a string list is expected becomes a
    one-item list, and list items that do not fit their model are dropped
    instead of rejecting the whole object.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        coerce_numbers_to_str=True,
    )

    @model_validator(mode="before")
    @classmethod
    def repair_input(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        repaired = {k: v for k, v in data.items() if v is not None}
        for name, field in cls.model_fields.items():
            key = field.alias if field.alias in repaired else name
            if key not in repaired or get_origin(field.annotation) is not list:
                continue
            (item_type,) = get_args(field.annotation) or (Any,)
            if item_type is str:
                repaired[key] = _as_str_list(repaired[key])
            elif isinstance(item_type, type) and issubclass(item_type, BaseModel):
                repaired[key] = _valid_items(item_type, repaired[key])
        return repaired

    def to_response(self) -> Dict[str, Any]:
        """JSON-ready dict with camelCase keys and unset optionals omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def _is_scalar(value: Any) -> bool:
    return isinstance(value, (str, int, float)) and not isinstance(value, bool)


def _as_str_list(value: Any) -> Any:
    if isinstance(value, list):
        return [v for v in value if _is_scalar(v)]
    if _is_scalar(value):
        return [value] if str(value).strip() else []
    return value


def _valid_items(model: type, value: Any) -> Any:
    if isinstance(value, dict):
        value = [value]
    if not isinstance(value, list):
        return value
    kept = []
    for item in value:
        try:
            kept.append(model.model_validate(item))
        except PydanticValidationError:
            continue
    return kept


def _coerce_tier(value: Any) -> Any:
    if isinstance(value, str):
        lowered = value.strip().lower()
        return lowered if lowered in {p.value for p in Priority} else Priority.MEDIUM.value
    return value


def _round_number(value: Any) -> Any:
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return 0
    if isinstance(value, float):
        return round(value)
    return value


class _AnalysisModel(_CamelModel):
    """Adds the error marker populated when the upstream call failed."""

    error: Optional[str] = None
    message: Optional[str] = None


# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------


class KeyPoint(_CamelModel):
    title: str = ""
    description: str = ""
    importance: Priority = Priority.MEDIUM

    normalize_importance = field_validator("importance", mode="before")(_coerce_tier)


class Decision(_CamelModel):
    decision: str = ""
    rationale: str = ""
    responsible: str = ""


class Summary(_AnalysisModel):
    """Meeting overview, participants, key points and decisions."""

    overview: str = ""
    duration: Optional[str] = None
    participants: List[str] = Field(default_factory=list)
    key_points: List[KeyPoint] = Field(default_factory=list)
    decisions: List[Decision] = Field(default_factory=list)
    insights: List[str] = Field(default_factory=list)
    outcomes: List[str] = Field(default_factory=list)
    next_steps: List[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


class Task(_CamelModel):
    """A single action item. ``status`` is always pending at creation."""

    id: int = 0
    task: str = ""
    assigned_to: str = UNASSIGNED
    deadline: str = NOT_SPECIFIED
    priority: Priority = Priority.MEDIUM
    status: str = TASK_STATUS_PENDING
    context: str = ""
    dependencies: List[str] = Field(default_factory=list)

    normalize_priority = field_validator("priority", mode="before")(_coerce_tier)

    @field_validator("id", mode="before")
    @classmethod
    def numeric_id(cls, v: Any) -> Any:
        # non-numeric ids are renumbered by TaskList
        try:
            return int(v)
        except (TypeError, ValueError):
            return 0

    @field_validator("assigned_to", mode="before")
    @classmethod
    def default_assignee(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return UNASSIGNED
        return v

    @field_validator("deadline", mode="before")
    @classmethod
    def default_deadline(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return NOT_SPECIFIED
        return v

    @field_validator("status", mode="before")
    @classmethod
    def always_pending(cls, v: Any) -> str:
        return TASK_STATUS_PENDING


class TaskList(_AnalysisModel):
    """Extracted tasks plus counters derived from them."""

    tasks: List[Task] = Field(default_factory=list)
    follow_up_items: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def ensure_unique_ids(self) -> "TaskList":
        ids = [t.id for t in self.tasks]
        if len(set(ids)) != len(ids) or any(i <= 0 for i in ids):
            for number, task in enumerate(self.tasks, start=1):
                task.id = number
        return self

    @computed_field(alias="totalTasks")
    @property
    def total_tasks(self) -> int:
        return len(self.tasks)

    @computed_field(alias="highPriorityCount")
    @property
    def high_priority_count(self) -> int:
        return sum(1 for t in self.tasks if t.priority == Priority.HIGH)

    @computed_field(alias="assignedCount")
    @property
    def assigned_count(self) -> int:
        return sum(1 for t in self.tasks if t.assigned_to != UNASSIGNED)

    @computed_field(alias="unassignedCount")
    @property
    def unassigned_count(self) -> int:
        return sum(1 for t in self.tasks if t.assigned_to == UNASSIGNED)


# ---------------------------------------------------------------------------
# Improvements
# ---------------------------------------------------------------------------


class Strength(_CamelModel):
    area: str = ""
    description: str = ""


class ImprovementAreas(_CamelModel):
    """Fixed improvement categories; absent categories are empty lists."""

    structure: List[str] = Field(default_factory=list)
    communication: List[str] = Field(default_factory=list)
    participation: List[str] = Field(default_factory=list)
    time_management: List[str] = Field(default_factory=list)
    decision_making: List[str] = Field(default_factory=list)


class Recommendation(_CamelModel):
    priority: Priority = Priority.MEDIUM
    recommendation: str = ""
    impact: str = ""

    normalize_priority = field_validator("priority", mode="before")(_coerce_tier)


class Improvements(_AnalysisModel):
    """Meeting effectiveness score and improvement suggestions."""

    effectiveness_score: int = 0
    score_rationale: str = ""
    strengths: List[Strength] = Field(default_factory=list)
    improvements: ImprovementAreas = Field(default_factory=ImprovementAreas)
    recommendations: List[Recommendation] = Field(default_factory=list)
    best_practices: List[str] = Field(default_factory=list)

    round_score = field_validator("effectiveness_score", mode="before")(_round_number)


# ---------------------------------------------------------------------------
# Fact check
# ---------------------------------------------------------------------------


class TranscriptionQuality(_CamelModel):
    rating: str = "unknown"
    score: int = 0
    issues: List[str] = Field(default_factory=list)

    round_score = field_validator("score", mode="before")(_round_number)


class PotentialError(_CamelModel):
    text: str = ""
    suggestion: str = ""
    confidence: Priority = Priority.MEDIUM
    type: str = ""

    normalize_confidence = field_validator("confidence", mode="before")(_coerce_tier)


class FactualClaim(_CamelModel):
    claim: str = ""
    speaker: str = UNKNOWN_SPEAKER
    verification_status: str = "unverified"
    correct_information: str = ""
    source: str = ""


class Inconsistency(_CamelModel):
    issue: str = ""
    location: str = ""
    severity: Priority = Priority.MEDIUM

    normalize_severity = field_validator("severity", mode="before")(_coerce_tier)


class DataPoint(_CamelModel):
    type: str = ""
    value: str = ""
    context: str = ""
    verification: str = "unverified"


class TechnicalTerm(_CamelModel):
    term: str = ""
    usage: str = ""
    correct: bool = True
    definition: str = ""

    @field_validator("correct", mode="before")
    @classmethod
    def loose_bool(cls, v: Any) -> Any:
        if isinstance(v, str) and v.strip().lower() not in BOOL_WORDS:
            return False
        return v


class FactCheck(_AnalysisModel):
    """Transcription quality and claims needing verification."""

    transcription_quality: TranscriptionQuality = Field(default_factory=TranscriptionQuality)
    potential_errors: List[PotentialError] = Field(default_factory=list)
    factual_claims: List[FactualClaim] = Field(default_factory=list)
    inconsistencies: List[Inconsistency] = Field(default_factory=list)
    data_points: List[DataPoint] = Field(default_factory=list)
    technical_terms: List[TechnicalTerm] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


AnalysisResult = Union[Summary, TaskList, Improvements, FactCheck]

ANALYSIS_MODELS: Dict[AnalysisKind, type] = {
    AnalysisKind.SUMMARY: Summary,
    AnalysisKind.TASKS: TaskList,
    AnalysisKind.IMPROVEMENTS: Improvements,
    AnalysisKind.FACT_CHECK: FactCheck,
}


class ParseResult(BaseModel):
    """Tagged outcome of parsing one analysis reply.

    ``value`` is always a usable analysis object; ``status`` tells callers
    whether it came from the model (PARSED), from the fallback shape because
    the reply was unusable (FALLBACK), or from an upstream failure (FAILED).
    """

    kind: AnalysisKind
    status: ParseStatus
    value: AnalysisResult
    reason: Optional[str] = None

    @property
    def degraded(self) -> bool:
        return self.status is not ParseStatus.PARSED


# ---------------------------------------------------------------------------
# Meeting aggregate
# ---------------------------------------------------------------------------


class Meeting(_CamelModel):
    """One processed audio upload and its four analyses.

    Frozen at the top level only; the meeting store keeps and hands out deep
    copies, so a stored record never changes.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    filename: str
    timestamp: str  # ISO 8601
    transcription: str
    summary: Summary = Field(default_factory=Summary)
    tasks: TaskList = Field(default_factory=TaskList)
    improvements: Improvements = Field(default_factory=Improvements)
    fact_check: FactCheck = Field(default_factory=FactCheck)
    analysis_outcomes: Dict[AnalysisKind, ParseStatus] = Field(
        default_factory=dict, exclude=True
    )


class MeetingSummaryView(_CamelModel):
    """Listing entry for GET /api/meetings."""

    id: str
    filename: str
    timestamp: str
    summary: str


# ---------------------------------------------------------------------------
# Model gateway input
# ---------------------------------------------------------------------------


class PromptPart(BaseModel):
    """One part of a model request: either text or an inline binary payload."""

    text: Optional[str] = None
    data: Optional[bytes] = None
    mime_type: Optional[str] = None

    @model_validator(mode="after")
    def exactly_one_kind(self) -> "PromptPart":
        if (self.text is None) == (self.data is None):
            raise ValueError("PromptPart needs exactly one of text or data")
        if self.data is not None and not self.mime_type:
            raise ValueError("PromptPart with data needs a mime_type")
        return self

    @classmethod
    def from_text(cls, text: str) -> "PromptPart":
        return cls(text=text)

    @classmethod
    def from_bytes(cls, data: bytes, mime_type: str) -> "PromptPart":
        return cls(data=data, mime_type=mime_type)

    @property
    def is_binary(self) -> bool:
        return self.data is not None
