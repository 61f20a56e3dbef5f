"""Domain models for the GIA assessment.

Questions carry one payload variant per category. The variant is selected by
its ``category`` tag, so rendering data and the question-context snapshot are
always derived from a payload whose shape is known.
"""

import enum
import json
from datetime import datetime, timezone
from typing import Annotated, List, Literal, Optional, Self, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class AssessmentCategory(str, enum.Enum):
    """The five GIA test categories."""

    REASONING = "Reasoning"
    PERCEPTUAL_SPEED = "Perceptual Speed"
    NUMBER_SPEED = "Number Speed & Accuracy"
    WORD_MEANING = "Word Meaning"
    SPATIAL_VISUALIZATION = "Spatial Visualization"

    @property
    def slug(self) -> str:
        """Category name without whitespace, used in question ids."""
        return "".join(self.value.split())


# Order in which a full assessment runs its sections
FULL_ASSESSMENT_ORDER: Tuple[AssessmentCategory, ...] = (
    AssessmentCategory.REASONING,
    AssessmentCategory.PERCEPTUAL_SPEED,
    AssessmentCategory.NUMBER_SPEED,
    AssessmentCategory.WORD_MEANING,
    AssessmentCategory.SPATIAL_VISUALIZATION,
)


class AssessmentPhase(str, enum.Enum):
    """Top-level modes of the orchestrator."""

    INTRO = "intro"
    INSTRUCTIONS = "instructions"
    TEST = "test"
    ANALYSIS = "analysis"
    HISTORY = "history"


class ReasoningStep(str, enum.Enum):
    """Sub-state of a Reasoning question's two-stage reveal."""

    STATEMENT = "statement"
    QUESTION = "question"


class AssessmentMode(str, enum.Enum):
    """Whether a run covered every category or a single one."""

    FULL = "Full"
    PRACTICE = "Practice"


def answers_match(selected: object, correct: object) -> bool:
    """Case-insensitive comparison of a submitted answer with the key."""
    return str(selected).casefold() == str(correct).casefold()


def _compact_json(value: object) -> str:
    return json.dumps(value, separators=(",", ":"))


class _Payload(BaseModel):
    model_config = ConfigDict(frozen=True)

    def context(self) -> str:
        """Human-readable snapshot of the question content."""
        raise NotImplementedError


class ReasoningPayload(_Payload):
    """A comparative statement followed by a question about it."""

    category: Literal[AssessmentCategory.REASONING] = AssessmentCategory.REASONING
    statement: str = Field(..., min_length=1)
    question: str = Field(..., min_length=1)
    options: List[str] = Field(..., min_length=2)

    def context(self) -> str:
        return f'Statement: "{self.statement}". Question: "{self.question}"'


class PerceptualPayload(_Payload):
    """Letter pairs; the answer is how many pairs hold the same letter."""

    category: Literal[AssessmentCategory.PERCEPTUAL_SPEED] = (
        AssessmentCategory.PERCEPTUAL_SPEED
    )
    pairs: List[Tuple[str, str]] = Field(..., min_length=1)

    def context(self) -> str:
        return f"Pairs: {_compact_json([list(pair) for pair in self.pairs])}"


class NumberPayload(_Payload):
    """Three numbers; the answer is the extreme furthest from the middle one."""

    category: Literal[AssessmentCategory.NUMBER_SPEED] = AssessmentCategory.NUMBER_SPEED
    triplet: List[int] = Field(..., min_length=3, max_length=3)

    def context(self) -> str:
        return f"Numbers: {', '.join(str(n) for n in self.triplet)}"


class WordPayload(_Payload):
    """Three words; the answer is the odd one out."""

    category: Literal[AssessmentCategory.WORD_MEANING] = AssessmentCategory.WORD_MEANING
    options: List[str] = Field(..., min_length=3, max_length=3)

    def context(self) -> str:
        return f"Words: {', '.join(self.options)}"


class SpatialPayload(_Payload):
    """Two symbol pairs; True means rotated copy, False means mirror image."""

    category: Literal[AssessmentCategory.SPATIAL_VISUALIZATION] = (
        AssessmentCategory.SPATIAL_VISUALIZATION
    )
    pairs: List[bool] = Field(..., min_length=2, max_length=2)

    def context(self) -> str:
        return f"Spatial Pairs: {_compact_json(self.pairs)}"


QuestionPayload = Annotated[
    Union[
        ReasoningPayload,
        PerceptualPayload,
        NumberPayload,
        WordPayload,
        SpatialPayload,
    ],
    Field(discriminator="category"),
]


class Question(BaseModel):
    """A single timed question, immutable once issued."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    category: AssessmentCategory
    correct_answer: str = Field(..., min_length=1)
    time_limit_seconds: int = Field(..., gt=0)
    payload: QuestionPayload

    @field_validator("correct_answer", mode="before")
    @classmethod
    def _stringify_answer(cls, value: object) -> object:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(int(value)) if float(value).is_integer() else str(value)
        return value

    @model_validator(mode="after")
    def _payload_matches_category(self) -> Self:
        if self.payload.category != self.category:
            raise ValueError(
                f"payload for {self.payload.category.value} does not match "
                f"question category {self.category.value}"
            )
        return self

    def context(self) -> str:
        """Snapshot of the question content for later analysis."""
        return self.payload.context()

    def is_correct(self, selected: str) -> bool:
        """Check a submitted answer against the key."""
        return answers_match(selected, self.correct_answer)


class UserResponse(BaseModel):
    """One answered question, created once and never modified."""

    model_config = ConfigDict(frozen=True)

    question_id: str
    category: AssessmentCategory
    selected_answer: str
    correct_answer: str
    time_taken_ms: int = Field(..., ge=0)
    is_correct: bool
    question_context: str
    timed_out: bool = False


class CategoryScore(BaseModel):
    """Score for one tested category."""

    category: str
    score: float
    description: str = ""


class IncorrectQuestion(BaseModel):
    """Explanation for one incorrectly answered question."""

    question_text: str
    user_answer: str
    correct_answer: str
    explanation: str


class AnalysisResult(BaseModel):
    """Structured result returned by the analysis collaborator."""

    iq_estimate_range: str
    summary: str
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    category_scores: List[CategoryScore] = Field(default_factory=list)
    incorrect_questions: List[IncorrectQuestion] = Field(default_factory=list)

    def explanation_for(self, question_context: str) -> Optional[IncorrectQuestion]:
        """Find the explanation written for a question context, if any."""
        for item in self.incorrect_questions:
            if item.question_text == question_context:
                return item
        return None


class AssessmentRecord(BaseModel):
    """History entry for one completed run."""

    id: str
    date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    mode: AssessmentMode
    score: int = Field(..., ge=0, le=100)
    total_questions: int = Field(..., gt=0)
    analysis_summary: str
