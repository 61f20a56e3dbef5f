"""Section loader: fetches and validates one category's question batch.

A load is started with begin(), which returns a SectionLoad handle wrapping
an asyncio task. Each begin() (and invalidate()) bumps the loader's
generation; the orchestrator compares a finished load's generation against
the current one and drops results that arrive for a superseded request.
"""

import asyncio
import enum
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Protocol

from pydantic import ValidationError

from cognigen.exceptions import SectionLoadError
from cognigen.models import (
    AssessmentCategory,
    NumberPayload,
    PerceptualPayload,
    Question,
    ReasoningPayload,
    SpatialPayload,
    WordPayload,
)

logger = logging.getLogger(__name__)


class LoadStatus(str, enum.Enum):
    """State of a section load."""

    IDLE = "idle"
    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"


class QuestionSource(Protocol):
    """The question-generation collaborator."""

    async def generate_questions(
        self, category: AssessmentCategory, count: int
    ) -> Dict[str, Any]:
        """Return a raw batch of the form {"questions": [...]}."""
        ...


# Raw item field -> payload field, per category
_PAYLOAD_FIELDS = {
    AssessmentCategory.REASONING: (
        ReasoningPayload,
        {
            "statement": "reasoning_statement",
            "question": "reasoning_question",
            "options": "reasoning_options",
        },
    ),
    AssessmentCategory.PERCEPTUAL_SPEED: (
        PerceptualPayload,
        {"pairs": "perceptual_pairs"},
    ),
    AssessmentCategory.NUMBER_SPEED: (NumberPayload, {"triplet": "number_triplets"}),
    AssessmentCategory.WORD_MEANING: (WordPayload, {"options": "word_options"}),
    AssessmentCategory.SPATIAL_VISUALIZATION: (
        SpatialPayload,
        {"pairs": "spatial_pairs"},
    ),
}


@dataclass
class SectionLoad:
    """Handle for one in-flight or finished section load."""

    generation: int
    category: AssessmentCategory
    count: int
    task: Optional[asyncio.Task] = None
    status: LoadStatus = LoadStatus.PENDING
    questions: List[Question] = field(default_factory=list)
    error: Optional[SectionLoadError] = None

    def add_done_callback(self, callback: Callable[["SectionLoad"], None]) -> None:
        """Run callback with this handle once the load has settled."""
        if self.task is None:
            raise RuntimeError("load has not been started")
        self.task.add_done_callback(lambda _task: callback(self))

    def _settle(self, task: asyncio.Task) -> None:
        if task.cancelled():
            self.status = LoadStatus.FAILED
            self.error = SectionLoadError(self.category, "load was cancelled")
            return
        error = task.exception()
        if error is None:
            self.questions = task.result()
            self.status = LoadStatus.READY
        elif isinstance(error, SectionLoadError):
            self.status = LoadStatus.FAILED
            self.error = error
        else:
            self.status = LoadStatus.FAILED
            self.error = SectionLoadError(self.category, str(error))


class SectionLoader:
    """Loads question batches from the question-generation collaborator."""

    def __init__(self, source: QuestionSource, time_limit_seconds: int = 5):
        """
        Initialize the loader.

        Args:
            source: Question-generation collaborator
            time_limit_seconds: Time limit assigned to every loaded question
        """
        self._source = source
        self._time_limit_seconds = time_limit_seconds
        self._generation = 0
        self._current: Optional[SectionLoad] = None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def current(self) -> Optional[SectionLoad]:
        """Most recently started load."""
        return self._current

    @property
    def status(self) -> LoadStatus:
        if self._current is None:
            return LoadStatus.IDLE
        return self._current.status

    def is_current(self, load: SectionLoad) -> bool:
        """Whether a load is the latest one and has not been invalidated."""
        return load.generation == self._generation

    def begin(self, category: AssessmentCategory, count: int) -> SectionLoad:
        """Start loading a section in the background.

        Any earlier load becomes stale; its result will still settle on its
        own handle but is_current() reports False for it.

        Args:
            category: Category to load
            count: Number of questions required

        Returns:
            Handle for the new load
        """
        self._generation += 1
        load = SectionLoad(generation=self._generation, category=category, count=count)
        load.task = asyncio.get_running_loop().create_task(self.load(category, count))
        load.task.add_done_callback(load._settle)
        self._current = load
        return load

    def invalidate(self) -> None:
        """Mark any outstanding load as stale without starting a new one."""
        self._generation += 1
        self._current = None

    async def load(self, category: AssessmentCategory, count: int) -> List[Question]:
        """Fetch and validate a batch of exactly `count` questions.

        Args:
            category: Category to load
            count: Number of questions required

        Returns:
            Ordered list of validated questions

        Raises:
            SectionLoadError: If the collaborator fails or the batch is malformed
        """
        logger.info(
            f"Loading {count} {category.value} questions",
            extra={"category": category.value},
        )
        try:
            raw = await self._source.generate_questions(category, count)
        except SectionLoadError:
            raise
        except Exception as e:
            raise SectionLoadError(category, f"question generation failed: {e}") from e

        questions = self.validate(category, count, raw)
        logger.info(
            f"Loaded {len(questions)} {category.value} questions",
            extra={"category": category.value},
        )
        return questions

    def validate(
        self, category: AssessmentCategory, count: int, raw: Any
    ) -> List[Question]:
        """Turn a raw collaborator response into Question records.

        Raises:
            SectionLoadError: If the response is not an object holding a
                `questions` array of exactly `count` valid items
        """
        items = raw.get("questions") if isinstance(raw, dict) else None
        if not isinstance(items, list):
            raise SectionLoadError(category, "response has no 'questions' array")
        if len(items) != count:
            raise SectionLoadError(
                category, f"expected {count} questions, received {len(items)}"
            )

        batch_id = uuid.uuid4().hex[:8]
        questions = []
        for index, item in enumerate(items):
            if not isinstance(item, dict):
                raise SectionLoadError(category, f"question {index} is not an object")
            try:
                questions.append(self._build_question(category, index, batch_id, item))
            except ValidationError as e:
                raise SectionLoadError(
                    category, f"question {index} is malformed: {e.error_count()} errors"
                ) from e
        return questions

    def _build_question(
        self,
        category: AssessmentCategory,
        index: int,
        batch_id: str,
        item: Dict[str, Any],
    ) -> Question:
        payload_cls, fields = _PAYLOAD_FIELDS[category]
        payload = payload_cls(**{name: item.get(key) for name, key in fields.items()})
        return Question(
            id=f"q-{category.slug}-{index}-{batch_id}",
            category=category,
            correct_answer=item.get("correct_answer"),
            time_limit_seconds=self._time_limit_seconds,
            payload=payload,
        )
