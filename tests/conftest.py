"""Pytest configuration and shared fixtures for the assessment tests."""

import asyncio
import copy
from typing import Any, Dict, Iterable, List, Optional, Tuple

import pytest

from cognigen.analysis import ResultAnalyzer
from cognigen.history import HistoryStore
from cognigen.models import AssessmentCategory
from cognigen.orchestrator import AssessmentOrchestrator
from cognigen.providers.base import BaseLLMProvider
from cognigen.section_loader import SectionLoader

# One valid raw item per category, as the question-generation collaborator
# returns them
RAW_ITEMS: Dict[AssessmentCategory, Dict[str, Any]] = {
    AssessmentCategory.REASONING: {
        "correct_answer": "Tom",
        "reasoning_statement": "Bill is heavier than Tom",
        "reasoning_question": "Who is lighter?",
        "reasoning_options": ["Bill", "Tom"],
    },
    AssessmentCategory.PERCEPTUAL_SPEED: {
        "correct_answer": "2",
        "perceptual_pairs": [["E", "e"], ["P", "q"], ["b", "B"], ["x", "y"]],
    },
    AssessmentCategory.NUMBER_SPEED: {
        "correct_answer": "12",
        "number_triplets": [2, 5, 12],
    },
    AssessmentCategory.WORD_MEANING: {
        "correct_answer": "Street",
        "word_options": ["Up", "Down", "Street"],
    },
    AssessmentCategory.SPATIAL_VISUALIZATION: {
        "correct_answer": "1",
        "spatial_pairs": [True, False],
    },
}

CORRECT_ANSWERS = {
    category: item["correct_answer"] for category, item in RAW_ITEMS.items()
}


def raw_batch(category: AssessmentCategory, count: int) -> Dict[str, Any]:
    """A valid collaborator response with `count` items."""
    return {"questions": [copy.deepcopy(RAW_ITEMS[category]) for _ in range(count)]}


class FakeQuestionSource:
    """In-memory question-generation collaborator."""

    def __init__(
        self,
        fail_categories: Iterable[AssessmentCategory] = (),
        short_by: int = 0,
    ):
        self.fail_categories = set(fail_categories)
        self.short_by = short_by
        self.calls: List[Tuple[AssessmentCategory, int]] = []
        self.gate: Optional[asyncio.Event] = None

    async def generate_questions(
        self, category: AssessmentCategory, count: int
    ) -> Dict[str, Any]:
        self.calls.append((category, count))
        if self.gate is not None:
            await self.gate.wait()
        if category in self.fail_categories:
            raise RuntimeError("503 service unavailable")
        return raw_batch(category, count - self.short_by)


class FakeProvider(BaseLLMProvider):
    """LLM provider returning a canned response."""

    def __init__(
        self,
        response: Optional[Dict[str, Any]] = None,
        error: Optional[Exception] = None,
        delay: float = 0.0,
    ):
        super().__init__(api_key="test-key", model="fake-model")
        self.response = response or {}
        self.error = error
        self.delay = delay
        self.calls: List[Dict[str, Any]] = []

    async def generate_structured_completion_async(
        self,
        prompt: str,
        response_format: Dict[str, Any],
        temperature: float = 0.7,
        max_tokens: int = 1000,
        **kwargs: Any,
    ) -> Dict[str, Any]:
        self.calls.append(
            {
                "prompt": prompt,
                "response_format": response_format,
                "temperature": temperature,
                "max_tokens": max_tokens,
            }
        )
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return copy.deepcopy(self.response)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def question_source() -> FakeQuestionSource:
    """Fixture providing a question source that always succeeds."""
    return FakeQuestionSource()


@pytest.fixture
def clock() -> FakeClock:
    """Fixture providing a manually advanced clock."""
    return FakeClock()


@pytest.fixture
def history_path(tmp_path):
    """Fixture providing a history file location in a temp directory."""
    return tmp_path / "data" / "history.json"


@pytest.fixture
def sample_analysis() -> Dict[str, Any]:
    """Fixture providing a well-formed analysis response."""
    return {
        "iq_estimate_range": "75th-85th Percentile",
        "summary": "Strong verbal reasoning with room to improve on numbers.",
        "strengths": ["Word Meaning"],
        "weaknesses": ["Number Speed & Accuracy"],
        "recommendations": ["Practice mental arithmetic"],
        "category_scores": [
            {"category": "Word Meaning", "score": 90, "description": "Excellent"}
        ],
        "incorrect_questions": [
            {
                "question_text": "Numbers: 2, 5, 12",
                "user_answer": "2",
                "correct_answer": "12",
                "explanation": "12 is 7 away from 5, while 2 is only 3 away.",
            }
        ],
    }


@pytest.fixture
def make_orchestrator(question_source, clock, history_path):
    """Fixture providing a factory for orchestrators with manual ticks."""

    def factory(
        questions_per_category: int = 1,
        source: Optional[FakeQuestionSource] = None,
        analyzer: Optional[ResultAnalyzer] = None,
        **kwargs: Any,
    ) -> AssessmentOrchestrator:
        kwargs.setdefault("tick_interval", None)
        kwargs.setdefault("flash_seconds", 0)
        kwargs.setdefault("clock", clock)
        return AssessmentOrchestrator(
            loader=SectionLoader(source or question_source, time_limit_seconds=5),
            analyzer=analyzer or ResultAnalyzer(),
            history=HistoryStore(history_path),
            questions_per_category=questions_per_category,
            **kwargs,
        )

    return factory


@pytest.fixture
def correct_answers() -> Dict[AssessmentCategory, str]:
    """Fixture providing the answer key of the canned raw items."""
    return dict(CORRECT_ANSWERS)


@pytest.fixture
def raw_items() -> Dict[AssessmentCategory, Dict[str, Any]]:
    """Fixture providing one valid raw item per category."""
    return copy.deepcopy(RAW_ITEMS)


@pytest.fixture
def source_factory():
    """Fixture providing the fake question source class."""
    return FakeQuestionSource


@pytest.fixture
def provider_factory():
    """Fixture providing the fake LLM provider class."""
    return FakeProvider
