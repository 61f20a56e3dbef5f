"""Tests for the section loader."""

import asyncio
import re

import pytest

from cognigen.exceptions import SectionLoadError
from cognigen.models import AssessmentCategory, ReasoningPayload
from cognigen.section_loader import LoadStatus, SectionLoader

WORD = AssessmentCategory.WORD_MEANING


class TestValidate:
    """Tests for batch validation."""

    @pytest.mark.parametrize("category", list(AssessmentCategory))
    def test_valid_batch(self, question_source, raw_items, category):
        """Test that every category's raw item becomes a Question."""
        loader = SectionLoader(question_source, time_limit_seconds=5)

        questions = loader.validate(
            category, 2, {"questions": [raw_items[category]] * 2}
        )

        assert len(questions) == 2
        assert all(q.category == category for q in questions)
        assert all(q.time_limit_seconds == 5 for q in questions)
        assert questions[0].id != questions[1].id
        assert re.fullmatch(rf"q-{category.slug}-0-[0-9a-f]{{8}}", questions[0].id)

    def test_reasoning_payload_fields(self, question_source, raw_items):
        """Test that raw field names map onto the payload."""
        loader = SectionLoader(question_source)

        question = loader.validate(
            AssessmentCategory.REASONING,
            1,
            {"questions": [raw_items[AssessmentCategory.REASONING]]},
        )[0]

        assert isinstance(question.payload, ReasoningPayload)
        assert question.payload.options == ["Bill", "Tom"]
        assert question.correct_answer == "Tom"

    @pytest.mark.parametrize(
        "raw,reason",
        [
            (None, "response has no 'questions' array"),
            ({}, "response has no 'questions' array"),
            ({"questions": "nope"}, "response has no 'questions' array"),
            ({"questions": ["text"]}, "question 0 is not an object"),
        ],
    )
    def test_malformed_response(self, question_source, raw, reason):
        """Test that a response without a usable array is rejected."""
        loader = SectionLoader(question_source)

        with pytest.raises(SectionLoadError) as exc_info:
            loader.validate(WORD, 1, raw)

        assert exc_info.value.reason == reason
        assert exc_info.value.category == WORD

    def test_wrong_count(self, question_source, raw_items):
        """Test that partial batches are rejected."""
        loader = SectionLoader(question_source)

        with pytest.raises(SectionLoadError, match="expected 3 questions, received 1"):
            loader.validate(WORD, 3, {"questions": [raw_items[WORD]]})

    def test_missing_payload_fields(self, question_source):
        """Test that an item without its category's fields is rejected."""
        loader = SectionLoader(question_source)

        with pytest.raises(SectionLoadError, match="question 0 is malformed"):
            loader.validate(WORD, 1, {"questions": [{"correct_answer": "Street"}]})

    def test_wrong_payload_shape(self, question_source, raw_items):
        """Test that a triplet must hold exactly three numbers."""
        loader = SectionLoader(question_source)
        item = raw_items[AssessmentCategory.NUMBER_SPEED]
        item["number_triplets"] = [2, 5]

        with pytest.raises(SectionLoadError, match="malformed"):
            loader.validate(AssessmentCategory.NUMBER_SPEED, 1, {"questions": [item]})


class TestLoad:
    """Tests for loading through the collaborator."""

    @pytest.mark.asyncio
    async def test_load_returns_questions(self, question_source):
        """Test a successful load."""
        loader = SectionLoader(question_source)

        questions = await loader.load(WORD, 4)

        assert len(questions) == 4
        assert question_source.calls == [(WORD, 4)]

    @pytest.mark.asyncio
    async def test_collaborator_error_is_wrapped(self, source_factory):
        """Test that any collaborator failure becomes a SectionLoadError."""
        loader = SectionLoader(source_factory(fail_categories=[WORD]))

        with pytest.raises(SectionLoadError, match="503 service unavailable"):
            await loader.load(WORD, 1)


class TestBegin:
    """Tests for background loads and generations."""

    @pytest.mark.asyncio
    async def test_begin_settles_ready(self, question_source):
        """Test that a background load ends ready with its questions."""
        loader = SectionLoader(question_source)

        load = loader.begin(WORD, 2)
        assert loader.status == LoadStatus.PENDING
        await asyncio.wait({load.task})

        assert load.status == LoadStatus.READY
        assert len(load.questions) == 2
        assert loader.is_current(load)

    @pytest.mark.asyncio
    async def test_begin_settles_failed(self, source_factory):
        """Test that a failed background load carries its error."""
        loader = SectionLoader(source_factory(fail_categories=[WORD]))

        load = loader.begin(WORD, 2)
        await asyncio.wait({load.task})

        assert load.status == LoadStatus.FAILED
        assert isinstance(load.error, SectionLoadError)
        assert load.questions == []

    @pytest.mark.asyncio
    async def test_new_begin_makes_old_load_stale(self, question_source):
        """Test that only the latest load is current."""
        loader = SectionLoader(question_source)

        first = loader.begin(WORD, 1)
        second = loader.begin(WORD, 1)
        await asyncio.wait({first.task, second.task})

        assert not loader.is_current(first)
        assert loader.is_current(second)
        assert loader.current is second

    @pytest.mark.asyncio
    async def test_invalidate(self, question_source):
        """Test that invalidate leaves no current load."""
        loader = SectionLoader(question_source)
        load = loader.begin(WORD, 1)

        loader.invalidate()
        await asyncio.wait({load.task})

        assert not loader.is_current(load)
        assert loader.current is None
        assert loader.status == LoadStatus.IDLE

    @pytest.mark.asyncio
    async def test_done_callback_receives_handle(self, question_source):
        """Test that continuations get the settled handle."""
        loader = SectionLoader(question_source)
        seen = []

        load = loader.begin(WORD, 1)
        load.add_done_callback(lambda settled: seen.append(settled.status))
        await asyncio.wait({load.task})
        await asyncio.sleep(0)

        assert seen == [LoadStatus.READY]
