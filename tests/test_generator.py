"""Tests for the question generator."""

import asyncio
import random

import pytest

from cognigen.generator import QuestionGenerator
from cognigen.models import AssessmentCategory
from cognigen.prompts import QUESTION_BATCH_SCHEMA


class TestQuestionGenerator:
    """Tests for QuestionGenerator."""

    @pytest.mark.asyncio
    async def test_requests_structured_batch(self, provider_factory, raw_items):
        """Test that the prompt names the category and count."""
        category = AssessmentCategory.PERCEPTUAL_SPEED
        provider = provider_factory(response={"questions": [raw_items[category]]})
        generator = QuestionGenerator(provider, temperature=0.5, max_tokens=2048)

        data = await generator.generate_questions(category, 1)

        assert data == {"questions": [raw_items[category]]}
        call = provider.calls[0]
        assert 'category: "Perceptual Speed"' in call["prompt"]
        assert "exactly 1 items" in call["prompt"]
        assert call["response_format"] is QUESTION_BATCH_SCHEMA
        assert call["temperature"] == pytest.approx(0.5)
        assert call["max_tokens"] == 2048

    @pytest.mark.asyncio
    async def test_shuffles_word_options(self, provider_factory, raw_items):
        """Test that the odd word is not always in the same position."""
        category = AssessmentCategory.WORD_MEANING
        provider = provider_factory(
            response={"questions": [dict(raw_items[category]) for _ in range(20)]}
        )
        generator = QuestionGenerator(provider, rng=random.Random(7))

        data = await generator.generate_questions(category, 20)

        orders = {tuple(item["word_options"]) for item in data["questions"]}
        assert len(orders) > 1
        assert all(sorted(order) == ["Down", "Street", "Up"] for order in orders)

    @pytest.mark.asyncio
    async def test_leaves_other_payloads_alone(self, provider_factory, raw_items):
        """Test that ordered payloads keep their order."""
        category = AssessmentCategory.SPATIAL_VISUALIZATION
        provider = provider_factory(response={"questions": [raw_items[category]]})
        generator = QuestionGenerator(provider, rng=random.Random(1))

        data = await generator.generate_questions(category, 1)

        assert data["questions"][0]["spatial_pairs"] == [True, False]

    @pytest.mark.asyncio
    async def test_timeout(self, provider_factory):
        """Test that a slow provider times out."""
        generator = QuestionGenerator(
            provider_factory(delay=1.0), timeout_seconds=0.01
        )

        with pytest.raises(asyncio.TimeoutError):
            await generator.generate_questions(AssessmentCategory.WORD_MEANING, 1)
