"""Tests for prompt templates and instruction copy."""

import pytest

from cognigen.instructions import get_instructions
from cognigen.models import AssessmentCategory
from cognigen.prompts import CATEGORY_RULES, QUESTION_BATCH_SCHEMA, build_generation_prompt


class TestGenerationPrompt:
    """Tests for build_generation_prompt."""

    @pytest.mark.parametrize("category", list(AssessmentCategory))
    def test_every_category_has_rules(self, category):
        """Test that each category's rules end up in its prompt."""
        prompt = build_generation_prompt(category, 40)

        assert CATEGORY_RULES[category] in prompt
        assert "exactly 40 items" in prompt

    def test_rules_name_schema_fields(self):
        """Test that the rules reference fields the schema defines."""
        fields = QUESTION_BATCH_SCHEMA["properties"]["questions"]["items"]["properties"]

        assert "'spatial_pairs'" in CATEGORY_RULES[AssessmentCategory.SPATIAL_VISUALIZATION]
        assert "spatial_pairs" in fields
        assert "number_triplets" in fields


class TestInstructions:
    """Tests for section instructions."""

    @pytest.mark.parametrize("category", list(AssessmentCategory))
    def test_every_category_has_instructions(self, category):
        info = get_instructions(category)

        assert info.title
        assert info.description
        assert info.tips

    def test_number_speed_title(self):
        assert get_instructions(AssessmentCategory.NUMBER_SPEED).title == "Number Speed"
