"""Instruction copy shown before each section starts."""

from dataclasses import dataclass
from typing import Dict

from cognigen.models import AssessmentCategory


@dataclass(frozen=True)
class SectionInstructions:
    """What a section measures and how to answer it."""

    title: str
    description: str
    tips: str


CATEGORY_INSTRUCTIONS: Dict[AssessmentCategory, SectionInstructions] = {
    AssessmentCategory.REASONING: SectionInstructions(
        title="Reasoning",
        description=(
            "This test measures your ability to make inferences from "
            "information presented."
        ),
        tips=(
            "You will see a statement (e.g., 'A is heavier than B'). Read it, "
            "then continue to see the question (e.g., 'Who is lighter?'). "
            "Answer quickly."
        ),
    ),
    AssessmentCategory.PERCEPTUAL_SPEED: SectionInstructions(
        title="Perceptual Speed",
        description=(
            "This test measures the speed and accuracy of your visual perception."
        ),
        tips=(
            "You will see 4 pairs of letters. Count how many pairs contain the "
            "SAME letter (e.g. 'E' and 'e' match). Ignore case."
        ),
    ),
    AssessmentCategory.NUMBER_SPEED: SectionInstructions(
        title="Number Speed",
        description=(
            "This test measures your speed and accuracy in manipulating "
            "numbers mentally."
        ),
        tips=(
            "1. Find the highest and lowest numbers. 2. Determine which of "
            "these two is numerically FURTHER from the remaining number."
        ),
    ),
    AssessmentCategory.WORD_MEANING: SectionInstructions(
        title="Word Meaning",
        description=(
            "This test measures your understanding of word meanings and vocabulary."
        ),
        tips=(
            "You will see three words. Two are related (synonyms, antonyms, or "
            "same category). Select the ODD one out."
        ),
    ),
    AssessmentCategory.SPATIAL_VISUALIZATION: SectionInstructions(
        title="Spatial Visualization",
        description=(
            "This test measures your ability to mentally rotate and manipulate "
            "shapes."
        ),
        tips=(
            "You will see two pairs of symbols. For each pair, decide if the "
            "bottom symbol is the SAME as the top (rotated) or a MIRROR image. "
            "Count the matching pairs."
        ),
    ),
}


def get_instructions(category: AssessmentCategory) -> SectionInstructions:
    """Return the instruction copy for a category."""
    return CATEGORY_INSTRUCTIONS[category]
