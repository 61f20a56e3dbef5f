"""Prompt templates for question generation and result analysis.

The generation prompt asks for a batch of GIA-style items for a single
category; the analysis prompt summarizes a finished run.
"""

import json
from typing import Dict, List, Sequence

from cognigen.ledger import score_percent
from cognigen.models import AssessmentCategory, UserResponse

# Rules the model must follow for each category. Field names match
# QUESTION_BATCH_SCHEMA.
CATEGORY_RULES: Dict[AssessmentCategory, str] = {
    AssessmentCategory.REASONING: """- Use classic comparative pairs: Heavier/Lighter, Taller/Shorter, Stronger/Weaker, Brighter/Duller, Happier/Sadder.
- Use simple names (e.g., Tom, Bill, Ann, Sue, Pete).
- Provide 'reasoning_statement' (e.g., "John is heavier than Bill").
- Provide 'reasoning_question' (e.g., "Who is lighter?").
- Provide 'reasoning_options': The two names involved.
- 'correct_answer' must be one of the options.""",
    AssessmentCategory.PERCEPTUAL_SPEED: """- Provide 'perceptual_pairs': List of 4 letter pairs (e.g., [["E","e"], ["P","q"]]).
- Mix of uppercase and lowercase.
- Match logic: Same letter (case-insensitive) = MATCH (e.g., 'A' and 'a'). Different letter = NO MATCH (e.g., 'A' and 'b').
- 'correct_answer': The COUNT of matching pairs as a string (e.g., "2", "3").""",
    AssessmentCategory.NUMBER_SPEED: """- Provide 'number_triplets': 3 distinct integers between 2 and 30. Keep numbers small for speed.
- Logic: Identify highest and lowest. Determine which of these two is numerically FURTHER from the remaining number.
- CRITICAL: The distances must NOT be equal. One must be clearly further. (e.g. 2, 5, 12 -> High 12, Low 2, Rem 5. |12-5|=7, |5-2|=3. 12 is further).
- 'correct_answer': The number that is the answer (as a string).""",
    AssessmentCategory.WORD_MEANING: """- Provide 'word_options': 3 common words.
- Two words are related (synonyms, antonyms, or same category). One is odd.
- Examples: (Up, Down, Street), (Circle, Square, Apple), (Big, Huge, Small).
- 'correct_answer': The odd word.""",
    AssessmentCategory.SPATIAL_VISUALIZATION: """- Provide 'spatial_pairs': Array of exactly 2 booleans.
- true = SAME symbol (rotated). false = MIRROR symbol (rotated).
- 'correct_answer': The COUNT of true values (0, 1, or 2) as a string.""",
}

# JSON schema for a batch of generated questions
QUESTION_BATCH_SCHEMA = {
    "type": "object",
    "properties": {
        "questions": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "correct_answer": {
                        "type": "string",
                        "description": "The correct answer value as a string.",
                    },
                    "reasoning_statement": {
                        "type": "string",
                        "description": "For Reasoning: the premise.",
                    },
                    "reasoning_question": {
                        "type": "string",
                        "description": "For Reasoning: the question.",
                    },
                    "reasoning_options": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "For Reasoning: the two names.",
                    },
                    "perceptual_pairs": {
                        "type": "array",
                        "items": {"type": "array", "items": {"type": "string"}},
                        "description": "For Perceptual Speed: 4 pairs of letters.",
                    },
                    "number_triplets": {
                        "type": "array",
                        "items": {"type": "number"},
                        "description": "For Number Speed: 3 distinct numbers.",
                    },
                    "word_options": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "For Word Meaning: 3 words.",
                    },
                    "spatial_pairs": {
                        "type": "array",
                        "items": {"type": "boolean"},
                        "description": "For Spatial Visualization: exactly 2 booleans.",
                    },
                },
                "required": ["correct_answer"],
            },
        }
    },
    "required": ["questions"],
}

# JSON schema for the analysis of a finished run
ANALYSIS_SCHEMA = {
    "type": "object",
    "properties": {
        "iq_estimate_range": {"type": "string"},
        "summary": {"type": "string"},
        "strengths": {"type": "array", "items": {"type": "string"}},
        "weaknesses": {"type": "array", "items": {"type": "string"}},
        "recommendations": {"type": "array", "items": {"type": "string"}},
        "category_scores": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "category": {"type": "string"},
                    "score": {"type": "number"},
                    "description": {"type": "string"},
                },
                "required": ["category", "score", "description"],
            },
        },
        "incorrect_questions": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "question_text": {"type": "string"},
                    "user_answer": {"type": "string"},
                    "correct_answer": {"type": "string"},
                    "explanation": {"type": "string"},
                },
                "required": [
                    "question_text",
                    "user_answer",
                    "correct_answer",
                    "explanation",
                ],
            },
        },
    },
    "required": [
        "iq_estimate_range",
        "summary",
        "strengths",
        "weaknesses",
        "recommendations",
        "category_scores",
        "incorrect_questions",
    ],
}


def build_generation_prompt(category: AssessmentCategory, count: int) -> str:
    """Build the prompt for one section's question batch.

    Args:
        category: Category to generate questions for
        count: Exact number of questions required

    Returns:
        Complete prompt string for the LLM
    """
    prompt = f"""
Generate {count} distinct GIA-style psychometric questions for the category: "{category.value}".

STRICT RULES FOR "{category.value}":

{CATEGORY_RULES[category]}

Return a JSON object with a "questions" array containing exactly {count} items.
Ensure questions vary in difficulty slightly but mostly test processing speed (simple tasks).

IMPORTANT:
1. All 'correct_answer' fields must be strings.
2. Ensure the specific fields for "{category.value}" are populated. Do not leave them empty.
"""
    return prompt.strip()


def build_analysis_prompt(responses: Sequence[UserResponse]) -> str:
    """Build the prompt that asks for an analysis of a finished run.

    Only incorrect answers are sent in detail to keep the prompt small.

    Args:
        responses: Every response of the run, in presentation order

    Returns:
        Complete prompt string for the LLM
    """
    categories: List[str] = []
    for response in responses:
        if response.category.value not in categories:
            categories.append(response.category.value)

    correct = sum(1 for r in responses if r.is_correct)
    accuracy = score_percent(correct, len(responses)) if responses else 0
    incorrect = [
        {
            "category": r.category.value,
            "question_context": r.question_context,
            "user_answer": r.selected_answer,
            "correct_answer": r.correct_answer,
        }
        for r in responses
        if not r.is_correct
    ]

    prompt = f"""
Analyze these GIA assessment results.
The user answered {len(responses)} questions across these categories: {", ".join(categories)}.

Overall Accuracy: {accuracy}%

Incorrect Answers Data:
{json.dumps(incorrect)}

Provide:
1. A percentile estimate (e.g., "75th-85th Percentile").
2. Detailed summary.
3. Specific strengths and weaknesses.
4. Recommendations.
5. Scores for each category tested.
6. 'incorrect_questions' array: For each error in the data above, create an entry.
   - IMPORTANT: Copy the 'question_context' provided in the data into 'question_text' so the user knows what the question was.
   - For Word Meaning, list the 3 words.
   - Provide a helpful explanation.

Output JSON.
"""
    return prompt.strip()
