"""Question generation collaborator.

Asks an LLM provider for one section's batch of questions. The returned
batch is raw JSON; the section loader is responsible for validating it.
"""

import asyncio
import logging
import random
import time
from typing import Any, Dict, Optional

from cognigen.models import AssessmentCategory
from cognigen.prompts import QUESTION_BATCH_SCHEMA, build_generation_prompt
from cognigen.providers.base import BaseLLMProvider

logger = logging.getLogger(__name__)

# Option lists whose order would otherwise give the answer away
_SHUFFLED_FIELDS = {
    AssessmentCategory.WORD_MEANING: "word_options",
    AssessmentCategory.NUMBER_SPEED: "number_triplets",
}


class QuestionGenerator:
    """Generates GIA question batches through an LLM provider."""

    def __init__(
        self,
        provider: BaseLLMProvider,
        temperature: float = 0.7,
        max_tokens: int = 8192,
        timeout_seconds: float = 120.0,
        rng: Optional[random.Random] = None,
    ):
        """Initialize the generator.

        Args:
            provider: LLM provider used for structured completions
            temperature: Sampling temperature for generation
            max_tokens: Maximum tokens for one batch
            timeout_seconds: Timeout for the provider call
            rng: Random source for option shuffling
        """
        self.provider = provider
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout_seconds = timeout_seconds
        self._rng = rng or random.Random()

    async def generate_questions(
        self, category: AssessmentCategory, count: int
    ) -> Dict[str, Any]:
        """Generate a raw batch of questions for one category.

        Args:
            category: Category to generate
            count: Number of questions requested

        Returns:
            Provider response of the form {"questions": [...]}, with option
            order randomized where it would otherwise be predictable

        Raises:
            LLMProviderError: If the provider call fails
            asyncio.TimeoutError: If the provider does not answer in time
        """
        prompt = build_generation_prompt(category, count)
        start = time.perf_counter()
        data = await asyncio.wait_for(
            self.provider.generate_structured_completion_async(
                prompt,
                response_format=QUESTION_BATCH_SCHEMA,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            ),
            timeout=self.timeout_seconds,
        )
        duration_ms = round((time.perf_counter() - start) * 1000)
        logger.info(
            f"{self.provider.get_provider_name()} returned {category.value} batch "
            f"in {duration_ms}ms",
            extra={"category": category.value, "duration_ms": duration_ms},
        )

        field_name = _SHUFFLED_FIELDS.get(category)
        questions = data.get("questions")
        if field_name and isinstance(questions, list):
            for item in questions:
                if isinstance(item, dict) and isinstance(item.get(field_name), list):
                    options = list(item[field_name])
                    self._rng.shuffle(options)
                    item[field_name] = options
        return data
