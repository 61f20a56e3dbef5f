"""Analysis collaborator: turns a finished run into a structured report.

Analysis never blocks a run from completing. Without a provider, or when the
provider fails or answers with something unusable, a deterministic
placeholder result is returned instead.
"""

import asyncio
import logging
from typing import Optional, Sequence

from pydantic import ValidationError

from cognigen.exceptions import AnalysisError
from cognigen.ledger import ResponseLedger
from cognigen.models import AnalysisResult, CategoryScore, UserResponse
from cognigen.prompts import ANALYSIS_SCHEMA, build_analysis_prompt
from cognigen.providers.base import BaseLLMProvider, LLMProviderError

logger = logging.getLogger(__name__)

PLACEHOLDER_SUMMARY = "Analysis failed due to missing API key or error."


def placeholder_analysis(responses: Sequence[UserResponse]) -> AnalysisResult:
    """Placeholder analysis with locally computed category scores."""
    ledger = ResponseLedger()
    for response in responses:
        ledger.record(response)
    return AnalysisResult(
        iq_estimate_range="N/A",
        summary=PLACEHOLDER_SUMMARY,
        strengths=["N/A"],
        weaknesses=["N/A"],
        recommendations=["Ensure API Key is set"],
        category_scores=[
            CategoryScore(category=category.value, score=score)
            for category, score in ledger.category_scores().items()
        ],
        incorrect_questions=[],
    )


class ResultAnalyzer:
    """Requests a run analysis from an LLM provider."""

    def __init__(
        self,
        provider: Optional[BaseLLMProvider] = None,
        temperature: float = 0.4,
        max_tokens: int = 4096,
        timeout_seconds: float = 60.0,
    ):
        self.provider = provider
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout_seconds = timeout_seconds

    async def analyze(self, responses: Sequence[UserResponse]) -> AnalysisResult:
        """Analyze a finished run.

        Args:
            responses: Every response of the run, in presentation order

        Returns:
            The provider's analysis, or the placeholder on any failure
        """
        if self.provider is None:
            logger.warning("No analysis provider configured, using placeholder")
            return placeholder_analysis(responses)

        try:
            return await self._request_analysis(responses)
        except AnalysisError as e:
            logger.error(f"Error analyzing results: {e}")
        except Exception as e:
            logger.exception(f"Unexpected error analyzing results: {e}")
        return placeholder_analysis(responses)

    async def _request_analysis(
        self, responses: Sequence[UserResponse]
    ) -> AnalysisResult:
        try:
            data = await asyncio.wait_for(
                self.provider.generate_structured_completion_async(
                    build_analysis_prompt(responses),
                    response_format=ANALYSIS_SCHEMA,
                    temperature=self.temperature,
                    max_tokens=self.max_tokens,
                ),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise AnalysisError(
                f"analysis timed out after {self.timeout_seconds}s"
            ) from e
        except LLMProviderError as e:
            raise AnalysisError(str(e)) from e

        try:
            return AnalysisResult.model_validate(data)
        except ValidationError as e:
            raise AnalysisError(
                f"analysis response is malformed: {e.error_count()} errors"
            ) from e
