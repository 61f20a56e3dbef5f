"""Google Generative AI provider integration."""

import json
import logging
from typing import Any, Dict

import google.generativeai as genai
from google.generativeai.types import GenerationConfig

from .base import BaseLLMProvider

logger = logging.getLogger(__name__)


class GoogleProvider(BaseLLMProvider):
    """Gemini integration for question generation and result analysis."""

    def __init__(self, api_key: str, model: str = "gemini-2.5-flash"):
        """
        Initialize Google provider.

        Args:
            api_key: Google API key
            model: Model to use (default: gemini-2.5-flash)
        """
        super().__init__(api_key, model)
        genai.configure(api_key=api_key)
        self.client = genai.GenerativeModel(model)

    async def generate_structured_completion_async(
        self,
        prompt: str,
        response_format: Dict[str, Any],
        temperature: float = 0.7,
        max_tokens: int = 1000,
        **kwargs: Any,
    ) -> Dict[str, Any]:
        """
        Generate a structured JSON completion using the Gemini API.

        The schema is spelled out in the prompt and JSON output is requested
        through the response MIME type.

        Args:
            prompt: The prompt to send to the model
            response_format: JSON schema for the expected response
            temperature: Sampling temperature (0.0 to 2.0)
            max_tokens: Maximum tokens to generate
            **kwargs: Additional Google-specific generation parameters

        Returns:
            Parsed JSON response as a dictionary

        Raises:
            LLMProviderError: If the API call fails or the response is not JSON
        """
        json_prompt = (
            f"{prompt}\n\n"
            f"Respond with valid JSON matching this schema: {json.dumps(response_format)}\n"
            f"Your response must be only valid JSON with no additional text."
        )

        try:
            generation_config = GenerationConfig(
                temperature=temperature,
                max_output_tokens=max_tokens,
                response_mime_type="application/json",
                **kwargs,
            )

            response = await self.client.generate_content_async(
                json_prompt,
                generation_config=generation_config,
            )

            content = response.text or ""
            logger.debug(f"Gemini response content: {content[:500]}")
            return self._parse_json(content)

        except Exception as e:
            raise self._handle_api_error(e) from e
