"""Base class for LLM providers."""

import json
from abc import ABC, abstractmethod
from typing import Any, Dict

from ..error_classifier import ClassifiedError, ErrorClassifier
from ..exceptions import MissingCredentialError


class LLMProviderError(Exception):
    """Exception raised by LLM providers with classification.

    Attributes:
        classified_error: The classified error with its category
        original_exception: The original exception that was raised
    """

    def __init__(
        self,
        classified_error: ClassifiedError,
        original_exception: Exception,
    ):
        self.classified_error = classified_error
        self.original_exception = original_exception
        super().__init__(str(classified_error))


class BaseLLMProvider(ABC):
    """Abstract base class for LLM provider integrations."""

    def __init__(self, api_key: str, model: str):
        """
        Initialize the LLM provider.

        Args:
            api_key: API key for the provider
            model: Model identifier to use

        Raises:
            MissingCredentialError: If no API key is given
        """
        if not api_key:
            raise MissingCredentialError(
                self.get_provider_name(), f"{self.get_provider_name()}_api_key"
            )
        self.api_key = api_key
        self.model = model

    @abstractmethod
    async def generate_structured_completion_async(
        self,
        prompt: str,
        response_format: Dict[str, Any],
        temperature: float = 0.7,
        max_tokens: int = 1000,
        **kwargs: Any,
    ) -> Dict[str, Any]:
        """
        Generate a structured (JSON) completion from the LLM.

        Args:
            prompt: The prompt to send to the model
            response_format: JSON schema for the expected response
            temperature: Sampling temperature
            max_tokens: Maximum number of tokens to generate
            **kwargs: Additional provider-specific parameters

        Returns:
            Parsed JSON response as a dictionary

        Raises:
            LLMProviderError: If the API call fails or the response is not JSON
        """

    def get_provider_name(self) -> str:
        """
        Get the name of this provider.

        Returns:
            Provider name (e.g., "google")
        """
        return self.__class__.__name__.replace("Provider", "").lower()

    @staticmethod
    def _parse_json(content: str) -> Dict[str, Any]:
        """Parse a JSON completion, tolerating markdown code fences."""
        content = content.strip()
        if content.startswith("```json"):
            content = content[7:]
        elif content.startswith("```"):
            content = content[3:]
        if content.endswith("```"):
            content = content[:-3]
        parsed = json.loads(content.strip())
        if not isinstance(parsed, dict):
            raise json.JSONDecodeError("Expected a JSON object", content, 0)
        return parsed

    def _handle_api_error(self, error: Exception) -> LLMProviderError:
        """Classify and wrap an API error.

        Args:
            error: The exception that was raised

        Returns:
            LLMProviderError with classified error
        """
        classified = ErrorClassifier.classify_error(
            error=error,
            provider=self.get_provider_name(),
        )
        return LLMProviderError(
            classified_error=classified,
            original_exception=error,
        )
