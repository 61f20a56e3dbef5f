"""Error classification for LLM API failures.

Provider exceptions are mapped onto a small set of categories so that logs
and user-facing messages can distinguish a bad key from a flaky network.
"""

import json
import re
from enum import Enum
from typing import List


class ErrorCategory(Enum):
    """Categories of API errors."""

    AUTHENTICATION = "authentication"  # API key invalid or expired
    QUOTA = "quota"  # Rate limited or out of quota
    SERVER_ERROR = "server_error"  # Provider server errors (5xx)
    NETWORK_ERROR = "network_error"  # Connection/timeout errors
    MALFORMED_RESPONSE = "malformed_response"  # Response is not the JSON we asked for
    UNKNOWN = "unknown"


class ClassifiedError:
    """A classified API error."""

    def __init__(
        self,
        category: ErrorCategory,
        provider: str,
        original_error: str,
        message: str,
        is_transient: bool = False,
    ):
        """Initialize classified error.

        Args:
            category: Error category
            provider: LLM provider name
            original_error: Original exception type name
            message: Human-readable error message
            is_transient: Whether retrying later may succeed
        """
        self.category = category
        self.provider = provider
        self.original_error = original_error
        self.message = message
        self.is_transient = is_transient

    def __str__(self) -> str:
        return f"{self.provider}: {self.category.value} - {self.message}"

    def to_dict(self) -> dict:
        """Convert to dictionary for logging."""
        return {
            "category": self.category.value,
            "provider": self.provider,
            "original_error": self.original_error,
            "message": self.message,
            "is_transient": self.is_transient,
        }


class ErrorClassifier:
    """Classifies API errors raised by LLM providers."""

    AUTH_PATTERNS = [
        r"invalid.*api.*key",
        r"api.*key.*not.*valid",
        r"api.*key.*expired",
        r"unauthorized",
        r"permission.*denied",
        r"401",
        r"403",
    ]

    QUOTA_PATTERNS = [
        r"quota.*exceeded",
        r"resource.*exhausted",
        r"rate.*limit",
        r"too.*many.*requests",
        r"429",
    ]

    SERVER_ERROR_PATTERNS = [
        r"internal.*error",
        r"service.*unavailable",
        r"50[0-9]",
        r"overloaded",
    ]

    NETWORK_PATTERNS = [
        r"connection.*(error|refused|reset)",
        r"timed?.*out",
        r"deadline.*exceeded",
        r"network.*error",
        r"dns",
    ]

    @staticmethod
    def classify_error(error: Exception, provider: str) -> ClassifiedError:
        """Classify an API error.

        Args:
            error: The exception that was raised
            provider: Provider name

        Returns:
            ClassifiedError with category and transience
        """
        error_str = str(error).lower()
        error_type = type(error).__name__

        if isinstance(error, json.JSONDecodeError):
            return ClassifiedError(
                category=ErrorCategory.MALFORMED_RESPONSE,
                provider=provider,
                original_error=error_type,
                message="Response could not be parsed as JSON.",
            )

        if ErrorClassifier._match_patterns(error_str, ErrorClassifier.AUTH_PATTERNS):
            return ClassifiedError(
                category=ErrorCategory.AUTHENTICATION,
                provider=provider,
                original_error=error_type,
                message=f"Authentication failed. Verify your {provider} API key.",
            )

        if ErrorClassifier._match_patterns(error_str, ErrorClassifier.QUOTA_PATTERNS):
            return ClassifiedError(
                category=ErrorCategory.QUOTA,
                provider=provider,
                original_error=error_type,
                message=f"Rate limit or quota exceeded for {provider}.",
                is_transient=True,
            )

        if ErrorClassifier._match_patterns(
            error_str, ErrorClassifier.SERVER_ERROR_PATTERNS
        ):
            return ClassifiedError(
                category=ErrorCategory.SERVER_ERROR,
                provider=provider,
                original_error=error_type,
                message=f"{provider} server error. This may be temporary.",
                is_transient=True,
            )

        if ErrorClassifier._match_patterns(error_str, ErrorClassifier.NETWORK_PATTERNS):
            return ClassifiedError(
                category=ErrorCategory.NETWORK_ERROR,
                provider=provider,
                original_error=error_type,
                message="Network connectivity issue. Please check your connection.",
                is_transient=True,
            )

        return ClassifiedError(
            category=ErrorCategory.UNKNOWN,
            provider=provider,
            original_error=error_type,
            message=f"Unclassified error from {provider}: {str(error)[:100]}",
        )

    @staticmethod
    def _match_patterns(text: str, patterns: List[str]) -> bool:
        """Check if text matches any of the given regex patterns."""
        return any(re.search(pattern, text, re.IGNORECASE) for pattern in patterns)
