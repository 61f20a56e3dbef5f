"""Error taxonomy for the assessment orchestrator.

Invalid transitions (an answer arriving outside the test phase, a tick for a
superseded question) are not errors: the orchestrator ignores them and logs
at DEBUG level.
"""

from typing import Optional

from cognigen.models import AssessmentCategory


class AssessmentError(Exception):
    """Base class for all assessment errors."""


class SectionLoadError(AssessmentError):
    """A section's question batch could not be loaded.

    Raised when the question-generation collaborator is unreachable, fails,
    or returns a batch that does not match the requested shape. Partial
    batches are never accepted.

    Attributes:
        category: Category whose section failed to load
        reason: Short description of the failure
    """

    def __init__(self, category: AssessmentCategory, reason: str):
        self.category = category
        self.reason = reason
        super().__init__(f"Failed to load {category.value} section: {reason}")


class AnalysisError(AssessmentError):
    """The analysis collaborator failed or returned an unusable result."""


class MissingCredentialError(AssessmentError):
    """No credential is configured for an LLM provider.

    Attributes:
        provider: Provider name the credential is missing for
    """

    def __init__(self, provider: str, setting_name: Optional[str] = None):
        self.provider = provider
        self.setting_name = setting_name
        hint = f" (set {setting_name.upper()})" if setting_name else ""
        super().__init__(f"API key for {provider} is missing{hint}")


class HistoryStoreError(AssessmentError):
    """The assessment history file could not be read or written."""
