"""Queue manager: which category runs next.

The queue only sequences category identity. Whether the next section's
questions are loaded is the section loader's business.
"""

from typing import Iterable, Optional, Tuple

from cognigen.models import AssessmentCategory, AssessmentMode, FULL_ASSESSMENT_ORDER


class CategoryQueue:
    """Ordered categories for one run plus the current position."""

    def __init__(self, categories: Iterable[AssessmentCategory] = ()):
        self._categories: Tuple[AssessmentCategory, ...] = tuple(categories)
        self._index = 0

    @classmethod
    def full(cls) -> "CategoryQueue":
        """Queue covering all five categories in the standard order."""
        return cls(FULL_ASSESSMENT_ORDER)

    @classmethod
    def practice(cls, category: AssessmentCategory) -> "CategoryQueue":
        """Single-category practice queue."""
        return cls((category,))

    def __len__(self) -> int:
        return len(self._categories)

    @property
    def categories(self) -> Tuple[AssessmentCategory, ...]:
        return self._categories

    @property
    def index(self) -> int:
        return self._index

    @property
    def mode(self) -> AssessmentMode:
        return AssessmentMode.FULL if len(self._categories) > 1 else AssessmentMode.PRACTICE

    @property
    def is_exhausted(self) -> bool:
        return self._index >= len(self._categories)

    def current(self) -> Optional[AssessmentCategory]:
        """Category at the current position, or None once exhausted."""
        if self.is_exhausted:
            return None
        return self._categories[self._index]

    def advance(self) -> bool:
        """Move to the next category.

        Returns:
            True if a next category exists
        """
        if not self.is_exhausted:
            self._index += 1
        return not self.is_exhausted

    def position_label(self) -> str:
        """Human-readable position, e.g. "Test 2 of 5"."""
        return f"Test {min(self._index + 1, len(self))} of {len(self)}"
