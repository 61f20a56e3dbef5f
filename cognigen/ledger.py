"""Response ledger: the ordered record of every answered question."""

import logging
import math
from typing import Dict, Iterator, List, Tuple

from cognigen.models import AssessmentCategory, UserResponse

logger = logging.getLogger(__name__)


def score_percent(correct: int, total: int) -> int:
    """Percentage of correct answers, rounded half up to a whole number.

    Args:
        correct: Number of correct answers
        total: Number of answers

    Returns:
        Rounded percentage in the range 0-100

    Raises:
        ValueError: If total is not positive
    """
    if total <= 0:
        raise ValueError("score is undefined without any responses")
    return math.floor(100 * correct / total + 0.5)


class ResponseLedger:
    """Append-only, presentation-ordered list of user responses.

    Entries are never reordered or deduplicated. The only removals are a
    whole category (section restart) or everything (quit / new run).
    """

    def __init__(self) -> None:
        self._responses: List[UserResponse] = []

    def __len__(self) -> int:
        return len(self._responses)

    def __iter__(self) -> Iterator[UserResponse]:
        return iter(tuple(self._responses))

    @property
    def responses(self) -> Tuple[UserResponse, ...]:
        """Snapshot of every response in presentation order."""
        return tuple(self._responses)

    def record(self, response: UserResponse) -> None:
        """Append a response."""
        self._responses.append(response)

    @property
    def correct_count(self) -> int:
        return sum(1 for r in self._responses if r.is_correct)

    def accuracy(self) -> float:
        """Fraction of responses answered correctly.

        Raises:
            ValueError: If the ledger is empty
        """
        if not self._responses:
            raise ValueError("accuracy is undefined for an empty ledger")
        return self.correct_count / len(self._responses)

    def score(self) -> int:
        """Accuracy as a rounded percentage, as stored in history."""
        return score_percent(self.correct_count, len(self._responses))

    def for_category(self, category: AssessmentCategory) -> List[UserResponse]:
        """Responses of one category, in presentation order."""
        return [r for r in self._responses if r.category == category]

    def category_scores(self) -> Dict[AssessmentCategory, int]:
        """Rounded percentage score for every category with responses."""
        totals: Dict[AssessmentCategory, List[int]] = {}
        for response in self._responses:
            counts = totals.setdefault(response.category, [0, 0])
            counts[0] += int(response.is_correct)
            counts[1] += 1
        return {
            category: score_percent(correct, total)
            for category, (correct, total) in totals.items()
        }

    def clear_category(self, category: AssessmentCategory) -> int:
        """Remove every response of a category.

        Returns:
            Number of responses removed
        """
        kept = [r for r in self._responses if r.category != category]
        removed = len(self._responses) - len(kept)
        self._responses = kept
        if removed:
            logger.debug(f"Removed {removed} {category.value} responses from ledger")
        return removed

    def clear(self) -> None:
        """Remove every response."""
        self._responses = []
