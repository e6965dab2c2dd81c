"""
LinguaSRS – Review statistics collaborators
============================================
The scheduler reports every scheduled review outcome to a statistics
collaborator.  ``ReviewTally`` keeps counts in memory (also used by practice
sessions); ``db.repository.SqlReviewStatistics`` persists per-day counters.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


class StatisticsCollaborator(Protocol):
    def on_review(self, correct: bool) -> None: ...


@dataclass
class ReviewTally:
    """Answered / correct counters."""

    answered: int = 0
    correct: int = 0

    def on_review(self, correct: bool) -> None:
        self.answered += 1
        if correct:
            self.correct += 1

    @property
    def accuracy(self) -> float:
        if self.answered == 0:
            return 0.0
        return self.correct / self.answered * 100
