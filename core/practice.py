"""
LinguaSRS – Free practice
==========================
Random drill over scheduled cards.  Answers are only tallied for the
session: a practice session never reschedules or modifies a card, and its
results are not reported to the review statistics.
"""

from __future__ import annotations

import random
from typing import List, Optional, Sequence

from core.models import ReviewCard
from core.statistics import ReviewTally


def sample_cards(
    cards: Sequence[ReviewCard],
    size: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> List[ReviewCard]:
    """Return *size* randomly chosen cards (all of them, shuffled, if None)."""
    rng = rng or random.Random()
    pool = list(cards)
    if size is None or size >= len(pool):
        size = len(pool)
    return rng.sample(pool, size)


class PracticeSession:
    """Walks a shuffled sample of cards and tallies answers."""

    def __init__(
        self,
        cards: Sequence[ReviewCard],
        size: Optional[int] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._cards = sample_cards(cards, size, rng)
        self._index = 0
        self.tally = ReviewTally()

    @property
    def cards(self) -> List[ReviewCard]:
        return list(self._cards)

    @property
    def current(self) -> Optional[ReviewCard]:
        if self._index >= len(self._cards):
            return None
        return self._cards[self._index]

    @property
    def finished(self) -> bool:
        return self._index >= len(self._cards)

    @property
    def remaining(self) -> int:
        return len(self._cards) - self._index

    def answer(self, correct: bool) -> Optional[ReviewCard]:
        """Record an answer for the current card and return the next one."""
        if self.finished:
            raise IndexError("practice session already finished")
        self.tally.on_review(correct)
        self._index += 1
        return self.current
