"""
LinguaSRS – Review card store
==============================
In-memory collection of review cards keyed by ``word_id``.  This is the
source of truth for the running process; persistence adapters only mirror it.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Iterator, List, Optional

from core.models import ReviewCard

log = logging.getLogger(__name__)


class ReviewCardStore:
    """Ordered mapping of word_id → ReviewCard, at most one card per id."""

    def __init__(self, cards: Iterable[ReviewCard] = ()) -> None:
        self._cards: Dict[str, ReviewCard] = {}
        self.replace_all(cards)

    def insert_if_absent(self, card: ReviewCard) -> bool:
        """Add *card* unless its word_id is already stored. Returns True if added."""
        if card.word_id in self._cards:
            return False
        self._cards[card.word_id] = card
        return True

    def update(self, word_id: str, card: ReviewCard) -> bool:
        """Replace the stored card. Returns False (and does nothing) if absent."""
        if word_id not in self._cards:
            return False
        self._cards[word_id] = card
        return True

    def remove(self, word_id: str) -> bool:
        return self._cards.pop(word_id, None) is not None

    def get(self, word_id: str) -> Optional[ReviewCard]:
        return self._cards.get(word_id)

    def all(self) -> List[ReviewCard]:
        """Every stored card, in insertion order."""
        return list(self._cards.values())

    def clear(self) -> None:
        self._cards.clear()

    def replace_all(self, cards: Iterable[ReviewCard]) -> None:
        """Reset the store to *cards*; later duplicates of an id are dropped."""
        self._cards.clear()
        for card in cards:
            if not self.insert_if_absent(card):
                log.warning("Dropping duplicate card %r", card.word_id)

    def __contains__(self, word_id: object) -> bool:
        return word_id in self._cards

    def __len__(self) -> int:
        return len(self._cards)

    def __iter__(self) -> Iterator[ReviewCard]:
        return iter(self.all())
