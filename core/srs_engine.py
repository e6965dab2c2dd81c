"""
LinguaSRS – SM-2 Spaced Repetition Engine
==========================================
Implements the SuperMemo-2 variant used to schedule review cards, plus the
read-only queries (due, weak, new, mastery) derived from a card collection.

Everything here is pure: the current date is always passed in, and cards
are returned as new objects instead of being modified in place.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, Iterable, List, Tuple

from core.models import MasteryLevel, ReviewCard

log = logging.getLogger(__name__)

MIN_EASE = 1.3
MAX_EASE = 2.5
FAILURE_PENALTY = 0.2
PASSING_QUALITY = 3

WEAK_EASE_THRESHOLD = 2.0
WEAK_ACCURACY_THRESHOLD = 60.0


# ---------------------------------------------------------------------------
# SM-2 core algorithm
# ---------------------------------------------------------------------------

def _clamp_ease(value: float) -> float:
    return min(MAX_EASE, max(MIN_EASE, value))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_sm2(
    quality: int,
    repetitions: int,
    easiness: float,
    interval: int,
) -> Tuple[int, float, int]:
    """Apply the SM-2 algorithm and return updated scheduling values.

    Parameters
    ----------
    quality : int
        Learner grade.  The UI offers 1 (forgot), 3 (hard), 4 (good) and
        5 (easy); anything below 3 counts as a failed recall.
    repetitions : int
        Current number of consecutive successful reviews.
    easiness : float
        Current ease factor, kept within [1.3, 2.5].
    interval : int
        Current inter-repetition interval in days.

    Returns
    -------
    (new_repetitions, new_easiness, new_interval)
    """
    if quality < 0 or quality > 5:
        raise ValueError(f"quality must be 0-5, got {quality}")

    if quality >= PASSING_QUALITY:
        new_repetitions = repetitions + 1
        if new_repetitions == 1:
            new_interval = 1
        elif new_repetitions == 2:
            new_interval = 6
        else:
            new_interval = _round_half_up(interval * easiness)
        delta = 0.1 - (5 - quality) * (0.08 + (5 - quality) * 0.02)
        new_easiness = _clamp_ease(easiness + delta)
    else:
        # Failed review: reset
        new_repetitions = 0
        new_interval = 1
        new_easiness = _clamp_ease(easiness - FAILURE_PENALTY)

    return new_repetitions, new_easiness, new_interval


def review_card(card: ReviewCard, quality: int, today: date) -> ReviewCard:
    """Return a copy of *card* rescheduled after a review graded *quality*."""
    success = quality >= PASSING_QUALITY
    new_reps, new_ef, new_interval = calculate_sm2(
        quality, card.repetitions, card.ease_factor, card.interval
    )
    return card.copy(
        ease_factor=new_ef,
        interval=new_interval,
        repetitions=new_reps,
        next_review_date=today + timedelta(days=new_interval),
        last_reviewed_date=today,
        last_quality=int(quality),
        total_reviews=card.total_reviews + 1,
        correct_reviews=card.correct_reviews + (1 if success else 0),
    )


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

def mastery_level(card: ReviewCard) -> MasteryLevel:
    """Classify a card; the first matching rule wins."""
    reps, ef = card.repetitions, card.ease_factor
    if reps == 0:
        return MasteryLevel.NEW
    if reps <= 2:
        return MasteryLevel.LEARNING
    if reps <= 5 and ef >= 2.0:
        return MasteryLevel.FAMILIAR
    if reps <= 10 and ef >= 2.2:
        return MasteryLevel.PROFICIENT
    if reps > 10 and ef >= 2.4:
        return MasteryLevel.MASTERED
    return MasteryLevel.LEARNING


def is_weak(
    card: ReviewCard,
    ease_threshold: float = WEAK_EASE_THRESHOLD,
    accuracy_threshold: float = WEAK_ACCURACY_THRESHOLD,
) -> bool:
    return card.ease_factor < ease_threshold or card.accuracy_rate < accuracy_threshold


# ---------------------------------------------------------------------------
# Query helpers
# ---------------------------------------------------------------------------

def get_due_cards(cards: Iterable[ReviewCard], today: date) -> List[ReviewCard]:
    """Return cards whose next_review_date is on or before *today*."""
    due = [c for c in cards if c.is_due(today)]
    log.debug("Found %d due cards for %s", len(due), today)
    return due


def get_weak_cards(
    cards: Iterable[ReviewCard],
    ease_threshold: float = WEAK_EASE_THRESHOLD,
    accuracy_threshold: float = WEAK_ACCURACY_THRESHOLD,
    *,
    include_unreviewed: bool = True,
) -> List[ReviewCard]:
    """Return cards with a low ease factor or a low accuracy rate.

    A card that was never reviewed has 0 % accuracy and is therefore weak;
    pass ``include_unreviewed=False`` to leave such cards out.
    """
    return [
        c for c in cards
        if is_weak(c, ease_threshold, accuracy_threshold)
        and (include_unreviewed or c.total_reviews > 0)
    ]


def get_new_cards(cards: Iterable[ReviewCard]) -> List[ReviewCard]:
    """Return cards that have never been reviewed."""
    return [c for c in cards if c.total_reviews == 0]


def sort_by_priority(cards: Iterable[ReviewCard], today: date) -> List[ReviewCard]:
    """Due cards first, then the hardest (lowest ease factor) first."""
    return sorted(cards, key=lambda c: (not c.is_due(today), c.ease_factor))


# ---------------------------------------------------------------------------
# Collection-level statistics
# ---------------------------------------------------------------------------

@dataclass
class CollectionStats:
    total: int = 0
    due_today: int = 0
    by_mastery: Dict[MasteryLevel, int] = field(
        default_factory=lambda: {level: 0 for level in MasteryLevel}
    )
    average_ease: float = 0.0
    average_accuracy: float = 0.0

    @property
    def new(self) -> int:
        return self.by_mastery[MasteryLevel.NEW]

    @property
    def mastered(self) -> int:
        return self.by_mastery[MasteryLevel.MASTERED]


def collection_stats(cards: Iterable[ReviewCard], today: date) -> CollectionStats:
    """Return totals, due count, mastery breakdown and averages.

    Average accuracy only counts cards that have been reviewed at least once.
    """
    cards = list(cards)
    stats = CollectionStats()
    if not cards:
        return stats

    stats.total = len(cards)
    stats.due_today = sum(1 for c in cards if c.is_due(today))
    for c in cards:
        stats.by_mastery[mastery_level(c)] += 1
    stats.average_ease = sum(c.ease_factor for c in cards) / len(cards)

    reviewed = [c for c in cards if c.total_reviews > 0]
    if reviewed:
        stats.average_accuracy = sum(c.accuracy_rate for c in reviewed) / len(reviewed)
    return stats
