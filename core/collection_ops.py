"""
LinguaSRS – Collection export
==============================
CSV export of the review schedule and the vocabulary catalogue.
No scheduling logic here; callers pass in the collections.
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Iterable

from core.models import ReviewCard, VocabularyItem
from core.srs_engine import mastery_level

log = logging.getLogger(__name__)

CARD_COLUMNS = [
    "word_id", "source_word", "target_word", "language_pair", "level", "lesson_id",
    "ease_factor", "interval", "repetitions", "next_review_date", "last_reviewed_date",
    "total_reviews", "correct_reviews", "mastery",
]

VOCABULARY_COLUMNS = [
    "id", "source", "target", "pronunciation", "example_sentence",
    "lesson_id", "level", "language_pair", "category", "tags", "in_schedule",
]


def export_cards_csv(cards: Iterable[ReviewCard], filepath: str | Path) -> int:
    """Export review cards with their schedule to CSV. Returns rows written."""
    count = 0
    with open(filepath, "w", newline="", encoding="utf-8") as f:
        w = csv.writer(f)
        w.writerow(CARD_COLUMNS)
        for c in cards:
            w.writerow([
                c.word_id, c.source_word, c.target_word, c.language_pair, c.level,
                c.lesson_id, f"{c.ease_factor:.2f}", c.interval, c.repetitions,
                c.next_review_date.isoformat(),
                c.last_reviewed_date.isoformat() if c.last_reviewed_date else "",
                c.total_reviews, c.correct_reviews, mastery_level(c).display_name,
            ])
            count += 1
    log.info("Exported %d cards → %s", count, filepath)
    return count


def export_vocabulary_csv(items: Iterable[VocabularyItem], filepath: str | Path) -> int:
    """Export catalogue entries to CSV. Returns rows written."""
    count = 0
    with open(filepath, "w", newline="", encoding="utf-8") as f:
        w = csv.writer(f)
        w.writerow(VOCABULARY_COLUMNS)
        for i in items:
            w.writerow([
                i.id, i.source, i.target, i.pronunciation or "", i.example_sentence or "",
                i.lesson_id, i.level, i.language_pair, i.category.value,
                ",".join(i.tags), "yes" if i.in_schedule else "no",
            ])
            count += 1
    log.info("Exported %d vocabulary items → %s", count, filepath)
    return count
