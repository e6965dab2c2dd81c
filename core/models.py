"""
LinguaSRS – Domain models
==========================
Plain dataclasses for review cards, catalogue vocabulary and the grading
scale.  Scheduling state lives only on ``ReviewCard``; ``VocabularyItem``
links to it through the shared identifier.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum, IntEnum
from typing import Any, Dict, List, Optional


# ---------------------------------------------------------------------------
# Grading scale
# ---------------------------------------------------------------------------

class Quality(IntEnum):
    """Review grades offered to the learner."""

    FORGOT = 1
    HARD = 3
    GOOD = 4
    EASY = 5

    @property
    def display_name(self) -> str:
        return self.name.capitalize()


class MasteryLevel(Enum):
    NEW = "New"
    LEARNING = "Learning"
    FAMILIAR = "Familiar"
    PROFICIENT = "Proficient"
    MASTERED = "Mastered"

    @property
    def display_name(self) -> str:
        return self.value


class VocabularyCategory(Enum):
    NOUN = "noun"
    VERB = "verb"
    ADJECTIVE = "adjective"
    ADVERB = "adverb"
    PRONOUN = "pronoun"
    PREPOSITION = "preposition"
    CONJUNCTION = "conjunction"
    INTERJECTION = "interjection"
    PHRASE = "phrase"
    EXPRESSION = "expression"
    IDIOM = "idiom"
    GRAMMAR = "grammar"
    OTHER = "other"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @classmethod
    def parse(cls, value: str | None) -> "VocabularyCategory":
        """Map a stored name back to a category, defaulting to PHRASE."""
        try:
            return cls(value)
        except ValueError:
            return cls.PHRASE


# ---------------------------------------------------------------------------
# Ingestion input
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class VocabEntry:
    """One word supplied by a completed lesson."""

    source: str
    target: str
    pronunciation: Optional[str] = None
    example: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "VocabEntry":
        source = (data.get("source") or "").strip()
        if not source:
            raise ValueError(f"vocabulary entry without a source word: {data!r}")
        return cls(
            source=source,
            target=(data.get("target") or "").strip(),
            pronunciation=data.get("pronunciation"),
            example=data.get("example"),
        )


def make_word_id(lesson_id: str, source: str) -> str:
    """Identifier shared by a lesson word's card and catalogue entry."""
    return f"{lesson_id}_{source}"


# ---------------------------------------------------------------------------
# ReviewCard – a scheduled word with SM-2 metadata
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ReviewCard:
    """A scheduled word.  Immutable: a review produces a new card via ``copy``."""

    word_id: str
    source_word: str
    target_word: str
    language_pair: str
    level: str
    lesson_id: str
    created_at: date
    next_review_date: date

    pronunciation: Optional[str] = None
    example_sentence: Optional[str] = None

    # SM-2 scheduling fields
    ease_factor: float = 2.5
    interval: int = 0            # days
    repetitions: int = 0
    last_reviewed_date: Optional[date] = None
    last_quality: Optional[int] = None
    total_reviews: int = 0
    correct_reviews: int = 0

    @classmethod
    def create(
        cls,
        *,
        word_id: str,
        source_word: str,
        target_word: str,
        language_pair: str,
        level: str,
        lesson_id: str,
        today: date,
        pronunciation: str | None = None,
        example_sentence: str | None = None,
    ) -> "ReviewCard":
        """Build a never-reviewed card that is due on *today*."""
        return cls(
            word_id=word_id,
            source_word=source_word,
            target_word=target_word,
            language_pair=language_pair,
            level=level,
            lesson_id=lesson_id,
            pronunciation=pronunciation,
            example_sentence=example_sentence,
            created_at=today,
            next_review_date=today,
        )

    # ── Derived values ───────────────────────────────────────────────
    @property
    def accuracy_rate(self) -> float:
        """Percentage of correct reviews; 0 for a card never reviewed."""
        if self.total_reviews == 0:
            return 0.0
        return self.correct_reviews / self.total_reviews * 100

    def is_due(self, today: date) -> bool:
        return self.next_review_date <= today

    def copy(self, **changes: Any) -> "ReviewCard":
        return dataclasses.replace(self, **changes)

    # ── JSON form ────────────────────────────────────────────────────
    def to_dict(self) -> Dict[str, Any]:
        data = dataclasses.asdict(self)
        for key in ("created_at", "next_review_date", "last_reviewed_date"):
            if data[key] is not None:
                data[key] = data[key].isoformat()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReviewCard":
        """Rebuild a card; raises KeyError / ValueError / TypeError on bad data."""
        last_reviewed = data.get("last_reviewed_date")
        last_quality = data.get("last_quality")
        return cls(
            word_id=str(data["word_id"]),
            source_word=str(data["source_word"]),
            target_word=str(data["target_word"]),
            language_pair=str(data["language_pair"]),
            level=str(data["level"]),
            lesson_id=str(data["lesson_id"]),
            pronunciation=data.get("pronunciation"),
            example_sentence=data.get("example_sentence"),
            ease_factor=float(data["ease_factor"]),
            interval=int(data["interval"]),
            repetitions=int(data["repetitions"]),
            next_review_date=date.fromisoformat(data["next_review_date"]),
            last_reviewed_date=date.fromisoformat(last_reviewed) if last_reviewed else None,
            last_quality=int(last_quality) if last_quality is not None else None,
            total_reviews=int(data["total_reviews"]),
            correct_reviews=int(data["correct_reviews"]),
            created_at=date.fromisoformat(data["created_at"]),
        )

    def __repr__(self) -> str:
        return (
            f"<ReviewCard word_id={self.word_id!r} reps={self.repetitions} "
            f"ef={self.ease_factor:.2f} next={self.next_review_date}>"
        )


# ---------------------------------------------------------------------------
# VocabularyItem – catalogue entry (not necessarily scheduled)
# ---------------------------------------------------------------------------

@dataclass
class VocabularyItem:
    id: str
    source: str
    target: str
    lesson_id: str
    level: str
    language_pair: str
    added_at: datetime
    category: VocabularyCategory = VocabularyCategory.PHRASE
    pronunciation: Optional[str] = None
    example_sentence: Optional[str] = None
    example_translation: Optional[str] = None
    notes: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    in_schedule: bool = False

    @classmethod
    def from_entry(
        cls,
        entry: VocabEntry,
        *,
        lesson_id: str,
        level: str,
        language_pair: str,
        added_at: datetime,
        category: VocabularyCategory = VocabularyCategory.PHRASE,
    ) -> "VocabularyItem":
        return cls(
            id=make_word_id(lesson_id, entry.source),
            source=entry.source,
            target=entry.target,
            pronunciation=entry.pronunciation,
            example_sentence=entry.example,
            lesson_id=lesson_id,
            level=level,
            language_pair=language_pair,
            category=category,
            added_at=added_at,
        )

    def matches_query(self, query: str) -> bool:
        q = query.lower()
        return (
            q in self.source.lower()
            or q in self.target.lower()
            or any(q in t.lower() for t in self.tags)
        )

    def to_card(self, today: date) -> ReviewCard:
        """Promote this word into a fresh review card with the same id."""
        return ReviewCard.create(
            word_id=self.id,
            source_word=self.source,
            target_word=self.target,
            language_pair=self.language_pair,
            level=self.level,
            lesson_id=self.lesson_id,
            pronunciation=self.pronunciation,
            example_sentence=self.example_sentence,
            today=today,
        )

    def copy(self, **changes: Any) -> "VocabularyItem":
        return dataclasses.replace(self, **changes)

    def __repr__(self) -> str:
        return f"<VocabularyItem id={self.id!r} in_schedule={self.in_schedule}>"
