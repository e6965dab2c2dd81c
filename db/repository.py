"""
LinguaSRS – SQLAlchemy persistence adapters
============================================
Database-backed implementations of the persistence adapter and statistics
collaborator interfaces.  ``save`` keeps the full-collection contract but
only writes rows that changed and deletes rows that were removed.
"""

from __future__ import annotations

import json
import logging
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence

from sqlalchemy.exc import DBAPIError, SQLAlchemyError, StatementError
from sqlalchemy.orm import sessionmaker

from core.models import ReviewCard, VocabularyCategory, VocabularyItem
from core.persistence import CorruptDataError, PersistenceError
from db.models import DailyReviewStat, ReviewCardRecord, VocabularyRecord

log = logging.getLogger(__name__)


# ── Row ↔ model mapping ──────────────────────────────────────────────

def _card_values(card: ReviewCard, position: int) -> Dict[str, Any]:
    return {
        "word_id": card.word_id,
        "position": position,
        "source_word": card.source_word,
        "target_word": card.target_word,
        "language_pair": card.language_pair,
        "level": card.level,
        "lesson_id": card.lesson_id,
        "pronunciation": card.pronunciation,
        "example_sentence": card.example_sentence,
        "ease_factor": card.ease_factor,
        "interval": card.interval,
        "repetitions": card.repetitions,
        "next_review_date": card.next_review_date,
        "last_reviewed_date": card.last_reviewed_date,
        "last_quality": card.last_quality,
        "total_reviews": card.total_reviews,
        "correct_reviews": card.correct_reviews,
        "created_at": card.created_at,
    }


def _card_from_row(row: ReviewCardRecord) -> ReviewCard:
    if not isinstance(row.next_review_date, date) or not isinstance(row.created_at, date):
        raise ValueError(f"card {row.word_id!r} has no valid dates")
    return ReviewCard(
        word_id=row.word_id,
        source_word=row.source_word,
        target_word=row.target_word,
        language_pair=row.language_pair,
        level=row.level,
        lesson_id=row.lesson_id,
        pronunciation=row.pronunciation,
        example_sentence=row.example_sentence,
        ease_factor=float(row.ease_factor),
        interval=int(row.interval),
        repetitions=int(row.repetitions),
        next_review_date=row.next_review_date,
        last_reviewed_date=row.last_reviewed_date,
        last_quality=row.last_quality,
        total_reviews=int(row.total_reviews),
        correct_reviews=int(row.correct_reviews),
        created_at=row.created_at,
    )


def _naive_utc(value: datetime) -> datetime:
    # SQLite DateTime columns drop tzinfo; store UTC wall time
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _item_values(item: VocabularyItem, position: int) -> Dict[str, Any]:
    return {
        "id": item.id,
        "position": position,
        "source": item.source,
        "target": item.target,
        "pronunciation": item.pronunciation,
        "example_sentence": item.example_sentence,
        "example_translation": item.example_translation,
        "lesson_id": item.lesson_id,
        "level": item.level,
        "language_pair": item.language_pair,
        "category": item.category.value,
        "notes": item.notes,
        "tags": json.dumps(list(item.tags), ensure_ascii=False),
        "in_schedule": item.in_schedule,
        "added_at": _naive_utc(item.added_at),
    }


def _tags_from_text(text: Optional[str]) -> List[str]:
    if not text:
        return []
    tags = json.loads(text)
    if not isinstance(tags, list):
        raise ValueError(f"tags must be a JSON array, got {text!r}")
    return [str(t) for t in tags]


def _item_from_row(row: VocabularyRecord) -> VocabularyItem:
    return VocabularyItem(
        id=row.id,
        source=row.source,
        target=row.target,
        pronunciation=row.pronunciation,
        example_sentence=row.example_sentence,
        example_translation=row.example_translation,
        lesson_id=row.lesson_id,
        level=row.level,
        language_pair=row.language_pair,
        category=VocabularyCategory.parse(row.category),
        notes=row.notes,
        tags=_tags_from_text(row.tags),
        in_schedule=bool(row.in_schedule),
        added_at=row.added_at.replace(tzinfo=timezone.utc) if row.added_at else row.added_at,
    )


# ── Generic keyed table adapter ──────────────────────────────────────

class _KeyedTableAdapter:
    """Mirror an ordered collection into one table keyed by primary key."""

    record_cls: Any = None
    key_attr = ""
    label = "records"

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def _to_values(self, item: Any, position: int) -> Dict[str, Any]:
        raise NotImplementedError

    def _from_row(self, row: Any) -> Any:
        raise NotImplementedError

    def load(self) -> Optional[List[Any]]:
        s = self._session_factory()
        try:
            rows = s.query(self.record_cls).order_by(self.record_cls.position).all()
            if not rows:
                return None
            items = [self._from_row(r) for r in rows]
        except DBAPIError as exc:
            # locked or unreachable database, not bad data
            raise PersistenceError(f"Could not load {self.label}: {exc}") from exc
        except (StatementError, ValueError, TypeError, KeyError) as exc:
            raise CorruptDataError(f"Unreadable {self.label}: {exc}") from exc
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not load {self.label}: {exc}") from exc
        finally:
            s.close()
        log.info("Loaded %d %s from the database", len(items), self.label)
        return items

    def save(self, items: Sequence[Any]) -> None:
        s = self._session_factory()
        try:
            existing = {getattr(r, self.key_attr): r for r in s.query(self.record_cls).all()}
            keep = set()
            written = 0
            for position, item in enumerate(items):
                values = self._to_values(item, position)
                key = values[self.key_attr]
                keep.add(key)
                row = existing.get(key)
                if row is None:
                    s.add(self.record_cls(**values))
                    written += 1
                    continue
                changed = False
                for attr, value in values.items():
                    if getattr(row, attr) != value:
                        setattr(row, attr, value)
                        changed = True
                written += changed
            removed = [row for key, row in existing.items() if key not in keep]
            for row in removed:
                s.delete(row)
            s.commit()
        except SQLAlchemyError as exc:
            s.rollback()
            raise PersistenceError(f"Could not save {self.label}: {exc}") from exc
        finally:
            s.close()
        log.debug("Saved %s: %d written, %d deleted", self.label, written, len(removed))


class SqlCardAdapter(_KeyedTableAdapter):
    record_cls = ReviewCardRecord
    key_attr = "word_id"
    label = "review cards"

    def _to_values(self, item: ReviewCard, position: int) -> Dict[str, Any]:
        return _card_values(item, position)

    def _from_row(self, row: ReviewCardRecord) -> ReviewCard:
        return _card_from_row(row)


class SqlVocabularyAdapter(_KeyedTableAdapter):
    record_cls = VocabularyRecord
    key_attr = "id"
    label = "vocabulary items"

    def _to_values(self, item: VocabularyItem, position: int) -> Dict[str, Any]:
        return _item_values(item, position)

    def _from_row(self, row: VocabularyRecord) -> VocabularyItem:
        return _item_from_row(row)


# ── Statistics ───────────────────────────────────────────────────────

class SqlReviewStatistics:
    """Counts scheduled reviews per calendar day."""

    def __init__(self, session_factory: sessionmaker, clock: Callable[[], date] = date.today) -> None:
        self._session_factory = session_factory
        self._clock = clock

    def on_review(self, correct: bool) -> None:
        today = self._clock()
        s = self._session_factory()
        try:
            stat = s.get(DailyReviewStat, today)
            if stat is None:
                stat = DailyReviewStat(day=today, reviews=0, correct=0)
                s.add(stat)
            stat.reviews += 1
            if correct:
                stat.correct += 1
            s.commit()
        finally:
            s.close()

    def for_day(self, day: date) -> DailyReviewStat | None:
        s = self._session_factory()
        try:
            return s.get(DailyReviewStat, day)
        finally:
            s.close()

    def history(self, since: Optional[date] = None) -> List[DailyReviewStat]:
        """Per-day counters, oldest first."""
        s = self._session_factory()
        try:
            q = s.query(DailyReviewStat)
            if since is not None:
                q = q.filter(DailyReviewStat.day >= since)
            return q.order_by(DailyReviewStat.day.asc()).all()
        finally:
            s.close()
