"""
LinguaSRS – Vocabulary catalogue
=================================
Every word the learner has met, scheduled or not.  The catalogue only
records *whether* a word is in the review schedule; the schedule itself is
owned by ``ReviewScheduler``.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Union

from core.models import VocabEntry, VocabularyCategory, VocabularyItem
from core.persistence import CorruptDataError, PersistenceAdapter, PersistenceError
from core.scheduler import ReviewScheduler

log = logging.getLogger(__name__)


@dataclass
class VocabularyStats:
    total: int = 0
    in_schedule: int = 0
    not_in_schedule: int = 0
    by_level: Dict[str, int] = field(default_factory=dict)
    by_category: Dict[str, int] = field(default_factory=dict)


class VocabularyCatalogue:
    """Catalogue of vocabulary items keyed by id, mirrored to an adapter."""

    def __init__(self, adapter: PersistenceAdapter[VocabularyItem]) -> None:
        self._adapter = adapter
        self._items: Dict[str, VocabularyItem] = {}
        self.load_warning: Optional[str] = None
        self.last_save_error: Optional[PersistenceError] = None
        self.reload()

    def reload(self) -> int:
        self.load_warning = None
        try:
            items = self._adapter.load() or []
        except CorruptDataError as exc:
            self.load_warning = str(exc)
            log.warning("Discarding unreadable vocabulary: %s", exc)
            self._items.clear()
            return 0
        self._items.clear()
        for item in items:
            self._items.setdefault(item.id, item)
        return len(self._items)

    def _flush(self) -> bool:
        try:
            self._adapter.save(list(self._items.values()))
        except PersistenceError as exc:
            self.last_save_error = exc
            log.error("Could not save vocabulary: %s", exc)
            return False
        self.last_save_error = None
        return True

    # ── Mutations ────────────────────────────────────────────────────
    def add_item(self, item: VocabularyItem) -> bool:
        if item.id in self._items:
            return False
        self._items[item.id] = item
        self._flush()
        return True

    def add_items_from_lesson(
        self,
        lesson_id: str,
        language_pair: str,
        level: str,
        entries: Sequence[Union[VocabEntry, Dict[str, Any]]],
        category: VocabularyCategory = VocabularyCategory.PHRASE,
    ) -> int:
        now = datetime.now(timezone.utc)
        added = 0
        for raw in entries:
            try:
                entry = raw if isinstance(raw, VocabEntry) else VocabEntry.from_mapping(raw)
            except (ValueError, TypeError, AttributeError) as exc:
                log.warning("Skipping catalogue entry in lesson %s: %s", lesson_id, exc)
                continue
            item = VocabularyItem.from_entry(
                entry,
                lesson_id=lesson_id,
                level=level,
                language_pair=language_pair,
                added_at=now,
                category=category,
            )
            if item.id not in self._items:
                self._items[item.id] = item
                added += 1
        if added:
            self._flush()
        log.info("Lesson %s: catalogued %d new words", lesson_id, added)
        return added

    def mark_in_schedule(self, item_id: str) -> bool:
        item = self._items.get(item_id)
        if item is None:
            return False
        self._items[item_id] = item.copy(in_schedule=True)
        self._flush()
        return True

    def update_notes(self, item_id: str, notes: str) -> bool:
        item = self._items.get(item_id)
        if item is None:
            return False
        self._items[item_id] = item.copy(notes=notes)
        self._flush()
        return True

    def remove_item(self, item_id: str) -> bool:
        if self._items.pop(item_id, None) is None:
            return False
        self._flush()
        return True

    def promote(self, item_id: str, scheduler: ReviewScheduler, today: Optional[date] = None) -> bool:
        """Put a catalogue word into the review schedule.

        Returns False if the id is unknown.  A word that already has a card
        keeps its schedule and is just marked as scheduled.
        """
        item = self._items.get(item_id)
        if item is None:
            return False
        scheduler.add_card(item.to_card(today or scheduler.today()))
        self.mark_in_schedule(item_id)
        log.info("Promoted %r into the review schedule", item_id)
        return True

    # ── Queries ──────────────────────────────────────────────────────
    def get(self, item_id: str) -> Optional[VocabularyItem]:
        return self._items.get(item_id)

    def all(self) -> List[VocabularyItem]:
        return list(self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def by_level(self, level: str) -> List[VocabularyItem]:
        return [i for i in self._items.values() if i.level == level]

    def by_lesson(self, lesson_id: str) -> List[VocabularyItem]:
        return [i for i in self._items.values() if i.lesson_id == lesson_id]

    def not_in_schedule(self) -> List[VocabularyItem]:
        return [i for i in self._items.values() if not i.in_schedule]

    def search(self, query: str, limit: Optional[int] = None) -> List[VocabularyItem]:
        """Case-insensitive match on source, target and tags; exact source matches first."""
        q = query.strip().lower()
        if not q:
            return []
        hits = [i for i in self._items.values() if i.matches_query(q)]
        hits.sort(key=lambda i: i.source.lower() != q)
        return hits[:limit] if limit is not None else hits

    def filter(
        self,
        *,
        level: Optional[str] = None,
        category: Optional[VocabularyCategory] = None,
        query: Optional[str] = None,
    ) -> List[VocabularyItem]:
        result = self.all()
        if query:
            result = [i for i in result if i.matches_query(query)]
        if level is not None:
            result = [i for i in result if i.level == level]
        if category is not None:
            result = [i for i in result if i.category == category]
        return result

    def stats(self) -> VocabularyStats:
        items = self.all()
        scheduled = sum(1 for i in items if i.in_schedule)
        return VocabularyStats(
            total=len(items),
            in_schedule=scheduled,
            not_in_schedule=len(items) - scheduled,
            by_level=dict(Counter(i.level for i in items)),
            by_category=dict(Counter(i.category.display_name for i in items)),
        )
