"""
LinguaSRS – Review scheduler
=============================
Ties the card store, the SM-2 engine, persistence and statistics together.

* Every mutation (add, review, remove, reset) is flushed to the persistence
  adapter and published to the registered listeners.
* The in-memory store stays authoritative: a failed save is reported but
  never rolled back.
* ``lookup → review_card → update → flush`` runs under one lock.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Union

from core.card_store import ReviewCardStore
from core.models import MasteryLevel, ReviewCard, VocabEntry, make_word_id
from core.persistence import CorruptDataError, PersistenceAdapter, PersistenceError
from core.srs_engine import (
    CollectionStats,
    PASSING_QUALITY,
    collection_stats,
    get_due_cards,
    get_new_cards,
    get_weak_cards,
    mastery_level,
    review_card,
    sort_by_priority,
)
from core.statistics import StatisticsCollaborator

log = logging.getLogger(__name__)


# ── Events & results ─────────────────────────────────────────────────
ADDED = "added"
REVIEWED = "reviewed"
REMOVED = "removed"
RESET = "reset"
LOAD_FAILED = "load_failed"
SAVE_FAILED = "save_failed"


@dataclass(frozen=True)
class ScheduleEvent:
    kind: str
    word_id: Optional[str] = None
    card: Optional[ReviewCard] = None
    error: Optional[Exception] = None


Listener = Callable[[ScheduleEvent], None]


@dataclass(frozen=True)
class ReviewOutcome:
    """Result of ``ReviewScheduler.review``; ``found`` is False for unknown ids."""

    word_id: str
    found: bool
    card: Optional[ReviewCard] = None
    correct: bool = False


# ── Scheduler ────────────────────────────────────────────────────────
class ReviewScheduler:
    """Scheduled-review engine for one learner."""

    def __init__(
        self,
        adapter: PersistenceAdapter[ReviewCard],
        statistics: Optional[StatisticsCollaborator] = None,
        *,
        listeners: Iterable[Listener] = (),
        clock: Callable[[], date] = date.today,
    ) -> None:
        self._adapter = adapter
        self._statistics = statistics
        self._clock = clock
        self._store = ReviewCardStore()
        self._lock = threading.RLock()
        self._listeners: List[Listener] = list(listeners)

        self.load_warning: Optional[str] = None
        self.last_save_error: Optional[PersistenceError] = None
        self.reload()

    # ── Listeners ────────────────────────────────────────────────────
    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, event: ScheduleEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                log.exception("Listener %r failed on %s event", listener, event.kind)

    # ── Persistence ──────────────────────────────────────────────────
    def reload(self) -> int:
        """Replace the in-memory collection with the persisted one.

        Unreadable data is treated as an empty collection; the reason is
        kept in ``load_warning`` and published as a ``load_failed`` event.
        Any other ``PersistenceError`` propagates and the current collection
        is left as it was.
        """
        with self._lock:
            self.load_warning = None
            try:
                cards = self._adapter.load()
            except CorruptDataError as exc:
                self.load_warning = str(exc)
                log.warning("Discarding unreadable review cards: %s", exc)
                self._store.clear()
                self._emit(ScheduleEvent(LOAD_FAILED, error=exc))
                return 0
            self._store.replace_all(cards or [])
            log.info("Loaded %d review cards", len(self._store))
            return len(self._store)

    def _flush(self) -> bool:
        try:
            self._adapter.save(self._store.all())
        except PersistenceError as exc:
            self.last_save_error = exc
            log.error("Could not save review cards: %s", exc)
            self._emit(ScheduleEvent(SAVE_FAILED, error=exc))
            return False
        self.last_save_error = None
        return True

    def today(self) -> date:
        return self._clock()

    # ── Ingestion ────────────────────────────────────────────────────
    def add_card(self, card: ReviewCard) -> bool:
        """Insert *card* unless its word_id is already scheduled."""
        with self._lock:
            if not self._store.insert_if_absent(card):
                log.debug("Card %r already scheduled, skipping", card.word_id)
                return False
            log.info("Scheduled new card %r", card.word_id)
            self._flush()
        self._emit(ScheduleEvent(ADDED, card.word_id, card))
        return True

    def add_cards_from_lesson(
        self,
        lesson_id: str,
        language_pair: str,
        level: str,
        entries: Sequence[Union[VocabEntry, Dict[str, Any]]],
        today: Optional[date] = None,
    ) -> int:
        """Create one card per vocabulary entry of a completed lesson.

        Entries that cannot be converted are skipped; the rest of the batch
        is still added. Returns the number of cards actually added.
        """
        today = today or self.today()
        added: List[ReviewCard] = []
        with self._lock:
            for raw in entries:
                try:
                    entry = raw if isinstance(raw, VocabEntry) else VocabEntry.from_mapping(raw)
                except (ValueError, TypeError, AttributeError) as exc:
                    log.warning("Skipping entry in lesson %s: %s", lesson_id, exc)
                    continue
                card = ReviewCard.create(
                    word_id=make_word_id(lesson_id, entry.source),
                    source_word=entry.source,
                    target_word=entry.target,
                    language_pair=language_pair,
                    level=level,
                    lesson_id=lesson_id,
                    pronunciation=entry.pronunciation,
                    example_sentence=entry.example,
                    today=today,
                )
                if self._store.insert_if_absent(card):
                    added.append(card)
            if added:
                self._flush()
        log.info("Lesson %s: scheduled %d new cards", lesson_id, len(added))
        for card in added:
            self._emit(ScheduleEvent(ADDED, card.word_id, card))
        return len(added)

    # ── Reviews ──────────────────────────────────────────────────────
    def review(self, word_id: str, quality: int, today: Optional[date] = None) -> ReviewOutcome:
        """Grade the card *word_id* and reschedule it.

        Unknown ids yield ``ReviewOutcome(found=False)`` instead of raising.
        """
        today = today or self.today()
        with self._lock:
            card = self._store.get(word_id)
            if card is None:
                log.warning("Review for unknown card %r ignored", word_id)
                return ReviewOutcome(word_id, found=False)
            updated = review_card(card, quality, today)
            self._store.update(word_id, updated)
            self._flush()

        correct = quality >= PASSING_QUALITY
        log.info(
            "Reviewed %r (q=%d) → reps=%d ef=%.2f interval=%d next=%s",
            word_id, quality, updated.repetitions, updated.ease_factor,
            updated.interval, updated.next_review_date,
        )
        self._notify_statistics(correct)
        self._emit(ScheduleEvent(REVIEWED, word_id, updated))
        return ReviewOutcome(word_id, found=True, card=updated, correct=correct)

    def _notify_statistics(self, correct: bool) -> None:
        if self._statistics is None:
            return
        try:
            self._statistics.on_review(correct)
        except Exception:
            log.exception("Statistics collaborator failed to record a review")

    # ── Removal ──────────────────────────────────────────────────────
    def remove_card(self, word_id: str) -> bool:
        with self._lock:
            if not self._store.remove(word_id):
                return False
            self._flush()
        log.info("Removed card %r", word_id)
        self._emit(ScheduleEvent(REMOVED, word_id))
        return True

    def reset(self) -> int:
        """Delete every card. Returns how many were removed."""
        with self._lock:
            count = len(self._store)
            self._store.clear()
            self._flush()
        log.info("Reset review schedule (%d cards removed)", count)
        self._emit(ScheduleEvent(RESET))
        return count

    # ── Queries ──────────────────────────────────────────────────────
    def get_card(self, word_id: str) -> Optional[ReviewCard]:
        return self._store.get(word_id)

    def cards(self) -> List[ReviewCard]:
        return self._store.all()

    def __contains__(self, word_id: object) -> bool:
        return word_id in self._store

    def __len__(self) -> int:
        return len(self._store)

    def due_cards(self, today: Optional[date] = None) -> List[ReviewCard]:
        return get_due_cards(self._store.all(), today or self.today())

    def weak_cards(self, *, include_unreviewed: bool = True) -> List[ReviewCard]:
        return get_weak_cards(self._store.all(), include_unreviewed=include_unreviewed)

    def new_cards(self) -> List[ReviewCard]:
        return get_new_cards(self._store.all())

    def review_queue(self, today: Optional[date] = None, limit: Optional[int] = None) -> List[ReviewCard]:
        """Due cards, hardest first, optionally capped at *limit*."""
        queue = sort_by_priority(self.due_cards(today), today or self.today())
        return queue[:limit] if limit is not None else queue

    def mastery_level(self, word_id: str) -> Optional[MasteryLevel]:
        card = self._store.get(word_id)
        return mastery_level(card) if card is not None else None

    def stats(self, today: Optional[date] = None) -> CollectionStats:
        return collection_stats(self._store.all(), today or self.today())
