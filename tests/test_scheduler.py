"""
Tests for the review scheduler: ingestion, reviews, persistence flushing,
statistics notification and error recovery.
"""

import dataclasses
from datetime import date, timedelta

import pytest

from core.models import Quality, ReviewCard, VocabEntry
from core.persistence import CorruptDataError, InMemoryAdapter, PersistenceError
from core.scheduler import (
    ADDED,
    LOAD_FAILED,
    REMOVED,
    REVIEWED,
    SAVE_FAILED,
    ReviewScheduler,
)
from core.statistics import ReviewTally

DAY0 = date(2024, 5, 10)

LESSON_WORDS = [
    {"source": "hola", "target": "hello", "pronunciation": "OH-lah"},
    {"source": "gracias", "target": "thank you", "example": "Muchas gracias."},
    {"source": "adiós", "target": "goodbye"},
]


class FailingSaveAdapter(InMemoryAdapter):
    def save(self, items):
        raise PersistenceError("disk full")


class CorruptAdapter(InMemoryAdapter):
    def load(self):
        raise CorruptDataError("bad json")


class ExplodingStatistics:
    def on_review(self, correct):
        raise RuntimeError("stats backend down")


@pytest.fixture
def adapter():
    return InMemoryAdapter()


@pytest.fixture
def tally():
    return ReviewTally()


@pytest.fixture
def scheduler(adapter, tally):
    return ReviewScheduler(adapter, tally, clock=lambda: DAY0)


def _card(word_id="l1_hola") -> ReviewCard:
    return ReviewCard.create(
        word_id=word_id, source_word="hola", target_word="hello",
        language_pair="en-es", level="A1", lesson_id="l1", today=DAY0,
    )


class TestIngestion:
    def test_add_card(self, scheduler, adapter):
        assert scheduler.add_card(_card()) is True
        assert "l1_hola" in scheduler
        assert [c.word_id for c in adapter.load()] == ["l1_hola"]

    def test_add_card_twice_keeps_first(self, scheduler):
        scheduler.add_card(_card())
        scheduler.review("l1_hola", Quality.GOOD)
        before = scheduler.get_card("l1_hola")

        assert scheduler.add_card(_card()) is False
        assert len(scheduler) == 1
        assert scheduler.get_card("l1_hola") == before

    def test_add_cards_from_lesson(self, scheduler):
        added = scheduler.add_cards_from_lesson("es_a1_01", "en-es", "A1", LESSON_WORDS)
        assert added == 3
        card = scheduler.get_card("es_a1_01_hola")
        assert card.pronunciation == "OH-lah"
        assert card.ease_factor == 2.5
        assert card.interval == 0
        assert card.repetitions == 0
        assert card.next_review_date == DAY0
        assert card.created_at == DAY0
        assert scheduler.get_card("es_a1_01_gracias").example_sentence == "Muchas gracias."

    def test_lesson_ingestion_is_idempotent(self, scheduler):
        scheduler.add_cards_from_lesson("l1", "en-es", "A1", LESSON_WORDS)
        assert scheduler.add_cards_from_lesson("l1", "en-es", "A1", LESSON_WORDS) == 0
        assert len(scheduler) == 3

    def test_duplicate_source_within_lesson(self, scheduler):
        words = [VocabEntry("hola", "hello"), VocabEntry("hola", "hi")]
        assert scheduler.add_cards_from_lesson("l1", "en-es", "A1", words) == 1
        assert scheduler.get_card("l1_hola").target_word == "hello"

    def test_bad_entry_does_not_abort_batch(self, scheduler):
        words = [{"source": "hola", "target": "hello"}, {"target": "orphan"}, None,
                 {"source": "adiós", "target": "goodbye"}]
        assert scheduler.add_cards_from_lesson("l1", "en-es", "A1", words) == 2
        assert "l1_adiós" in scheduler

    def test_batch_flushes_once(self, scheduler, adapter):
        scheduler.add_cards_from_lesson("l1", "en-es", "A1", LESSON_WORDS)
        assert adapter.save_count == 1


class TestReview:
    def test_review_updates_and_persists(self, scheduler, adapter):
        scheduler.add_card(_card())
        outcome = scheduler.review("l1_hola", Quality.GOOD)

        assert outcome.found and outcome.correct
        assert outcome.card.repetitions == 1
        assert outcome.card.next_review_date == DAY0 + timedelta(days=1)
        stored = adapter.load()[0]
        assert stored.total_reviews == 1
        assert stored.last_quality == 4

    def test_cards_change_only_through_review(self, scheduler, adapter):
        scheduler.add_card(_card())
        saves = adapter.save_count
        with pytest.raises(dataclasses.FrozenInstanceError):
            scheduler.cards()[0].interval = 99
        with pytest.raises(dataclasses.FrozenInstanceError):
            scheduler.get_card("l1_hola").repetitions = 7

        assert scheduler.get_card("l1_hola") == adapter.load()[0]
        assert scheduler.get_card("l1_hola").interval == 0
        assert adapter.save_count == saves

    def test_review_unknown_card(self, scheduler, tally):
        outcome = scheduler.review("nope", Quality.GOOD)
        assert outcome.found is False
        assert outcome.card is None
        assert tally.answered == 0

    def test_statistics_notified(self, scheduler, tally):
        scheduler.add_card(_card())
        scheduler.review("l1_hola", Quality.GOOD)
        scheduler.review("l1_hola", Quality.FORGOT, DAY0 + timedelta(days=1))
        assert (tally.answered, tally.correct) == (2, 1)

    def test_end_to_end(self, scheduler):
        scheduler.add_card(_card())
        scheduler.review("l1_hola", 4, DAY0)
        card = scheduler.review("l1_hola", 1, DAY0 + timedelta(days=1)).card
        assert card.repetitions == 0
        assert card.interval == 1
        assert card.ease_factor == pytest.approx(2.3)
        assert card.next_review_date == DAY0 + timedelta(days=2)

    def test_statistics_failure_does_not_break_review(self, adapter):
        scheduler = ReviewScheduler(adapter, ExplodingStatistics(), clock=lambda: DAY0)
        scheduler.add_card(_card())
        assert scheduler.review("l1_hola", Quality.EASY).found is True
        assert scheduler.get_card("l1_hola").total_reviews == 1


class TestQueries:
    def test_due_cards(self, scheduler):
        scheduler.add_cards_from_lesson("l1", "en-es", "A1", LESSON_WORDS)
        scheduler.review("l1_hola", Quality.EASY)
        due = {c.word_id for c in scheduler.due_cards()}
        assert due == {"l1_gracias", "l1_adiós"}
        assert len(scheduler.due_cards(DAY0 + timedelta(days=1))) == 3

    def test_weak_cards(self, scheduler):
        scheduler.add_cards_from_lesson("l1", "en-es", "A1", LESSON_WORDS)
        scheduler.review("l1_hola", Quality.EASY)
        assert len(scheduler.weak_cards()) == 2
        assert scheduler.weak_cards(include_unreviewed=False) == []

    def test_review_queue_limit(self, scheduler):
        scheduler.add_cards_from_lesson("l1", "en-es", "A1", LESSON_WORDS)
        assert len(scheduler.review_queue(limit=2)) == 2

    def test_mastery_level(self, scheduler):
        scheduler.add_card(_card())
        assert scheduler.mastery_level("l1_hola").display_name == "New"
        assert scheduler.mastery_level("missing") is None

    def test_stats(self, scheduler):
        scheduler.add_cards_from_lesson("l1", "en-es", "A1", LESSON_WORDS)
        stats = scheduler.stats()
        assert stats.total == 3
        assert stats.due_today == 3


class TestRemoval:
    def test_remove(self, scheduler, adapter):
        scheduler.add_card(_card())
        assert scheduler.remove_card("l1_hola") is True
        assert scheduler.remove_card("l1_hola") is False
        assert adapter.load() == []

    def test_reset(self, scheduler, adapter):
        scheduler.add_cards_from_lesson("l1", "en-es", "A1", LESSON_WORDS)
        assert scheduler.reset() == 3
        assert len(scheduler) == 0
        assert adapter.load() == []


class TestPersistenceRecovery:
    def test_loads_existing_cards(self):
        adapter = InMemoryAdapter([_card("a"), _card("b")])
        scheduler = ReviewScheduler(adapter, clock=lambda: DAY0)
        assert [c.word_id for c in scheduler.cards()] == ["a", "b"]

    def test_corrupt_data_starts_empty_with_warning(self):
        events = []
        scheduler = ReviewScheduler(CorruptAdapter(), listeners=[events.append], clock=lambda: DAY0)
        assert len(scheduler) == 0
        assert "bad json" in scheduler.load_warning
        assert [e.kind for e in events] == [LOAD_FAILED]

    def test_save_failure_keeps_memory_state(self):
        events = []
        scheduler = ReviewScheduler(FailingSaveAdapter(), listeners=[events.append], clock=lambda: DAY0)
        scheduler.add_card(_card())
        outcome = scheduler.review("l1_hola", Quality.GOOD)

        assert outcome.found
        assert scheduler.get_card("l1_hola").repetitions == 1
        assert isinstance(scheduler.last_save_error, PersistenceError)
        assert [e.kind for e in events] == [SAVE_FAILED, ADDED, SAVE_FAILED, REVIEWED]


class TestEvents:
    def test_events_for_mutations(self, scheduler):
        events = []
        scheduler.subscribe(events.append)
        scheduler.add_card(_card())
        scheduler.review("l1_hola", Quality.HARD)
        scheduler.remove_card("l1_hola")
        assert [(e.kind, e.word_id) for e in events] == [
            (ADDED, "l1_hola"), (REVIEWED, "l1_hola"), (REMOVED, "l1_hola"),
        ]

    def test_unsubscribe(self, scheduler):
        events = []
        scheduler.subscribe(events.append)
        scheduler.unsubscribe(events.append)
        scheduler.add_card(_card())
        assert events == []

    def test_failing_listener_is_isolated(self, scheduler):
        def boom(event):
            raise RuntimeError("listener bug")

        scheduler.subscribe(boom)
        assert scheduler.add_card(_card()) is True
