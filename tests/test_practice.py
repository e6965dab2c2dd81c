"""
Tests for free practice sessions, which must never touch the schedule.
"""

import random
from datetime import date

import pytest

from core.persistence import InMemoryAdapter
from core.practice import PracticeSession, sample_cards
from core.scheduler import ReviewScheduler
from core.statistics import ReviewTally

DAY0 = date(2024, 7, 7)

WORDS = [{"source": w, "target": w.upper()} for w in ("uno", "dos", "tres", "cuatro", "cinco")]


@pytest.fixture
def scheduler():
    s = ReviewScheduler(InMemoryAdapter(), ReviewTally(), clock=lambda: DAY0)
    s.add_cards_from_lesson("nums", "en-es", "A1", WORDS)
    return s


class TestSampling:
    def test_all_cards_by_default(self, scheduler):
        sample = sample_cards(scheduler.cards(), rng=random.Random(1))
        assert sorted(c.word_id for c in sample) == sorted(c.word_id for c in scheduler.cards())

    def test_subset(self, scheduler):
        sample = sample_cards(scheduler.cards(), size=2, rng=random.Random(1))
        assert len(sample) == 2
        assert len({c.word_id for c in sample}) == 2

    def test_oversized_request_returns_everything(self, scheduler):
        assert len(sample_cards(scheduler.cards(), size=50)) == 5

    def test_empty(self):
        assert sample_cards([]) == []


class TestPracticeSession:
    def test_walks_and_tallies(self, scheduler):
        session = PracticeSession(scheduler.cards(), size=3, rng=random.Random(7))
        assert session.remaining == 3
        session.answer(True)
        session.answer(False)
        last = session.answer(True)
        assert last is None
        assert session.finished
        assert (session.tally.answered, session.tally.correct) == (3, 2)
        assert session.tally.accuracy == pytest.approx(200 / 3)

    def test_answer_after_finish_raises(self):
        session = PracticeSession([])
        assert session.current is None
        with pytest.raises(IndexError):
            session.answer(True)

    def test_practice_leaves_schedule_untouched(self):
        adapter, tally = InMemoryAdapter(), ReviewTally()
        scheduler = ReviewScheduler(adapter, tally, clock=lambda: DAY0)
        scheduler.add_cards_from_lesson("nums", "en-es", "A1", WORDS)
        before = [c.copy() for c in scheduler.cards()]
        saves = adapter.save_count

        session = PracticeSession(scheduler.cards())
        while not session.finished:
            session.answer(False)

        assert scheduler.cards() == before
        assert adapter.save_count == saves
        assert tally.answered == 0
