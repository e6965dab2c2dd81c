"""
Tests for CSV export of the schedule and the catalogue.
"""

import csv
from datetime import date, datetime, timezone

from core.collection_ops import export_cards_csv, export_vocabulary_csv
from core.models import Quality, ReviewCard, VocabularyItem
from core.srs_engine import review_card

DAY0 = date(2024, 8, 1)


def _rows(path):
    with open(path, newline="", encoding="utf-8") as f:
        return list(csv.DictReader(f))


class TestExportCards:
    def test_export(self, tmp_path):
        card = ReviewCard.create(
            word_id="l1_niño", source_word="niño", target_word="child",
            language_pair="en-es", level="A1", lesson_id="l1", today=DAY0,
        )
        reviewed = review_card(card, Quality.HARD, DAY0)
        out = tmp_path / "cards.csv"

        assert export_cards_csv([card, reviewed.copy(word_id="l1_x")], out) == 2
        rows = _rows(out)
        assert rows[0]["source_word"] == "niño"
        assert rows[0]["last_reviewed_date"] == ""
        assert rows[0]["mastery"] == "New"
        assert rows[1]["ease_factor"] == "2.36"
        assert rows[1]["next_review_date"] == "2024-08-02"
        assert rows[1]["mastery"] == "Learning"

    def test_export_empty(self, tmp_path):
        out = tmp_path / "empty.csv"
        assert export_cards_csv([], out) == 0
        assert _rows(out) == []


class TestExportVocabulary:
    def test_export(self, tmp_path):
        item = VocabularyItem(
            id="l1_hola", source="hola", target="hello", lesson_id="l1", level="A1",
            language_pair="en-es", added_at=datetime(2024, 8, 1, tzinfo=timezone.utc),
            tags=["greeting", "basic"], in_schedule=True,
        )
        out = tmp_path / "vocab.csv"
        assert export_vocabulary_csv([item], out) == 1
        (row,) = _rows(out)
        assert row["tags"] == "greeting,basic"
        assert row["in_schedule"] == "yes"
        assert row["category"] == "phrase"
