"""
LinguaSRS – SQLAlchemy ORM Models
==================================
Defines the storage schema: review cards (with SM-2 fields), catalogue
vocabulary items, and per-day review counters.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


# ---------------------------------------------------------------------------
# ReviewCardRecord – one scheduled word
# ---------------------------------------------------------------------------
class ReviewCardRecord(Base):
    __tablename__ = "review_cards"

    word_id = Column(String(512), primary_key=True)
    position = Column(Integer, nullable=False, index=True)   # insertion order

    # Content & provenance
    source_word = Column(Text, nullable=False)
    target_word = Column(Text, nullable=False, default="")
    language_pair = Column(String(32), nullable=False)
    level = Column(String(8), nullable=False)               # CEFR A1 … C2
    lesson_id = Column(String(255), nullable=False)
    pronunciation = Column(Text, nullable=True)
    example_sentence = Column(Text, nullable=True)

    # SM-2 scheduling fields
    ease_factor = Column(Float, nullable=False, default=2.5)
    interval = Column(Integer, nullable=False, default=0)       # days
    repetitions = Column(Integer, nullable=False, default=0)
    next_review_date = Column(Date, nullable=False)
    last_reviewed_date = Column(Date, nullable=True)
    last_quality = Column(Integer, nullable=True)
    total_reviews = Column(Integer, nullable=False, default=0)
    correct_reviews = Column(Integer, nullable=False, default=0)

    created_at = Column(Date, nullable=False)

    def __repr__(self) -> str:
        return f"<ReviewCardRecord word_id={self.word_id!r} next={self.next_review_date}>"


# ---------------------------------------------------------------------------
# VocabularyRecord – catalogue entry
# ---------------------------------------------------------------------------
class VocabularyRecord(Base):
    __tablename__ = "vocabulary_items"

    id = Column(String(512), primary_key=True)
    position = Column(Integer, nullable=False, index=True)
    source = Column(Text, nullable=False)
    target = Column(Text, nullable=False, default="")
    pronunciation = Column(Text, nullable=True)
    example_sentence = Column(Text, nullable=True)
    example_translation = Column(Text, nullable=True)
    lesson_id = Column(String(255), nullable=False)
    level = Column(String(8), nullable=False)
    language_pair = Column(String(32), nullable=False)
    category = Column(String(32), nullable=False, default="phrase")
    notes = Column(Text, nullable=True)
    tags = Column(Text, nullable=False, default="[]")           # JSON array
    in_schedule = Column(Boolean, nullable=False, default=False)
    added_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    def __repr__(self) -> str:
        return f"<VocabularyRecord id={self.id!r} in_schedule={self.in_schedule}>"


# ---------------------------------------------------------------------------
# DailyReviewStat – review outcomes per calendar day
# ---------------------------------------------------------------------------
class DailyReviewStat(Base):
    __tablename__ = "daily_review_stats"

    day = Column(Date, primary_key=True)
    reviews = Column(Integer, nullable=False, default=0)
    correct = Column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<DailyReviewStat day={self.day} reviews={self.reviews} correct={self.correct}>"
