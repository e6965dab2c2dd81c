"""
LinguaSRS – Entry point
========================
Small console host around the review scheduler:

    python main.py status
    python main.py import words.txt --lesson es_a1_01 --pair en-es --level A1
    python main.py due --limit 20
    python main.py export cards.csv
"""

import argparse
import logging
import os
import sys

# Ensure project root is on the path so absolute imports work when running
# directly with `python main.py`.
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from core.collection_ops import export_cards_csv
from core.persistence import PersistenceError
from core.scheduler import ReviewScheduler
from core.vocab_import import load_vocab_file
from db.database import create_db_engine, init_db, make_session_factory
from db.repository import SqlCardAdapter, SqlReviewStatistics

LOG_LEVEL_ENV = "LINGUASRS_LOG_LEVEL"

log = logging.getLogger("linguasrs")


def build_scheduler(url=None) -> ReviewScheduler:
    engine = create_db_engine(url)
    init_db(engine)
    factory = make_session_factory(engine)
    return ReviewScheduler(SqlCardAdapter(factory), SqlReviewStatistics(factory))


def _cmd_status(scheduler: ReviewScheduler, args) -> int:
    stats = scheduler.stats()
    print(f"Cards:        {stats.total}")
    print(f"Due today:    {stats.due_today}")
    print(f"Weak:         {len(scheduler.weak_cards())}")
    for level, count in stats.by_mastery.items():
        print(f"  {level.display_name:<11} {count}")
    print(f"Avg accuracy: {stats.average_accuracy:.1f}%")
    return 0


def _cmd_import(scheduler: ReviewScheduler, args) -> int:
    entries = load_vocab_file(args.file)
    added = scheduler.add_cards_from_lesson(args.lesson, args.pair, args.level, entries)
    print(f"Imported {added} new cards from {len(entries)} entries")
    return 0 if scheduler.last_save_error is None else 1


def _cmd_due(scheduler: ReviewScheduler, args) -> int:
    for card in scheduler.review_queue(limit=args.limit):
        print(f"{card.word_id}\t{card.source_word} → {card.target_word}\t(next {card.next_review_date})")
    return 0


def _cmd_export(scheduler: ReviewScheduler, args) -> int:
    count = export_cards_csv(scheduler.cards(), args.path)
    print(f"Exported {count} cards to {args.path}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="linguasrs", description="Spaced-repetition review scheduler")
    parser.add_argument("--database", help="SQLAlchemy URL (defaults to the app data dir)")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("status", help="show collection statistics").set_defaults(func=_cmd_status)

    p = sub.add_parser("import", help="schedule a vocabulary list as a lesson")
    p.add_argument("file")
    p.add_argument("--lesson", required=True)
    p.add_argument("--pair", required=True, help="language pair, e.g. en-es")
    p.add_argument("--level", default="A1", help="CEFR level")
    p.set_defaults(func=_cmd_import)

    p = sub.add_parser("due", help="list cards due for review, hardest first")
    p.add_argument("--limit", type=int, default=None)
    p.set_defaults(func=_cmd_due)

    p = sub.add_parser("export", help="export the schedule to CSV")
    p.add_argument("path")
    p.set_defaults(func=_cmd_export)
    return parser


def main(argv=None) -> int:
    logging.basicConfig(
        level=os.environ.get(LOG_LEVEL_ENV, "INFO").upper(),
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )
    args = build_parser().parse_args(argv)
    try:
        scheduler = build_scheduler(args.database)
    except PersistenceError as exc:
        log.error("Could not open the schedule: %s", exc)
        return 1
    if scheduler.load_warning:
        log.warning("Started with an empty schedule: %s", scheduler.load_warning)
    return args.func(scheduler, args)


if __name__ == "__main__":
    sys.exit(main())
