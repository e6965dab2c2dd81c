"""
LinguaSRS – Persistence adapters
=================================
A persistence adapter mirrors a whole collection to durable storage:

* ``load()`` returns the stored collection, or ``None`` when nothing was
  ever saved.  It raises ``CorruptDataError`` when stored data cannot be
  decoded and a plain ``PersistenceError`` when the storage itself cannot
  be read (locked database, I/O error).  Callers may start empty after the
  former but must not after the latter.
* ``save(items)`` writes the collection and raises ``PersistenceError`` on
  failure.

The SQLAlchemy-backed adapters live in ``db/repository.py``.
"""

from __future__ import annotations

import copy
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, Generic, List, Optional, Protocol, Sequence, TypeVar

from core.models import ReviewCard

log = logging.getLogger(__name__)

T = TypeVar("T")


class PersistenceError(Exception):
    """Saving or loading a collection failed."""


class CorruptDataError(PersistenceError):
    """Stored data exists but cannot be decoded."""


class PersistenceAdapter(Protocol[T]):
    def load(self) -> Optional[List[T]]: ...

    def save(self, items: Sequence[T]) -> None: ...


# ---------------------------------------------------------------------------
# In-memory fake
# ---------------------------------------------------------------------------

class InMemoryAdapter(Generic[T]):
    """Keeps a private deep copy of the last saved collection."""

    def __init__(self, items: Optional[Sequence[T]] = None) -> None:
        self._items: Optional[List[T]] = copy.deepcopy(list(items)) if items is not None else None
        self.save_count = 0

    def load(self) -> Optional[List[T]]:
        if self._items is None:
            return None
        return copy.deepcopy(self._items)

    def save(self, items: Sequence[T]) -> None:
        self._items = copy.deepcopy(list(items))
        self.save_count += 1


# ---------------------------------------------------------------------------
# JSON file – the whole collection as one document
# ---------------------------------------------------------------------------

class JsonFileAdapter(Generic[T]):
    """Store the collection as a single JSON array, rewritten on every save."""

    def __init__(
        self,
        path: str | Path,
        encode: Callable[[Any], Dict[str, Any]] = ReviewCard.to_dict,
        decode: Callable[[Dict[str, Any]], Any] = ReviewCard.from_dict,
    ) -> None:
        self.path = Path(path)
        self._encode = encode
        self._decode = decode

    def load(self) -> Optional[List[T]]:
        if not self.path.exists():
            return None
        try:
            data = self.path.read_bytes()
        except OSError as exc:
            raise PersistenceError(f"Could not read {self.path}: {exc}") from exc
        try:
            raw = json.loads(data.decode("utf-8"))
            if not isinstance(raw, list):
                raise ValueError(f"expected a JSON array, got {type(raw).__name__}")
            items = [self._decode(entry) for entry in raw]
        except (ValueError, KeyError, TypeError) as exc:
            raise CorruptDataError(f"Could not read {self.path.name}: {exc}") from exc
        log.info("Loaded %d records from %s", len(items), self.path)
        return items

    def save(self, items: Sequence[T]) -> None:
        payload = json.dumps([self._encode(i) for i in items], ensure_ascii=False, indent=1)
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=self.path.name, suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_name, self.path)
        except OSError as exc:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise PersistenceError(f"Could not write {self.path}: {exc}") from exc
        log.debug("Saved %d records to %s", len(items), self.path)
