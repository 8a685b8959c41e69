from __future__ import annotations

import threading
from typing import Dict, Iterable, List, Optional

from ..classifier.model import Category
from ..errors import PersistenceError, RecordNotFoundError
from .base import ScreenshotStore
from .model import ScreenshotRecord


class MemoryStore(ScreenshotStore):
    """Store keeping records in a dict; writes are serialized by a lock."""

    def __init__(self, records: Iterable[ScreenshotRecord] = ()) -> None:
        self._lock = threading.Lock()
        self._records: Dict[str, ScreenshotRecord] = {}
        for record in records:
            self._check_unique_source(record)
            self._records[record.id] = record

    def upsert(self, record: ScreenshotRecord) -> None:
        with self._lock:
            self._check_unique_source(record)
            previous = self._records.get(record.id)
            self._records[record.id] = record
            try:
                self._commit()
            except PersistenceError:
                self._restore(record.id, previous)
                raise

    def get(self, record_id: str) -> ScreenshotRecord:
        try:
            return self._records[record_id]
        except KeyError:
            raise RecordNotFoundError(f"No screenshot with id {record_id}") from None

    def fetch_all(
        self,
        category: Optional[Category] = None,
        query: Optional[str] = None,
        include_archived: bool = True,
    ) -> List[ScreenshotRecord]:
        records = list(self._records.values())
        if category is not None:
            records = [r for r in records if r.category is category]
        if query:
            records = [r for r in records if r.matches(query)]
        if not include_archived:
            records = [r for r in records if not r.is_archived]
        return sorted(records, key=lambda r: r.creation_date, reverse=True)

    def delete(self, record_ids: Iterable[str]) -> List[str]:
        with self._lock:
            removed = {}
            for record_id in record_ids:
                record = self._records.pop(record_id, None)
                if record is not None:
                    removed[record_id] = record
            if not removed:
                return []
            try:
                self._commit()
            except PersistenceError:
                self._records.update(removed)
                raise
            return list(removed)

    def __len__(self) -> int:
        return len(self._records)

    def _commit(self) -> None:
        """Hook for subclasses that persist the current state."""

    def _restore(self, record_id: str, previous: Optional[ScreenshotRecord]) -> None:
        if previous is None:
            self._records.pop(record_id, None)
        else:
            self._records[record_id] = previous

    def _check_unique_source(self, record: ScreenshotRecord) -> None:
        for other in self._records.values():
            if other.source_ref == record.source_ref and other.id != record.id:
                raise PersistenceError(
                    f"Source {record.source_ref} already stored as {other.id}",
                    record_id=record.id,
                )
