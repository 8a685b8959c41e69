from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from ..classifier.model import Category
from .model import ScreenshotRecord


class ScreenshotStore(ABC):
    """Persistent collection of screenshot records keyed by record id."""

    @abstractmethod
    def upsert(self, record: ScreenshotRecord) -> None:
        raise NotImplementedError

    @abstractmethod
    def get(self, record_id: str) -> ScreenshotRecord:
        raise NotImplementedError

    @abstractmethod
    def fetch_all(
        self,
        category: Optional[Category] = None,
        query: Optional[str] = None,
        include_archived: bool = True,
    ) -> List[ScreenshotRecord]:
        """Return matching records, newest creation date first."""
        raise NotImplementedError

    @abstractmethod
    def delete(self, record_ids: Iterable[str]) -> List[str]:
        """Remove records and return the ids that were actually present."""
        raise NotImplementedError

    def source_refs(self) -> set[str]:
        return {record.source_ref for record in self.fetch_all()}
