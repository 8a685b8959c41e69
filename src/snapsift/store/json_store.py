"""
JSON-file backed screenshot store.

The whole collection lives in one JSON document. Every mutation rewrites it
through a temporary file and `os.replace`, so a record is either fully written
or not written at all.
"""

from __future__ import annotations

import json
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict

from ..errors import PersistenceError
from ..logging import get_logger
from .memory import MemoryStore
from .model import ScreenshotRecord

logger = get_logger(__name__)

STORE_VERSION = "1.0.0"


class JsonStore(MemoryStore):
    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        super().__init__(self._load())

    def _load(self) -> list[ScreenshotRecord]:
        if not self.path.exists():
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as handle:
                data = json.load(handle)
            records = [ScreenshotRecord.from_dict(item) for item in data.get("records", [])]
        except (OSError, ValueError, KeyError, TypeError) as exc:
            raise PersistenceError(f"Failed to load store from {self.path}: {exc}") from exc
        logger.info(f"Loaded {len(records)} screenshots from {self.path}")
        return records

    def _commit(self) -> None:
        payload: Dict[str, Any] = {
            "version": STORE_VERSION,
            "saved_at": datetime.now().isoformat(),
            "records": [record.to_dict() for record in self._records.values()],
        }
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as handle:
                json.dump(payload, handle, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except OSError as exc:
            logger.error(f"Failed to write store to {self.path}: {exc}")
            raise PersistenceError(f"Failed to write store to {self.path}: {exc}") from exc
