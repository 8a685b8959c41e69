"""
Persisted screenshot record.

One record per screenshot asset. Records are immutable; the pipeline derives
updated copies with `dataclasses.replace` and upserts them.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Dict, Optional
from uuid import uuid4

from ..classifier.model import Category


def new_record_id() -> str:
    return uuid4().hex


@dataclass(frozen=True)
class ScreenshotRecord:
    """Analysis results for one screenshot."""
    source_ref: str                          # Reference to the external image asset
    creation_date: datetime                  # Timestamp from the source asset
    extracted_text: str = ""                 # OCR output, possibly empty
    category: Category = Category.UNKNOWN
    confidence: float = 0.0                  # max(OCR confidence, rule confidence)
    is_duplicate: bool = False
    duplicate_group_id: Optional[str] = None
    fingerprint: Optional[str] = None        # 64-char bit string, None if hashing failed
    width: int = 0
    height: int = 0
    file_size: int = 0
    is_archived: bool = False
    id: str = ""

    def __post_init__(self) -> None:
        if not self.id:
            object.__setattr__(self, "id", new_record_id())
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be within [0, 1], got {self.confidence}")
        if self.is_duplicate != (self.duplicate_group_id is not None):
            raise ValueError(
                f"is_duplicate={self.is_duplicate} disagrees with duplicate_group_id={self.duplicate_group_id!r}"
            )

    @property
    def dimensions(self) -> str:
        return f"{self.width}×{self.height}"

    def with_group(self, group_id: Optional[str]) -> "ScreenshotRecord":
        """Return a copy assigned to `group_id`, or ungrouped when None."""
        return replace(self, duplicate_group_id=group_id, is_duplicate=group_id is not None)

    def with_category(self, category: Category) -> "ScreenshotRecord":
        return replace(self, category=category)

    def matches(self, query: str) -> bool:
        """Case-insensitive search over extracted text and category name."""
        needle = query.casefold()
        return needle in self.extracted_text.casefold() or needle in self.category.value.casefold()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "id": self.id,
            "source_ref": self.source_ref,
            "creation_date": self.creation_date.isoformat(),
            "extracted_text": self.extracted_text,
            "category": self.category.value,
            "confidence": self.confidence,
            "is_duplicate": self.is_duplicate,
            "duplicate_group_id": self.duplicate_group_id,
            "fingerprint": self.fingerprint,
            "width": self.width,
            "height": self.height,
            "file_size": self.file_size,
            "is_archived": self.is_archived,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScreenshotRecord":
        group_id = data.get("duplicate_group_id")
        return cls(
            id=data["id"],
            source_ref=data["source_ref"],
            creation_date=datetime.fromisoformat(data["creation_date"]),
            extracted_text=data.get("extracted_text", ""),
            category=Category.from_stored(data.get("category")),
            confidence=float(data.get("confidence", 0.0)),
            # Group id is authoritative for the flag
            is_duplicate=group_id is not None,
            duplicate_group_id=group_id,
            fingerprint=data.get("fingerprint"),
            width=int(data.get("width", 0)),
            height=int(data.get("height", 0)),
            file_size=int(data.get("file_size", 0)),
            is_archived=bool(data.get("is_archived", False)),
        )
