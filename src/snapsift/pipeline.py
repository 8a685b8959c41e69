"""
Screenshot analysis pipeline.

Imports screenshots from an image source, runs OCR, categorization and hashing
per screenshot, persists the records and then runs one duplicate clustering
pass over the whole collection.
"""

from __future__ import annotations

import threading
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from .classifier.model import Category
from .classifier.rules import categorize
from .config import Settings
from .dedup.cluster import DuplicateGroup, apply_clustering, detach_from_groups
from .dedup.hash import compute_fingerprint, to_bits
from .errors import DecodeError, OCRError, PersistenceError
from .logging import get_logger
from .sources.images import ImageSource, SourceImage
from .sources.ocr import EMPTY_RESULT, NullOCREngine, OCREngine
from .store.base import ScreenshotStore
from .store.model import ScreenshotRecord

logger = get_logger(__name__)

ProgressCallback = Callable[[int, int], None]


@dataclass
class BatchReport:
    """Outcome of an import, clustering pass or delete."""
    imported: List[str] = field(default_factory=list)
    skipped_existing: int = 0
    undecodable: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)   # record id -> error
    regrouped: int = 0
    duplicate_groups: int = 0
    cancelled: bool = False

    @property
    def ok(self) -> bool:
        return not self.failed


ImportListener = Callable[[BatchReport], None]


def analyze_image(
    source: SourceImage,
    ocr: OCREngine,
) -> ScreenshotRecord:
    """
    Build a record for one decoded screenshot.

    OCR failures degrade to empty text; hashing failures leave the fingerprint
    empty so the screenshot never takes part in duplicate matching.
    """
    try:
        ocr_result = ocr.extract_text(source.image)
    except OCRError as exc:
        logger.warning(f"OCR failed for {source.ref}: {exc}")
        ocr_result = EMPTY_RESULT

    match = categorize(ocr_result.text)
    fingerprint = compute_fingerprint(source.image)

    return ScreenshotRecord(
        source_ref=source.ref,
        creation_date=source.creation_date,
        extracted_text=ocr_result.text,
        category=match.category,
        confidence=max(ocr_result.confidence, match.confidence),
        fingerprint=to_bits(fingerprint) if fingerprint is not None else None,
        width=source.width,
        height=source.height,
        file_size=source.file_size,
    )


def _asset_date(source: ImageSource, ref: str) -> datetime:
    """Creation date of an asset that could not be decoded; the epoch when even that is unreadable."""
    try:
        return source.creation_date(ref)
    except DecodeError as exc:
        logger.warning(f"No creation date for {ref}: {exc}")
        return datetime.fromtimestamp(0)


class ScreenshotLibrary:
    """
    A screenshot collection backed by a store.

    Clustering and store writes run on the calling thread only; per-screenshot
    analysis may fan out to a thread pool.
    """

    def __init__(
        self,
        store: ScreenshotStore,
        settings: Optional[Settings] = None,
        ocr: Optional[OCREngine] = None,
    ) -> None:
        self.store = store
        self.settings = (settings or Settings()).validate()
        self.ocr = ocr or NullOCREngine()
        self._listeners: List[ImportListener] = []
        self._pass_lock = threading.Lock()

    def add_listener(self, listener: ImportListener) -> None:
        """Register a callable notified with the report after every import."""
        self._listeners.append(listener)

    def import_from(
        self,
        source: ImageSource,
        progress: Optional[ProgressCallback] = None,
        cancel: Optional[threading.Event] = None,
    ) -> BatchReport:
        """
        Import screenshots not yet in the store, then re-cluster the collection.

        A set `cancel` event stops the batch between screenshots; everything
        analyzed so far is still saved and clustered.
        """
        cancel = cancel or threading.Event()
        report = BatchReport()

        known = self.store.source_refs()
        refs = source.list_refs()
        new_refs = [ref for ref in refs if ref not in known]
        report.skipped_existing = len(refs) - len(new_refs)
        logger.info(f"Importing {len(new_refs)} new screenshots ({report.skipped_existing} already known)")

        total = len(new_refs)
        for done, record in enumerate(self._analyze_refs(source, new_refs, cancel, report), start=1):
            if self._save(record, report):
                report.imported.append(record.id)
            if progress is not None:
                progress(done, total)

        report.cancelled = cancel.is_set()
        if report.cancelled:
            logger.warning(f"Import cancelled after {len(report.imported)} of {total} screenshots")

        if total:
            report.regrouped, report.duplicate_groups = self._recluster(report)

        for listener in self._listeners:
            listener(report)
        return report

    def _analyze_refs(
        self,
        source: ImageSource,
        refs: Sequence[str],
        cancel: threading.Event,
        report: BatchReport,
    ) -> Iterable[ScreenshotRecord]:
        def analyze(ref: str) -> Optional[ScreenshotRecord]:
            if cancel.is_set():
                return None
            try:
                loaded = source.load(ref)
            except DecodeError as exc:
                logger.warning(f"Skipping fingerprint for {ref}: {exc}")
                report.undecodable.append(ref)
                return ScreenshotRecord(source_ref=ref, creation_date=_asset_date(source, ref))
            return analyze_image(loaded, self.ocr)

        if self.settings.workers == 1:
            for ref in refs:
                record = analyze(ref)
                if record is None:
                    break
                yield record
            return

        with ThreadPoolExecutor(max_workers=self.settings.workers) as executor:
            for record in executor.map(analyze, refs):
                if record is not None:
                    yield record

    def _save_all(self, records: Iterable[ScreenshotRecord], report: BatchReport) -> int:
        return sum(1 for record in records if self._save(record, report))

    def _save(self, record: ScreenshotRecord, report: BatchReport) -> bool:
        try:
            self.store.upsert(record)
            return True
        except PersistenceError as exc:
            logger.error(f"Failed to save {record.id} ({record.source_ref}): {exc}")
            report.failed[record.id] = str(exc)
            return False

    def recluster(self, threshold: Optional[int] = None) -> BatchReport:
        """Run a clustering pass over the stored collection."""
        report = BatchReport()
        report.regrouped, report.duplicate_groups = self._recluster(report, threshold)
        return report

    def _recluster(self, report: BatchReport, threshold: Optional[int] = None) -> tuple[int, int]:
        if threshold is None:
            threshold = self.settings.duplicate_threshold
        with self._pass_lock:
            records = self.store.fetch_all()
            changed = apply_clustering(records, threshold)
            saved = self._save_all(changed, report)
        groups = len(self.duplicate_groups())
        logger.info(f"Duplicate pass updated {saved} screenshots, {groups} groups")
        return saved, groups

    def duplicate_groups(self) -> List[DuplicateGroup]:
        """Current duplicate groups in collection order."""
        members: Dict[str, List[str]] = {}
        for record in self.store.fetch_all():
            if record.duplicate_group_id is not None:
                members.setdefault(record.duplicate_group_id, []).append(record.id)
        return [DuplicateGroup(group_id, ids) for group_id, ids in members.items()]

    def update_category(self, record_id: str, category: Category) -> ScreenshotRecord:
        """User override of a screenshot's category."""
        record = self.store.get(record_id).with_category(category)
        self.store.upsert(record)
        logger.info(f"Category of {record_id} set to {category.value}")
        return record

    def set_archived(self, record_id: str, archived: bool = True) -> ScreenshotRecord:
        record = replace(self.store.get(record_id), is_archived=archived)
        self.store.upsert(record)
        return record

    def delete(self, record_ids: Iterable[str]) -> List[str]:
        """
        Delete screenshots and dissolve groups left with a single member.

        Every former group-mate is re-checked even when saving one of them fails.

        Returns:
            Ids that were present and removed

        Raises:
            PersistenceError: If a dissolved group member could not be saved
        """
        report = BatchReport()
        with self._pass_lock:
            removed = self.store.delete(record_ids)
            if not removed:
                return []
            report.regrouped = self._save_all(detach_from_groups(removed, self.store.fetch_all()), report)
        logger.info(f"Deleted {len(removed)} screenshots, {report.regrouped} left their group")

        if report.failed:
            raise PersistenceError(
                f"Deleted {len(removed)} screenshots but could not ungroup {', '.join(report.failed)}",
                record_id=next(iter(report.failed)),
            )
        return removed


def summarize(records: Sequence[ScreenshotRecord]) -> Dict[str, Any]:
    """Generate summary statistics for a collection."""
    total = len(records)
    if total == 0:
        return {"total": 0, "categories": {}, "duplicates": 0, "duplicate_groups": 0,
                "average_confidence": 0.0, "without_fingerprint": 0, "archived": 0}

    categories = Counter(record.category.value for record in records)
    return {
        "total": total,
        "categories": {category.value: categories.get(category.value, 0) for category in Category},
        "duplicates": sum(1 for record in records if record.is_duplicate),
        "duplicate_groups": len({record.duplicate_group_id for record in records if record.duplicate_group_id}),
        "average_confidence": sum(record.confidence for record in records) / total,
        "without_fingerprint": sum(1 for record in records if record.fingerprint is None),
        "archived": sum(1 for record in records if record.is_archived),
    }
