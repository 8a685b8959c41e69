"""
Clustering logic for grouping duplicate screenshots.

A single ordered pass: each screenshot joins the group of the *first* earlier
screenshot within the threshold. This is deliberately not a transitive closure;
two screenshots near a common third can end up apart depending on scan order.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Set
from uuid import uuid4

import imagehash

from ..logging import get_logger
from ..store.model import ScreenshotRecord
from .distance import FingerprintLike, hamming_distance
from .hash import from_bits

logger = get_logger(__name__)

DEFAULT_THRESHOLD = 5


@dataclass(frozen=True)
class ClusterItem:
    """One screenshot as seen by the clusterer."""
    record_id: str
    fingerprint: Optional[FingerprintLike]
    previous_group_id: Optional[str] = None


@dataclass(frozen=True)
class DuplicateGroup:
    """A duplicate group; members are listed in scan order."""
    group_id: str
    record_ids: List[str]

    @property
    def size(self) -> int:
        return len(self.record_ids)


@dataclass
class ClusterResult:
    assignments: Dict[str, Optional[str]] = field(default_factory=dict)
    groups: List[DuplicateGroup] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)

    def group_of(self, record_id: str) -> Optional[str]:
        return self.assignments.get(record_id)


def cluster_duplicates(
    items: Sequence[ClusterItem],
    threshold: int = DEFAULT_THRESHOLD,
) -> ClusterResult:
    """
    Assign duplicate groups with first-match single-link clustering.

    Args:
        items: Screenshots in iteration order (typically newest first)
        threshold: Maximum hamming distance for two screenshots to be duplicates

    Returns:
        ClusterResult with an assignment (group id or None) for every item
    """
    result = ClusterResult()
    visited: List[ClusterItem] = []
    current: Dict[str, str] = {}
    claimed: Set[str] = set()
    members: Dict[str, List[str]] = defaultdict(list)

    for item in items:
        result.assignments[item.record_id] = None
        if item.fingerprint is None:
            logger.debug(f"Skipping {item.record_id}: no fingerprint")
            result.skipped.append(item.record_id)
            continue

        for earlier in visited:
            distance = hamming_distance(item.fingerprint, earlier.fingerprint)
            if distance > threshold:
                continue

            group_id = current.get(earlier.record_id)
            if group_id is None:
                group_id = _mint_group_id(earlier, claimed)
                current[earlier.record_id] = group_id
                members[group_id].append(earlier.record_id)
                result.assignments[earlier.record_id] = group_id

            current[item.record_id] = group_id
            members[group_id].append(item.record_id)
            result.assignments[item.record_id] = group_id
            logger.debug(f"Grouped {item.record_id} with {earlier.record_id} (distance: {distance})")
            break

        visited.append(item)

    result.groups = [DuplicateGroup(group_id, ids) for group_id, ids in members.items()]
    logger.info(
        f"Clustered {len(items)} screenshots into {len(result.groups)} duplicate groups "
        f"({len(result.skipped)} without fingerprint)"
    )
    return result


def _mint_group_id(anchor: ClusterItem, claimed: Set[str]) -> str:
    """Keep the anchor's previous group id when still free, else a fresh one."""
    group_id = anchor.previous_group_id
    if group_id is None or group_id in claimed:
        group_id = uuid4().hex
    claimed.add(group_id)
    return group_id


def apply_clustering(
    records: Sequence[ScreenshotRecord],
    threshold: int = DEFAULT_THRESHOLD,
) -> List[ScreenshotRecord]:
    """
    Run a clustering pass over records and return the ones whose duplicate fields changed.
    """
    items = [
        ClusterItem(record.id, _parse_fingerprint(record), record.duplicate_group_id)
        for record in records
    ]
    result = cluster_duplicates(items, threshold)

    changed = []
    for record in records:
        group_id = result.assignments[record.id]
        if group_id != record.duplicate_group_id:
            changed.append(record.with_group(group_id))
    return changed


def _parse_fingerprint(record: ScreenshotRecord) -> Optional[imagehash.ImageHash]:
    if record.fingerprint is None:
        return None
    try:
        return from_bits(record.fingerprint)
    except ValueError:
        logger.warning(f"Ignoring malformed fingerprint on {record.id}")
        return None


def detach_from_groups(
    deleted_ids: Iterable[str],
    remaining: Iterable[ScreenshotRecord],
) -> List[ScreenshotRecord]:
    """
    Re-check duplicate groups after deletion.

    Any group left with a single remaining member loses it: that record is
    un-flagged. Groups with two or more members are untouched.

    Returns:
        Updated copies of the records that must be persisted
    """
    deleted = set(deleted_ids)
    by_group: Dict[str, List[ScreenshotRecord]] = defaultdict(list)
    for record in remaining:
        if record.id in deleted or record.duplicate_group_id is None:
            continue
        by_group[record.duplicate_group_id].append(record)

    changed = []
    for group_id, group_records in by_group.items():
        if len(group_records) == 1:
            logger.info(f"Dissolving duplicate group {group_id}: one member left")
            changed.append(group_records[0].with_group(None))
    return changed
