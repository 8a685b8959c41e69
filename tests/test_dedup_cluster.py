"""Tests for first-match duplicate clustering."""

from datetime import datetime

import pytest

from snapsift.dedup.cluster import (
    ClusterItem,
    DuplicateGroup,
    apply_clustering,
    cluster_duplicates,
    detach_from_groups,
)
from snapsift.store.model import ScreenshotRecord
from tests.helpers.images import BASE_BITS, flip

# dist(A, B) = 4, dist(B, C) = 4, dist(A, C) = 8
A = BASE_BITS
B = flip(BASE_BITS, 0, 1, 2, 3)
C = flip(BASE_BITS, 0, 1, 2, 3, 32, 33, 34, 35)
FAR = flip(BASE_BITS, *range(64))


def items(*pairs):
    return [ClusterItem(record_id, bits) for record_id, bits in pairs]


def record(record_id: str, bits, group=None, minute: int = 0) -> ScreenshotRecord:
    return ScreenshotRecord(
        id=record_id,
        source_ref=f"/shots/{record_id}.png",
        creation_date=datetime(2024, 1, 1, 12, minute),
        fingerprint=bits,
        duplicate_group_id=group,
        is_duplicate=group is not None,
    )


class TestDuplicateGroup:
    def test_immutable(self):
        group = DuplicateGroup(group_id="g1", record_ids=["a", "b"])
        with pytest.raises(AttributeError):
            group.group_id = "g2"  # type: ignore

    def test_size(self):
        assert DuplicateGroup("g1", ["a", "b", "c"]).size == 3


class TestClusterDuplicates:
    def test_empty_input(self):
        result = cluster_duplicates([])
        assert result.assignments == {}
        assert result.groups == []

    def test_single_item_stays_ungrouped(self):
        result = cluster_duplicates(items(("a", A)))
        assert result.assignments == {"a": None}
        assert result.groups == []

    def test_identical_items_form_one_group(self):
        result = cluster_duplicates(items(("a", A), ("b", A), ("c", A)))
        assert len(result.groups) == 1
        assert result.groups[0].record_ids == ["a", "b", "c"]
        assert len(set(result.assignments.values())) == 1

    def test_distant_items_stay_apart(self):
        result = cluster_duplicates(items(("a", A), ("far", FAR)))
        assert result.groups == []
        assert result.assignments == {"a": None, "far": None}

    def test_threshold_is_respected(self):
        pairs = items(("a", A), ("b", B))
        assert cluster_duplicates(pairs, threshold=3).groups == []
        assert len(cluster_duplicates(pairs, threshold=4).groups) == 1

    def test_chain_in_scan_order_joins_one_group(self):
        """C misses A but matches B, which already joined A's group."""
        result = cluster_duplicates(items(("A", A), ("B", B), ("C", C)))
        group_id = result.group_of("A")
        assert group_id is not None
        assert result.group_of("B") == group_id
        assert result.group_of("C") == group_id
        assert result.groups == [DuplicateGroup(group_id, ["A", "B", "C"])]

    def test_chain_out_of_order_splits(self):
        """C is visited before B, so when B arrives it stops at A and C is never revisited."""
        result = cluster_duplicates(items(("A", A), ("C", C), ("B", B)))
        assert result.group_of("A") is not None
        assert result.group_of("B") == result.group_of("A")
        assert result.group_of("C") is None

    def test_first_match_wins_over_best_match(self):
        """Z is 1 bit from Y but joins the earlier A at distance 5."""
        y = flip(A, 0, 1, 2, 3, 4, 5)
        z = flip(A, 0, 1, 2, 3, 4)
        result = cluster_duplicates(items(("A", A), ("Y", y), ("Y2", y), ("Z", z)))
        assert result.group_of("Z") == result.group_of("A")
        assert result.group_of("Y") == result.group_of("Y2")
        assert result.group_of("Y") != result.group_of("A")
        assert len(result.groups) == 2

    def test_items_without_fingerprint_are_skipped(self):
        result = cluster_duplicates([
            ClusterItem("a", A),
            ClusterItem("broken", None),
            ClusterItem("b", A),
        ])
        assert result.skipped == ["broken"]
        assert result.group_of("broken") is None
        assert result.group_of("a") == result.group_of("b") is not None

    def test_length_mismatch_never_matches(self):
        result = cluster_duplicates(items(("a", A), ("short", "0" * 16)), threshold=64)
        assert result.groups == []

    def test_previous_group_id_is_kept(self):
        result = cluster_duplicates([
            ClusterItem("a", A, previous_group_id="old"),
            ClusterItem("b", A, previous_group_id="old"),
        ])
        assert result.group_of("a") == "old"
        assert result.group_of("b") == "old"

    def test_previous_group_id_claimed_once(self):
        """Two anchors carrying the same stale id get distinct groups."""
        result = cluster_duplicates([
            ClusterItem("a", A, previous_group_id="old"),
            ClusterItem("x", FAR, previous_group_id="old"),
            ClusterItem("a2", A),
            ClusterItem("x2", FAR),
        ])
        assert result.group_of("a") == "old"
        assert result.group_of("x") not in (None, "old")
        assert len(result.groups) == 2

    def test_new_groups_get_fresh_ids(self):
        first = cluster_duplicates(items(("a", A), ("b", A)))
        second = cluster_duplicates(items(("a", A), ("b", A)))
        assert first.group_of("a") != second.group_of("a")


class TestApplyClustering:
    def test_returns_only_changed_records(self):
        records = [record("a", A), record("b", A), record("far", FAR)]
        changed = apply_clustering(records)
        assert sorted(r.id for r in changed) == ["a", "b"]
        assert all(r.is_duplicate for r in changed)
        assert changed[0].duplicate_group_id == changed[1].duplicate_group_id

    def test_stale_group_is_cleared(self):
        records = [record("a", A, group="g"), record("far", FAR, group="g")]
        changed = {r.id: r for r in apply_clustering(records)}
        assert changed["a"].duplicate_group_id is None
        assert changed["a"].is_duplicate is False
        assert changed["far"].is_duplicate is False

    def test_stable_groups_produce_no_changes(self):
        records = [record("a", A, group="g"), record("b", B, group="g")]
        assert apply_clustering(records) == []

    def test_malformed_fingerprint_is_ignored(self):
        records = [record("a", A), record("bad", "xyz"), record("b", A)]
        changed = {r.id: r for r in apply_clustering(records)}
        assert "bad" not in changed
        assert changed["a"].duplicate_group_id == changed["b"].duplicate_group_id


class TestDetachFromGroups:
    def test_sole_survivor_is_unflagged(self):
        remaining = [record("a", A, group="g"), record("other", FAR)]
        changed = detach_from_groups(["b"], remaining)
        assert len(changed) == 1
        assert changed[0].id == "a"
        assert changed[0].is_duplicate is False
        assert changed[0].duplicate_group_id is None

    def test_group_with_two_survivors_is_kept(self):
        remaining = [record("a", A, group="g"), record("b", A, group="g")]
        assert detach_from_groups(["c"], remaining) == []

    def test_deleted_records_in_remaining_are_ignored(self):
        remaining = [record("a", A, group="g"), record("b", A, group="g")]
        changed = detach_from_groups(["b"], remaining)
        assert [r.id for r in changed] == ["a"]
