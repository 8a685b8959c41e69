"""Perceptual duplicate detection for screenshots."""

from .hash import average_hash, compute_fingerprint, from_bits, to_bits
from .distance import MAX_DISTANCE, hamming_distance
from .cluster import (
    ClusterItem,
    ClusterResult,
    DuplicateGroup,
    apply_clustering,
    cluster_duplicates,
    detach_from_groups,
)

__all__ = [
    "average_hash",
    "compute_fingerprint",
    "from_bits",
    "to_bits",
    "MAX_DISTANCE",
    "hamming_distance",
    "ClusterItem",
    "ClusterResult",
    "DuplicateGroup",
    "apply_clustering",
    "cluster_duplicates",
    "detach_from_groups",
]
