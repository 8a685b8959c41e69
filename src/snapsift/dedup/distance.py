"""Distance metric for fingerprint comparison."""

import sys
from typing import Optional, Union

import imagehash

from .hash import from_bits

# Never within any threshold
MAX_DISTANCE = sys.maxsize

FingerprintLike = Union[imagehash.ImageHash, str]


def hamming_distance(a: Optional[FingerprintLike], b: Optional[FingerprintLike]) -> int:
    """
    Count differing bit positions between two fingerprints.

    Accepts ImageHash objects or their '0'/'1' string form. Fingerprints of
    different length, malformed strings and missing fingerprints are maximally
    distant.
    """
    if a is None or b is None:
        return MAX_DISTANCE
    try:
        hash_a = from_bits(a) if isinstance(a, str) else a
        hash_b = from_bits(b) if isinstance(b, str) else b
    except ValueError:
        return MAX_DISTANCE

    if hash_a.hash.size != hash_b.hash.size:
        return MAX_DISTANCE
    return int(hash_a - hash_b)

