"""Average-luminance perceptual hash used for duplicate detection."""

from pathlib import Path
from typing import Optional, Union

import imagehash
import numpy as np
from PIL import Image

from ..errors import HashComputationError
from ..logging import get_logger

logger = get_logger(__name__)

HASH_SIZE = 8
HASH_BITS = HASH_SIZE * HASH_SIZE

# ITU-R BT.601 luma weights
LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114])


def sample_luminance(image: Image.Image) -> np.ndarray:
    """
    Downscale an image to the 8x8 hash grid and return integer luminance per cell.

    Alpha is ignored; the grid is returned in row-major order as an 8x8 int array.
    """
    if image.mode != 'RGB':
        image = image.convert('RGB')
    small = image.resize((HASH_SIZE, HASH_SIZE), Image.Resampling.BOX)
    pixels = np.asarray(small, dtype=np.float64)
    # Truncate toward zero like the integer conversion of the weighted sum
    return (pixels @ LUMA_WEIGHTS).astype(np.int64)


def average_hash(image: Image.Image) -> imagehash.ImageHash:
    """
    Compute the 64-bit average hash of a decoded image.

    A bit is set when the cell's luminance is strictly greater than the integer
    mean of all 64 cells, so a perfectly uniform image always hashes to zero.

    Raises:
        HashComputationError: If the image cannot be converted or resized
    """
    try:
        grid = sample_luminance(image)
    except Exception as exc:
        raise HashComputationError(f"Failed to sample image: {exc}") from exc

    mean = int(grid.sum()) // HASH_BITS
    return imagehash.ImageHash(grid > mean)


def compute_fingerprint(source: Union[Image.Image, Path, str]) -> Optional[imagehash.ImageHash]:
    """
    Hash an image or an image file, returning None when no fingerprint is available.
    """
    try:
        if isinstance(source, Image.Image):
            return average_hash(source)
        with Image.open(source) as img:
            return average_hash(img)
    except HashComputationError as exc:
        logger.warning(f"No fingerprint for {_describe(source)}: {exc}")
    except (OSError, ValueError, Image.DecompressionBombError) as exc:
        logger.warning(f"Failed to decode {_describe(source)} for hashing: {exc}")
    return None


def to_bits(fingerprint: imagehash.ImageHash) -> str:
    """Render a fingerprint as its row-major '0'/'1' string."""
    return "".join("1" if bit else "0" for bit in fingerprint.hash.flatten())


def from_bits(bits: str) -> imagehash.ImageHash:
    """
    Parse a row-major '0'/'1' string back into a fingerprint.

    Raises:
        ValueError: If the string is not a square grid of '0' and '1'
    """
    if not bits or set(bits) - {"0", "1"}:
        raise ValueError(f"Not a bit string: {bits!r}")
    side = int(round(len(bits) ** 0.5))
    if side * side != len(bits):
        raise ValueError(f"Bit string of length {len(bits)} is not a square grid")
    flat = np.array([char == "1" for char in bits], dtype=bool)
    return imagehash.ImageHash(flat.reshape((side, side)))


def _describe(source: Union[Image.Image, Path, str]) -> str:
    if isinstance(source, Image.Image):
        return f"<{source.mode} image {source.size[0]}x{source.size[1]}>"
    return str(source)
