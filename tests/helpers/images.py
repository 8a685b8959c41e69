"""Helpers for building screenshots with known fingerprints."""

from datetime import datetime, timedelta
from pathlib import Path
from typing import Dict, List, Optional

from PIL import Image

from snapsift.errors import DecodeError
from snapsift.sources.images import ImageSource, SourceImage
from snapsift.sources.ocr import OCREngine, OCRResult

BASE_BITS = "1" * 32 + "0" * 32
ON = (200, 200, 200)
OFF = (0, 0, 0)


def flip(bits: str, *positions: int) -> str:
    """Return `bits` with the given positions inverted."""
    chars = list(bits)
    for position in positions:
        chars[position] = "0" if chars[position] == "1" else "1"
    return "".join(chars)


def pattern_image(bits: str, cell: int = 1) -> Image.Image:
    """
    Build an RGB image whose 8x8 average hash is exactly `bits`.

    Each bit becomes a `cell`-sized square: bright for '1', black for '0'.
    The pattern must contain at least one '1' and one '0'.
    """
    image = Image.new('RGB', (8 * cell, 8 * cell), OFF)
    for index, bit in enumerate(bits):
        if bit == "1":
            row, col = divmod(index, 8)
            image.paste(ON, (col * cell, row * cell, (col + 1) * cell, (row + 1) * cell))
    return image


def save_pattern(path: Path, bits: str, cell: int = 4) -> Path:
    pattern_image(bits, cell).save(path)
    return path


class FakeImageSource(ImageSource):
    """In-memory source; refs listed in insertion order, newest first by date."""

    def __init__(self) -> None:
        self.images: Dict[str, SourceImage] = {}
        self.broken: Dict[str, datetime] = {}
        self._clock = datetime(2024, 1, 1, 12, 0)

    def add(self, ref: str, bits: str = BASE_BITS, text: str = "",
            confidence: float = 0.0, created: Optional[datetime] = None) -> None:
        image = pattern_image(bits)
        image.info["ocr_text"] = text
        image.info["ocr_confidence"] = confidence
        if created is None:
            created = self._tick()
        self.images[ref] = SourceImage(ref=ref, image=image, creation_date=created, file_size=100)

    def add_broken(self, ref: str, created: Optional[datetime] = None) -> None:
        self.broken[ref] = created or self._tick()

    def _tick(self) -> datetime:
        self._clock -= timedelta(minutes=1)
        return self._clock

    def list_refs(self) -> List[str]:
        return list(self.images) + list(self.broken)

    def load(self, ref: str) -> SourceImage:
        if ref in self.broken:
            raise DecodeError(f"cannot decode {ref}")
        return self.images[ref]

    def creation_date(self, ref: str) -> datetime:
        if ref in self.broken:
            return self.broken[ref]
        return self.images[ref].creation_date


class FakeOCREngine(OCREngine):
    """Reads the text planted on the image by FakeImageSource."""

    def __init__(self, fail_on: str = None) -> None:
        self.fail_on = fail_on

    def extract_text(self, image: Image.Image) -> OCRResult:
        from snapsift.errors import OCRError

        text = image.info.get("ocr_text", "")
        if self.fail_on is not None and text == self.fail_on:
            raise OCRError("engine crashed")
        return OCRResult(text, image.info.get("ocr_confidence", 0.0))
