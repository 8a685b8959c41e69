"""
OCR engines.

The pipeline only consumes `(text, confidence)`; recognition itself is done by
an external engine. Tesseract is supported through pytesseract, which is
imported lazily so the rest of the package works without it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import OrderedDict
from dataclasses import dataclass
from typing import Dict, List, Tuple

from PIL import Image

from ..errors import OCRError
from ..logging import get_logger

logger = get_logger(__name__)

pytesseract = None


def _import_tesseract():
    """Lazy import pytesseract."""
    global pytesseract
    if pytesseract is None:
        try:
            import pytesseract as _pytesseract
        except ImportError as exc:
            raise OCRError(
                "pytesseract is not installed; install the 'ocr' extra or use --no-ocr"
            ) from exc

        pytesseract = _pytesseract
    return pytesseract


@dataclass(frozen=True)
class OCRResult:
    text: str
    confidence: float   # Mean region confidence (0.0 to 1.0)


EMPTY_RESULT = OCRResult("", 0.0)


class OCREngine(ABC):
    @abstractmethod
    def extract_text(self, image: Image.Image) -> OCRResult:
        """Recognize text in an image; raises OCRError on engine failure."""
        raise NotImplementedError


class NullOCREngine(OCREngine):
    """Engine that recognizes nothing; every screenshot falls through to Unknown."""

    def extract_text(self, image: Image.Image) -> OCRResult:
        return EMPTY_RESULT


class TesseractOCREngine(OCREngine):
    """
    Tesseract OCR.

    Words are regrouped into lines by Tesseract's block/paragraph/line numbers;
    the confidence is the mean of the recognized words' confidences.
    """

    def __init__(self, languages: str = "deu+eng", timeout: int = 30) -> None:
        self.languages = languages
        self.timeout = timeout

    def extract_text(self, image: Image.Image) -> OCRResult:
        tesseract = _import_tesseract()
        if image.mode not in ("RGB", "L"):
            image = image.convert("RGB")
        try:
            data = tesseract.image_to_data(
                image,
                lang=self.languages,
                timeout=self.timeout,
                output_type=tesseract.Output.DICT,
            )
        except Exception as exc:
            raise OCRError(f"Tesseract failed: {exc}") from exc

        return _collect_words(data)

    def is_available(self) -> bool:
        try:
            _import_tesseract().get_tesseract_version()
            return True
        except Exception:
            return False


def _collect_words(data: Dict[str, list]) -> OCRResult:
    lines: "OrderedDict[Tuple[int, int, int], List[str]]" = OrderedDict()
    confidences: List[float] = []

    for index, word in enumerate(data.get("text", [])):
        word = (word or "").strip()
        confidence = float(data["conf"][index])
        if not word or confidence < 0:
            continue
        key = (data["block_num"][index], data["par_num"][index], data["line_num"][index])
        lines.setdefault(key, []).append(word)
        confidences.append(confidence)

    if not confidences:
        return EMPTY_RESULT

    text = "\n".join(" ".join(words) for words in lines.values())
    mean_confidence = sum(confidences) / len(confidences) / 100.0
    return OCRResult(text, min(max(mean_confidence, 0.0), 1.0))
