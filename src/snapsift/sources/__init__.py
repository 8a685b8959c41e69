"""External collaborators: image sources and OCR engines."""

from .images import DirectoryImageSource, ImageSource, SourceImage
from .ocr import NullOCREngine, OCREngine, OCRResult, TesseractOCREngine

__all__ = [
    "DirectoryImageSource",
    "ImageSource",
    "SourceImage",
    "NullOCREngine",
    "OCREngine",
    "OCRResult",
    "TesseractOCREngine",
]
