"""
Image sources.

An image source lists stable references to screenshot assets and decodes them
into Pillow images on demand.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Sequence

from PIL import Image

from ..config import DEFAULT_IMAGE_EXTENSIONS
from ..errors import DecodeError
from ..logging import get_logger

logger = get_logger(__name__)


@dataclass
class SourceImage:
    ref: str
    image: Image.Image
    creation_date: datetime
    file_size: int = 0

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height


class ImageSource(ABC):
    @abstractmethod
    def list_refs(self) -> List[str]:
        """Return asset references, newest first."""
        raise NotImplementedError

    @abstractmethod
    def load(self, ref: str) -> SourceImage:
        """Decode one asset; raises DecodeError when it cannot be read."""
        raise NotImplementedError

    @abstractmethod
    def creation_date(self, ref: str) -> datetime:
        """Timestamp of an asset without decoding it; raises DecodeError when unavailable."""
        raise NotImplementedError


class DirectoryImageSource(ImageSource):
    """Screenshots stored as image files below a directory."""

    def __init__(
        self,
        root: Path | str,
        extensions: Sequence[str] = DEFAULT_IMAGE_EXTENSIONS,
        recursive: bool = True,
    ) -> None:
        self.root = Path(root)
        self.extensions = {ext.lower() for ext in extensions}
        self.recursive = recursive

    def list_refs(self) -> List[str]:
        if not self.root.is_dir():
            raise DecodeError(f"Not a directory: {self.root}")
        pattern = "**/*" if self.recursive else "*"
        paths = [
            path for path in self.root.glob(pattern)
            if path.is_file() and path.suffix.lower() in self.extensions
        ]
        paths.sort(key=lambda path: (path.stat().st_mtime, str(path)), reverse=True)
        logger.debug(f"Found {len(paths)} images under {self.root}")
        return [str(path) for path in paths]

    def creation_date(self, ref: str) -> datetime:
        try:
            return datetime.fromtimestamp(Path(ref).stat().st_mtime)
        except OSError as exc:
            raise DecodeError(f"Cannot stat {ref}: {exc}") from exc

    def load(self, ref: str) -> SourceImage:
        path = Path(ref)
        try:
            stat = path.stat()
            with Image.open(path) as img:
                img.load()
                image = img.copy()
        except (OSError, ValueError, Image.DecompressionBombError) as exc:
            raise DecodeError(f"Failed to decode {path}: {exc}") from exc

        return SourceImage(
            ref=ref,
            image=image,
            creation_date=datetime.fromtimestamp(stat.st_mtime),
            file_size=stat.st_size,
        )
