from dataclasses import dataclass, field
from pathlib import Path
from typing import Tuple

DEFAULT_IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".heic", ".webp", ".bmp", ".gif", ".tiff")


@dataclass
class Settings:
    store_path: Path = Path("snapsift.json")
    duplicate_threshold: int = 5
    workers: int = 4
    ocr_languages: str = "deu+eng"
    image_extensions: Tuple[str, ...] = field(default=DEFAULT_IMAGE_EXTENSIONS)

    def validate(self) -> "Settings":
        """Raise ValueError for settings the pipeline cannot run with."""
        if not 0 <= self.duplicate_threshold <= 64:
            raise ValueError(
                f"duplicate_threshold must be between 0 and 64, got {self.duplicate_threshold}"
            )
        if self.workers < 1:
            raise ValueError(f"workers must be at least 1, got {self.workers}")
        return self
