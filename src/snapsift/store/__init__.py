"""Screenshot record persistence."""

from .base import ScreenshotStore
from .json_store import JsonStore
from .memory import MemoryStore
from .model import ScreenshotRecord

__all__ = [
    "JsonStore",
    "MemoryStore",
    "ScreenshotRecord",
    "ScreenshotStore",
]
