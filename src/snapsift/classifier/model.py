"""
Content categories for screenshots.

The enum values are the stored representation; `Category.from_stored` maps
whatever a store holds back onto the closed set.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional, Union


class Category(Enum):
    """Closed set of screenshot content categories."""
    WEBSITE = "Website"
    CHAT = "Chat/Message"
    DOCUMENT = "Document"
    CODE = "Code"
    SOCIAL = "Social Media"
    SHOPPING = "Shopping"
    MAPS = "Maps"
    SETTINGS = "Settings"
    UNKNOWN = "Unknown"

    @classmethod
    def from_stored(cls, value: Optional[str]) -> "Category":
        """
        Map a stored value or member name onto a category.

        Unrecognised values map to UNKNOWN rather than raising.
        """
        if not value:
            return cls.UNKNOWN
        try:
            return cls(value)
        except ValueError:
            pass
        normalized = value.strip().lower()
        for member in cls:
            if normalized in (member.name.lower(), member.value.lower()):
                return member
        return cls.UNKNOWN


@dataclass(frozen=True)
class CategoryMatch:
    """Result of categorizing a piece of text."""
    category: Category
    confidence: float               # Rule confidence (0.0 to 1.0)
    keyword: Optional[str] = None   # Keyword that triggered the rule, if any

    def __iter__(self) -> Iterator[Union[Category, float]]:
        # Unpacks as (category, confidence)
        yield self.category
        yield self.confidence
