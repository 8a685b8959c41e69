"""
Rule-based text categorization.

A decision list over OCR text: rule groups are checked in order with
case-insensitive substring matching and the first group with a hit wins.
There is no scoring across groups, so the ordering below is significant.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from ..logging import get_logger
from .model import Category, CategoryMatch

logger = get_logger(__name__)

DOCUMENT_MIN_LENGTH = 100


@dataclass(frozen=True)
class KeywordRule:
    category: Category
    keywords: Tuple[str, ...]
    confidence: float

    def find(self, lowered_text: str) -> Optional[str]:
        """Return the first keyword contained in the text, or None."""
        for keyword in self.keywords:
            if keyword in lowered_text:
                return keyword
        return None


RULES: Tuple[KeywordRule, ...] = (
    KeywordRule(Category.WEBSITE, ("http", "www.", ".com", ".de"), 0.9),
    KeywordRule(
        Category.CHAT,
        ("nachricht", "message", "chat", "whatsapp", "telegram", "imessage"),
        0.85,
    ),
    KeywordRule(
        Category.CODE,
        ("func ", "class ", "import ", "let ", "var ", "def ", "function", "console.log"),
        0.9,
    ),
    KeywordRule(
        Category.SHOPPING,
        ("€", "$", "preis", "price", "kaufen", "buy", "warenkorb", "cart"),
        0.8,
    ),
    KeywordRule(
        Category.SOCIAL,
        ("gefällt mir", "like", "follower", "instagram", "twitter", "facebook", "linkedin", "tiktok"),
        0.85,
    ),
    KeywordRule(Category.MAPS, ("route", "navigation", "km", "min", "maps", "adresse"), 0.8),
    KeywordRule(
        Category.SETTINGS,
        ("einstellungen", "settings", "konfiguration", "preferences"),
        0.8,
    ),
)


def categorize(text: str) -> CategoryMatch:
    """
    Categorize OCR text.

    Args:
        text: Extracted text, possibly empty

    Returns:
        CategoryMatch with the first matching rule's category and confidence,
        Document (0.6) for long unmatched text, else Unknown (0.0)
    """
    text = text or ""
    lowered = text.lower()

    for rule in RULES:
        keyword = rule.find(lowered)
        if keyword is not None:
            logger.debug(f"Matched {rule.category.name} on keyword {keyword!r}")
            return CategoryMatch(rule.category, rule.confidence, keyword)

    # Length of the text as given, not the lowercased copy
    if len(text) > DOCUMENT_MIN_LENGTH:
        return CategoryMatch(Category.DOCUMENT, 0.6)

    return CategoryMatch(Category.UNKNOWN, 0.0)
