"""
Screenshot content categorization.

Maps OCR output onto a closed set of content categories using an ordered
keyword decision list.
"""

from .model import Category, CategoryMatch
from .rules import RULES, KeywordRule, categorize

__all__ = [
    "Category",
    "CategoryMatch",
    "KeywordRule",
    "RULES",
    "categorize",
]
