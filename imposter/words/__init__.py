"""
Words Module - The corpus of secret words.
"""

from .corpus import WordCorpus, WordPick, parse_categories, DEFAULT_WORD_DATA

__all__ = [
    "WordCorpus",
    "WordPick",
    "parse_categories",
    "DEFAULT_WORD_DATA",
]
