"""
Word Corpus - Categories of secret words, filtered by difficulty.

The corpus:
- Loads categories from a JSON file (bundled by default)
- Draws a uniformly random (word, category) pair from a filter
- Counts how many words a filter would yield

A missing or broken file gives an empty corpus, which simply means
no game can start.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, NamedTuple
import json
import logging
import random

from ..engine_core.state import Category, Difficulty

logger = logging.getLogger(__name__)

DEFAULT_WORD_DATA = Path(__file__).parent / "data" / "word_data.json"


class WordPick(NamedTuple):
    word: str
    category: Category


def parse_categories(data: dict) -> list[Category]:
    """
    Build categories from decoded JSON.

    Expected shape:
        {"categories": [{"id": ..., "name": ..., "icon": ...,
                         "words": {"kids": [...], "medium": [...], "hard": [...]}}]}

    Unknown difficulty keys are ignored.
    """
    categories = []
    for raw in data.get("categories", []):
        words: dict[Difficulty, tuple[str, ...]] = {}
        for key, values in raw.get("words", {}).items():
            try:
                difficulty = Difficulty(key)
            except ValueError:
                logger.debug("Ignoring unknown difficulty %r in category %s", key, raw.get("id"))
                continue
            if not isinstance(values, list):
                logger.debug("Ignoring non-list %s words in category %s", key, raw.get("id"))
                continue
            words[difficulty] = tuple(w for w in values if isinstance(w, str) and w.strip())
        categories.append(Category(
            id=raw["id"],
            name=raw.get("name", raw["id"]),
            icon=raw.get("icon", ""),
            words=words,
        ))
    return categories


@dataclass
class WordCorpus:
    """
    In-memory word corpus.

    Usage:
        corpus = WordCorpus.default()
        if corpus.total_word_count(ids, difficulties):
            pick = corpus.get_random_word(ids, difficulties, rng)
    """
    categories: list[Category] = field(default_factory=list)

    @classmethod
    def load(cls, path: str | Path) -> WordCorpus:
        """Load categories from a JSON file, degrading to empty on failure."""
        path = Path(path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            categories = parse_categories(data)
        except FileNotFoundError:
            logger.warning("Word data not found: %s", path)
            return cls()
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning("Failed to load word data from %s: %s", path, e)
            return cls()

        logger.debug("Loaded %d categories from %s", len(categories), path)
        return cls(categories=categories)

    @classmethod
    def default(cls) -> WordCorpus:
        """Load the bundled word data."""
        return cls.load(DEFAULT_WORD_DATA)

    @property
    def category_ids(self) -> set[str]:
        return {c.id for c in self.categories}

    def get_category(self, category_id: str) -> Category | None:
        for category in self.categories:
            if category.id == category_id:
                return category
        return None

    def get_words(self, category_id: str, difficulty: Difficulty) -> list[str]:
        category = self.get_category(category_id)
        return list(category.words_for(difficulty)) if category else []

    def get_random_word(
        self,
        category_ids: Iterable[str],
        difficulties: Iterable[Difficulty],
        rng: random.Random | None = None,
    ) -> WordPick | None:
        """
        Draw one (word, category) pair uniformly from the filtered pool.

        An empty category filter means every category.
        Returns None when the pool is empty.
        """
        pool = self._pool(category_ids, difficulties)
        if not pool:
            return None
        return (rng or random).choice(pool)

    def total_word_count(
        self,
        category_ids: Iterable[str],
        difficulties: Iterable[Difficulty],
    ) -> int:
        return len(self._pool(category_ids, difficulties))

    def _pool(self, category_ids: Iterable[str], difficulties: Iterable[Difficulty]) -> list[WordPick]:
        ids = set(category_ids)
        # Sorted so a seeded draw does not depend on set iteration order
        levels = sorted(set(difficulties), key=lambda d: list(Difficulty).index(d))
        selected = [c for c in self.categories if not ids or c.id in ids]

        pool = []
        for category in selected:
            for difficulty in levels:
                for word in category.words_for(difficulty):
                    pool.append(WordPick(word, category))
        return pool
