"""
Pytest fixtures for Imposter tests.
"""

import random

import pytest

from ..engine_core import GameEngine, Category, Difficulty, RecordingSink
from ..settings import SettingsStore, MemoryBackend
from ..words import WordCorpus


@pytest.fixture
def animals_corpus() -> WordCorpus:
    """A corpus with exactly one word: Elephant (Animals, kids)."""
    return WordCorpus(categories=[
        Category(
            id="Animals",
            name="Animals",
            icon="pawprint.fill",
            words={Difficulty.KIDS: ("Elephant",)},
        ),
    ])


@pytest.fixture
def small_corpus() -> WordCorpus:
    """Two categories spread over all difficulties."""
    return WordCorpus(categories=[
        Category(
            id="animals",
            name="Animals",
            words={
                Difficulty.KIDS: ("Dog", "Cat"),
                Difficulty.MEDIUM: ("Walrus",),
                Difficulty.HARD: ("Okapi",),
            },
        ),
        Category(
            id="food",
            name="Food",
            words={
                Difficulty.KIDS: ("Pizza",),
                Difficulty.HARD: ("Kimchi", "Baklava"),
            },
        ),
    ])


@pytest.fixture
def settings() -> SettingsStore:
    """Settings backed by memory only."""
    return SettingsStore(MemoryBackend())


@pytest.fixture
def recorder() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def engine(small_corpus, settings, recorder) -> GameEngine:
    """Engine on the home screen with a seeded random source."""
    return GameEngine(
        corpus=small_corpus,
        settings=settings,
        rng=random.Random(42),
        sinks=[recorder],
    )


@pytest.fixture
def named_engine(engine):
    """
    Factory: bring the engine to game settings with the given names.

    Usage:
        engine = named_engine(["Ann", "Bob", "Cy", "Dee"])
    """
    def _make(names, imposter_count=1):
        engine.start_new_game()
        while engine.state.num_players < len(names):
            assert engine.add_player()
        for i, name in enumerate(names):
            assert engine.update_player_name(i, name)
        assert engine.set_imposter_count(imposter_count)
        assert engine.proceed_to_settings()
        return engine

    return _make


@pytest.fixture
def revealing_engine(named_engine):
    """Engine in role reveal with four named players."""
    engine = named_engine(["Ann", "Bob", "Cy", "Dee"])
    assert engine.begin_role_reveal()
    return engine


def flip_everyone(engine: GameEngine):
    """Walk the whole reveal cycle."""
    for _ in range(engine.state.num_players):
        assert engine.player_ready()
        assert engine.flip_card()
        assert engine.move_to_next_player()
