"""
Session State - The authoritative record of one game of Imposter.

Design principles:
- Owned by the engine: only GameEngine mutates it
- Snapshot-friendly: callers receive deep copies
- Plain data: no I/O, no randomness, no feedback
"""

from __future__ import annotations
from dataclasses import dataclass, field
from copy import deepcopy
from enum import Enum
import uuid


MIN_PLAYERS = 3
MAX_PLAYERS = 12
DEFAULT_PLAYER_COUNT = 3

# At least this many players must know the word
MIN_NON_IMPOSTERS = 2


class GamePhase(Enum):
    """Stages of play, in navigation order."""
    HOME = "home"
    PLAYER_SETUP = "player_setup"
    GAME_SETTINGS = "game_settings"
    ROLE_REVEAL = "role_reveal"
    PLAYING = "playing"
    END_GAME = "end_game"


class Difficulty(Enum):
    """Word difficulty levels."""
    KIDS = "kids"
    MEDIUM = "medium"
    HARD = "hard"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @property
    def description(self) -> str:
        return {
            Difficulty.KIDS: "Simple, everyday words",
            Difficulty.MEDIUM: "More specific terms",
            Difficulty.HARD: "Obscure and challenging",
        }[self]


class HintMode(Enum):
    """Whether imposters get to see the category of the secret word."""
    OFF = "off"
    ALWAYS = "always"
    ONLY_IF_STARTS = "onlyIfStarts"

    @property
    def display_name(self) -> str:
        return {
            HintMode.OFF: "Off",
            HintMode.ALWAYS: "Always",
            HintMode.ONLY_IF_STARTS: "If Starts",
        }[self]

    @property
    def description(self) -> str:
        return {
            HintMode.OFF: "Imposters never see the category",
            HintMode.ALWAYS: "All imposters see the category hint",
            HintMode.ONLY_IF_STARTS: "Imposter only gets hint if chosen to start first",
        }[self]


@dataclass(frozen=True)
class Category:
    """
    A word category.

    `words` maps each difficulty to the words of that level.
    """
    id: str
    name: str
    icon: str = ""
    words: dict[Difficulty, tuple[str, ...]] = field(default_factory=dict, hash=False, compare=False)

    def words_for(self, difficulty: Difficulty) -> tuple[str, ...]:
        return self.words.get(difficulty, ())

    @property
    def all_words(self) -> list[str]:
        return [w for words in self.words.values() for w in words]


@dataclass
class Player:
    """
    A roster entry.

    The id is generated at creation and stays stable while the
    player is on the roster.
    """
    name: str = ""
    player_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    is_imposter: bool = False
    has_revealed_role: bool = False

    @property
    def has_name(self) -> bool:
        return bool(self.name.strip())


@dataclass
class RoleCard:
    """What a single player sees when their card is flipped."""
    player_name: str
    is_imposter: bool
    word: str | None = None
    hint: str | None = None
    is_starting_player: bool = False


@dataclass
class SessionState:
    """
    Complete session state at a point in time.

    Players are kept in insertion order, which is also the reveal order.
    """
    phase: GamePhase = GamePhase.HOME
    players: list[Player] = field(default_factory=list)
    imposter_count: int = 1

    # Reveal progress
    current_reveal_index: int = 0
    starting_player_index: int = 0

    # Secret for the current round
    selected_word: str = ""
    selected_category: Category | None = None

    # Sub-state flags that gate the next legal intent
    is_card_flipped: bool = False
    show_pass_phone_screen: bool = True
    show_imposter_reveal: bool = False
    show_word_reveal: bool = False

    @property
    def num_players(self) -> int:
        return len(self.players)

    @property
    def max_imposters(self) -> int:
        return max(1, self.num_players - MIN_NON_IMPOSTERS)

    @property
    def current_player(self) -> Player | None:
        if self.current_reveal_index < self.num_players:
            return self.players[self.current_reveal_index]
        return None

    @property
    def all_players_revealed(self) -> bool:
        return self.current_reveal_index >= self.num_players

    @property
    def imposters(self) -> list[Player]:
        return [p for p in self.players if p.is_imposter]

    @property
    def non_imposters(self) -> list[Player]:
        return [p for p in self.players if not p.is_imposter]

    @property
    def starting_player(self) -> Player | None:
        if 0 <= self.starting_player_index < self.num_players:
            return self.players[self.starting_player_index]
        return None

    def clamp_imposter_count(self):
        """Pull imposter_count back inside [1, max_imposters]."""
        self.imposter_count = min(max(1, self.imposter_count), self.max_imposters)

    def reset(self):
        """Clear everything back to the home screen defaults."""
        self.phase = GamePhase.HOME
        self.players = []
        self.imposter_count = 1
        self.current_reveal_index = 0
        self.starting_player_index = 0
        self.selected_word = ""
        self.selected_category = None
        self.is_card_flipped = False
        self.show_pass_phone_screen = True
        self.show_imposter_reveal = False
        self.show_word_reveal = False

    def snapshot(self) -> SessionState:
        """Return a detached copy safe to hand to callers."""
        return deepcopy(self)
