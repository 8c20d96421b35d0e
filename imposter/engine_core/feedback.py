"""
Feedback - Fire-and-forget notifications for sound and haptics.

The engine tells sinks what happened after a transition commits.
Sinks decide what to play; nothing they do feeds back into the game.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable
import logging

logger = logging.getLogger(__name__)


class FeedbackEvent(Enum):
    """Transitions that have an audible or tactile cue."""
    GAME_STARTED = "game_started"
    PLAYER_ADDED = "player_added"
    PLAYER_REMOVED = "player_removed"
    NAVIGATED = "navigated"
    ROLE_REVEAL_BEGAN = "role_reveal_began"
    PLAYER_READY = "player_ready"
    CARD_FLIPPED = "card_flipped"
    PLAYER_ADVANCED = "player_advanced"
    REVEAL_COMPLETED = "reveal_completed"
    GAME_ENDED = "game_ended"
    IMPOSTERS_REVEALED = "imposters_revealed"
    WORD_REVEALED = "word_revealed"
    RETURNED_HOME = "returned_home"
    SOUND_TOGGLED = "sound_toggled"
    HAPTICS_TOGGLED = "haptics_toggled"


class Sound(Enum):
    CARD_FLIP = "card_flip"
    BUTTON_TAP = "button_tap"
    REVEAL = "reveal"
    IMPOSTER_REVEAL = "imposter_reveal"
    VICTORY = "victory"
    WHOOSH = "whoosh"


class Haptic(Enum):
    LIGHT = "light"
    MEDIUM = "medium"
    HEAVY = "heavy"
    SUCCESS = "success"
    WARNING = "warning"
    SELECTION = "selection"


SOUND_CUES: dict[FeedbackEvent, Sound] = {
    FeedbackEvent.GAME_STARTED: Sound.BUTTON_TAP,
    FeedbackEvent.NAVIGATED: Sound.BUTTON_TAP,
    FeedbackEvent.ROLE_REVEAL_BEGAN: Sound.WHOOSH,
    FeedbackEvent.PLAYER_READY: Sound.BUTTON_TAP,
    FeedbackEvent.CARD_FLIPPED: Sound.CARD_FLIP,
    FeedbackEvent.PLAYER_ADVANCED: Sound.WHOOSH,
    FeedbackEvent.REVEAL_COMPLETED: Sound.REVEAL,
    FeedbackEvent.GAME_ENDED: Sound.REVEAL,
    FeedbackEvent.IMPOSTERS_REVEALED: Sound.IMPOSTER_REVEAL,
    FeedbackEvent.WORD_REVEALED: Sound.VICTORY,
    FeedbackEvent.RETURNED_HOME: Sound.BUTTON_TAP,
    FeedbackEvent.SOUND_TOGGLED: Sound.BUTTON_TAP,
}

HAPTIC_CUES: dict[FeedbackEvent, Haptic] = {
    FeedbackEvent.GAME_STARTED: Haptic.MEDIUM,
    FeedbackEvent.PLAYER_ADDED: Haptic.LIGHT,
    FeedbackEvent.PLAYER_REMOVED: Haptic.MEDIUM,
    FeedbackEvent.NAVIGATED: Haptic.LIGHT,
    FeedbackEvent.ROLE_REVEAL_BEGAN: Haptic.MEDIUM,
    FeedbackEvent.PLAYER_READY: Haptic.LIGHT,
    FeedbackEvent.CARD_FLIPPED: Haptic.MEDIUM,
    FeedbackEvent.PLAYER_ADVANCED: Haptic.LIGHT,
    FeedbackEvent.REVEAL_COMPLETED: Haptic.SUCCESS,
    FeedbackEvent.GAME_ENDED: Haptic.WARNING,
    FeedbackEvent.IMPOSTERS_REVEALED: Haptic.HEAVY,
    FeedbackEvent.WORD_REVEALED: Haptic.SUCCESS,
    FeedbackEvent.RETURNED_HOME: Haptic.LIGHT,
    FeedbackEvent.SOUND_TOGGLED: Haptic.SELECTION,
    FeedbackEvent.HAPTICS_TOGGLED: Haptic.SELECTION,
}


class FeedbackSink(ABC):
    """Abstract base for anything that reacts to committed transitions."""

    @abstractmethod
    def notify(self, event: FeedbackEvent):
        """Handle one event. Must not touch game state."""
        pass


class RecordingSink(FeedbackSink):
    """Keeps every event it receives, in order."""

    def __init__(self):
        self.events: list[FeedbackEvent] = []

    def notify(self, event: FeedbackEvent):
        self.events.append(event)

    def clear(self):
        self.events.clear()


class _CueSink(FeedbackSink):
    """Maps events to cues and hands them to an output callable."""

    cues: dict = {}

    def __init__(
        self,
        enabled: Callable[[], bool] | None = None,
        output: Callable[[Enum], None] | None = None,
    ):
        self._enabled = enabled or (lambda: True)
        self._output = output
        self.played: list[Enum] = []

    @property
    def is_enabled(self) -> bool:
        return bool(self._enabled())

    def notify(self, event: FeedbackEvent):
        cue = self.cues.get(event)
        if cue is None or not self.is_enabled:
            return
        self.played.append(cue)
        if self._output:
            self._output(cue)
        else:
            logger.debug("%s cue: %s", type(self).__name__, cue.value)


class AudioCueSink(_CueSink):
    """Plays a sound per event while sound is enabled."""
    cues = SOUND_CUES


class HapticCueSink(_CueSink):
    """Fires a haptic pattern per event while haptics are enabled."""
    cues = HAPTIC_CUES
