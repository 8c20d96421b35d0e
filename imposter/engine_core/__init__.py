"""
Engine Core - Session state and the game state machine.

The engine:
1. Owns one SessionState
2. Accepts user intents as Actions
3. Validates, mutates, and returns snapshots
4. Notifies feedback sinks after each committed transition
"""

from .state import (
    SessionState,
    Player,
    Category,
    Difficulty,
    HintMode,
    GamePhase,
    RoleCard,
    MIN_PLAYERS,
    MAX_PLAYERS,
)
from .action import Action, ActionType, ActionPayload, ActionResult, RefusalReason
from .feedback import (
    FeedbackEvent,
    FeedbackSink,
    RecordingSink,
    AudioCueSink,
    HapticCueSink,
)
from .roles import imposter_gets_hint
from .engine import GameEngine

__all__ = [
    "SessionState",
    "Player",
    "Category",
    "Difficulty",
    "HintMode",
    "GamePhase",
    "RoleCard",
    "MIN_PLAYERS",
    "MAX_PLAYERS",
    "Action",
    "ActionType",
    "ActionPayload",
    "ActionResult",
    "RefusalReason",
    "FeedbackEvent",
    "FeedbackSink",
    "RecordingSink",
    "AudioCueSink",
    "HapticCueSink",
    "imposter_gets_hint",
    "GameEngine",
]
