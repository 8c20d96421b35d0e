"""
Action System - User intents, payloads, and results.

Every intent the UI can express is an Action. The engine either
commits it or refuses it; refusals are values, never exceptions.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ActionType(Enum):
    """Intents accepted by the engine."""
    # Setup
    START_NEW_GAME = "start_new_game"
    ADD_PLAYER = "add_player"
    REMOVE_PLAYER = "remove_player"
    UPDATE_PLAYER_NAME = "update_player_name"
    SET_IMPOSTER_COUNT = "set_imposter_count"
    PROCEED_TO_SETTINGS = "proceed_to_settings"
    GO_BACK_TO_PLAYER_SETUP = "go_back_to_player_setup"

    # Reveal cycle
    BEGIN_ROLE_REVEAL = "begin_role_reveal"
    PLAYER_READY = "player_ready"
    FLIP_CARD = "flip_card"
    MOVE_TO_NEXT_PLAYER = "move_to_next_player"

    # End of round
    END_GAME = "end_game"
    REVEAL_IMPOSTERS = "reveal_imposters"
    REVEAL_WORD = "reveal_word"
    PLAY_AGAIN = "play_again"
    RETURN_HOME = "return_home"

    # Device toggles
    TOGGLE_SOUND = "toggle_sound"
    TOGGLE_HAPTICS = "toggle_haptics"


class RefusalReason(Enum):
    """Why an intent was not committed."""
    INVALID_ROSTER_SIZE = "invalid_roster_size"
    INCOMPLETE_SETUP = "incomplete_setup"
    NO_CANDIDATE_WORDS = "no_candidate_words"
    OUT_OF_SEQUENCE_REVEAL = "out_of_sequence_reveal"
    INVALID_INDEX = "invalid_index"
    WRONG_PHASE = "wrong_phase"


@dataclass
class ActionPayload:
    """Parameters for an action. Which fields matter depends on the type."""
    player_index: int | None = None
    name: str | None = None
    imposter_count: int | None = None


@dataclass
class Action:
    """A single intent to apply to the session."""
    action_type: ActionType
    payload: ActionPayload = field(default_factory=ActionPayload)

    @classmethod
    def of(cls, action_type: ActionType | str, **params: Any) -> Action:
        """Build an action from a type (or its string value) and payload fields."""
        return cls(action_type=ActionType(action_type), payload=ActionPayload(**params))

    @classmethod
    def remove_player(cls, index: int) -> Action:
        return cls.of(ActionType.REMOVE_PLAYER, player_index=index)

    @classmethod
    def update_player_name(cls, index: int, name: str) -> Action:
        return cls.of(ActionType.UPDATE_PLAYER_NAME, player_index=index, name=name)

    @classmethod
    def set_imposter_count(cls, count: int) -> Action:
        return cls.of(ActionType.SET_IMPOSTER_COUNT, imposter_count=count)


@dataclass
class ActionResult:
    """
    Result of applying an action.

    Contains:
    - Whether the intent was committed
    - Why not, if it was refused
    - A snapshot of the state afterwards
    - Feedback events the transition fired
    """
    success: bool
    state: Any | None = None  # SessionState snapshot
    reason: RefusalReason | None = None
    message: str | None = None
    events: list[Any] = field(default_factory=list)  # FeedbackEvent

    def __bool__(self) -> bool:
        return self.success

    @classmethod
    def refused(cls, reason: RefusalReason, message: str, state: Any = None) -> ActionResult:
        """Create a refusal result."""
        return cls(success=False, state=state, reason=reason, message=message)

    @classmethod
    def committed(cls, state: Any, events: list[Any] | None = None) -> ActionResult:
        """Create a success result with the new state."""
        return cls(success=True, state=state, events=events or [])
