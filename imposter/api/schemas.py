"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between a client app and the engine.
Secret information (roles, word, category) only appears once the
matching reveal step has happened.

Error Codes:
- SESSION_NOT_FOUND: Session does not exist or has been ended
- CARD_NOT_FLIPPED: No role card is showing right now
- VALIDATION_ERROR: Request values are invalid
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field

from ..engine_core import ActionType, Difficulty, GamePhase, HintMode, RefusalReason


# =============================================================================
# Enums
# =============================================================================

class ErrorCode(str, Enum):
    """Structured error codes."""
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    CARD_NOT_FLIPPED = "CARD_NOT_FLIPPED"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class PlayerInfo(BaseModel):
    """Player information for display."""
    index: int
    player_id: str
    name: str
    has_revealed_role: bool = False
    is_imposter: Optional[bool] = Field(
        None, description="Only set once the imposters have been revealed"
    )
    is_starting_player: bool = False

    model_config = {"from_attributes": True}


class CategoryInfo(BaseModel):
    """A word category and how many words it has per difficulty."""
    id: str
    name: str
    icon: str = ""
    word_counts: dict[str, int] = Field(default_factory=dict)

    model_config = {"from_attributes": True}


# =============================================================================
# Request Models
# =============================================================================

class CreateSessionRequest(BaseModel):
    """Request to create a new game session."""
    seed: Optional[int] = Field(None, description="Seed for reproducible role and word draws")


class ActionRequest(BaseModel):
    """An intent to apply to a session."""
    action_type: ActionType = Field(..., description="Which intent to apply")
    player_index: Optional[int] = Field(None, description="Roster index for remove/rename")
    name: Optional[str] = Field(None, max_length=40, description="New player name")
    imposter_count: Optional[int] = Field(None, description="Requested number of imposters")


class SettingsUpdateRequest(BaseModel):
    """Partial update of the persisted settings."""
    selected_difficulties: Optional[list[Difficulty]] = None
    selected_category_ids: Optional[list[str]] = None
    hint_mode: Optional[HintMode] = None
    sound_enabled: Optional[bool] = None
    haptics_enabled: Optional[bool] = None


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error context")
    api_version: str = Field("v1", description="API version")


class SessionResponse(BaseModel):
    """Response containing session information."""
    session_id: str
    phase: GamePhase
    player_count: int = 0
    created_at: float = 0.0
    api_version: str = "v1"


class GameStateResponse(BaseModel):
    """Public game state for display."""
    session_id: str
    phase: GamePhase
    players: list[PlayerInfo] = Field(default_factory=list)
    imposter_count: int = 1
    max_imposters: int = 1

    # Setup readiness
    can_proceed_to_game_settings: bool = False
    can_start_game: bool = False

    # Reveal cycle
    current_reveal_index: int = 0
    current_player_name: Optional[str] = None
    is_card_flipped: bool = False
    show_pass_phone_screen: bool = True

    # Discussion and end of round
    starting_player_name: Optional[str] = None
    show_imposter_reveal: bool = False
    show_word_reveal: bool = False
    imposters: list[str] = Field(
        default_factory=list, description="Imposter names, after the imposter reveal"
    )
    word: Optional[str] = Field(None, description="Secret word, after the word reveal")
    category: Optional[str] = Field(None, description="Word category, after the word reveal")

    api_version: str = "v1"


class ActionResponse(BaseModel):
    """Result of applying an intent."""
    session_id: str
    success: bool
    refusal: Optional[RefusalReason] = None
    message: Optional[str] = None
    events: list[str] = Field(default_factory=list)
    game_state: Optional[GameStateResponse] = None
    api_version: str = "v1"


class RoleCardResponse(BaseModel):
    """The card the current player sees after flipping."""
    session_id: str
    player_name: str
    is_imposter: bool
    word: Optional[str] = None
    hint: Optional[str] = Field(None, description="Category hint for qualifying imposters")
    is_starting_player: bool = False
    api_version: str = "v1"


class SettingsResponse(BaseModel):
    """Current persisted settings."""
    selected_difficulties: list[Difficulty]
    selected_category_ids: list[str]
    hint_mode: HintMode
    sound_enabled: bool
    haptics_enabled: bool
    available_word_count: int = 0
    api_version: str = "v1"


class CategoryListResponse(BaseModel):
    """All categories in the word corpus."""
    categories: list[CategoryInfo]
    count: int


class SessionListResponse(BaseModel):
    """Response listing sessions."""
    sessions: list[str]
    count: int


class EndSessionResponse(BaseModel):
    """Response after ending a session."""
    success: bool
    session_id: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
