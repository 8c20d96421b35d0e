"""
API Module - Client app interface.

Exposes the engine via REST API. A client app:
1. Creates a session
2. Sends intents (add player, flip card, ...) as actions
3. Renders the public game state after each action
4. Fetches the role card while a player's card is flipped

All game state is session-scoped; only settings persist.
"""

from .schemas import (
    # Requests
    CreateSessionRequest,
    ActionRequest,
    SettingsUpdateRequest,
    # Responses
    SessionResponse,
    GameStateResponse,
    ActionResponse,
    RoleCardResponse,
    SettingsResponse,
    CategoryListResponse,
    ErrorResponse,
    # Shared
    PlayerInfo,
    CategoryInfo,
    ErrorCode,
)
from .service import APIService
from .app import create_app

__all__ = [
    # Requests
    "CreateSessionRequest",
    "ActionRequest",
    "SettingsUpdateRequest",
    # Responses
    "SessionResponse",
    "GameStateResponse",
    "ActionResponse",
    "RoleCardResponse",
    "SettingsResponse",
    "CategoryListResponse",
    "ErrorResponse",
    # Shared
    "PlayerInfo",
    "CategoryInfo",
    "ErrorCode",
    # Service
    "APIService",
    "create_app",
]
