"""
API Service - Business logic layer between API and engine.

The service:
1. Translates API requests to engine actions
2. Manages sessions
3. Hides secrets the current phase should not expose
4. Formats responses for clients

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
"""

from __future__ import annotations
from dataclasses import dataclass, field

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
    # Enums
    ErrorCode,
)
from ..engine_core import Action, Difficulty, GamePhase, SessionState
from ..session import SessionManager, Session


# Phases in which the starting player is announced
_DISCUSSION_PHASES = {GamePhase.PLAYING, GamePhase.END_GAME}


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService()

        session = service.create_session(CreateSessionRequest(seed=3))
        service.apply_action(session.session_id, ActionRequest(action_type="start_new_game"))
        state = service.get_game_state(session.session_id)
    """
    session_manager: SessionManager = field(default_factory=SessionManager)

    # =========================================================================
    # Sessions
    # =========================================================================

    def create_session(self, request: CreateSessionRequest | None = None) -> SessionResponse:
        seed = request.seed if request else None
        session = self.session_manager.create_session(seed=seed)
        return self._session_to_response(session)

    def get_session(self, session_id: str) -> SessionResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._not_found(session_id)
        return self._session_to_response(session)

    def end_session(self, session_id: str, reason: str = "user_ended") -> bool:
        return self.session_manager.end_session(session_id, reason)

    def list_sessions(self) -> list[str]:
        return self.session_manager.list_sessions()

    # =========================================================================
    # Game loop
    # =========================================================================

    def apply_action(
        self,
        session_id: str,
        request: ActionRequest,
    ) -> ActionResponse | ErrorResponse:
        """
        Apply one intent to a session.

        Refusals come back as success=False, not as errors.
        """
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._not_found(session_id)

        action = Action.of(
            request.action_type,
            player_index=request.player_index,
            name=request.name,
            imposter_count=request.imposter_count,
        )
        with session.lock:
            result = session.engine.apply(action)
            session.touch()
            game_state = self._build_game_state(session, result.state)

        return ActionResponse(
            session_id=session_id,
            success=result.success,
            refusal=result.reason,
            message=result.message,
            events=[e.value for e in result.events],
            game_state=game_state,
        )

    def get_game_state(self, session_id: str) -> GameStateResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._not_found(session_id)
        with session.lock:
            return self._build_game_state(session, session.engine.state)

    def get_role_card(self, session_id: str) -> RoleCardResponse | ErrorResponse:
        """The current player's card, only while it is flipped."""
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._not_found(session_id)

        with session.lock:
            card = session.engine.current_role_card()
        if card is None:
            return ErrorResponse(
                error="No card is flipped right now",
                error_code=ErrorCode.CARD_NOT_FLIPPED,
            )

        return RoleCardResponse(
            session_id=session_id,
            player_name=card.player_name,
            is_imposter=card.is_imposter,
            word=card.word,
            hint=card.hint,
            is_starting_player=card.is_starting_player,
        )

    # =========================================================================
    # Words & settings
    # =========================================================================

    def list_categories(self) -> CategoryListResponse:
        categories = [
            CategoryInfo(
                id=c.id,
                name=c.name,
                icon=c.icon,
                word_counts={d.value: len(c.words_for(d)) for d in Difficulty},
            )
            for c in self.session_manager.corpus.categories
        ]
        return CategoryListResponse(categories=categories, count=len(categories))

    def get_settings(self) -> SettingsResponse:
        store = self.session_manager.settings
        corpus = self.session_manager.corpus
        difficulties = store.selected_difficulties
        category_ids = store.selected_category_ids
        available = (
            corpus.total_word_count(category_ids, difficulties)
            if difficulties and category_ids else 0
        )
        return SettingsResponse(
            selected_difficulties=sorted(difficulties, key=list(Difficulty).index),
            selected_category_ids=sorted(category_ids),
            hint_mode=store.hint_mode,
            sound_enabled=store.sound_enabled,
            haptics_enabled=store.haptics_enabled,
            available_word_count=available,
        )

    def update_settings(self, request: SettingsUpdateRequest) -> SettingsResponse | ErrorResponse:
        store = self.session_manager.settings

        if request.selected_category_ids is not None:
            unknown = set(request.selected_category_ids) - self.session_manager.corpus.category_ids
            if unknown:
                return ErrorResponse(
                    error="Unknown category ids",
                    error_code=ErrorCode.VALIDATION_ERROR,
                    details={"unknown": sorted(unknown)},
                )
            store.selected_category_ids = request.selected_category_ids

        if request.selected_difficulties is not None:
            store.selected_difficulties = request.selected_difficulties
        if request.hint_mode is not None:
            store.hint_mode = request.hint_mode
        if request.sound_enabled is not None:
            store.sound_enabled = request.sound_enabled
        if request.haptics_enabled is not None:
            store.haptics_enabled = request.haptics_enabled

        return self.get_settings()

    # =========================================================================
    # Helper methods
    # =========================================================================

    def _not_found(self, session_id: str) -> ErrorResponse:
        return ErrorResponse(
            error=f"Session {session_id} not found",
            error_code=ErrorCode.SESSION_NOT_FOUND,
        )

    def _session_to_response(self, session: Session) -> SessionResponse:
        state = session.engine.state
        return SessionResponse(
            session_id=session.session_id,
            phase=state.phase,
            player_count=state.num_players,
            created_at=session.created_at,
        )

    def _build_game_state(self, session: Session, state: SessionState) -> GameStateResponse:
        """Build the public view of a snapshot."""
        engine = session.engine
        announce_start = state.phase in _DISCUSSION_PHASES

        players = [
            PlayerInfo(
                index=i,
                player_id=p.player_id,
                name=p.name,
                has_revealed_role=p.has_revealed_role,
                is_imposter=p.is_imposter if state.show_imposter_reveal else None,
                is_starting_player=announce_start and i == state.starting_player_index,
            )
            for i, p in enumerate(state.players)
        ]

        current = state.current_player if state.phase == GamePhase.ROLE_REVEAL else None
        starting = state.starting_player if announce_start else None
        show_word = state.show_word_reveal

        return GameStateResponse(
            session_id=session.session_id,
            phase=state.phase,
            players=players,
            imposter_count=state.imposter_count,
            max_imposters=state.max_imposters,
            can_proceed_to_game_settings=engine.can_proceed_to_game_settings,
            can_start_game=engine.can_start_game,
            current_reveal_index=state.current_reveal_index,
            current_player_name=current.name if current else None,
            is_card_flipped=state.is_card_flipped,
            show_pass_phone_screen=state.show_pass_phone_screen,
            starting_player_name=starting.name if starting else None,
            show_imposter_reveal=state.show_imposter_reveal,
            show_word_reveal=show_word,
            imposters=[p.name for p in state.imposters] if state.show_imposter_reveal else [],
            word=state.selected_word if show_word else None,
            category=(
                state.selected_category.name
                if show_word and state.selected_category else None
            ),
        )
