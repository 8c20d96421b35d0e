"""
Game Engine - The single point of session state mutation.

All state changes go through GameEngine, either via the named
operations (add_player, flip_card, ...) or via apply(action).

Design principles:
- Validate, then mutate, then notify
- Refusals are results, never exceptions
- The live SessionState never leaves the engine; callers get snapshots
- All randomness comes from one injectable random.Random
"""

from __future__ import annotations
from typing import Callable, Iterable, TYPE_CHECKING
import logging
import random

from .state import (
    SessionState,
    GamePhase,
    Player,
    RoleCard,
    MIN_PLAYERS,
    MAX_PLAYERS,
    DEFAULT_PLAYER_COUNT,
)
from .action import Action, ActionType, ActionResult, RefusalReason
from .feedback import FeedbackEvent, FeedbackSink
from .roles import assign_imposters, choose_starting_player, imposter_gets_hint, build_role_card

if TYPE_CHECKING:
    from ..words.corpus import WordCorpus
    from ..settings.store import SettingsStore

logger = logging.getLogger(__name__)

StateListener = Callable[[SessionState], None]


# Phases in which each intent is meaningful. None means any phase.
ALLOWED_PHASES: dict[ActionType, set[GamePhase] | None] = {
    ActionType.START_NEW_GAME: {GamePhase.HOME},
    ActionType.ADD_PLAYER: {GamePhase.PLAYER_SETUP},
    ActionType.REMOVE_PLAYER: {GamePhase.PLAYER_SETUP},
    ActionType.UPDATE_PLAYER_NAME: {GamePhase.PLAYER_SETUP},
    ActionType.SET_IMPOSTER_COUNT: {GamePhase.PLAYER_SETUP, GamePhase.GAME_SETTINGS},
    ActionType.PROCEED_TO_SETTINGS: {GamePhase.PLAYER_SETUP},
    ActionType.GO_BACK_TO_PLAYER_SETUP: {GamePhase.GAME_SETTINGS},
    ActionType.BEGIN_ROLE_REVEAL: {GamePhase.GAME_SETTINGS},
    ActionType.PLAYER_READY: {GamePhase.ROLE_REVEAL},
    ActionType.FLIP_CARD: {GamePhase.ROLE_REVEAL},
    ActionType.MOVE_TO_NEXT_PLAYER: {GamePhase.ROLE_REVEAL},
    ActionType.END_GAME: {GamePhase.PLAYING},
    ActionType.REVEAL_IMPOSTERS: {GamePhase.END_GAME},
    ActionType.REVEAL_WORD: {GamePhase.END_GAME},
    ActionType.PLAY_AGAIN: {GamePhase.END_GAME},
    ActionType.RETURN_HOME: None,
    ActionType.TOGGLE_SOUND: None,
    ActionType.TOGGLE_HAPTICS: None,
}


class GameEngine:
    """
    Orchestrates one session of the game.

    Usage:
        engine = GameEngine(corpus, settings, rng=random.Random(7))
        engine.start_new_game()
        for i, name in enumerate(["Ann", "Bob", "Cy"]):
            engine.update_player_name(i, name)
        engine.proceed_to_settings()
        engine.begin_role_reveal()
    """

    def __init__(
        self,
        corpus: WordCorpus | None = None,
        settings: SettingsStore | None = None,
        rng: random.Random | None = None,
        sinks: Iterable[FeedbackSink] | None = None,
    ):
        from ..words.corpus import WordCorpus
        from ..settings.store import SettingsStore

        self.corpus = corpus if corpus is not None else WordCorpus.default()
        self.settings = settings if settings is not None else SettingsStore()
        self.rng = rng or random.Random()
        self.sinks: list[FeedbackSink] = list(sinks or [])
        self._listeners: list[StateListener] = []
        self._state = SessionState()

        self.settings.initialize_categories_if_needed(self.corpus.category_ids)

    # =========================================================================
    # Observation
    # =========================================================================

    @property
    def state(self) -> SessionState:
        """Detached snapshot of the current session."""
        return self._state.snapshot()

    @property
    def phase(self) -> GamePhase:
        return self._state.phase

    def add_listener(self, listener: StateListener):
        """Register a callback that receives a snapshot after each committed transition."""
        self._listeners.append(listener)

    def remove_listener(self, listener: StateListener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def add_sink(self, sink: FeedbackSink):
        self.sinks.append(sink)

    # =========================================================================
    # Derived queries
    # =========================================================================

    @property
    def max_imposters(self) -> int:
        return self._state.max_imposters

    @property
    def can_proceed_to_game_settings(self) -> bool:
        players = self._state.players
        return len(players) >= MIN_PLAYERS and all(p.has_name for p in players)

    @property
    def can_start_game(self) -> bool:
        difficulties = self.settings.selected_difficulties
        category_ids = self.settings.selected_category_ids
        if not difficulties or not category_ids:
            return False
        return self.corpus.total_word_count(category_ids, difficulties) > 0

    @property
    def current_player(self) -> Player | None:
        return self.state.current_player

    @property
    def all_players_revealed(self) -> bool:
        return self._state.all_players_revealed

    @property
    def imposters(self) -> list[Player]:
        return self.state.imposters

    @property
    def non_imposters(self) -> list[Player]:
        return self.state.non_imposters

    @property
    def starting_player(self) -> Player | None:
        return self.state.starting_player

    def imposter_gets_hint(self, player: Player) -> bool:
        """Whether this player would see the category hint this round."""
        return imposter_gets_hint(player, self.settings.hint_mode, self._state.starting_player)

    def role_card(self, index: int) -> RoleCard | None:
        """The card players[index] sees, or None for a bad index."""
        if not 0 <= index < self._state.num_players:
            return None
        return build_role_card(self._state, index, self.settings.hint_mode)

    def current_role_card(self) -> RoleCard | None:
        """The current player's card, once they have flipped it."""
        state = self._state
        if state.phase != GamePhase.ROLE_REVEAL or not state.is_card_flipped:
            return None
        return self.role_card(state.current_reveal_index)

    # =========================================================================
    # Dispatch
    # =========================================================================

    def apply(self, action: Action) -> ActionResult:
        """
        Apply an intent to the session.

        Returns an ActionResult with the new snapshot, or a refusal
        with the state untouched.
        """
        allowed = ALLOWED_PHASES.get(action.action_type)
        if allowed is not None and self._state.phase not in allowed:
            return self._refuse(
                RefusalReason.WRONG_PHASE,
                f"{action.action_type.value} not allowed during {self._state.phase.value}",
            )

        handler = self._get_handler(action.action_type)
        return handler(action)

    def _get_handler(self, action_type: ActionType) -> Callable[[Action], ActionResult]:
        handlers = {
            ActionType.START_NEW_GAME: self._handle_start_new_game,
            ActionType.ADD_PLAYER: self._handle_add_player,
            ActionType.REMOVE_PLAYER: self._handle_remove_player,
            ActionType.UPDATE_PLAYER_NAME: self._handle_update_player_name,
            ActionType.SET_IMPOSTER_COUNT: self._handle_set_imposter_count,
            ActionType.PROCEED_TO_SETTINGS: self._handle_proceed_to_settings,
            ActionType.GO_BACK_TO_PLAYER_SETUP: self._handle_go_back_to_player_setup,
            ActionType.BEGIN_ROLE_REVEAL: self._handle_begin_role_reveal,
            ActionType.PLAYER_READY: self._handle_player_ready,
            ActionType.FLIP_CARD: self._handle_flip_card,
            ActionType.MOVE_TO_NEXT_PLAYER: self._handle_move_to_next_player,
            ActionType.END_GAME: self._handle_end_game,
            ActionType.REVEAL_IMPOSTERS: self._handle_reveal_imposters,
            ActionType.REVEAL_WORD: self._handle_reveal_word,
            ActionType.PLAY_AGAIN: self._handle_play_again,
            ActionType.RETURN_HOME: self._handle_return_home,
            ActionType.TOGGLE_SOUND: self._handle_toggle_sound,
            ActionType.TOGGLE_HAPTICS: self._handle_toggle_haptics,
        }
        return handlers[action_type]

    # =========================================================================
    # Named operations
    # =========================================================================

    def start_new_game(self) -> ActionResult:
        return self.apply(Action(ActionType.START_NEW_GAME))

    def add_player(self) -> ActionResult:
        return self.apply(Action(ActionType.ADD_PLAYER))

    def remove_player(self, index: int) -> ActionResult:
        return self.apply(Action.remove_player(index))

    def update_player_name(self, index: int, name: str) -> ActionResult:
        return self.apply(Action.update_player_name(index, name))

    def set_imposter_count(self, count: int) -> ActionResult:
        return self.apply(Action.set_imposter_count(count))

    def proceed_to_settings(self) -> ActionResult:
        return self.apply(Action(ActionType.PROCEED_TO_SETTINGS))

    def go_back_to_player_setup(self) -> ActionResult:
        return self.apply(Action(ActionType.GO_BACK_TO_PLAYER_SETUP))

    def begin_role_reveal(self) -> ActionResult:
        return self.apply(Action(ActionType.BEGIN_ROLE_REVEAL))

    def player_ready(self) -> ActionResult:
        return self.apply(Action(ActionType.PLAYER_READY))

    def flip_card(self) -> ActionResult:
        return self.apply(Action(ActionType.FLIP_CARD))

    def move_to_next_player(self) -> ActionResult:
        return self.apply(Action(ActionType.MOVE_TO_NEXT_PLAYER))

    def end_game(self) -> ActionResult:
        return self.apply(Action(ActionType.END_GAME))

    def reveal_imposters(self) -> ActionResult:
        return self.apply(Action(ActionType.REVEAL_IMPOSTERS))

    def reveal_word(self) -> ActionResult:
        return self.apply(Action(ActionType.REVEAL_WORD))

    def play_again(self) -> ActionResult:
        return self.apply(Action(ActionType.PLAY_AGAIN))

    def return_home(self) -> ActionResult:
        return self.apply(Action(ActionType.RETURN_HOME))

    def toggle_sound(self) -> ActionResult:
        return self.apply(Action(ActionType.TOGGLE_SOUND))

    def toggle_haptics(self) -> ActionResult:
        return self.apply(Action(ActionType.TOGGLE_HAPTICS))

    # =========================================================================
    # Handlers: setup
    # =========================================================================

    def _handle_start_new_game(self, action: Action) -> ActionResult:
        state = self._state
        state.reset()
        state.players = [Player() for _ in range(DEFAULT_PLAYER_COUNT)]
        state.imposter_count = 1
        state.phase = GamePhase.PLAYER_SETUP
        return self._commit(FeedbackEvent.GAME_STARTED)

    def _handle_add_player(self, action: Action) -> ActionResult:
        state = self._state
        if state.num_players >= MAX_PLAYERS:
            return self._refuse(
                RefusalReason.INVALID_ROSTER_SIZE,
                f"Roster already has the maximum of {MAX_PLAYERS} players",
            )
        state.players.append(Player())
        return self._commit(FeedbackEvent.PLAYER_ADDED)

    def _handle_remove_player(self, action: Action) -> ActionResult:
        state = self._state
        index = action.payload.player_index
        if state.num_players <= MIN_PLAYERS:
            return self._refuse(
                RefusalReason.INVALID_ROSTER_SIZE,
                f"Roster already has the minimum of {MIN_PLAYERS} players",
            )
        if not self._valid_index(index):
            return self._refuse(RefusalReason.INVALID_INDEX, f"No player at index {index}")

        del state.players[index]
        state.clamp_imposter_count()
        return self._commit(FeedbackEvent.PLAYER_REMOVED)

    def _handle_update_player_name(self, action: Action) -> ActionResult:
        index = action.payload.player_index
        if not self._valid_index(index):
            return self._refuse(RefusalReason.INVALID_INDEX, f"No player at index {index}")
        self._state.players[index].name = action.payload.name or ""
        return self._commit()

    def _handle_set_imposter_count(self, action: Action) -> ActionResult:
        state = self._state
        requested = action.payload.imposter_count
        state.imposter_count = requested if requested is not None else state.imposter_count
        state.clamp_imposter_count()
        if requested is not None and requested != state.imposter_count:
            logger.debug("Imposter count %s clamped to %s", requested, state.imposter_count)
        return self._commit()

    def _handle_proceed_to_settings(self, action: Action) -> ActionResult:
        if not self.can_proceed_to_game_settings:
            return self._refuse(
                RefusalReason.INCOMPLETE_SETUP,
                f"Need at least {MIN_PLAYERS} players, all with names",
            )
        self._state.phase = GamePhase.GAME_SETTINGS
        return self._commit(FeedbackEvent.NAVIGATED)

    def _handle_go_back_to_player_setup(self, action: Action) -> ActionResult:
        self._state.phase = GamePhase.PLAYER_SETUP
        return self._commit(FeedbackEvent.NAVIGATED)

    # =========================================================================
    # Handlers: reveal cycle
    # =========================================================================

    def _handle_begin_role_reveal(self, action: Action) -> ActionResult:
        if not self.can_start_game:
            return self._refuse(
                RefusalReason.NO_CANDIDATE_WORDS,
                "Select at least one difficulty and one category with words",
            )
        return self._start_reveal_cycle()

    def _start_reveal_cycle(self) -> ActionResult:
        """Assign roles and the secret word, then enter role reveal."""
        pick = self.corpus.get_random_word(
            self.settings.selected_category_ids,
            self.settings.selected_difficulties,
            self.rng,
        )
        if pick is None:
            return self._refuse(
                RefusalReason.NO_CANDIDATE_WORDS,
                "No words match the selected categories and difficulties",
            )

        state = self._state
        assign_imposters(state.players, state.imposter_count, self.rng)
        state.starting_player_index = choose_starting_player(state.players, self.rng)
        state.selected_word = pick.word
        state.selected_category = pick.category

        state.current_reveal_index = 0
        state.is_card_flipped = False
        state.show_pass_phone_screen = True
        state.show_imposter_reveal = False
        state.show_word_reveal = False
        state.phase = GamePhase.ROLE_REVEAL

        logger.debug(
            "Roles assigned: %d imposter(s) among %d players, category %s",
            len(state.imposters), state.num_players, pick.category.id,
        )
        return self._commit(FeedbackEvent.ROLE_REVEAL_BEGAN)

    def _handle_player_ready(self, action: Action) -> ActionResult:
        self._state.show_pass_phone_screen = False
        return self._commit(FeedbackEvent.PLAYER_READY)

    def _handle_flip_card(self, action: Action) -> ActionResult:
        state = self._state
        if state.is_card_flipped or state.current_player is None:
            return self._refuse(
                RefusalReason.OUT_OF_SEQUENCE_REVEAL,
                "Card already flipped for this player",
            )
        state.is_card_flipped = True
        state.players[state.current_reveal_index].has_revealed_role = True
        return self._commit(FeedbackEvent.CARD_FLIPPED)

    def _handle_move_to_next_player(self, action: Action) -> ActionResult:
        state = self._state
        if not state.is_card_flipped:
            return self._refuse(
                RefusalReason.OUT_OF_SEQUENCE_REVEAL,
                "Current player has not flipped their card yet",
            )

        state.current_reveal_index += 1
        state.is_card_flipped = False
        state.show_pass_phone_screen = True

        if state.all_players_revealed:
            state.phase = GamePhase.PLAYING
            return self._commit(FeedbackEvent.REVEAL_COMPLETED)
        return self._commit(FeedbackEvent.PLAYER_ADVANCED)

    # =========================================================================
    # Handlers: end of round
    # =========================================================================

    def _handle_end_game(self, action: Action) -> ActionResult:
        state = self._state
        state.phase = GamePhase.END_GAME
        state.show_imposter_reveal = False
        state.show_word_reveal = False
        return self._commit(FeedbackEvent.GAME_ENDED)

    def _handle_reveal_imposters(self, action: Action) -> ActionResult:
        state = self._state
        if state.show_imposter_reveal:
            return self._commit()
        state.show_imposter_reveal = True
        return self._commit(FeedbackEvent.IMPOSTERS_REVEALED)

    def _handle_reveal_word(self, action: Action) -> ActionResult:
        state = self._state
        if not state.show_imposter_reveal:
            return self._refuse(
                RefusalReason.OUT_OF_SEQUENCE_REVEAL,
                "Reveal the imposters before the word",
            )
        if state.show_word_reveal:
            return self._commit()
        state.show_word_reveal = True
        return self._commit(FeedbackEvent.WORD_REVEALED)

    def _handle_play_again(self, action: Action) -> ActionResult:
        # Roster and settings were valid last round; skip the settings gate
        return self._start_reveal_cycle()

    def _handle_return_home(self, action: Action) -> ActionResult:
        self._state.reset()
        return self._commit(FeedbackEvent.RETURNED_HOME)

    def _handle_toggle_sound(self, action: Action) -> ActionResult:
        self.settings.sound_enabled = not self.settings.sound_enabled
        return self._commit(FeedbackEvent.SOUND_TOGGLED)

    def _handle_toggle_haptics(self, action: Action) -> ActionResult:
        self.settings.haptics_enabled = not self.settings.haptics_enabled
        return self._commit(FeedbackEvent.HAPTICS_TOGGLED)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _valid_index(self, index: int | None) -> bool:
        return index is not None and 0 <= index < self._state.num_players

    def _refuse(self, reason: RefusalReason, message: str) -> ActionResult:
        logger.info("Refused (%s): %s", reason.value, message)
        return ActionResult.refused(reason, message, state=self.state)

    def _commit(self, *events: FeedbackEvent) -> ActionResult:
        """Publish the committed state to listeners and sinks."""
        snapshot = self.state
        logger.debug("Committed: phase=%s events=%s", snapshot.phase.value, [e.value for e in events])

        for listener in list(self._listeners):
            try:
                listener(self.state)
            except Exception:
                logger.exception("State listener failed")

        for event in events:
            for sink in self.sinks:
                try:
                    sink.notify(event)
                except Exception:
                    logger.exception("Feedback sink %r failed on %s", sink, event.value)

        return ActionResult.committed(snapshot, list(events))
