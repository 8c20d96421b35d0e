"""
Tests for the game engine (state transitions).

Tests:
- Roster management and bounds
- Setup validation
- Role assignment and the reveal cycle
- End-of-round reveals, replay and reset
- Snapshots, listeners and feedback
"""

import random

import pytest

from ..engine_core import (
    GameEngine,
    GamePhase,
    Player,
    Difficulty,
    HintMode,
    RefusalReason,
    FeedbackEvent,
    AudioCueSink,
    HapticCueSink,
    Action,
    ActionType,
    MIN_PLAYERS,
    MAX_PLAYERS,
)
from ..engine_core.feedback import Sound, Haptic, FeedbackSink
from .conftest import flip_everyone


class TestPlayerSetup:
    """Tests for roster management."""

    def test_initial_phase_is_home(self, engine):
        """A fresh engine sits on the home screen with no roster."""
        state = engine.state
        assert state.phase == GamePhase.HOME
        assert state.players == []

    def test_start_new_game(self, engine):
        """Starting a game creates three unnamed players."""
        result = engine.start_new_game()

        assert result.success
        assert result.state.phase == GamePhase.PLAYER_SETUP
        assert len(result.state.players) == 3
        assert all(p.name == "" for p in result.state.players)
        assert result.state.imposter_count == 1

    def test_player_ids_are_unique(self, engine):
        """Every roster entry gets its own id."""
        engine.start_new_game()
        engine.add_player()
        ids = [p.player_id for p in engine.state.players]
        assert len(set(ids)) == len(ids)

    def test_add_player_up_to_max(self, engine):
        """Players can be added until the roster is full."""
        engine.start_new_game()
        while engine.state.num_players < MAX_PLAYERS:
            assert engine.add_player()

        result = engine.add_player()
        assert not result.success
        assert result.reason == RefusalReason.INVALID_ROSTER_SIZE
        assert engine.state.num_players == MAX_PLAYERS

    def test_remove_player_at_min_refused(self, engine):
        """The roster never drops below the minimum."""
        engine.start_new_game()
        result = engine.remove_player(0)

        assert not result.success
        assert result.reason == RefusalReason.INVALID_ROSTER_SIZE
        assert engine.state.num_players == MIN_PLAYERS

    def test_remove_player_out_of_bounds(self, engine):
        """Removing a missing index changes nothing."""
        engine.start_new_game()
        engine.add_player()

        for index in (4, 99, -1):
            result = engine.remove_player(index)
            assert not result.success
            assert result.reason == RefusalReason.INVALID_INDEX
        assert engine.state.num_players == 4

    def test_remove_player_keeps_order(self, engine):
        """Removing a player preserves the order of the rest."""
        engine.start_new_game()
        engine.add_player()
        for i, name in enumerate(["A", "B", "C", "D"]):
            engine.update_player_name(i, name)

        assert engine.remove_player(1)
        assert [p.name for p in engine.state.players] == ["A", "C", "D"]

    def test_remove_player_clamps_imposters(self, engine):
        """Shrinking the roster clamps imposter_count to the new maximum."""
        engine.start_new_game()
        for _ in range(3):
            engine.add_player()
        assert engine.set_imposter_count(4)
        assert engine.state.imposter_count == 4

        engine.remove_player(0)
        assert engine.state.imposter_count == 3
        engine.remove_player(0)
        assert engine.state.imposter_count == 2
        engine.remove_player(0)
        assert engine.state.imposter_count == 1

    def test_set_imposter_count_clamps(self, engine):
        """Imposter count stays within [1, players - 2]."""
        engine.start_new_game()
        engine.add_player()
        engine.add_player()  # 5 players -> max 3

        assert engine.set_imposter_count(10)
        assert engine.state.imposter_count == 3
        assert engine.set_imposter_count(0)
        assert engine.state.imposter_count == 1

    def test_max_imposters(self, engine):
        """max_imposters is players - 2, never below 1."""
        assert engine.max_imposters == 1  # empty roster
        engine.start_new_game()
        assert engine.max_imposters == 1
        for _ in range(MAX_PLAYERS - MIN_PLAYERS):
            engine.add_player()
        assert engine.max_imposters == MAX_PLAYERS - 2

    def test_update_player_name_not_trimmed(self, engine):
        """Names are stored exactly as typed."""
        engine.start_new_game()
        assert engine.update_player_name(0, "  Ann ")
        assert engine.state.players[0].name == "  Ann "

    def test_update_player_name_bad_index(self, engine):
        engine.start_new_game()
        result = engine.update_player_name(7, "Ghost")
        assert result.reason == RefusalReason.INVALID_INDEX

    def test_roster_bounds_hold_for_random_sequences(self, engine):
        """Any sequence of add/remove keeps 3 <= players <= 12."""
        rng = random.Random(2024)
        engine.start_new_game()
        for _ in range(500):
            if rng.random() < 0.5:
                engine.add_player()
            else:
                engine.remove_player(rng.randrange(-2, 14))
            state = engine.state
            assert MIN_PLAYERS <= state.num_players <= MAX_PLAYERS
            assert 1 <= state.imposter_count <= state.num_players - 2


class TestSetupValidation:
    """Tests for leaving player setup."""

    def test_proceed_requires_names(self, engine):
        """Blank or whitespace names block the transition."""
        engine.start_new_game()
        engine.update_player_name(0, "Ann")
        engine.update_player_name(1, "Bob")
        engine.update_player_name(2, "   ")

        assert not engine.can_proceed_to_game_settings
        result = engine.proceed_to_settings()
        assert not result.success
        assert result.reason == RefusalReason.INCOMPLETE_SETUP
        assert engine.phase == GamePhase.PLAYER_SETUP

    def test_proceed_refused_with_two_players(self, engine):
        """Two players are not enough, even with names."""
        engine.start_new_game()
        engine._state.players = [Player(name="A"), Player(name="B")]

        result = engine.proceed_to_settings()
        assert not result.success
        assert result.reason == RefusalReason.INCOMPLETE_SETUP
        assert engine.phase == GamePhase.PLAYER_SETUP

    def test_proceed_and_go_back(self, named_engine):
        """Settings can be left again without losing the roster."""
        engine = named_engine(["Ann", "Bob", "Cy"])
        assert engine.phase == GamePhase.GAME_SETTINGS

        assert engine.go_back_to_player_setup()
        assert engine.phase == GamePhase.PLAYER_SETUP
        assert [p.name for p in engine.state.players] == ["Ann", "Bob", "Cy"]

    def test_roster_locked_outside_setup(self, named_engine):
        """Roster edits are refused once in game settings."""
        engine = named_engine(["Ann", "Bob", "Cy"])

        assert engine.add_player().reason == RefusalReason.WRONG_PHASE
        assert engine.remove_player(0).reason == RefusalReason.WRONG_PHASE
        assert engine.update_player_name(0, "X").reason == RefusalReason.WRONG_PHASE
        assert engine.state.num_players == 3

    def test_can_start_game_needs_difficulty(self, named_engine, settings):
        engine = named_engine(["Ann", "Bob", "Cy"])
        assert engine.can_start_game

        settings.selected_difficulties = set()
        assert not engine.can_start_game
        result = engine.begin_role_reveal()
        assert result.reason == RefusalReason.NO_CANDIDATE_WORDS
        assert engine.phase == GamePhase.GAME_SETTINGS

    def test_can_start_game_needs_category(self, named_engine, settings):
        engine = named_engine(["Ann", "Bob", "Cy"])
        settings.selected_category_ids = set()
        assert not engine.can_start_game

    def test_can_start_game_needs_words(self, named_engine, settings):
        """A filter that matches no words blocks the game."""
        engine = named_engine(["Ann", "Bob", "Cy"])
        settings.selected_category_ids = {"food"}
        settings.selected_difficulties = {Difficulty.MEDIUM}

        assert not engine.can_start_game
        assert engine.begin_role_reveal().reason == RefusalReason.NO_CANDIDATE_WORDS

    def test_empty_corpus_cannot_start(self, settings):
        """An empty corpus means no game can start."""
        from ..words import WordCorpus

        engine = GameEngine(corpus=WordCorpus(), settings=settings, rng=random.Random(1))
        engine.start_new_game()
        for i, name in enumerate(["A", "B", "C"]):
            engine.update_player_name(i, name)
        engine.proceed_to_settings()

        assert not engine.can_start_game
        assert not engine.begin_role_reveal()


class TestRoleReveal:
    """Tests for role assignment and the reveal cycle."""

    def test_begin_role_reveal(self, revealing_engine):
        state = revealing_engine.state

        assert state.phase == GamePhase.ROLE_REVEAL
        assert state.current_reveal_index == 0
        assert len(state.imposters) == 1
        assert state.selected_word != ""
        assert state.selected_category is not None
        assert state.selected_word in state.selected_category.all_words
        assert all(not p.has_revealed_role for p in state.players)
        assert state.show_pass_phone_screen
        assert not state.is_card_flipped

    @pytest.mark.parametrize("players,requested", [(3, 1), (5, 3), (8, 2), (12, 10)])
    def test_imposter_count_matches_request(self, named_engine, players, requested):
        names = [f"P{i}" for i in range(players)]
        engine = named_engine(names, imposter_count=requested)
        engine.begin_role_reveal()

        state = engine.state
        assert len(state.imposters) == requested
        assert state.num_players - len(state.imposters) >= 2

    def test_starting_player_is_not_imposter(self, named_engine):
        engine = named_engine([f"P{i}" for i in range(6)], imposter_count=3)
        assert engine.begin_role_reveal()
        for _ in range(20):
            assert not engine.state.starting_player.is_imposter
            flip_everyone(engine)
            engine.end_game()
            assert engine.play_again()

    def test_word_respects_filters(self, named_engine, settings):
        settings.selected_category_ids = {"food"}
        settings.selected_difficulties = {Difficulty.HARD}
        engine = named_engine(["Ann", "Bob", "Cy"])
        engine.begin_role_reveal()

        state = engine.state
        assert state.selected_word in ("Kimchi", "Baklava")
        assert state.selected_category.id == "food"

    def test_flip_marks_revealed(self, revealing_engine):
        engine = revealing_engine
        assert engine.player_ready()
        assert engine.flip_card()

        state = engine.state
        assert state.is_card_flipped
        assert state.players[0].has_revealed_role
        assert not state.players[1].has_revealed_role
        assert state.current_reveal_index == 0

    def test_flip_is_idempotent(self, revealing_engine):
        """Flipping twice leaves the same state as flipping once."""
        engine = revealing_engine
        engine.flip_card()
        once = engine.state

        result = engine.flip_card()
        assert not result.success
        assert result.reason == RefusalReason.OUT_OF_SEQUENCE_REVEAL
        assert engine.state == once

    def test_advance_requires_flip(self, revealing_engine):
        engine = revealing_engine
        result = engine.move_to_next_player()

        assert not result.success
        assert result.reason == RefusalReason.OUT_OF_SEQUENCE_REVEAL
        assert engine.state.current_reveal_index == 0

    def test_player_ready_does_not_advance(self, revealing_engine):
        engine = revealing_engine
        engine.player_ready()
        state = engine.state
        assert not state.show_pass_phone_screen
        assert state.current_reveal_index == 0

    def test_advance_resets_sub_state(self, revealing_engine):
        engine = revealing_engine
        engine.player_ready()
        engine.flip_card()
        engine.move_to_next_player()

        state = engine.state
        assert state.current_reveal_index == 1
        assert not state.is_card_flipped
        assert state.show_pass_phone_screen
        assert state.phase == GamePhase.ROLE_REVEAL

    def test_reveal_monotonic_and_completes_once(self, revealing_engine):
        """The cursor only grows and reaching the end enters playing once."""
        engine = revealing_engine
        seen = []
        phases = []
        engine.add_listener(lambda s: (seen.append(s.current_reveal_index), phases.append(s.phase)))

        flip_everyone(engine)

        assert seen == sorted(seen)
        assert max(seen) == 4
        assert phases.count(GamePhase.PLAYING) == 1
        assert engine.phase == GamePhase.PLAYING
        assert engine.all_players_revealed
        assert all(p.has_revealed_role for p in engine.state.players)

        # Reveal intents are dead once playing
        assert engine.flip_card().reason == RefusalReason.WRONG_PHASE
        assert engine.move_to_next_player().reason == RefusalReason.WRONG_PHASE
        assert engine.state.current_reveal_index == 4

    def test_start_new_game_keeps_roster_mid_reveal(self, revealing_engine, recorder):
        """A new game can only be started from home; the roster survives."""
        engine = revealing_engine
        engine.flip_card()
        before = engine.state
        recorder.clear()

        result = engine.start_new_game()

        assert not result.success
        assert result.reason == RefusalReason.WRONG_PHASE
        assert engine.state == before
        assert [p.name for p in engine.state.players] == ["Ann", "Bob", "Cy", "Dee"]
        assert recorder.events == []

    def test_start_new_game_refused_outside_home(self, named_engine):
        engine = named_engine(["Ann", "Bob", "Cy"])
        assert engine.start_new_game().reason == RefusalReason.WRONG_PHASE

        engine.go_back_to_player_setup()
        assert engine.start_new_game().reason == RefusalReason.WRONG_PHASE

        engine.return_home()
        assert engine.start_new_game()
        assert engine.state.num_players == 3

    def test_role_reveal_unreachable_from_setup(self, engine):
        engine.start_new_game()
        assert engine.begin_role_reveal().reason == RefusalReason.WRONG_PHASE

    def test_seeded_engines_agree(self, small_corpus):
        """Same seed, same roles and word."""
        from ..settings import SettingsStore, MemoryBackend

        def play(seed):
            engine = GameEngine(
                corpus=small_corpus,
                settings=SettingsStore(MemoryBackend()),
                rng=random.Random(seed),
            )
            engine.start_new_game()
            engine.add_player()
            engine.add_player()
            for i in range(5):
                engine.update_player_name(i, f"P{i}")
            engine.set_imposter_count(2)
            engine.proceed_to_settings()
            engine.begin_role_reveal()
            state = engine.state
            return (
                [p.is_imposter for p in state.players],
                state.starting_player_index,
                state.selected_word,
            )

        assert play(7) == play(7)


class TestRoleCards:
    """Tests for what each player sees."""

    def test_current_card_hidden_until_flip(self, revealing_engine):
        engine = revealing_engine
        assert engine.current_role_card() is None
        engine.flip_card()
        card = engine.current_role_card()
        assert card is not None
        assert card.player_name == "Ann"

    def test_non_imposter_sees_word(self, revealing_engine):
        engine = revealing_engine
        state = engine.state
        for i, player in enumerate(state.players):
            card = engine.role_card(i)
            if player.is_imposter:
                assert card.is_imposter
                assert card.word is None
            else:
                assert card.word == state.selected_word
                assert card.hint is None

    def test_hint_always(self, named_engine, settings):
        settings.hint_mode = HintMode.ALWAYS
        engine = named_engine([f"P{i}" for i in range(5)], imposter_count=2)
        engine.begin_role_reveal()
        state = engine.state

        for i, player in enumerate(state.players):
            card = engine.role_card(i)
            if player.is_imposter:
                assert card.hint == state.selected_category.name
            else:
                assert card.hint is None

    def test_hint_off(self, named_engine, settings):
        settings.hint_mode = HintMode.OFF
        engine = named_engine([f"P{i}" for i in range(5)], imposter_count=2)
        engine.begin_role_reveal()

        assert all(engine.role_card(i).hint is None for i in range(5))
        assert not any(engine.imposter_gets_hint(p) for p in engine.state.players)

    def test_role_card_bad_index(self, revealing_engine):
        assert revealing_engine.role_card(10) is None


class TestEndGame:
    """Tests for the end-of-round reveals."""

    @pytest.fixture
    def playing_engine(self, revealing_engine):
        flip_everyone(revealing_engine)
        return revealing_engine

    def test_end_game(self, playing_engine):
        result = playing_engine.end_game()
        assert result.success
        state = result.state
        assert state.phase == GamePhase.END_GAME
        assert not state.show_imposter_reveal
        assert not state.show_word_reveal

    def test_end_game_only_from_playing(self, revealing_engine):
        assert revealing_engine.end_game().reason == RefusalReason.WRONG_PHASE

    def test_word_reveal_needs_imposter_reveal(self, playing_engine):
        engine = playing_engine
        engine.end_game()

        result = engine.reveal_word()
        assert result.reason == RefusalReason.OUT_OF_SEQUENCE_REVEAL
        assert not engine.state.show_word_reveal

        assert engine.reveal_imposters()
        assert engine.reveal_word()
        state = engine.state
        assert state.show_imposter_reveal and state.show_word_reveal

    def test_reveals_idempotent(self, playing_engine, recorder):
        engine = playing_engine
        engine.end_game()
        engine.reveal_imposters()
        engine.reveal_word()
        before = engine.state
        recorder.clear()

        assert engine.reveal_imposters()
        assert engine.reveal_word()
        assert engine.state == before
        assert recorder.events == []

    def test_play_again_keeps_roster(self, playing_engine):
        engine = playing_engine
        engine.end_game()
        engine.reveal_imposters()
        names = [p.name for p in engine.state.players]
        ids = [p.player_id for p in engine.state.players]

        result = engine.play_again()
        assert result.success
        state = result.state
        assert state.phase == GamePhase.ROLE_REVEAL
        assert [p.name for p in state.players] == names
        assert [p.player_id for p in state.players] == ids
        assert state.current_reveal_index == 0
        assert len(state.imposters) == 1
        assert not state.show_imposter_reveal
        assert not any(p.has_revealed_role for p in state.players)

    def test_play_again_skips_settings_gate(self, playing_engine, settings):
        """Replay does not re-check can_start_game, only the word draw."""
        engine = playing_engine
        engine.end_game()
        settings.selected_category_ids = set()  # empty filter means all categories

        assert not engine.can_start_game
        assert engine.play_again()

    def test_play_again_without_words_refused(self, playing_engine, settings):
        engine = playing_engine
        engine.end_game()
        before = engine.state
        settings.selected_difficulties = set()

        result = engine.play_again()
        assert result.reason == RefusalReason.NO_CANDIDATE_WORDS
        assert engine.state == before

    def test_return_home_resets(self, playing_engine):
        engine = playing_engine
        engine.end_game()

        result = engine.return_home()
        state = result.state
        assert state.phase == GamePhase.HOME
        assert state.players == []
        assert state.selected_word == ""
        assert state.selected_category is None
        assert state.current_reveal_index == 0
        assert state.starting_player_index == 0
        assert state.imposter_count == 1

    def test_return_home_from_anywhere(self, revealing_engine):
        """Abandoning mid-reveal is allowed."""
        revealing_engine.flip_card()
        assert revealing_engine.return_home()
        assert revealing_engine.state.players == []


class TestObservation:
    """Tests for snapshots, listeners and feedback."""

    def test_state_is_a_snapshot(self, engine):
        engine.start_new_game()
        snapshot = engine.state
        snapshot.players.append(Player(name="Intruder"))
        snapshot.phase = GamePhase.END_GAME

        assert engine.state.num_players == 3
        assert engine.phase == GamePhase.PLAYER_SETUP

    def test_listeners_get_committed_states(self, engine):
        received = []
        engine.add_listener(received.append)

        engine.start_new_game()
        engine.remove_player(0)  # refused, no notification
        engine.add_player()

        assert len(received) == 2
        assert received[-1].num_players == 4

        engine.remove_listener(received.append)
        engine.add_player()
        assert len(received) == 2

    def test_feedback_events_in_order(self, revealing_engine, recorder):
        engine = revealing_engine
        recorder.clear()
        flip_everyone(engine)
        engine.end_game()
        engine.reveal_imposters()
        engine.reveal_word()
        engine.return_home()

        events = recorder.events
        assert events[:3] == [
            FeedbackEvent.PLAYER_READY,
            FeedbackEvent.CARD_FLIPPED,
            FeedbackEvent.PLAYER_ADVANCED,
        ]
        assert events.count(FeedbackEvent.CARD_FLIPPED) == 4
        assert events.count(FeedbackEvent.PLAYER_ADVANCED) == 3
        assert events[-5:] == [
            FeedbackEvent.REVEAL_COMPLETED,
            FeedbackEvent.GAME_ENDED,
            FeedbackEvent.IMPOSTERS_REVEALED,
            FeedbackEvent.WORD_REVEALED,
            FeedbackEvent.RETURNED_HOME,
        ]

    def test_refusals_fire_no_feedback(self, engine, recorder):
        engine.start_new_game()
        recorder.clear()
        engine.remove_player(0)
        engine.flip_card()
        assert recorder.events == []

    def test_sink_base_is_abstract(self):
        """A sink must implement notify."""
        with pytest.raises(TypeError):
            FeedbackSink()

        class Incomplete(FeedbackSink):
            pass

        with pytest.raises(TypeError):
            Incomplete()

    def test_failing_sink_does_not_break_transition(self, engine):
        class Broken(FeedbackSink):
            def notify(self, event):
                raise RuntimeError("speaker on fire")

        engine.add_sink(Broken())
        result = engine.start_new_game()
        assert result.success
        assert engine.phase == GamePhase.PLAYER_SETUP

    def test_cue_sinks_follow_toggles(self, engine, settings):
        audio = AudioCueSink(enabled=lambda: settings.sound_enabled)
        haptics = HapticCueSink(enabled=lambda: settings.haptics_enabled)
        engine.add_sink(audio)
        engine.add_sink(haptics)

        engine.start_new_game()
        assert audio.played == [Sound.BUTTON_TAP]
        assert haptics.played == [Haptic.MEDIUM]

        engine.toggle_sound()
        assert not settings.sound_enabled
        engine.add_player()
        assert audio.played == [Sound.BUTTON_TAP]
        assert haptics.played[-1] == Haptic.LIGHT

        engine.toggle_sound()
        assert settings.sound_enabled
        # Turning sound back on plays a tap
        assert audio.played == [Sound.BUTTON_TAP, Sound.BUTTON_TAP]

        engine.toggle_haptics()
        assert not settings.haptics_enabled
        count = len(haptics.played)
        engine.add_player()
        assert len(haptics.played) == count

    def test_apply_accepts_actions(self, engine):
        """The dispatch entry point and named operations agree."""
        assert engine.apply(Action.of("start_new_game")).success
        assert engine.apply(Action.of(ActionType.ADD_PLAYER)).success
        assert engine.apply(Action.update_player_name(3, "Dee")).success
        assert engine.state.players[3].name == "Dee"
