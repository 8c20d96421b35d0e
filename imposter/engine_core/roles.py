"""
Role assignment - who is an imposter, who starts, who gets a hint.

All randomness comes from the `random.Random` passed in, so a seeded
generator makes every draw reproducible.
"""

from __future__ import annotations
import random

from .state import HintMode, Player, RoleCard, SessionState


def choose_imposter_indices(
    num_players: int,
    imposter_count: int,
    rng: random.Random,
) -> list[int]:
    """
    Pick distinct roster indices to become imposters.

    The count is clamped to num_players - 1 so at least one player
    always knows the word.
    """
    actual = max(0, min(imposter_count, num_players - 1))
    indices = list(range(num_players))
    rng.shuffle(indices)
    return sorted(indices[:actual])


def assign_imposters(players: list[Player], imposter_count: int, rng: random.Random) -> list[int]:
    """Reset every role, then mark a fresh random set of imposters."""
    for player in players:
        player.is_imposter = False
        player.has_revealed_role = False

    chosen = choose_imposter_indices(len(players), imposter_count, rng)
    for index in chosen:
        players[index].is_imposter = True
    return chosen


def choose_starting_player(players: list[Player], rng: random.Random) -> int:
    """
    Pick who speaks first.

    Prefers a non-imposter; falls back to anyone if every player is an
    imposter.
    """
    if not players:
        return 0
    candidates = [i for i, p in enumerate(players) if not p.is_imposter]
    if not candidates:
        candidates = list(range(len(players)))
    return rng.choice(candidates)


def imposter_gets_hint(player: Player, hint_mode: HintMode, starting_player: Player | None) -> bool:
    """Decide whether this player is shown the category hint."""
    if not player.is_imposter:
        return False
    if hint_mode == HintMode.ALWAYS:
        return True
    if hint_mode == HintMode.ONLY_IF_STARTS:
        return starting_player is not None and starting_player.player_id == player.player_id
    return False


def build_role_card(state: SessionState, index: int, hint_mode: HintMode) -> RoleCard:
    """Project the card that players[index] sees."""
    player = state.players[index]
    hint = None
    if imposter_gets_hint(player, hint_mode, state.starting_player) and state.selected_category:
        hint = state.selected_category.name

    return RoleCard(
        player_name=player.name,
        is_imposter=player.is_imposter,
        word=None if player.is_imposter else state.selected_word,
        hint=hint,
        is_starting_player=index == state.starting_player_index,
    )
