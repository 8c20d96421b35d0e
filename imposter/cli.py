"""
Imposter CLI - Command-line interface for the engine.

Usage:
    imposter play [--seed N] [--players A B C]   Pass-and-play in the terminal
    imposter words [--difficulty D ...]          List word categories
    imposter settings [--hint-mode M] ...        Show or change settings
    imposter serve [--host H] [--port P]         Run the HTTP API
"""

from __future__ import annotations
import argparse
import os
import random
import sys
from typing import Callable

from .engine_core import (
    GameEngine,
    GamePhase,
    Difficulty,
    HintMode,
    AudioCueSink,
    HapticCueSink,
    MIN_PLAYERS,
    MAX_PLAYERS,
)
from .settings import SettingsStore, JSONFileBackend
from .words import WordCorpus
from .utils import setup_logger

InputFn = Callable[[str], str]
OutputFn = Callable[..., None]


def main(argv: list[str] | None = None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logger(verbose=args.verbose)

    if args.command == "play":
        sys.exit(cmd_play(args))
    elif args.command == "words":
        cmd_words(args)
    elif args.command == "settings":
        cmd_settings(args)
    elif args.command == "serve":
        cmd_serve(args)
    else:
        parser.print_help()
        sys.exit(1)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Imposter - pass-and-play party word game",
        prog="imposter",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    parser.add_argument(
        "--settings-path",
        default=os.getenv("IMPOSTER_SETTINGS_PATH"),
        help="Settings file (default ~/.imposter/settings.json)",
    )
    parser.add_argument(
        "--word-data",
        default=os.getenv("IMPOSTER_WORD_DATA"),
        help="Word data JSON (default: bundled words)",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    play_parser = subparsers.add_parser("play", help="Play a game in the terminal")
    play_parser.add_argument("--seed", type=int, default=None, help="Random seed")
    play_parser.add_argument("--players", nargs="+", metavar="NAME", help="Player names")
    play_parser.add_argument("--imposters", type=int, default=None, help="Number of imposters")

    words_parser = subparsers.add_parser("words", help="List word categories")
    words_parser.add_argument(
        "--difficulty", "-d",
        action="append",
        choices=[d.value for d in Difficulty],
        help="Only count these difficulties (repeatable)",
    )

    settings_parser = subparsers.add_parser("settings", help="Show or change settings")
    settings_parser.add_argument("--hint-mode", choices=[m.value for m in HintMode])
    settings_parser.add_argument("--sound", choices=["on", "off"])
    settings_parser.add_argument("--haptics", choices=["on", "off"])
    settings_parser.add_argument(
        "--difficulty", "-d",
        action="append",
        choices=[d.value for d in Difficulty],
        help="Replace selected difficulties (repeatable)",
    )
    settings_parser.add_argument(
        "--category", "-c",
        action="append",
        metavar="ID",
        help="Replace selected categories (repeatable)",
    )

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    return parser


def _load(args) -> tuple[WordCorpus, SettingsStore]:
    corpus = WordCorpus.load(args.word_data) if args.word_data else WordCorpus.default()
    settings = SettingsStore(JSONFileBackend(args.settings_path))
    return corpus, settings


# =============================================================================
# play
# =============================================================================

def cmd_play(args) -> int:
    """Interactive pass-and-play."""
    corpus, settings = _load(args)
    engine = GameEngine(
        corpus=corpus,
        settings=settings,
        rng=random.Random(args.seed),
        sinks=[
            AudioCueSink(enabled=lambda: settings.sound_enabled),
            HapticCueSink(enabled=lambda: settings.haptics_enabled),
        ],
    )
    return run_play(engine, names=args.players, imposters=args.imposters)


def run_play(
    engine: GameEngine,
    names: list[str] | None = None,
    imposters: int | None = None,
    input_fn: InputFn = input,
    out: OutputFn = print,
) -> int:
    """
    Drive one engine through complete rounds on a terminal.

    Returns a process exit code.
    """
    engine.start_new_game()

    while not _setup_roster(engine, names, input_fn, out):
        names = None

    if imposters is None:
        imposters = _ask_int(
            f"Number of imposters (1-{engine.max_imposters}) [1]: ", 1, input_fn, out
        )
    engine.set_imposter_count(imposters)

    result = engine.begin_role_reveal()
    if not result:
        out(f"Cannot start: {result.message}")
        engine.return_home()
        return 1

    while True:
        _reveal_cycle(engine, input_fn, out)

        state = engine.state
        out(f"\n{state.starting_player.name} starts! Discuss and find the imposter.")
        input_fn("Press Enter to end the round...")
        engine.end_game()

        input_fn("Press Enter to reveal the imposters...")
        engine.reveal_imposters()
        names_out = ", ".join(p.name for p in engine.state.imposters)
        out(f"Imposter(s): {names_out}")

        input_fn("Press Enter to reveal the word...")
        engine.reveal_word()
        state = engine.state
        out(f"The word was: {state.selected_word} ({state.selected_category.name})")

        again = input_fn("Play again with the same players? [y/N]: ").strip().lower()
        if again not in ("y", "yes"):
            break
        if not engine.play_again():
            out("No words available for another round.")
            break

    engine.return_home()
    return 0


def _setup_roster(engine: GameEngine, names: list[str] | None, input_fn: InputFn, out: OutputFn) -> bool:
    """Fill the roster from names (or a prompt) and move to settings."""
    if names is None:
        raw = input_fn(f"Player names, comma separated ({MIN_PLAYERS}-{MAX_PLAYERS}): ")
        names = [n.strip() for n in raw.split(",") if n.strip()]

    if not MIN_PLAYERS <= len(names) <= MAX_PLAYERS:
        out(f"Need between {MIN_PLAYERS} and {MAX_PLAYERS} players, got {len(names)}.")
        return False

    while engine.state.num_players < len(names):
        engine.add_player()
    while engine.state.num_players > len(names):
        engine.remove_player(engine.state.num_players - 1)
    for i, name in enumerate(names):
        engine.update_player_name(i, name)

    result = engine.proceed_to_settings()
    if not result:
        out(result.message)
    return result.success


def _reveal_cycle(engine: GameEngine, input_fn: InputFn, out: OutputFn):
    """Walk every player through pass, flip, hide."""
    while engine.phase == GamePhase.ROLE_REVEAL:
        player = engine.current_player
        out(f"\nPass the device to {player.name}.")
        input_fn("Press Enter when you are ready...")
        engine.player_ready()
        engine.flip_card()

        card = engine.current_role_card()
        if card.is_imposter:
            out("You are the IMPOSTER!")
            if card.hint:
                out(f"Hint: the category is {card.hint}")
        else:
            out(f"The word is: {card.word}")
        if card.is_starting_player:
            out("You will start the discussion.")

        input_fn("Press Enter to hide your card...")
        out("\n" * 40)
        engine.move_to_next_player()


def _ask_int(prompt: str, default: int, input_fn: InputFn, out: OutputFn) -> int:
    while True:
        raw = input_fn(prompt).strip()
        if not raw:
            return default
        try:
            return int(raw)
        except ValueError:
            out("Please enter a number.")


# =============================================================================
# words / settings / serve
# =============================================================================

def cmd_words(args):
    """List categories with word counts."""
    corpus, _ = _load(args)
    difficulties = [Difficulty(d) for d in args.difficulty] if args.difficulty else list(Difficulty)

    if not corpus.categories:
        print("No word data loaded.")
        return

    for category in corpus.categories:
        count = corpus.total_word_count({category.id}, difficulties)
        print(f"{category.id:<12} {category.name:<20} {count:>4} words")
    total = corpus.total_word_count(corpus.category_ids, difficulties)
    print(f"\nTotal: {total} words")


def cmd_settings(args):
    """Show or update persisted settings."""
    corpus, settings = _load(args)

    if args.hint_mode:
        settings.hint_mode = HintMode(args.hint_mode)
    if args.sound:
        settings.sound_enabled = args.sound == "on"
    if args.haptics:
        settings.haptics_enabled = args.haptics == "on"
    if args.difficulty:
        settings.selected_difficulties = {Difficulty(d) for d in args.difficulty}
    if args.category:
        unknown = set(args.category) - corpus.category_ids
        if unknown:
            print(f"Error: unknown categories: {', '.join(sorted(unknown))}")
            sys.exit(1)
        settings.selected_category_ids = set(args.category)

    print(f"Hint mode:    {settings.hint_mode.display_name} - {settings.hint_mode.description}")
    print(f"Difficulties: {', '.join(sorted(d.value for d in settings.selected_difficulties)) or '(none)'}")
    print(f"Categories:   {', '.join(sorted(settings.selected_category_ids)) or '(none)'}")
    print(f"Sound:        {'on' if settings.sound_enabled else 'off'}")
    print(f"Haptics:      {'on' if settings.haptics_enabled else 'off'}")


def cmd_serve(args):
    """Run the HTTP API with uvicorn."""
    import uvicorn

    if args.settings_path:
        os.environ["IMPOSTER_SETTINGS_PATH"] = args.settings_path
    if args.word_data:
        os.environ["IMPOSTER_WORD_DATA"] = args.word_data

    uvicorn.run("imposter.api.app:create_app", factory=True, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
