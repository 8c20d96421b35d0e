"""
Settings Store - Persisted player preferences.

The store:
- Loads every value once, on construction
- Writes through to its backend on every change
- Falls back to documented defaults when a value is missing or unreadable
- Migrates the legacy boolean hint flag to a HintMode

Backends are plain key-value maps: in memory for tests, or a single
JSON file on disk (default ~/.imposter/settings.json).
"""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable
import json
import logging

from ..engine_core.state import Difficulty, HintMode

logger = logging.getLogger(__name__)

KEY_DIFFICULTIES = "selectedDifficulties"
KEY_CATEGORY_IDS = "selectedCategoryIds"
KEY_HINT_MODE = "hintMode"
KEY_SOUND = "soundEnabled"
KEY_HAPTICS = "hapticsEnabled"
KEY_LEGACY_HINTS = "imposterHintsEnabled"


class MemoryBackend:
    """Dict-backed key-value storage."""

    def __init__(self, values: dict[str, Any] | None = None):
        self.values: dict[str, Any] = dict(values or {})

    def load(self) -> dict[str, Any]:
        return dict(self.values)

    def save(self, values: dict[str, Any]):
        self.values = dict(values)


class JSONFileBackend:
    """
    Key-value storage in one JSON object on disk.

    An unreadable or malformed file loads as empty.
    """

    def __init__(self, path: str | Path | None = None):
        if path is None:
            path = Path.home() / ".imposter" / "settings.json"
        self.path = Path(path)

    def load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Settings file unreadable, using defaults: %s (%s)", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Settings file is not a JSON object, using defaults: %s", self.path)
            return {}
        return data

    def save(self, values: dict[str, Any]):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(values, f, indent=2, sort_keys=True)


@dataclass
class GameSettings:
    """In-memory view of the persisted settings."""
    selected_difficulties: set[Difficulty] = field(default_factory=lambda: set(Difficulty))
    selected_category_ids: set[str] = field(default_factory=set)
    hint_mode: HintMode = HintMode.ONLY_IF_STARTS
    sound_enabled: bool = True
    haptics_enabled: bool = True


def _decode_difficulties(raw: Any) -> set[Difficulty]:
    if not isinstance(raw, (list, tuple, set)):
        return set(Difficulty)
    decoded = set()
    for value in raw:
        try:
            decoded.add(Difficulty(value))
        except ValueError:
            logger.debug("Dropping unknown difficulty %r", value)
    return decoded


def _decode_hint_mode(values: dict[str, Any]) -> HintMode:
    raw = values.get(KEY_HINT_MODE)
    if raw is not None:
        try:
            return HintMode(raw)
        except ValueError:
            logger.debug("Ignoring invalid hint mode %r", raw)
    if KEY_LEGACY_HINTS in values:
        if _decode_bool(values[KEY_LEGACY_HINTS], False):
            return HintMode.ALWAYS
    return HintMode.ONLY_IF_STARTS


_TRUE_STRINGS = {"true", "yes", "1"}
_FALSE_STRINGS = {"false", "no", "0"}


def _decode_bool(raw: Any, default: bool) -> bool:
    """Read a stored flag. Accepts "true"/"false" style strings and numbers."""
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, (int, float)):
        return raw != 0
    if isinstance(raw, str):
        lowered = raw.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    return default


class SettingsStore:
    """
    Read/write access to GameSettings, durable through a backend.

    Usage:
        store = SettingsStore(JSONFileBackend())
        store.initialize_categories_if_needed(corpus.category_ids)
        store.toggle_difficulty(Difficulty.HARD)
    """

    def __init__(self, backend: MemoryBackend | JSONFileBackend | None = None):
        self.backend = backend or MemoryBackend()
        self._values = self.backend.load()
        self._settings = self._decode(self._values)

    @staticmethod
    def _decode(values: dict[str, Any]) -> GameSettings:
        raw_ids = values.get(KEY_CATEGORY_IDS)
        category_ids = {str(i) for i in raw_ids} if isinstance(raw_ids, (list, tuple)) else set()
        return GameSettings(
            selected_difficulties=_decode_difficulties(values.get(KEY_DIFFICULTIES)),
            selected_category_ids=category_ids,
            hint_mode=_decode_hint_mode(values),
            sound_enabled=_decode_bool(values.get(KEY_SOUND), True),
            haptics_enabled=_decode_bool(values.get(KEY_HAPTICS), True),
        )

    def _write(self, key: str, value: Any):
        self._values[key] = value
        try:
            self.backend.save(self._values)
        except OSError as e:
            logger.warning("Failed to persist setting %s: %s", key, e)

    @property
    def settings(self) -> GameSettings:
        """A copy of the current settings."""
        s = self._settings
        return GameSettings(
            selected_difficulties=set(s.selected_difficulties),
            selected_category_ids=set(s.selected_category_ids),
            hint_mode=s.hint_mode,
            sound_enabled=s.sound_enabled,
            haptics_enabled=s.haptics_enabled,
        )

    # =========================================================================
    # Game settings
    # =========================================================================

    @property
    def selected_difficulties(self) -> set[Difficulty]:
        return set(self._settings.selected_difficulties)

    @selected_difficulties.setter
    def selected_difficulties(self, value: Iterable[Difficulty]):
        self._settings.selected_difficulties = set(value)
        self._write(KEY_DIFFICULTIES, sorted(d.value for d in self._settings.selected_difficulties))

    @property
    def selected_category_ids(self) -> set[str]:
        return set(self._settings.selected_category_ids)

    @selected_category_ids.setter
    def selected_category_ids(self, value: Iterable[str]):
        self._settings.selected_category_ids = set(value)
        self._write(KEY_CATEGORY_IDS, sorted(self._settings.selected_category_ids))

    @property
    def hint_mode(self) -> HintMode:
        return self._settings.hint_mode

    @hint_mode.setter
    def hint_mode(self, value: HintMode):
        self._settings.hint_mode = HintMode(value)
        self._write(KEY_HINT_MODE, self._settings.hint_mode.value)

    # =========================================================================
    # Device settings
    # =========================================================================

    @property
    def sound_enabled(self) -> bool:
        return self._settings.sound_enabled

    @sound_enabled.setter
    def sound_enabled(self, value: bool):
        self._settings.sound_enabled = bool(value)
        self._write(KEY_SOUND, self._settings.sound_enabled)

    @property
    def haptics_enabled(self) -> bool:
        return self._settings.haptics_enabled

    @haptics_enabled.setter
    def haptics_enabled(self, value: bool):
        self._settings.haptics_enabled = bool(value)
        self._write(KEY_HAPTICS, self._settings.haptics_enabled)

    # =========================================================================
    # Helpers
    # =========================================================================

    def initialize_categories_if_needed(self, all_ids: Iterable[str]):
        """Select every category on first run, before anything was stored."""
        if not self._settings.selected_category_ids and KEY_CATEGORY_IDS not in self._values:
            self.selected_category_ids = all_ids

    def toggle_difficulty(self, difficulty: Difficulty):
        current = self.selected_difficulties
        current ^= {difficulty}
        self.selected_difficulties = current

    def toggle_category(self, category_id: str):
        current = self.selected_category_ids
        current ^= {category_id}
        self.selected_category_ids = current

    def select_all_difficulties(self):
        self.selected_difficulties = set(Difficulty)

    def select_all_categories(self, all_ids: Iterable[str]):
        self.selected_category_ids = all_ids

    @property
    def all_difficulties_selected(self) -> bool:
        return len(self._settings.selected_difficulties) == len(Difficulty)

    def all_categories_selected(self, total_count: int) -> bool:
        return len(self._settings.selected_category_ids) == total_count

    @property
    def has_difficulty_selected(self) -> bool:
        return bool(self._settings.selected_difficulties)

    @property
    def has_category_selected(self) -> bool:
        return bool(self._settings.selected_category_ids)
