"""
Settings Module - Player preferences that survive restarts.
"""

from .store import SettingsStore, GameSettings, MemoryBackend, JSONFileBackend

__all__ = [
    "SettingsStore",
    "GameSettings",
    "MemoryBackend",
    "JSONFileBackend",
]
