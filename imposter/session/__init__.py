"""
Session Module - Hosts game sessions for remote clients.

A session is one device's game:
- Created when a client connects
- Holds one GameEngine and its state
- Serializes intents so one mutation is in flight at a time
- Dropped when the client ends it or it goes stale

Sessions are EPHEMERAL: nothing about a game outlives its session.
"""

from .manager import SessionManager, Session

__all__ = [
    "SessionManager",
    "Session",
]
