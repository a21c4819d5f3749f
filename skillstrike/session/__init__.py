"""
Session Module - Owns stored games and serializes access to them.

A game session represents one battle:
- Created by the lobby from two rosters
- Holds the current GameState plus a version number
- Processes one action at a time
- Ends when a team's hp reaches zero

Storage is pluggable: in memory by default, or JSON files on disk.
"""

from .manager import SessionManager, ActionOutcome
from .store import (
    GameStore,
    GameRecord,
    InMemoryGameStore,
    JsonFileGameStore,
    SessionError,
    GameNotFoundError,
    VersionConflictError,
)

__all__ = [
    "SessionManager",
    "ActionOutcome",
    "GameStore",
    "GameRecord",
    "InMemoryGameStore",
    "JsonFileGameStore",
    "SessionError",
    "GameNotFoundError",
    "VersionConflictError",
]
