"""
Game Store - Loads and saves game state blobs keyed by game id.

Two backends:
- InMemoryGameStore: process-local, the default
- JsonFileGameStore: one JSON file per game under a directory

Every record carries a version that increases on each save. A save
that names a stale expected version is refused, so two writers racing
on the same game cannot silently overwrite each other.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any
import json
import os
import threading

from ..engine_core.state import GameState


class SessionError(Exception):
    """Base class for session-layer failures."""


class GameNotFoundError(SessionError):
    """The referenced game id does not exist."""

    def __init__(self, game_id: str):
        super().__init__(f"Game {game_id} not found")
        self.game_id = game_id


class VersionConflictError(SessionError):
    """The stored game moved on since the caller last read it."""

    def __init__(self, game_id: str, expected: int, actual: int):
        super().__init__(
            f"Game {game_id} is at version {actual}, expected {expected}"
        )
        self.game_id = game_id
        self.expected = expected
        self.actual = actual


@dataclass(frozen=True)
class GameRecord:
    """A stored game: state plus lobby metadata."""
    game_id: str
    code: str
    state: GameState
    status: str = "active"  # "active" | "ended"
    version: int = 1
    created_at: float = 0.0
    ended_at: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "game_id": self.game_id,
            "code": self.code,
            "status": self.status,
            "version": self.version,
            "created_at": self.created_at,
            "ended_at": self.ended_at,
            "state": self.state.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GameRecord:
        return cls(
            game_id=data["game_id"],
            code=data["code"],
            status=data.get("status", "active"),
            version=int(data.get("version", 1)),
            created_at=float(data.get("created_at", 0.0)),
            ended_at=data.get("ended_at"),
            state=GameState.from_dict(data["state"]),
        )


class GameStore:
    """
    Interface for game persistence.

    Subclasses implement _read/_write/_remove/_all; version checking
    lives here so every backend enforces it the same way.
    """

    def __init__(self):
        self._write_lock = threading.Lock()

    def get(self, game_id: str) -> GameRecord | None:
        return self._read(game_id)

    def insert(self, record: GameRecord) -> GameRecord:
        with self._write_lock:
            self._write(record)
        return record

    def save(self, record: GameRecord, expected_version: int | None = None) -> GameRecord:
        """
        Store a new version of an existing game.

        Returns the stored record with its bumped version.
        """
        with self._write_lock:
            current = self._read(record.game_id)
            if current is None:
                raise GameNotFoundError(record.game_id)
            if expected_version is not None and expected_version != current.version:
                raise VersionConflictError(record.game_id, expected_version, current.version)
            stored = replace(record, version=current.version + 1)
            self._write(stored)
        return stored

    def delete(self, game_id: str) -> bool:
        with self._write_lock:
            return self._remove(game_id)

    def list_recent(self, limit: int = 20) -> list[GameRecord]:
        """Most recently created games first."""
        records = sorted(self._all(), key=lambda r: r.created_at, reverse=True)
        return records[:limit]

    def code_in_use(self, code: str) -> bool:
        return any(r.code == code for r in self._all())

    def _read(self, game_id: str) -> GameRecord | None:
        raise NotImplementedError

    def _write(self, record: GameRecord):
        raise NotImplementedError

    def _remove(self, game_id: str) -> bool:
        raise NotImplementedError

    def _all(self) -> list[GameRecord]:
        raise NotImplementedError


class InMemoryGameStore(GameStore):
    """Process-local store. Games vanish with the process."""

    def __init__(self):
        super().__init__()
        self._records: dict[str, GameRecord] = {}

    def _read(self, game_id: str) -> GameRecord | None:
        return self._records.get(game_id)

    def _write(self, record: GameRecord):
        self._records[record.game_id] = record

    def _remove(self, game_id: str) -> bool:
        return self._records.pop(game_id, None) is not None

    def _all(self) -> list[GameRecord]:
        return list(self._records.values())


class JsonFileGameStore(GameStore):
    """
    File-based store: <store_dir>/<game_id>.json

    Usage:
        store = JsonFileGameStore("~/.skillstrike/games")
        store.insert(record)
        record = store.get(game_id)
    """

    def __init__(self, store_dir: str | Path | None = None):
        super().__init__()
        if store_dir is None:
            store_dir = Path.home() / ".skillstrike" / "games"
        self.store_dir = Path(store_dir).expanduser()

        # Ensure store directory exists
        self.store_dir.mkdir(parents=True, exist_ok=True)

    def _get_path(self, game_id: str) -> Path:
        return self.store_dir / f"{game_id}.json"

    def _read(self, game_id: str) -> GameRecord | None:
        path = self._get_path(game_id)
        if not path.exists():
            return None
        with open(path, "r", encoding="utf-8") as f:
            return GameRecord.from_dict(json.load(f))

    def _write(self, record: GameRecord):
        path = self._get_path(record.game_id)
        tmp_path = path.with_suffix(".json.tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(record.to_dict(), f, indent=2)
        os.replace(tmp_path, path)

    def _remove(self, game_id: str) -> bool:
        path = self._get_path(game_id)
        if not path.exists():
            return False
        path.unlink()
        return True

    def _all(self) -> list[GameRecord]:
        return [
            r for r in (self._read(f.stem) for f in self.store_dir.glob("*.json"))
            if r is not None
        ]
