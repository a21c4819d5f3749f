"""
Session Manager - Creates games and serializes actions per game.

LIFECYCLE:
1. Lobby creates a game from two rosters -> stored as version 1
2. Each action: load -> reduce -> save, atomically per game
3. A team reaching 0 hp ends the game (status "ended")
4. Ended games stay readable until removed

CONCURRENCY:
- One lock per game; actions on the same game run one at a time
- Different games never contend
- Callers may also pass expected_version for optimistic checks
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Any, Iterable
import logging
import random
import threading
import time

from ..engine_core.state import GameSettings
from ..engine_core.action import Action, ActionResult
from ..engine_core.deck import CardDefinition
from ..engine_core.reducer import Reducer
from ..engine_core.setup import setup_game
from .store import (
    GameStore,
    GameRecord,
    InMemoryGameStore,
    GameNotFoundError,
    VersionConflictError,
)

logger = logging.getLogger(__name__)

CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
CODE_LENGTH = 5


@dataclass
class ActionOutcome:
    """What an action did: the engine result plus the record now stored."""
    result: ActionResult
    record: GameRecord


class SessionManager:
    """
    Manages game sessions.

    Responsibilities:
    - Create games from rosters
    - Apply actions as atomic read-modify-write transitions
    - Track and end games
    """

    def __init__(self, store: GameStore | None = None, reducer: Reducer | None = None):
        self.store = store or InMemoryGameStore()
        self.reducer = reducer or Reducer()
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, game_id: str) -> threading.Lock:
        """Per-game lock, only ever created for stored games. Raises GameNotFoundError."""
        with self._locks_guard:
            lock = self._locks.get(game_id)
            if lock is None:
                if self.store.get(game_id) is None:
                    raise GameNotFoundError(game_id)
                lock = threading.Lock()
                self._locks[game_id] = lock
            return lock

    def create_game(
        self,
        team_a: Iterable[dict[str, Any]],
        team_b: Iterable[dict[str, Any]],
        settings: GameSettings | None = None,
        card_definitions: Iterable[CardDefinition] | None = None,
        random_seed: int | None = None,
    ) -> GameRecord:
        """
        Create and store a new game.

        Raises ValueError if either roster is empty.
        """
        state = setup_game(
            team_a,
            team_b,
            settings=settings,
            card_definitions=card_definitions,
            random_seed=random_seed,
        )
        record = GameRecord(
            game_id=state.game_id,
            code=self._make_code(),
            state=state,
            status="active",
            version=1,
            created_at=time.time(),
        )
        self.store.insert(record)
        logger.info(
            "game=%s created code=%s players=%d seed=%d",
            record.game_id,
            record.code,
            len(state.all_players()),
            state.random_seed,
        )
        return record

    def get_game(self, game_id: str) -> GameRecord:
        """Get a game by ID. Raises GameNotFoundError."""
        record = self.store.get(game_id)
        if record is None:
            raise GameNotFoundError(game_id)
        return record

    def apply_action(
        self,
        game_id: str,
        action: Action,
        expected_version: int | None = None,
    ) -> ActionOutcome:
        """
        Apply one action to a stored game.

        Rejected actions leave the stored record untouched.
        """
        with self._lock_for(game_id):
            record = self.get_game(game_id)
            if expected_version is not None and expected_version != record.version:
                raise VersionConflictError(game_id, expected_version, record.version)

            result = self.reducer.apply(record.state, action)
            if not result.success:
                return ActionOutcome(result=result, record=record)

            updated = replace(record, state=result.new_state)
            if result.new_state.is_over and record.status != "ended":
                updated = replace(updated, status="ended", ended_at=time.time())
                logger.info(
                    "game=%s over, team %s wins",
                    game_id,
                    result.new_state.winner.value,
                )
            stored = self.store.save(updated, expected_version=record.version)
            return ActionOutcome(result=result, record=stored)

    def end_game(self, game_id: str) -> bool:
        """Remove a game. Returns False if it did not exist."""
        try:
            lock = self._lock_for(game_id)
        except GameNotFoundError:
            return False
        with lock:
            removed = self.store.delete(game_id)
        with self._locks_guard:
            self._locks.pop(game_id, None)
        if removed:
            logger.info("game=%s removed", game_id)
        return removed

    def list_games(self, limit: int = 20) -> list[GameRecord]:
        """Most recent games first."""
        return self.store.list_recent(limit)

    def _make_code(self) -> str:
        """Short join code, retried a few times to avoid collisions."""
        code = _random_code()
        for _ in range(3):
            if not self.store.code_in_use(code):
                break
            code = _random_code()
        return code


def _random_code() -> str:
    return "".join(random.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))
