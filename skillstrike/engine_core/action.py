"""
Action System - Actions, payloads, and results.

Actions represent the four moves a client can submit against a game:
place an effect, play an attack, resolve the pending attack, end the turn.

All state changes flow through actions.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ActionType(Enum):
    """Types of actions in the system."""
    PLAY_EFFECT = "play_effect"
    PLAY_ATTACK = "play_attack"
    RESOLVE_ATTACK = "resolve_attack"
    END_TURN = "end_turn"


class ErrorCode(str, Enum):
    """Why an action was rejected."""
    MISSING_FIELD = "MISSING_FIELD"
    CARD_NOT_IN_HAND = "CARD_NOT_IN_HAND"
    INVALID_CARD_TYPE = "INVALID_CARD_TYPE"
    NOT_YOUR_TURN = "NOT_YOUR_TURN"
    ATTACK_PENDING = "ATTACK_PENDING"
    MAX_EFFECTS_IN_PLAY = "MAX_EFFECTS_IN_PLAY"
    MAX_EFFECTS_PER_TURN = "MAX_EFFECTS_PER_TURN"
    NO_PENDING_ATTACK = "NO_PENDING_ATTACK"
    PLAYER_NOT_IN_GAME = "PLAYER_NOT_IN_GAME"
    INVALID_DEFENDER = "INVALID_DEFENDER"
    GAME_OVER = "GAME_OVER"
    NO_HANDLER = "NO_HANDLER"
    HANDLER_ERROR = "HANDLER_ERROR"


@dataclass
class ActionPayload:
    """
    Payload for an action - contains the action parameters.

    Different action types use different fields.
    Validation happens in the reducer.
    """
    player_id: str | None = None
    card_id: str | None = None
    skill_id: str | None = None
    defender_id: str | None = None
    success: bool | None = None


@dataclass
class Action:
    """
    A complete action to be applied to the game state.

    Actions are:
    - Logged for replay
    - Validated before application
    - Applied atomically by the reducer
    """
    action_type: ActionType
    payload: ActionPayload = field(default_factory=ActionPayload)
    timestamp: float | None = None
    action_id: str | None = None

    @classmethod
    def play_effect(cls, player_id: str, card_id: str) -> Action:
        """Factory for placing a shield or negate."""
        return cls(
            action_type=ActionType.PLAY_EFFECT,
            payload=ActionPayload(player_id=player_id, card_id=card_id),
        )

    @classmethod
    def play_attack(
        cls,
        player_id: str,
        card_id: str,
        skill_id: str | None = None,
        defender_id: str | None = None,
    ) -> Action:
        """Factory for playing an attack or joker."""
        return cls(
            action_type=ActionType.PLAY_ATTACK,
            payload=ActionPayload(
                player_id=player_id,
                card_id=card_id,
                skill_id=skill_id,
                defender_id=defender_id,
            ),
        )

    @classmethod
    def resolve_attack(cls, success: bool, player_id: str | None = None) -> Action:
        """Factory for the defender's outcome. success=True means blocked."""
        return cls(
            action_type=ActionType.RESOLVE_ATTACK,
            payload=ActionPayload(player_id=player_id, success=success),
        )

    @classmethod
    def end_turn(cls, player_id: str | None = None) -> Action:
        """Factory for ending the active player's turn."""
        return cls(
            action_type=ActionType.END_TURN,
            payload=ActionPayload(player_id=player_id),
        )

    def to_log_entry(self, turn_number: int) -> dict[str, Any]:
        """Compact record for the state's action history."""
        entry: dict[str, Any] = {
            "action": self.action_type.value,
            "turn": turn_number,
        }
        for key in ("player_id", "card_id", "skill_id", "defender_id", "success"):
            value = getattr(self.payload, key)
            if value is not None:
                entry[key] = value
        return entry


@dataclass
class ActionResult:
    """
    Result of applying an action.

    Contains:
    - Whether action succeeded
    - New state (if succeeded)
    - Errors (if failed)
    - Human-readable changes for the battle log
    """
    success: bool
    new_state: Any | None = None  # GameState
    error: str | None = None
    error_code: ErrorCode | None = None
    state_changes: list[str] = field(default_factory=list)

    @classmethod
    def failure(cls, error: str, error_code: ErrorCode | None = None) -> ActionResult:
        """Create a failure result."""
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def success_with_state(
        cls,
        state: Any,
        changes: list[str] | None = None,
    ) -> ActionResult:
        """Create a success result with new state."""
        return cls(
            success=True,
            new_state=state,
            state_changes=changes or [],
        )
