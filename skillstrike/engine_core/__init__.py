"""
Engine Core - Deterministic battle state management.

The engine is the runtime that:
1. Builds the initial GameState (setup)
2. Validates and applies actions via the reducer
3. Resolves attacks against each team's effect stack
4. Rotates turns and refills hands
"""

from .state import (
    GameState,
    GamePhase,
    GameSettings,
    Card,
    CardType,
    Player,
    Team,
    TeamId,
    Deck,
    EffectEntry,
    PendingAttack,
    TurnState,
)
from .action import Action, ActionType, ActionPayload, ActionResult, ErrorCode
from .reducer import Reducer, apply_action, pick_defender
from .action_generator import legal_actions
from .deck import CardDefinition, DEFAULT_CARD_DEFINITIONS, build_deck
from .hands import deal_hands, ensure_hand_size
from .turns import next_turn
from .setup import setup_game

__all__ = [
    "GameState",
    "GamePhase",
    "GameSettings",
    "Card",
    "CardType",
    "Player",
    "Team",
    "TeamId",
    "Deck",
    "EffectEntry",
    "PendingAttack",
    "TurnState",
    "Action",
    "ActionType",
    "ActionPayload",
    "ActionResult",
    "ErrorCode",
    "Reducer",
    "apply_action",
    "pick_defender",
    "legal_actions",
    "CardDefinition",
    "DEFAULT_CARD_DEFINITIONS",
    "build_deck",
    "deal_hands",
    "ensure_hand_size",
    "next_turn",
    "setup_game",
]
