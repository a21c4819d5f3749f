"""
Hand Manager - dealing and refilling player hands.

Hands draw from the front of the shared draw pile. When the draw pile
runs dry the discard pile is reshuffled into a new draw pile; the
shuffle is seeded from the state so refills stay deterministic.
"""

from __future__ import annotations
import random

from .state import Card, GameState, Player, HAND_SIZE
from .deck import shuffle_cards


def deal_hands(
    draw: list[Card],
    players: list[Player],
    hand_size: int = HAND_SIZE,
) -> tuple[dict[str, list[Card]], list[Card]]:
    """
    Deal up to hand_size cards to each player in order.

    Returns (hands, remaining draw pile). Players dealt after the pile
    runs out get short hands.
    """
    remaining = list(draw)
    hands: dict[str, list[Card]] = {}
    for player in players:
        hand = []
        while len(hand) < hand_size and remaining:
            hand.append(remaining.pop(0))
        hands[player.id] = hand
    return hands, remaining


def ensure_hand_size(
    state: GameState,
    player_id: str,
    target_size: int = HAND_SIZE,
) -> GameState:
    """
    Top up a player's hand to target_size.

    Never fails: if both piles are empty the hand stays short.
    """
    hand = list(state.hand_of(player_id))
    draw = list(state.deck.draw)
    discard = list(state.deck.discard)
    reshuffles = state.reshuffle_count

    while len(hand) < target_size:
        if not draw:
            if not discard:
                break
            rng = random.Random(f"{state.random_seed}:{reshuffles}")
            draw = shuffle_cards(discard, rng)
            discard = []
            reshuffles += 1
        hand.append(draw.pop(0))

    if len(hand) == len(state.hand_of(player_id)):
        return state

    new_state = state.with_hand(player_id, hand)
    return new_state._copy_with(
        deck=state.deck._copy_with(draw=draw, discard=discard),
        reshuffle_count=reshuffles,
    )
