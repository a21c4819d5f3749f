"""
Card catalogue and deck building.

A CardDefinition describes a kind of card and how many copies go into
the deck; build_deck() turns a catalogue into shuffled Card instances.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Iterable
import random
import uuid

from .state import Card, CardType


@dataclass(frozen=True)
class CardDefinition:
    """A kind of card in the catalogue."""
    id: str
    card_type: CardType
    copies: int = 0
    category: str | None = None
    damage: int | None = None
    shield_value: int | None = None
    image_url: str | None = None
    enabled: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "card_type": self.card_type.value,
            "copies": self.copies,
            "category": self.category,
            "damage": self.damage,
            "shield_value": self.shield_value,
            "image_url": self.image_url,
            "enabled": self.enabled,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CardDefinition:
        """Build a definition, clamping copies and shield_value at zero."""
        shield_value = data.get("shield_value")
        return cls(
            id=str(data["id"]),
            card_type=CardType(str(data["card_type"]).strip()),
            copies=max(0, int(data.get("copies") or 0)),
            category=data.get("category"),
            damage=data.get("damage"),
            shield_value=None if shield_value is None else max(0, int(shield_value)),
            image_url=data.get("image_url"),
            enabled=data.get("enabled") is not False,
        )


DEFAULT_CARD_DEFINITIONS: list[CardDefinition] = [
    CardDefinition(id="kick_3", card_type=CardType.ATTACK, category="Kicks", damage=3, copies=6),
    CardDefinition(id="kick_5", card_type=CardType.ATTACK, category="Kicks", damage=5, copies=4),
    CardDefinition(id="strike_4", card_type=CardType.ATTACK, category="Strikes", damage=4, copies=6),
    CardDefinition(id="strike_7", card_type=CardType.ATTACK, category="Strikes", damage=7, copies=3),
    CardDefinition(id="form_6", card_type=CardType.ATTACK, category="Forms", damage=6, copies=3),
    CardDefinition(id="shield_2", card_type=CardType.SHIELD, shield_value=2, copies=5),
    CardDefinition(id="shield_4", card_type=CardType.SHIELD, shield_value=4, copies=3),
    CardDefinition(id="negate", card_type=CardType.NEGATE, copies=3),
    CardDefinition(id="joker", card_type=CardType.JOKER, damage=8, copies=2),
]


def card_label(definition: CardDefinition) -> str:
    """Display label for a card built from this definition."""
    if definition.card_type == CardType.ATTACK:
        damage = definition.damage if definition.damage is not None else ""
        return f"{definition.category or 'Attack'} {damage}".strip()
    if definition.card_type == CardType.SHIELD:
        value = definition.shield_value if definition.shield_value is not None else 1
        return f"Shield -{value}"
    if definition.card_type == CardType.NEGATE:
        return "Negate"
    return "Joker"


def shuffle_cards(cards: Iterable[Card], rng: random.Random) -> list[Card]:
    """Return a shuffled copy; the input is left untouched."""
    shuffled = list(cards)
    rng.shuffle(shuffled)
    return shuffled


def build_deck(
    definitions: Iterable[CardDefinition],
    rng: random.Random | None = None,
) -> list[Card]:
    """
    Build a shuffled draw pile from enabled definitions.

    Card ids come from the rng so a seeded build is reproducible.
    """
    rng = rng or random.Random()
    cards = []
    for definition in definitions:
        if not definition.enabled:
            continue
        label = card_label(definition)
        for _ in range(max(0, definition.copies)):
            cards.append(Card(
                id=str(uuid.UUID(int=rng.getrandbits(128), version=4)),
                type=definition.card_type,
                label=label,
                def_id=definition.id,
                damage=definition.damage,
                shield_value=definition.shield_value,
                category=definition.category,
                image_url=definition.image_url,
            ))
    return shuffle_cards(cards, rng)
