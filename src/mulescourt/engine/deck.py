from __future__ import annotations

import random
from typing import Sequence

from .types import Card, CardCatalog

# (face-down, face-up) cards set aside at the start of each round.
SET_ASIDE: dict[int, tuple[int, int]] = {2: (1, 2), 3: (1, 0), 4: (0, 0)}


def create_deck(catalog: CardCatalog) -> list[Card]:
    """Build one card instance per catalog count, in catalog order."""
    deck: list[Card] = []
    counter = 0
    for definition in catalog.definitions.values():
        for _ in range(definition.count):
            deck.append(Card(id=f"{definition.type}-{counter}", type=definition.type, value=definition.value))
            counter += 1
    return deck


def shuffle_deck(deck: Sequence[Card], rng: random.Random) -> list[Card]:
    shuffled = list(deck)
    rng.shuffle(shuffled)
    return shuffled


def cards_to_set_aside(player_count: int) -> tuple[int, int]:
    try:
        return SET_ASIDE[player_count]
    except KeyError:
        raise ValueError(f"Invalid player count: {player_count}. Must be between 2 and 4.") from None
