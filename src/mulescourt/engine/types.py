from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal, get_args

CardType = Literal[
    "informant",
    "han-pritcher",
    "bail-channis",
    "ebling-mis",
    "magnifico",
    "shielded-mind",
    "bayta-darell",
    "toran-darell",
    "mayor-indbur",
    "first-speaker",
    "mule",
]

CARD_TYPES: tuple[CardType, ...] = get_args(CardType)

Phase = Literal["setup", "draw", "play", "round-end", "game-end"]

# Cards that force the First Speaker out of the hand.
DANGEROUS_TYPES: frozenset[CardType] = frozenset({"mayor-indbur", "bayta-darell", "toran-darell"})

# Cards whose target may be the acting player and which ignore protection.
DARELL_TYPES: frozenset[CardType] = frozenset({"bayta-darell", "toran-darell"})

TARGETED_TYPES: frozenset[CardType] = frozenset(
    {
        "han-pritcher",
        "bail-channis",
        "ebling-mis",
        "magnifico",
        "bayta-darell",
        "toran-darell",
        "mayor-indbur",
    }
)

DECK_SIZE = 16


class UnknownCardTypeError(KeyError):
    pass


def is_card_type(value: object) -> bool:
    return isinstance(value, str) and value in CARD_TYPES


@dataclass(frozen=True)
class Card:
    id: str
    type: CardType
    value: int


@dataclass(frozen=True)
class CardDefinition:
    type: CardType
    value: int
    count: int
    name: str
    ability: str
    quote: str = ""
    description: str = ""


@dataclass(frozen=True)
class CardCatalog:
    """Immutable card catalog used by the engine."""

    definitions: dict[CardType, CardDefinition]

    def get(self, card_type: str) -> CardDefinition:
        try:
            return self.definitions[card_type]  # type: ignore[index]
        except KeyError:
            raise UnknownCardTypeError(f"Unknown card type: {card_type}") from None

    def name_of(self, card_type: str) -> str:
        return self.get(card_type).name

    def all_types(self) -> Sequence[CardType]:
        return list(self.definitions.keys())

    def total_cards(self) -> int:
        return sum(d.count for d in self.definitions.values())
