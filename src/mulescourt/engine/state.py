from __future__ import annotations

import random
from dataclasses import dataclass, field

from .actions import Action
from .types import Card, CardCatalog, Phase

Event = dict[str, object]

TOKENS_TO_WIN: dict[int, int] = {2: 7, 3: 5, 4: 4}


@dataclass(frozen=True)
class GameConfig:
    player_count: int = 2

    def __post_init__(self) -> None:
        if self.player_count not in TOKENS_TO_WIN:
            raise ValueError(f"Invalid player count: {self.player_count}. Must be between 2 and 4.")

    @property
    def tokens_to_win(self) -> int:
        return TOKENS_TO_WIN[self.player_count]


@dataclass
class PlayerState:
    id: str
    name: str
    hand: list[Card] = field(default_factory=list)
    discard_pile: list[Card] = field(default_factory=list)
    devotion_tokens: int = 0
    is_protected: bool = False
    is_eliminated: bool = False

    def find(self, card_id: str) -> Card | None:
        for card in self.hand:
            if card.id == card_id:
                return card
        return None

    def hand_value(self) -> int:
        return max((c.value for c in self.hand), default=0)

    def discard_total(self) -> int:
        return sum(c.value for c in self.discard_pile)


@dataclass
class GameState:
    catalog: CardCatalog
    seed: int
    rng: random.Random
    players: list[PlayerState]
    tokens_to_win: int
    deck: list[Card] = field(default_factory=list)
    current_player_index: int = 0
    phase: Phase = "setup"
    removed_card: Card | None = None
    face_up_cards: list[Card] = field(default_factory=list)
    round_number: int = 0
    round_winner: str | None = None
    action_log: list[Action] = field(default_factory=list)
    event_log: list[Event] = field(default_factory=list)

    @property
    def current_player(self) -> PlayerState:
        return self.players[self.current_player_index]

    def player(self, player_id: str) -> PlayerState | None:
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    def index_of(self, player_id: str) -> int:
        for i, p in enumerate(self.players):
            if p.id == player_id:
                return i
        return -1

    def active_players(self) -> list[PlayerState]:
        return [p for p in self.players if not p.is_eliminated]

    def game_winner(self) -> PlayerState | None:
        for p in self.players:
            if p.devotion_tokens >= self.tokens_to_win:
                return p
        return None


def card_count(state: GameState) -> int:
    """Number of cards accounted for in the current round."""
    total = len(state.deck) + len(state.face_up_cards)
    if state.removed_card is not None:
        total += 1
    for p in state.players:
        total += len(p.hand) + len(p.discard_pile)
    return total
