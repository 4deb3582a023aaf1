from __future__ import annotations

from typing import Sequence

import pytest

from mulescourt.engine.game import new_game
from mulescourt.engine.state import GameState
from mulescourt.engine.types import Card, CardCatalog, Phase
from mulescourt.paths import get_paths
from mulescourt.services.content import ContentService


def load_cards() -> CardCatalog:
    paths = get_paths()
    content = ContentService(paths.data_dir, paths.schema_dir)
    return content.load_catalog()


class Table:
    """Builds games with hand-picked hands and decks for rule scenarios."""

    def __init__(self, cards: CardCatalog) -> None:
        self.cards = cards
        self._n = 0

    def card(self, card_type: str) -> Card:
        self._n += 1
        d = self.cards.get(card_type)
        return Card(id=f"{card_type}-t{self._n}", type=d.type, value=d.value)

    def game(
        self,
        hands: Sequence[Sequence[str]],
        deck: Sequence[str] = ("informant", "informant"),
        phase: Phase = "play",
        current: int = 0,
        seed: int = 7,
    ) -> GameState:
        state = new_game(self.cards, player_count=len(hands), seed=seed)
        for p, hand in zip(state.players, hands):
            p.hand = [self.card(t) for t in hand]
        # deck[-1] is drawn first
        state.deck = [self.card(t) for t in deck]
        state.phase = phase
        state.current_player_index = current
        state.event_log.clear()
        return state


@pytest.fixture(scope="session")
def cards() -> CardCatalog:
    return load_cards()


@pytest.fixture
def table(cards: CardCatalog) -> Table:
    return Table(cards)
