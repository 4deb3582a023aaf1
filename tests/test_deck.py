from __future__ import annotations

import random
from collections import Counter

import pytest

from mulescourt.engine.deck import cards_to_set_aside, create_deck, shuffle_deck


def test_create_deck_has_sixteen_unique_cards(cards) -> None:
    deck = create_deck(cards)
    assert len(deck) == 16
    assert len({c.id for c in deck}) == 16
    counts = Counter(c.type for c in deck)
    assert counts["informant"] == 5
    assert counts["shielded-mind"] == 2
    assert counts["mule"] == 1
    assert all(c.value == cards.get(c.type).value for c in deck)


def test_shuffle_returns_new_permutation(cards) -> None:
    deck = create_deck(cards)
    before = list(deck)
    shuffled = shuffle_deck(deck, random.Random(3))
    assert deck == before
    assert shuffled is not deck
    assert sorted(c.id for c in shuffled) == sorted(c.id for c in deck)


def test_shuffle_is_seeded(cards) -> None:
    deck = create_deck(cards)
    a = shuffle_deck(deck, random.Random(99))
    b = shuffle_deck(deck, random.Random(99))
    assert a == b


def test_set_aside_counts() -> None:
    assert cards_to_set_aside(2) == (1, 2)
    assert cards_to_set_aside(3) == (1, 0)
    assert cards_to_set_aside(4) == (0, 0)
    with pytest.raises(ValueError):
        cards_to_set_aside(5)
