"""Deterministic, headless rules engine for The Mule's Court.

IMPORTANT: This package must never import a rendering library.
"""

from .actions import DrawAction, EndTurnAction, NameChoice, PlayCardAction, StartRoundAction, TargetChoice
from .game import StepResult, draw_card, end_turn, new_game, play_card, replay, start_new_round, step
from .state import GameConfig, GameState, PlayerState, card_count
from .types import CARD_TYPES, Card, CardCatalog, CardDefinition, CardType, UnknownCardTypeError

__all__ = [
    "CARD_TYPES",
    "Card",
    "CardCatalog",
    "CardDefinition",
    "CardType",
    "DrawAction",
    "EndTurnAction",
    "GameConfig",
    "GameState",
    "NameChoice",
    "PlayCardAction",
    "PlayerState",
    "StartRoundAction",
    "StepResult",
    "TargetChoice",
    "UnknownCardTypeError",
    "card_count",
    "draw_card",
    "end_turn",
    "new_game",
    "play_card",
    "replay",
    "start_new_round",
    "step",
]
