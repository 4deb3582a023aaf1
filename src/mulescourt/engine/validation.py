"""Legality checks over a game state.

Every function here is a pure read: nothing in this module mutates
``GameState`` or ``PlayerState``. Decision strategies discover the legal
action space only through these predicates (or a ``RulesOracle`` wrapping
them).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from .state import GameState, PlayerState
from .types import DANGEROUS_TYPES, DARELL_TYPES, Card


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    reason: str | None = None

    @staticmethod
    def ok() -> "ValidationResult":
        return ValidationResult(valid=True)

    @staticmethod
    def fail(reason: str) -> "ValidationResult":
        return ValidationResult(valid=False, reason=reason)


def _must_discard_first_speaker(player: PlayerState) -> bool:
    has_first_speaker = any(c.type == "first-speaker" for c in player.hand)
    if not has_first_speaker:
        return False
    return any(c.type in DANGEROUS_TYPES for c in player.hand)


def validate_card_play(state: GameState, player_id: str, card_id: str) -> ValidationResult:
    if state.phase != "play":
        return ValidationResult.fail("Not in play phase")

    player_index = state.index_of(player_id)
    if player_index != state.current_player_index:
        return ValidationResult.fail("Not your turn")

    player = state.players[player_index]
    if player.is_eliminated:
        return ValidationResult.fail("Player is eliminated")
    if not player.hand:
        return ValidationResult.fail("No cards in hand")

    card = player.find(card_id)
    if card is None:
        return ValidationResult.fail("Card not in hand")

    if _must_discard_first_speaker(player) and card.type != "first-speaker":
        return ValidationResult.fail(
            "You must discard First Speaker when holding Mayor Indbur or either Darell"
        )
    return ValidationResult.ok()


def get_forced_play(player: PlayerState) -> Card | None:
    if not _must_discard_first_speaker(player):
        return None
    for c in player.hand:
        if c.type == "first-speaker":
            return c
    return None


def get_valid_plays(player: PlayerState) -> list[Card]:
    if len(player.hand) < 2:
        return list(player.hand)
    forced = get_forced_play(player)
    if forced is not None:
        return [forced]
    return list(player.hand)


def _target_problem(acting_player_id: str, target: PlayerState, card_type: str) -> str | None:
    if target.is_eliminated:
        return "Target player is eliminated"
    is_self = target.id == acting_player_id
    darell = card_type in DARELL_TYPES
    if is_self and not darell:
        return "Cannot target yourself"
    if target.is_protected and not darell and not is_self:
        return "Target player is protected"
    return None


def validate_target(
    state: GameState, acting_player_id: str, target_player_id: str, card_type: str
) -> ValidationResult:
    target = state.player(target_player_id)
    if target is None:
        return ValidationResult.fail("Target player not found")
    problem = _target_problem(acting_player_id, target, card_type)
    if problem is not None:
        return ValidationResult.fail(problem)
    return ValidationResult.ok()


def valid_targets(state: GameState, acting_player_id: str, card_type: str) -> list[PlayerState]:
    """Returns every player `card_type` may legally target right now, in seat order."""
    return [p for p in state.players if _target_problem(acting_player_id, p, card_type) is None]


def has_valid_targets(state: GameState, player_id: str, card_type: str) -> bool:
    return bool(valid_targets(state, player_id, card_type))


class RulesOracle(Protocol):
    def validate_card_play(self, state: GameState, player_id: str, card_id: str) -> ValidationResult: ...

    def validate_target(
        self, state: GameState, acting_player_id: str, target_player_id: str, card_type: str
    ) -> ValidationResult: ...

    def has_valid_targets(self, state: GameState, player_id: str, card_type: str) -> bool: ...

    def valid_targets(self, state: GameState, acting_player_id: str, card_type: str) -> list[PlayerState]: ...

    def get_valid_plays(self, player: PlayerState) -> list[Card]: ...

    def get_forced_play(self, player: PlayerState) -> Card | None: ...


class LocalRulesOracle:
    """In-process oracle backed by the functions in this module."""

    def validate_card_play(self, state: GameState, player_id: str, card_id: str) -> ValidationResult:
        return validate_card_play(state, player_id, card_id)

    def validate_target(
        self, state: GameState, acting_player_id: str, target_player_id: str, card_type: str
    ) -> ValidationResult:
        return validate_target(state, acting_player_id, target_player_id, card_type)

    def has_valid_targets(self, state: GameState, player_id: str, card_type: str) -> bool:
        return has_valid_targets(state, player_id, card_type)

    def valid_targets(self, state: GameState, acting_player_id: str, card_type: str) -> list[PlayerState]:
        return valid_targets(state, acting_player_id, card_type)

    def get_valid_plays(self, player: PlayerState) -> list[Card]:
        return get_valid_plays(player)

    def get_forced_play(self, player: PlayerState) -> Card | None:
        return get_forced_play(player)
