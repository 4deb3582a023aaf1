from __future__ import annotations

from dataclasses import dataclass

from .types import CardType


@dataclass(frozen=True)
class TargetChoice:
    target_player_id: str


@dataclass(frozen=True)
class NameChoice:
    named_character: CardType


Choice = TargetChoice | NameChoice


@dataclass(frozen=True)
class DrawAction:
    player_id: str


@dataclass(frozen=True)
class PlayCardAction:
    player_id: str
    card_id: str
    choice: Choice | None = None

    @staticmethod
    def targeting(player_id: str, card_id: str, target_player_id: str) -> "PlayCardAction":
        return PlayCardAction(player_id=player_id, card_id=card_id, choice=TargetChoice(target_player_id))

    @staticmethod
    def naming(player_id: str, card_id: str, named_character: CardType) -> "PlayCardAction":
        return PlayCardAction(player_id=player_id, card_id=card_id, choice=NameChoice(named_character))


@dataclass(frozen=True)
class EndTurnAction:
    player_id: str


@dataclass(frozen=True)
class StartRoundAction:
    pass


Action = DrawAction | PlayCardAction | EndTurnAction | StartRoundAction
