from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Protocol

from .actions import Action, Choice, DrawAction, EndTurnAction, NameChoice, PlayCardAction, StartRoundAction, TargetChoice
from .game import StepResult, step
from .state import GameState
from .types import CARD_TYPES, TARGETED_TYPES, Card
from .validation import LocalRulesOracle, RulesOracle


class DecisionStrategy(Protocol):
    def decide(self, state: GameState, player_id: str) -> Action | None: ...


@dataclass
class SimpleStrategy:
    """Weak randomized heuristic.

    Draws whenever it can, discards its lowest card (or the forced First
    Speaker), picks targets at random and names a random character for the
    Informant. The strategy only reads state through `oracle`.
    """

    rng: random.Random = field(default_factory=random.Random)
    oracle: RulesOracle = field(default_factory=LocalRulesOracle)

    def decide(self, state: GameState, player_id: str) -> Action | None:
        if state.phase == "game-end":
            return None
        if state.phase == "round-end":
            return StartRoundAction()

        player = state.player(player_id)
        if player is None or state.current_player.id != player_id:
            return None
        if state.phase == "draw":
            if state.deck and not player.is_eliminated:
                return DrawAction(player_id=player_id)
            return None
        if state.phase != "play":
            return None

        if player.is_eliminated or len(player.hand) < 2:
            return EndTurnAction(player_id=player_id)

        card = self._pick_card(state, player_id)
        if card is None:
            return EndTurnAction(player_id=player_id)
        return PlayCardAction(player_id=player_id, card_id=card.id, choice=self._pick_choice(state, player_id, card))

    def _pick_card(self, state: GameState, player_id: str) -> Card | None:
        player = state.player(player_id)
        assert player is not None
        forced = self.oracle.get_forced_play(player)
        if forced is not None:
            return forced
        candidates = [
            c for c in self.oracle.get_valid_plays(player)
            if self.oracle.validate_card_play(state, player_id, c.id).valid
        ]
        if not candidates:
            return None
        # Never give up the Mule while something else can go.
        safe = [c for c in candidates if c.type != "mule"] or candidates
        lowest = min(c.value for c in safe)
        return self.rng.choice([c for c in safe if c.value == lowest])

    def _pick_choice(self, state: GameState, player_id: str, card: Card) -> Choice | None:
        if card.type == "informant":
            named = self.rng.choice([t for t in CARD_TYPES if t != "informant"])
            return NameChoice(named_character=named)
        if card.type not in TARGETED_TYPES:
            return None
        if not self.oracle.has_valid_targets(state, player_id, card.type):
            return None
        targets = self.oracle.valid_targets(state, player_id, card.type)
        others = [t for t in targets if t.id != player_id]
        target = self.rng.choice(others or targets)
        return TargetChoice(target_player_id=target.id)


def take_turn(state: GameState, player_id: str, strategy: DecisionStrategy | None = None) -> list[StepResult]:
    """Advance the game through `player_id`'s turn.

    Stops once the turn passes on, the round ends, or the strategy has
    nothing to propose.
    """
    strategy = strategy or SimpleStrategy(rng=random.Random(state.seed))
    results: list[StepResult] = []
    while state.phase in ("draw", "play") and state.current_player.id == player_id:
        action = strategy.decide(state, player_id)
        if action is None:
            break
        result = step(state, action)
        results.append(result)
        if not result.ok:
            break
    return results
