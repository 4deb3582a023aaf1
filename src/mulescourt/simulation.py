"""Batch self-play between simple strategies, for balance and robustness checks."""

from __future__ import annotations

import random
from collections import Counter
from dataclasses import dataclass, field

from mulescourt.engine.actions import Action, DrawAction, PlayCardAction, StartRoundAction
from mulescourt.engine.ai import DecisionStrategy, SimpleStrategy
from mulescourt.engine.game import new_game, step
from mulescourt.engine.serialize import snapshot
from mulescourt.engine.types import CardCatalog


@dataclass
class PlayerStats:
    turns_played: int = 0
    cards_played: int = 0
    players_eliminated: int = 0
    rounds_won: int = 0
    final_tokens: int = 0


@dataclass(frozen=True)
class SimulationError:
    step: int
    player_id: str
    error: str
    state: dict[str, object]


@dataclass
class SimulationResult:
    seed: int
    winner: str | None
    rounds: int
    total_turns: int
    errors: list[SimulationError] = field(default_factory=list)
    player_stats: dict[str, PlayerStats] = field(default_factory=dict)


@dataclass(frozen=True)
class SimulationSummary:
    total_games: int
    total_errors: int
    average_rounds: float
    average_turns: float
    error_types: dict[str, int]
    winner_counts: dict[str, int]


def simulate_game(
    cards: CardCatalog,
    player_count: int,
    seed: int,
    max_steps: int = 5000,
    strategies: dict[str, DecisionStrategy] | None = None,
) -> SimulationResult:
    state = new_game(cards, player_count=player_count, seed=seed)
    if strategies is None:
        # One independent stream per seat, all derived from the game seed.
        strategies = {
            p.id: SimpleStrategy(rng=random.Random(f"{seed}:{p.id}")) for p in state.players
        }
    stats = {p.id: PlayerStats() for p in state.players}
    result = SimulationResult(seed=seed, winner=None, rounds=1, total_turns=0, player_stats=stats)

    steps = 0
    while state.phase != "game-end":
        steps += 1
        if steps > max_steps:
            result.errors.append(
                SimulationError(
                    step=steps,
                    player_id="system",
                    error=f"Game exceeded {max_steps} steps",
                    state=snapshot(state),
                )
            )
            break

        seat = state.current_player.id
        action: Action | None
        if state.phase == "round-end":
            action = StartRoundAction()
        else:
            action = strategies[seat].decide(state, seat)
        if action is None:
            result.errors.append(
                SimulationError(step=steps, player_id=seat, error="No action proposed", state=snapshot(state))
            )
            break

        outcome = step(state, action)
        if not outcome.ok:
            result.errors.append(
                SimulationError(
                    step=steps,
                    player_id=seat,
                    error=f"Invalid action: {outcome.error}",
                    state=snapshot(state),
                )
            )
            break

        if isinstance(action, DrawAction):
            stats[seat].turns_played += 1
            result.total_turns += 1
        elif isinstance(action, PlayCardAction):
            stats[seat].cards_played += 1
            stats[seat].players_eliminated += sum(1 for pid in outcome.eliminated_players if pid != seat)
        for event in outcome.events:
            if event.get("type") == "ROUND_ENDED":
                stats[str(event["winner"])].rounds_won += 1
            elif event.get("type") == "ROUND_STARTED":
                result.rounds += 1

    for p in state.players:
        stats[p.id].final_tokens = p.devotion_tokens
    champion = state.game_winner()
    result.winner = champion.id if champion is not None else None
    return result


def run_simulations(cards: CardCatalog, count: int, player_count: int, seed: int = 0) -> list[SimulationResult]:
    return [simulate_game(cards, player_count, seed=seed + i) for i in range(count)]


def analyze_results(results: list[SimulationResult]) -> SimulationSummary:
    total = len(results)
    error_types: Counter[str] = Counter()
    winners: Counter[str] = Counter()
    for r in results:
        for e in r.errors:
            error_types[e.error] += 1
        if r.winner is not None:
            winners[r.winner] += 1
    return SimulationSummary(
        total_games=total,
        total_errors=sum(error_types.values()),
        average_rounds=sum(r.rounds for r in results) / total if total else 0.0,
        average_turns=sum(r.total_turns for r in results) / total if total else 0.0,
        error_types=dict(error_types),
        winner_counts=dict(sorted(winners.items())),
    )
