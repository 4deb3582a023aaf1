from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Iterable

from .actions import Action, Choice, DrawAction, EndTurnAction, PlayCardAction, StartRoundAction
from .deck import cards_to_set_aside, create_deck, shuffle_deck
from .effects import (
    apply_card_effect,
    auto_discard_first_speaker,
    check_first_speaker_auto_discard,
    describe_play,
)
from .state import Event, GameConfig, GameState, PlayerState
from .types import Card, CardCatalog
from .validation import validate_card_play


@dataclass
class StepResult:
    ok: bool
    events: list[Event] = field(default_factory=list)
    error: str | None = None
    message: str | None = None
    viewed_hand: tuple[Card, ...] | None = None
    eliminated_players: tuple[str, ...] = ()


def _rejected(reason: str) -> StepResult:
    return StepResult(ok=False, events=[], error=reason)


def _events_since(state: GameState, mark: int) -> list[Event]:
    return list(state.event_log[mark:])


def _emit(state: GameState, event_type: str, **data: object) -> None:
    state.event_log.append({"type": event_type, **data})


def initialize_round(state: GameState) -> None:
    """Reset hands, discards, protection and elimination, then deal a fresh round.

    Player identities and devotion tokens carry over untouched; the first
    seat always opens the round.
    """
    face_down, face_up = cards_to_set_aside(len(state.players))
    deck = shuffle_deck(create_deck(state.catalog), state.rng)

    state.removed_card = deck[0] if face_down else None
    state.face_up_cards = deck[face_down : face_down + face_up]
    state.deck = deck[face_down + face_up :]

    for p in state.players:
        p.hand = []
        p.discard_pile = []
        p.is_protected = False
        p.is_eliminated = False

    for p in state.players:
        p.hand.append(state.deck.pop())

    state.round_number += 1
    state.round_winner = None
    state.current_player_index = 0
    state.phase = "draw"
    _emit(
        state,
        "ROUND_STARTED",
        round=state.round_number,
        first_player=state.current_player.id,
        face_up=[c.id for c in state.face_up_cards],
    )


def draw_card(state: GameState) -> StepResult:
    if state.phase != "draw":
        return _rejected("Not in draw phase")
    if not state.deck:
        return _rejected("Deck is empty")
    player = state.current_player
    if player.is_eliminated:
        return _rejected("Player is eliminated")

    mark = len(state.event_log)
    card = state.deck.pop()
    player.hand.append(card)
    state.phase = "play"
    _emit(state, "CARD_DRAWN", player=player.id, card_id=card.id)

    if check_first_speaker_auto_discard(player):
        auto_discard_first_speaker(state, player.id)
    return StepResult(ok=True, events=_events_since(state, mark))


def play_card(state: GameState, card_id: str, choice: Choice | None = None) -> StepResult:
    player = state.current_player
    check = validate_card_play(state, player.id, card_id)
    if not check.valid:
        return _rejected(check.reason or "Invalid play")
    if len(player.hand) < 2:
        return _rejected("Already played this turn")

    mark = len(state.event_log)
    card = player.find(card_id)
    assert card is not None
    player.hand.remove(card)
    player.discard_pile.append(card)

    for p in state.players:
        if p.id != player.id:
            p.is_protected = False

    _emit(
        state,
        "CARD_PLAYED",
        player=player.id,
        card_id=card.id,
        card_type=card.type,
        description=describe_play(state, player, card, choice),
    )
    effect = apply_card_effect(state, card, player.id, choice)
    return StepResult(
        ok=True,
        events=_events_since(state, mark),
        message=effect.message,
        viewed_hand=effect.viewed_hand,
        eliminated_players=effect.eliminated_players,
    )


def _round_winner_by_cards(players: list[PlayerState]) -> PlayerState:
    # max() keeps the first of equal keys, so remaining ties go to seat order.
    return max(players, key=lambda p: (p.hand_value(), p.discard_total()))


def _finish_round(state: GameState, winner: PlayerState, reason: str) -> None:
    winner.devotion_tokens += 1
    state.round_winner = winner.id
    state.phase = "round-end"
    _emit(
        state,
        "ROUND_ENDED",
        round=state.round_number,
        winner=winner.id,
        reason=reason,
        tokens=winner.devotion_tokens,
    )


def end_turn(state: GameState) -> StepResult:
    if state.phase != "play":
        return _rejected("Not in play phase")

    mark = len(state.event_log)
    active = state.active_players()
    if len(active) == 1:
        _finish_round(state, active[0], reason="last_standing")
        return StepResult(ok=True, events=_events_since(state, mark))
    if not state.deck:
        _finish_round(state, _round_winner_by_cards(active), reason="deck_empty")
        return StepResult(ok=True, events=_events_since(state, mark))

    _emit(state, "TURN_ENDED", player=state.current_player.id)
    count = len(state.players)
    nxt = (state.current_player_index + 1) % count
    while state.players[nxt].is_eliminated:
        nxt = (nxt + 1) % count
    state.current_player_index = nxt
    state.phase = "draw"
    _emit(state, "TURN_STARTED", player=state.current_player.id)
    return StepResult(ok=True, events=_events_since(state, mark))


def start_new_round(state: GameState) -> StepResult:
    if state.phase != "round-end":
        return _rejected("Round is still in progress")

    mark = len(state.event_log)
    champion = state.game_winner()
    if champion is not None:
        state.phase = "game-end"
        _emit(state, "GAME_ENDED", winner=champion.id, tokens=champion.devotion_tokens)
        return StepResult(ok=True, events=_events_since(state, mark))

    initialize_round(state)
    return StepResult(ok=True, events=_events_since(state, mark))


def step(state: GameState, action: Action) -> StepResult:
    """Apply a single action to the game state.

    This mutates `state` in-place but remains deterministic for a given
    (seed, player count, action sequence). Rejected actions leave the
    state exactly as it was and are not logged.
    """
    if state.phase == "game-end":
        return _rejected("Game already ended.")

    if isinstance(action, StartRoundAction):
        result = start_new_round(state)
    elif action.player_id != state.current_player.id:
        return _rejected("Not your turn.")
    elif isinstance(action, DrawAction):
        result = draw_card(state)
    elif isinstance(action, PlayCardAction):
        result = play_card(state, action.card_id, action.choice)
    elif isinstance(action, EndTurnAction):
        result = end_turn(state)
    else:
        return _rejected("Unknown action.")

    if result.ok:
        state.action_log.append(action)
    return result


def new_game(
    cards: CardCatalog,
    player_count: int = 2,
    seed: int | None = None,
    config: GameConfig | None = None,
) -> GameState:
    cfg = config or GameConfig(player_count=player_count)
    if seed is None:
        seed = random.randrange(2**32)

    players = [PlayerState(id=f"player-{i}", name=f"Player {i + 1}") for i in range(cfg.player_count)]
    state = GameState(
        catalog=cards,
        seed=seed,
        rng=random.Random(seed),
        players=players,
        tokens_to_win=cfg.tokens_to_win,
    )
    initialize_round(state)
    return state


def replay(
    cards: CardCatalog,
    player_count: int,
    seed: int,
    actions: Iterable[Action],
) -> GameState:
    state = new_game(cards, player_count=player_count, seed=seed)
    for a in actions:
        step(state, a)
        if state.phase == "game-end":
            break
    return state
