from __future__ import annotations

import random
from typing import Mapping

from .actions import (
    Action,
    Choice,
    DrawAction,
    EndTurnAction,
    NameChoice,
    PlayCardAction,
    StartRoundAction,
    TargetChoice,
)
from .state import GameState, PlayerState
from .types import Card, CardCatalog, is_card_type


class SnapshotError(ValueError):
    pass


def card_to_dict(c: Card) -> dict[str, object]:
    return {"id": c.id, "type": c.type, "value": c.value}


def card_from_dict(d: Mapping[str, object]) -> Card:
    cid = d.get("id")
    ctype = d.get("type")
    value = d.get("value")
    if not isinstance(cid, str) or not is_card_type(ctype) or not isinstance(value, int):
        raise SnapshotError(f"Invalid card: {dict(d)}")
    return Card(id=cid, type=ctype, value=value)  # type: ignore[arg-type]


def _cards(raw: object) -> list[Card]:
    if not isinstance(raw, list):
        raise SnapshotError("Expected a list of cards")
    return [card_from_dict(c) for c in raw]


def _choice_to_dict(choice: Choice | None) -> dict[str, object] | None:
    if choice is None:
        return None
    if isinstance(choice, TargetChoice):
        return {"kind": "target", "target_player_id": choice.target_player_id}
    return {"kind": "name", "named_character": choice.named_character}


def _choice_from_dict(d: object) -> Choice | None:
    if d is None:
        return None
    if not isinstance(d, Mapping):
        raise SnapshotError("Invalid choice")
    kind = d.get("kind")
    if kind == "target" and isinstance(d.get("target_player_id"), str):
        return TargetChoice(target_player_id=d["target_player_id"])
    if kind == "name" and is_card_type(d.get("named_character")):
        return NameChoice(named_character=d["named_character"])
    raise SnapshotError(f"Invalid choice: {dict(d)}")


def action_to_dict(a: Action) -> dict[str, object]:
    if isinstance(a, DrawAction):
        return {"type": "draw", "player_id": a.player_id}
    if isinstance(a, PlayCardAction):
        return {
            "type": "play",
            "player_id": a.player_id,
            "card_id": a.card_id,
            "choice": _choice_to_dict(a.choice),
        }
    if isinstance(a, EndTurnAction):
        return {"type": "end_turn", "player_id": a.player_id}
    if isinstance(a, StartRoundAction):
        return {"type": "start_round"}
    # should be unreachable
    return {"type": "unknown"}


def action_from_dict(d: Mapping[str, object]) -> Action:
    t = d.get("type")
    if t == "start_round":
        return StartRoundAction()
    pid = d.get("player_id")
    if not isinstance(pid, str):
        raise SnapshotError(f"Action missing player_id: {dict(d)}")
    if t == "draw":
        return DrawAction(player_id=pid)
    if t == "end_turn":
        return EndTurnAction(player_id=pid)
    if t == "play":
        card_id = d.get("card_id")
        if not isinstance(card_id, str):
            raise SnapshotError("Play action missing card_id")
        return PlayCardAction(player_id=pid, card_id=card_id, choice=_choice_from_dict(d.get("choice")))
    raise SnapshotError(f"Unknown action type: {t}")


def _player_to_dict(p: PlayerState) -> dict[str, object]:
    return {
        "id": p.id,
        "name": p.name,
        "hand": [card_to_dict(c) for c in p.hand],
        "discard_pile": [card_to_dict(c) for c in p.discard_pile],
        "devotion_tokens": p.devotion_tokens,
        "is_protected": p.is_protected,
        "is_eliminated": p.is_eliminated,
    }


def _player_from_dict(d: Mapping[str, object]) -> PlayerState:
    pid = d.get("id")
    name = d.get("name")
    tokens = d.get("devotion_tokens")
    if not isinstance(pid, str) or not isinstance(name, str) or not isinstance(tokens, int):
        raise SnapshotError("Invalid player")
    return PlayerState(
        id=pid,
        name=name,
        hand=_cards(d.get("hand")),
        discard_pile=_cards(d.get("discard_pile")),
        devotion_tokens=tokens,
        is_protected=bool(d.get("is_protected")),
        is_eliminated=bool(d.get("is_eliminated")),
    )


def _rng_state_to_list(rng: random.Random) -> list[object]:
    version, internal, gauss = rng.getstate()
    return [version, list(internal), gauss]


def _rng_from_list(raw: object, seed: int) -> random.Random:
    rng = random.Random(seed)
    if raw is None:
        return rng
    if not isinstance(raw, list) or len(raw) != 3 or not isinstance(raw[1], list):
        raise SnapshotError("Invalid rng_state")
    rng.setstate((raw[0], tuple(raw[1]), raw[2]))
    return rng


def snapshot(state: GameState) -> dict[str, object]:
    """Return a JSON-serializable canonical snapshot of the current game state."""
    return {
        "seed": state.seed,
        "rng_state": _rng_state_to_list(state.rng),
        "phase": state.phase,
        "current_player_index": state.current_player_index,
        "tokens_to_win": state.tokens_to_win,
        "round_number": state.round_number,
        "round_winner": state.round_winner,
        "removed_card": card_to_dict(state.removed_card) if state.removed_card else None,
        "face_up_cards": [card_to_dict(c) for c in state.face_up_cards],
        "deck": [card_to_dict(c) for c in state.deck],
        "players": [_player_to_dict(p) for p in state.players],
        "action_log": [action_to_dict(a) for a in state.action_log],
        "event_log": [dict(e) for e in state.event_log],
    }


def public_view(state: GameState, viewer_id: str) -> dict[str, object]:
    """Snapshot with every hand but the viewer's, the deck and the removed card hidden."""
    data = snapshot(state)
    del data["rng_state"]
    data["deck"] = len(state.deck)
    data["removed_card"] = state.removed_card is not None
    players = []
    for p, raw in zip(state.players, data["players"]):  # type: ignore[call-overload]
        if p.id != viewer_id:
            raw = dict(raw)
            raw["hand"] = len(p.hand)
        players.append(raw)
    data["players"] = players
    return data


def restore(cards: CardCatalog, data: Mapping[str, object]) -> GameState:
    """Rebuild a GameState from `snapshot()` output."""
    seed = data.get("seed")
    phase = data.get("phase")
    if not isinstance(seed, int):
        raise SnapshotError("Snapshot missing seed")
    tokens_to_win = data.get("tokens_to_win")
    if not isinstance(tokens_to_win, int) or tokens_to_win < 1:
        raise SnapshotError("Snapshot missing tokens_to_win")
    if phase not in ("setup", "draw", "play", "round-end", "game-end"):
        raise SnapshotError(f"Invalid phase: {phase}")
    raw_players = data.get("players")
    if not isinstance(raw_players, list) or not raw_players:
        raise SnapshotError("Snapshot missing players")

    removed = data.get("removed_card")
    round_winner = data.get("round_winner")
    raw_actions = data.get("action_log", [])
    raw_events = data.get("event_log", [])
    if not isinstance(raw_actions, list) or not isinstance(raw_events, list):
        raise SnapshotError("Invalid logs")

    return GameState(
        catalog=cards,
        seed=seed,
        rng=_rng_from_list(data.get("rng_state"), seed),
        players=[_player_from_dict(p) for p in raw_players],
        tokens_to_win=tokens_to_win,
        deck=_cards(data.get("deck")),
        current_player_index=int(data.get("current_player_index", 0)),  # type: ignore[arg-type]
        phase=phase,  # type: ignore[arg-type]
        removed_card=card_from_dict(removed) if isinstance(removed, Mapping) else None,
        face_up_cards=_cards(data.get("face_up_cards", [])),
        round_number=int(data.get("round_number", 0)),  # type: ignore[arg-type]
        round_winner=round_winner if isinstance(round_winner, str) else None,
        action_log=[action_from_dict(a) for a in raw_actions],
        event_log=[dict(e) for e in raw_events],
    )
