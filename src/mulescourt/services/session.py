from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Mapping, Protocol

from mulescourt.engine.actions import Action, DrawAction, EndTurnAction, PlayCardAction, StartRoundAction
from mulescourt.engine.ai import DecisionStrategy
from mulescourt.engine.game import StepResult, new_game, replay, step
from mulescourt.engine.serialize import action_from_dict, action_to_dict, snapshot
from mulescourt.engine.state import Event, GameState
from mulescourt.engine.types import CardCatalog
from mulescourt.services.content import validate_json


class SessionError(RuntimeError):
    pass


@dataclass(frozen=True)
class SessionRecord:
    session_id: str
    seq: int
    type: str  # game_start|draw_card|play_card|end_turn|round_end|round_start|game_end
    player_id: str | None
    action: dict[str, object] | None
    state: dict[str, object]
    events: tuple[Event, ...] = ()
    ts: str = field(default_factory=lambda: datetime.now(tz=timezone.utc).isoformat())

    @staticmethod
    def from_dict(d: Mapping[str, object]) -> "SessionRecord":
        sid = d.get("session_id")
        seq = d.get("seq")
        rtype = d.get("type")
        state = d.get("state")
        if not isinstance(sid, str) or not isinstance(seq, int) or not isinstance(rtype, str):
            raise SessionError("Invalid session record")
        if not isinstance(state, dict):
            raise SessionError("Session record missing state")
        action = d.get("action")
        player_id = d.get("player_id")
        events = d.get("events", [])
        return SessionRecord(
            session_id=sid,
            seq=seq,
            type=rtype,
            player_id=player_id if isinstance(player_id, str) else None,
            action=action if isinstance(action, dict) else None,
            state=state,
            events=tuple(e for e in events if isinstance(e, dict)) if isinstance(events, list) else (),
            ts=str(d.get("ts", "")),
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "ts": self.ts,
            "session_id": self.session_id,
            "seq": self.seq,
            "type": self.type,
            "player_id": self.player_id,
            "action": self.action,
            "state": self.state,
            "events": list(self.events),
        }


class SessionSink(Protocol):
    def append(self, record: SessionRecord) -> None: ...


class MemorySessionSink:
    def __init__(self) -> None:
        self.records: list[SessionRecord] = []

    def append(self, record: SessionRecord) -> None:
        self.records.append(record)


@dataclass
class JsonlSessionSink:
    """Append-only JSON-lines session log, one record per line."""

    path: Path

    def append(self, record: SessionRecord) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(record.to_dict(), ensure_ascii=False) + "\n")


def load_session(path: Path, schema: object | None = None) -> list[SessionRecord]:
    """Read a JSONL session log; records are checked against `schema` when given."""
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except FileNotFoundError as e:
        raise SessionError(f"Missing session file: {path}") from e
    records: list[SessionRecord] = []
    for n, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        try:
            raw = json.loads(line)
        except json.JSONDecodeError as e:
            raise SessionError(f"Invalid JSON on line {n} of {path}: {e}") from e
        if not isinstance(raw, dict):
            raise SessionError(f"Line {n} of {path} is not an object")
        if schema is not None:
            validate_json(raw, schema, context=f"{path}:{n}")
        records.append(SessionRecord.from_dict(raw))
    return records


def _state_for_log(state: GameState) -> dict[str, object]:
    data = snapshot(state)
    # The logs are rebuilt by replay; each record carries only its own events.
    del data["action_log"]
    del data["event_log"]
    return data


def _record_type(action: Action, state: GameState) -> str:
    if isinstance(action, DrawAction):
        return "draw_card"
    if isinstance(action, PlayCardAction):
        return "play_card"
    if isinstance(action, EndTurnAction):
        return "round_end" if state.phase == "round-end" else "end_turn"
    if isinstance(action, StartRoundAction):
        return "game_end" if state.phase == "game-end" else "round_start"
    raise SessionError(f"Unknown action: {action!r}")


class GameRunner:
    """Drives one game and records every successful action to a session sink."""

    def __init__(self, state: GameState, sink: SessionSink | None = None, session_id: str | None = None) -> None:
        self.state = state
        self.sink = sink
        self.session_id = session_id or f"session-{uuid.uuid4().hex[:12]}"
        self._seq = 0
        self._record("game_start", None, None, list(state.event_log))

    @staticmethod
    def start(
        cards: CardCatalog,
        player_count: int,
        seed: int | None = None,
        sink: SessionSink | None = None,
    ) -> "GameRunner":
        return GameRunner(new_game(cards, player_count=player_count, seed=seed), sink=sink)

    def _record(self, rtype: str, player_id: str | None, action: Action | None, events: list[Event]) -> None:
        if self.sink is None:
            return
        rec = SessionRecord(
            session_id=self.session_id,
            seq=self._seq,
            type=rtype,
            player_id=player_id,
            action=action_to_dict(action) if action is not None else None,
            state=_state_for_log(self.state),
            events=tuple(events),
        )
        self._seq += 1
        self.sink.append(rec)

    def apply(self, action: Action) -> StepResult:
        result = step(self.state, action)
        if result.ok:
            player_id = getattr(action, "player_id", None)
            self._record(_record_type(action, self.state), player_id, action, result.events)
        return result

    def play_out(self, strategies: Mapping[str, DecisionStrategy], max_steps: int = 5000) -> int:
        """Let the strategies play until the game ends; returns the number of applied actions."""
        applied = 0
        while self.state.phase != "game-end" and applied < max_steps:
            if self.state.phase == "round-end":
                action: Action | None = StartRoundAction()
            else:
                seat = self.state.current_player.id
                action = strategies[seat].decide(self.state, seat)
            if action is None:
                raise SessionError(f"No action proposed in phase {self.state.phase}")
            result = self.apply(action)
            if not result.ok:
                raise SessionError(f"Strategy proposed an illegal action: {result.error}")
            applied += 1
        return applied


def replay_session(cards: CardCatalog, records: Iterable[SessionRecord]) -> GameState:
    """Rebuild the final game state of a recorded session."""
    records = sorted(records, key=lambda r: r.seq)
    if not records or records[0].type != "game_start":
        raise SessionError("Session does not begin with game_start")
    start = records[0].state
    seed = start.get("seed")
    players = start.get("players")
    if not isinstance(seed, int) or not isinstance(players, list):
        raise SessionError("game_start record lacks seed or players")
    actions = [action_from_dict(r.action) for r in records[1:] if r.action is not None]
    return replay(cards, player_count=len(players), seed=seed, actions=actions)


def select_session(records: Iterable[SessionRecord], session_id: str | None = None) -> list[SessionRecord]:
    """Records of one session from a log that may hold several; the latest by default."""
    records = list(records)
    if session_id is None:
        if not records:
            raise SessionError("Session log is empty")
        session_id = records[-1].session_id
    chosen = [r for r in records if r.session_id == session_id]
    if not chosen:
        raise SessionError(f"No records for session {session_id}")
    return chosen


@dataclass(frozen=True)
class SessionSummary:
    session_id: str
    player_count: int
    started: str
    ended: str | None = None
    winner: str | None = None
    rounds: int = 0
    records: int = 0

    @property
    def finished(self) -> bool:
        return self.ended is not None


def _summarize(session_id: str, records: list[SessionRecord]) -> SessionSummary:
    start = next((r for r in records if r.type == "game_start"), None)
    if start is None:
        raise SessionError(f"Session {session_id} has no game_start record")
    players = start.state.get("players")
    ended: str | None = None
    winner: str | None = None
    rounds = 0
    for r in records:
        rounds += sum(1 for e in r.events if e.get("type") == "ROUND_ENDED")
        if r.type == "game_end":
            ended = r.ts
            for e in r.events:
                if e.get("type") == "GAME_ENDED" and isinstance(e.get("winner"), str):
                    winner = str(e["winner"])
    return SessionSummary(
        session_id=session_id,
        player_count=len(players) if isinstance(players, list) else 0,
        started=start.ts,
        ended=ended,
        winner=winner,
        rounds=rounds,
        records=len(records),
    )


def list_sessions(records: Iterable[SessionRecord]) -> list[SessionSummary]:
    """One summary per session in a log, newest first."""
    grouped: dict[str, list[SessionRecord]] = {}
    for r in records:
        grouped.setdefault(r.session_id, []).append(r)
    summaries = [_summarize(sid, recs) for sid, recs in grouped.items()]
    # Ties on the start stamp keep the later entry in the log first.
    order = {sid: i for i, sid in enumerate(grouped)}
    return sorted(summaries, key=lambda s: (s.started, order[s.session_id]), reverse=True)
