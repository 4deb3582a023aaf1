from __future__ import annotations

import json
import random

import pytest

from mulescourt.cli import main
from mulescourt.engine.actions import DrawAction, EndTurnAction, PlayCardAction, StartRoundAction
from mulescourt.engine.ai import SimpleStrategy
from mulescourt.engine.serialize import snapshot
from mulescourt.paths import get_paths
from mulescourt.services.content import ContentError, ContentService
from mulescourt.services.session import (
    GameRunner,
    JsonlSessionSink,
    MemorySessionSink,
    SessionError,
    list_sessions,
    load_session,
    replay_session,
    select_session,
)


def _strategies(state) -> dict[str, SimpleStrategy]:
    return {p.id: SimpleStrategy(rng=random.Random(f"{state.seed}:{p.id}")) for p in state.players}


def _session_schema() -> object:
    paths = get_paths()
    return ContentService(paths.data_dir, paths.schema_dir).load_schema("session.schema.json")


def test_runner_records_each_accepted_action(cards) -> None:
    sink = MemorySessionSink()
    runner = GameRunner.start(cards, 2, seed=4, sink=sink)
    assert [r.type for r in sink.records] == ["game_start"]
    assert sink.records[0].player_id is None

    assert runner.apply(DrawAction("player-0")).ok
    assert not runner.apply(DrawAction("player-0")).ok
    assert [r.type for r in sink.records] == ["game_start", "draw_card"]
    assert sink.records[-1].seq == 1
    assert sink.records[-1].action == {"type": "draw", "player_id": "player-0"}
    assert sink.records[-1].events[0]["type"] == "CARD_DRAWN"


def test_played_out_session_has_round_and_game_records(cards) -> None:
    sink = MemorySessionSink()
    runner = GameRunner.start(cards, 3, seed=21, sink=sink)
    applied = runner.play_out(_strategies(runner.state))

    types = [r.type for r in sink.records]
    assert applied == len(types) - 1
    assert types[0] == "game_start"
    assert types[-1] == "game_end"
    assert types.count("game_end") == 1
    assert types.count("round_end") == types.count("round_start") + 1
    assert [r.seq for r in sink.records] == list(range(len(types)))
    assert {r.session_id for r in sink.records} == {runner.session_id}
    for r in sink.records:
        if r.type in ("round_start", "game_end"):
            assert r.player_id is None
    assert "action_log" not in sink.records[-1].state


def test_replay_session_matches_live_game(cards) -> None:
    sink = MemorySessionSink()
    runner = GameRunner.start(cards, 2, seed=55, sink=sink)
    runner.play_out(_strategies(runner.state))

    state = replay_session(cards, sink.records)
    assert snapshot(state) == snapshot(runner.state)


def test_replay_session_requires_game_start(cards) -> None:
    sink = MemorySessionSink()
    runner = GameRunner.start(cards, 2, seed=55, sink=sink)
    runner.apply(DrawAction("player-0"))
    with pytest.raises(SessionError, match="game_start"):
        replay_session(cards, sink.records[1:])


def test_jsonl_log_validates_and_replays(cards, tmp_path) -> None:
    path = tmp_path / "logs" / "session.jsonl"
    runner = GameRunner.start(cards, 4, seed=8, sink=JsonlSessionSink(path))
    runner.play_out(_strategies(runner.state))

    lines = path.read_text(encoding="utf-8").splitlines()
    assert all(json.loads(line)["session_id"] == runner.session_id for line in lines)

    records = load_session(path, schema=_session_schema())
    assert len(records) == len(lines)
    assert snapshot(replay_session(cards, records)) == snapshot(runner.state)


def test_schema_rejects_unknown_record_type(cards, tmp_path) -> None:
    path = tmp_path / "session.jsonl"
    GameRunner.start(cards, 2, seed=1, sink=JsonlSessionSink(path))
    raw = json.loads(path.read_text(encoding="utf-8"))
    raw["type"] = "coup"
    path.write_text(json.dumps(raw) + "\n", encoding="utf-8")
    with pytest.raises(ContentError, match="Schema validation failed"):
        load_session(path, schema=_session_schema())


def test_load_session_errors(tmp_path) -> None:
    with pytest.raises(SessionError, match="Missing session file"):
        load_session(tmp_path / "absent.jsonl")
    bad = tmp_path / "bad.jsonl"
    bad.write_text("{not json\n", encoding="utf-8")
    with pytest.raises(SessionError, match="line 1"):
        load_session(bad)


def test_select_session_picks_latest_by_default(cards) -> None:
    sink = MemorySessionSink()
    first = GameRunner.start(cards, 2, seed=1, sink=sink)
    first.apply(DrawAction("player-0"))
    second = GameRunner.start(cards, 2, seed=2, sink=sink)

    assert [r.session_id for r in select_session(sink.records)] == [second.session_id]
    chosen = select_session(sink.records, first.session_id)
    assert [r.type for r in chosen] == ["game_start", "draw_card"]
    with pytest.raises(SessionError):
        select_session(sink.records, "session-missing")
    with pytest.raises(SessionError):
        select_session([])


def test_record_types_for_round_transitions(table) -> None:
    state = table.game([["mule", "informant"], ["magnifico"]])
    state.players[1].devotion_tokens = 6
    sink = MemorySessionSink()
    runner = GameRunner(state, sink=sink, session_id="session-fixed")

    runner.apply(PlayCardAction("player-0", state.players[0].hand[0].id))
    runner.apply(EndTurnAction("player-0"))
    runner.apply(StartRoundAction())
    assert [r.type for r in sink.records] == ["game_start", "play_card", "round_end", "game_end"]
    assert all(r.session_id == "session-fixed" for r in sink.records)


def test_play_out_rejects_silent_strategy(cards) -> None:
    class Silent:
        def decide(self, state, player_id):
            return None

    runner = GameRunner.start(cards, 2, seed=3)
    with pytest.raises(SessionError, match="No action proposed"):
        runner.play_out({"player-0": Silent(), "player-1": Silent()})


def test_cli_autoplay_then_replay(tmp_path, capsys) -> None:
    log = tmp_path / "sessions.jsonl"
    assert main(["autoplay", "--players", "3", "--seed", "12", "--log", str(log)]) == 0
    assert main(["autoplay", "--players", "2", "--seed", "13", "--log", str(log)]) == 0
    out = capsys.readouterr().out
    assert "Winner:" in out

    assert main(["replay", str(log)]) == 0
    assert "Replay matches" in capsys.readouterr().out

    first_id = json.loads(log.read_text(encoding="utf-8").splitlines()[0])["session_id"]
    assert main(["replay", str(log), "--session-id", first_id]) == 0


def test_cli_cards_and_simulate(capsys) -> None:
    assert main(["cards"]) == 0
    out = capsys.readouterr().out
    assert "The Mule x1" in out
    assert "Informant x5" in out

    assert main(["simulate", "--games", "3", "--players", "4", "--seed", "5"]) == 0
    assert "Total errors: 0" in capsys.readouterr().out


def test_list_sessions_newest_first_with_winners(cards, tmp_path) -> None:
    path = tmp_path / "sessions.jsonl"
    runners = []
    for count, seed in ((3, 40), (2, 41)):
        runner = GameRunner.start(cards, count, seed=seed, sink=JsonlSessionSink(path))
        runner.play_out(_strategies(runner.state))
        runners.append(runner)

    summaries = list_sessions(load_session(path, schema=_session_schema()))
    assert [s.session_id for s in summaries] == [runners[1].session_id, runners[0].session_id]
    for summary, runner in zip(summaries, reversed(runners)):
        champion = runner.state.game_winner()
        assert champion is not None
        assert summary.finished
        assert summary.winner == champion.id
        assert summary.player_count == len(runner.state.players)
        assert summary.rounds == runner.state.round_number
        assert summary.ended is not None and summary.ended >= summary.started
    assert summaries[0].started >= summaries[1].ended


def test_list_sessions_marks_unfinished_games(cards) -> None:
    sink = MemorySessionSink()
    runner = GameRunner.start(cards, 4, seed=3, sink=sink)
    runner.apply(DrawAction("player-0"))

    [summary] = list_sessions(sink.records)
    assert summary.session_id == runner.session_id
    assert not summary.finished
    assert summary.winner is None
    assert summary.player_count == 4
    assert summary.records == 2
    assert list_sessions([]) == []


def test_cli_sessions_lists_each_game(tmp_path, capsys) -> None:
    log = tmp_path / "sessions.jsonl"
    assert main(["autoplay", "--players", "2", "--seed", "1", "--log", str(log)]) == 0
    assert main(["autoplay", "--players", "4", "--seed", "2", "--log", str(log)]) == 0
    capsys.readouterr()

    assert main(["sessions", str(log)]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 2
    assert "4 players" in lines[0]
    assert "2 players" in lines[1]
    assert all("winner player-" in line for line in lines)
