from __future__ import annotations

import argparse
import random
from pathlib import Path
from typing import Sequence

from mulescourt.engine.ai import SimpleStrategy
from mulescourt.engine.serialize import snapshot
from mulescourt.engine.state import GameState
from mulescourt.paths import get_paths
from mulescourt.services.content import ContentService
from mulescourt.services.session import (
    GameRunner,
    JsonlSessionSink,
    MemorySessionSink,
    SessionSink,
    list_sessions,
    load_session,
    replay_session,
    select_session,
)
from mulescourt.simulation import analyze_results, run_simulations


def _content() -> ContentService:
    paths = get_paths()
    return ContentService(paths.data_dir, paths.schema_dir)


def _print_standings(state: GameState) -> None:
    for p in state.players:
        print(f"  {p.name}: {p.devotion_tokens}/{state.tokens_to_win} tokens")


def cmd_cards(args: argparse.Namespace) -> int:
    catalog = _content().load_catalog()
    for d in catalog.definitions.values():
        print(f"[{d.value}] {d.name} x{d.count}: {d.ability}")
    return 0


def cmd_simulate(args: argparse.Namespace) -> int:
    catalog = _content().load_catalog()
    print(f"Running {args.games} game simulations with {args.players} players...")
    results = run_simulations(catalog, args.games, args.players, seed=args.seed)
    summary = analyze_results(results)

    print(f"  Total games: {summary.total_games}")
    print(f"  Total errors: {summary.total_errors}")
    print(f"  Average rounds per game: {summary.average_rounds:.2f}")
    print(f"  Average turns per game: {summary.average_turns:.2f}")
    for error, count in summary.error_types.items():
        print(f"  - {error}: {count}")
    print("Winner distribution:")
    for player_id, count in summary.winner_counts.items():
        share = count / summary.total_games * 100 if summary.total_games else 0.0
        print(f"  {player_id}: {count} wins ({share:.2f}%)")
    return 1 if summary.total_errors else 0


def cmd_autoplay(args: argparse.Namespace) -> int:
    catalog = _content().load_catalog()
    sink: SessionSink = JsonlSessionSink(Path(args.log)) if args.log else MemorySessionSink()
    runner = GameRunner.start(catalog, args.players, seed=args.seed, sink=sink)
    state = runner.state
    strategies = {
        p.id: SimpleStrategy(rng=random.Random(f"{state.seed}:{p.id}")) for p in state.players
    }
    applied = runner.play_out(strategies)

    print(f"Session {runner.session_id} (seed {state.seed}): {applied} actions, {state.round_number} rounds")
    if args.verbose:
        for event in state.event_log:
            print(f"  {event}")
    _print_standings(state)
    champion = state.game_winner()
    if champion is not None:
        print(f"Winner: {champion.name}")
    if args.log:
        print(f"Session log written to {args.log}")
    return 0


def cmd_replay(args: argparse.Namespace) -> int:
    content = _content()
    catalog = content.load_catalog()
    records = select_session(
        load_session(Path(args.session), schema=content.load_schema("session.schema.json")),
        args.session_id,
    )
    state = replay_session(catalog, records)

    last = max(records, key=lambda r: r.seq)
    replayed = snapshot(state)
    del replayed["action_log"]
    del replayed["event_log"]
    matches = replayed == last.state
    print(f"Replayed {len(records)} records from {records[0].session_id}")
    _print_standings(state)
    print("Replay matches the recorded state." if matches else "Replay DIVERGES from the recorded state.")
    return 0 if matches else 1


def cmd_sessions(args: argparse.Namespace) -> int:
    content = _content()
    records = load_session(Path(args.session), schema=content.load_schema("session.schema.json"))
    summaries = list_sessions(records)
    if not summaries:
        print("No sessions recorded.")
        return 0
    for s in summaries:
        status = f"winner {s.winner}, ended {s.ended}" if s.finished else "unfinished"
        print(f"{s.session_id}  {s.player_count} players  started {s.started}  {s.rounds} rounds  {status}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="mulescourt", description="The Mule's Court rules engine")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("cards", help="List the card catalog")

    sim = sub.add_parser("simulate", help="Run self-play simulations")
    sim.add_argument("--games", type=int, default=100)
    sim.add_argument("--players", type=int, choices=(2, 3, 4), default=2)
    sim.add_argument("--seed", type=int, default=0)

    auto = sub.add_parser("autoplay", help="Play one game between simple strategies")
    auto.add_argument("--players", type=int, choices=(2, 3, 4), default=2)
    auto.add_argument("--seed", type=int, default=None)
    auto.add_argument(
        "--log",
        nargs="?",
        const=str(get_paths().sessions_dir / "sessions.jsonl"),
        help="Append the session to this JSONL file (default: userdata/sessions/sessions.jsonl)",
    )
    auto.add_argument("--verbose", "-v", action="store_true")

    rep = sub.add_parser("replay", help="Replay a recorded session log")
    rep.add_argument("session", help="Path to a JSONL session log")
    rep.add_argument("--session-id", default=None, help="Session to replay (default: the latest)")

    ls = sub.add_parser("sessions", help="List the sessions in a JSONL log, newest first")
    ls.add_argument("session", help="Path to a JSONL session log")

    args = parser.parse_args(argv)
    if args.command == "cards":
        return cmd_cards(args)
    if args.command == "simulate":
        return cmd_simulate(args)
    if args.command == "autoplay":
        return cmd_autoplay(args)
    if args.command == "replay":
        return cmd_replay(args)
    if args.command == "sessions":
        return cmd_sessions(args)
    parser.print_help()
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
