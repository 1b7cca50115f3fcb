from __future__ import annotations

import argparse
import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from hexsave.engine.config import load_rules
from hexsave.engine.errors import SavegameError
from hexsave.engine.host import HostContext
from hexsave.engine.loader import GameLoader
from hexsave.engine.snapshot import Snapshot


def _format_seat_table(snapshot: Snapshot) -> list[str]:
    lines = []
    for index, seat in enumerate(snapshot.seats):
        name = seat.occupant_name if seat.occupant_name is not None else "(vacant)"
        resources = ",".join(str(n) for n in seat.resources.as_tuple())
        lines.append(
            f"  seat {index}: {name:<16} {seat.lock_state.value:<14} vp={seat.total_victory_points} res=[{resources}]"
        )
    return lines


def _print_error(exc: SavegameError) -> None:
    print(f"error: {exc.code}")
    for key, value in sorted(exc.params.items()):
        print(f"  {key}: {value}")


def _cmd_info(loader: GameLoader, path: Path) -> int:
    header = loader.read_header(path)
    print(f"model_version: {header.model_version}")
    print(f"saved_by_version: {header.saved_by_version}")
    snapshot = loader.load(path)
    print(f"game: {snapshot.game_name} ({snapshot.max_seats} seats)")
    print(f"phase: {snapshot.phase.name}")
    if snapshot.scenario is not None:
        print(f"scenario: {snapshot.scenario.value}")
    for line in _format_seat_table(snapshot):
        print(line)
    return 0


def _cmd_check(loader: GameLoader, path: Path, host: HostContext) -> int:
    snapshot = loader.load(path)
    game = snapshot.materialize(host)
    print(f"ok: {game.name} phase={game.phase.name} players={len(game.occupied_seats())}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="hexsave", description="Inspect and verify saved game snapshots")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--rules", dest="rules", help="Rules YAML file")
    sub = parser.add_subparsers(dest="command", required=True)
    info = sub.add_parser("info", help="Show header and seats of a snapshot")
    info.add_argument("path")
    check = sub.add_parser("check", help="Fully load and rebuild a snapshot")
    check.add_argument("path")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    path = Path(args.path)
    try:
        rules = load_rules(args.rules)
        loader = GameLoader(rules=rules)
        if args.command == "info":
            return _cmd_info(loader, path)
        return _cmd_check(loader, path, HostContext(rules=rules))
    except (OSError, ValidationError, yaml.YAMLError) as exc:
        print(f"error: {exc}")
        return 2
    except SavegameError as exc:
        _print_error(exc)
        return 1
