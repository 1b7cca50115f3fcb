from __future__ import annotations

import random
from dataclasses import dataclass, field, fields
from typing import Any, Mapping

from hexsave.engine.config import DEFAULT_RULES, RulesConfig
from hexsave.engine.types import DevCardType, GamePhase, PieceType, ResourceType, Scenario, SeatLockState

STANDARD_DEV_DECK = 25
EXTENDED_DEV_DECK = 34


@dataclass
class ResourceSet:
    clay: int = 0
    ore: int = 0
    sheep: int = 0
    wheat: int = 0
    wood: int = 0

    def __post_init__(self) -> None:
        for f in fields(self):
            if getattr(self, f.name) < 0:
                raise ValueError(f"negative resource count: {f.name}")

    def amounts(self) -> dict[ResourceType, int]:
        return {rtype: getattr(self, rtype.value.lower()) for rtype in ResourceType}

    def add(self, other: "ResourceSet") -> None:
        for f in fields(self):
            setattr(self, f.name, getattr(self, f.name) + getattr(other, f.name))

    def subtract(self, other: "ResourceSet") -> None:
        for f in fields(self):
            if getattr(self, f.name) < getattr(other, f.name):
                raise ValueError(f"not enough {f.name}")
        for f in fields(self):
            setattr(self, f.name, getattr(self, f.name) - getattr(other, f.name))

    def total(self) -> int:
        return sum(self.amounts().values())

    def is_empty(self) -> bool:
        return self.total() == 0

    def clear(self) -> None:
        for f in fields(self):
            setattr(self, f.name, 0)


@dataclass
class GameOption:
    key: str
    value: bool | int | str


@dataclass
class Player:
    seat: int
    pieces: dict[PieceType, int]
    name: str | None = None
    resources: ResourceSet = field(default_factory=ResourceSet)
    dev_cards: list[DevCardType] = field(default_factory=list)
    special_vp: int = 0
    face_id: int = 1

    @property
    def is_vacant(self) -> bool:
        return self.name is None


def compute_victory_points(
    pieces: Mapping[PieceType, int],
    allotment: Mapping[PieceType, int],
    dev_cards: list[DevCardType],
    special_vp: int,
    has_longest_road: bool,
    has_largest_army: bool,
) -> int:
    # A city upgrade returns its settlement to supply, so each count is independent.
    settlements = allotment[PieceType.SETTLEMENT] - pieces[PieceType.SETTLEMENT]
    cities = allotment[PieceType.CITY] - pieces[PieceType.CITY]
    total = settlements + 2 * cities
    total += sum(1 for card in dev_cards if card == DevCardType.VP)
    total += special_vp
    if has_longest_road:
        total += 2
    if has_largest_army:
        total += 2
    return total


def parse_scenario(value: Any) -> Scenario | None:
    if value in (None, ""):
        return None
    return Scenario(value)


class Game:
    """Live game state as seen by the snapshot engine."""

    def __init__(
        self,
        name: str,
        options: Mapping[str, GameOption] | None = None,
        rules: RulesConfig | None = None,
        rng: random.Random | None = None,
    ) -> None:
        if not name:
            raise ValueError("game name required")
        self.name = name
        self.options: dict[str, GameOption] = dict(options or {})
        self.rules = rules or DEFAULT_RULES
        self.rng = rng or random.Random()

        values = self.option_values()
        self._scenario = parse_scenario(values.get("SC"))
        self.max_seats = self.rules.max_seats_for(values)
        self.sea_board = self.rules.uses_sea_board(values)
        self.starting_pieces = self.rules.starting_pieces_for(self.sea_board)

        self._players = [self._new_player(seat) for seat in range(self.max_seats)]
        self._seat_locks = [SeatLockState.UNLOCKED] * self.max_seats

        self.phase = GamePhase.NEW
        self.current_player = -1
        self.first_player = -1
        self.round_count = 0
        self.longest_road_player = -1
        self.largest_army_player = -1
        self.dev_cards_remaining = STANDARD_DEV_DECK if self.max_seats <= 4 else EXTENDED_DEV_DECK
        self.board_layout: dict[str, Any] = {}
        self.scenario_state: dict[str, Any] = {}

    def _new_player(self, seat: int) -> Player:
        return Player(seat=seat, pieces=dict(self.starting_pieces))

    @property
    def scenario(self) -> Scenario | None:
        return self._scenario

    def option_values(self) -> dict[str, Any]:
        return {key: opt.value for key, opt in self.options.items()}

    def _check_seat(self, seat: int) -> None:
        if not 0 <= seat < self.max_seats:
            raise IndexError(f"seat {seat} out of range 0..{self.max_seats - 1}")

    def get_player(self, seat: int) -> Player:
        self._check_seat(seat)
        return self._players[seat]

    def is_seat_vacant(self, seat: int) -> bool:
        return self.get_player(seat).is_vacant

    def occupied_seats(self) -> list[int]:
        return [p.seat for p in self._players if not p.is_vacant]

    def add_player(self, name: str, seat: int) -> Player:
        player = self.get_player(seat)
        if not player.is_vacant:
            raise ValueError(f"seat {seat} already taken by {player.name}")
        if any(p.name == name for p in self._players):
            raise ValueError(f"player {name} already seated")
        player.name = name
        return player

    def remove_player(self, seat: int) -> None:
        self._check_seat(seat)
        self._players[seat] = self._new_player(seat)

    def get_seat_lock(self, seat: int) -> SeatLockState:
        self._check_seat(seat)
        return self._seat_locks[seat]

    def set_seat_lock(self, seat: int, state: SeatLockState) -> None:
        self._check_seat(seat)
        self._seat_locks[seat] = state

    def set_phase(self, phase: GamePhase) -> None:
        self.phase = GamePhase(phase)

    def start_game(self) -> None:
        if self.phase != GamePhase.NEW:
            raise ValueError(f"game already started: {self.phase.name}")
        occupied = self.occupied_seats()
        if not occupied:
            raise ValueError("cannot start a game with no players")
        self.board_layout = {
            "layout": "sea" if self.sea_board else "classic",
            "hexes": [],
            "ports": [],
            "robber_hex": -1,
        }
        if self._scenario is not None:
            self.scenario_state = {"scenario": self._scenario.value}
        self.first_player = self.rng.choice(occupied)
        self.current_player = self.first_player
        self.round_count = 1
        self.phase = GamePhase.START1A

    def total_victory_points(self, seat: int) -> int:
        player = self.get_player(seat)
        return compute_victory_points(
            player.pieces,
            self.starting_pieces,
            player.dev_cards,
            player.special_vp,
            self.longest_road_player == seat,
            self.largest_army_player == seat,
        )
