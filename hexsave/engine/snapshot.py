from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt, StrictInt, field_serializer, field_validator

from hexsave.engine.config import RulesConfig
from hexsave.engine.errors import GameNameInUseError, InconsistentSnapshotError, SeatCountMismatchError
from hexsave.engine.game import Game, ResourceSet, compute_victory_points
from hexsave.engine.host import HostContext
from hexsave.engine.registry import MODEL_VERSION
from hexsave.engine.types import DevCardType, GamePhase, PieceType, Scenario, SeatLockState
from hexsave.engine.utils import freeze_blob, thaw_blob

logger = logging.getLogger(__name__)


class ResourceCounts(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    clay: NonNegativeInt = 0
    ore: NonNegativeInt = 0
    sheep: NonNegativeInt = 0
    wheat: NonNegativeInt = 0
    wood: NonNegativeInt = 0

    @classmethod
    def from_resource_set(cls, resources: ResourceSet) -> "ResourceCounts":
        return cls(
            clay=resources.clay,
            ore=resources.ore,
            sheep=resources.sheep,
            wheat=resources.wheat,
            wood=resources.wood,
        )

    def to_resource_set(self) -> ResourceSet:
        return ResourceSet(self.clay, self.ore, self.sheep, self.wheat, self.wood)

    def as_tuple(self) -> tuple[int, int, int, int, int]:
        return (self.clay, self.ore, self.sheep, self.wheat, self.wood)

    def is_empty(self) -> bool:
        return not any(self.as_tuple())


class SeatSnapshot(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    occupant_name: str | None = None
    lock_state: SeatLockState = SeatLockState.UNLOCKED
    resources: ResourceCounts = Field(default_factory=ResourceCounts)
    piece_counts: dict[PieceType, NonNegativeInt]
    total_victory_points: NonNegativeInt = 0
    dev_cards: tuple[DevCardType, ...] = ()
    special_vp: NonNegativeInt = 0
    face_id: int = 1

    @field_validator("piece_counts")
    @classmethod
    def freeze_piece_counts(cls, value: dict[PieceType, int]) -> MappingProxyType:
        return MappingProxyType(dict(value))

    @field_serializer("piece_counts")
    def dump_piece_counts(self, value: MappingProxyType) -> dict[PieceType, int]:
        return dict(value)

    @property
    def is_vacant(self) -> bool:
        return self.occupant_name is None

    @classmethod
    def capture(cls, game: Game, seat: int) -> "SeatSnapshot":
        player = game.get_player(seat)
        return cls(
            occupant_name=player.name,
            lock_state=game.get_seat_lock(seat),
            resources=ResourceCounts.from_resource_set(player.resources),
            piece_counts=dict(player.pieces),
            total_victory_points=game.total_victory_points(seat),
            dev_cards=tuple(player.dev_cards),
            special_vp=player.special_vp,
            face_id=player.face_id,
        )


class SnapshotHeader(BaseModel):
    """The leading version fields, readable without validating the body."""

    model_config = ConfigDict(extra="ignore", frozen=True, protected_namespaces=())

    model_version: StrictInt
    saved_by_version: StrictInt


class Snapshot(BaseModel):
    # Field order is the JSON key order; the two version stamps lead.
    model_config = ConfigDict(extra="forbid", frozen=True, protected_namespaces=())

    model_version: StrictInt
    saved_by_version: StrictInt
    game_name: str = Field(min_length=1)
    max_seats: int = Field(ge=4)
    phase: GamePhase
    current_player: int = -1
    first_player: int = -1
    round_count: NonNegativeInt = 0
    game_options: dict[str, bool | int | str] = Field(default_factory=dict, validate_default=True)
    scenario: Scenario | None = None
    longest_road_player: int = -1
    largest_army_player: int = -1
    dev_cards_remaining: NonNegativeInt = 0
    seats: tuple[SeatSnapshot, ...]
    board_state: dict[str, Any] = Field(default_factory=dict, validate_default=True)
    scenario_options: dict[str, Any] = Field(default_factory=dict, validate_default=True)

    @field_validator("game_options")
    @classmethod
    def freeze_options(cls, value: dict[str, bool | int | str]) -> MappingProxyType:
        return MappingProxyType(dict(value))

    @field_validator("board_state", "scenario_options")
    @classmethod
    def freeze_blobs(cls, value: dict[str, Any]) -> MappingProxyType:
        return freeze_blob(value)

    @field_serializer("game_options")
    def dump_options(self, value: MappingProxyType) -> dict[str, bool | int | str]:
        return dict(value)

    @field_serializer("board_state", "scenario_options")
    def dump_blobs(self, value: MappingProxyType) -> dict[str, Any]:
        return thaw_blob(value)

    @classmethod
    def capture(cls, game: Game, host: HostContext) -> "Snapshot":
        """Copy the fields this engine persists out of a live game.

        Nothing in the result aliases ``game``: seat data is rebuilt into
        frozen models and the board/scenario blobs are deep-copied.
        """
        return cls(
            model_version=MODEL_VERSION,
            saved_by_version=host.version,
            game_name=game.name,
            max_seats=game.max_seats,
            phase=game.phase,
            current_player=game.current_player,
            first_player=game.first_player,
            round_count=game.round_count,
            game_options=game.option_values(),
            scenario=game.scenario,
            longest_road_player=game.longest_road_player,
            largest_army_player=game.largest_army_player,
            dev_cards_remaining=game.dev_cards_remaining,
            seats=tuple(SeatSnapshot.capture(game, seat) for seat in range(game.max_seats)),
            board_state=game.board_layout,
            scenario_options=game.scenario_state,
        )

    def to_json(self) -> str:
        return self.model_dump_json(indent=2)

    def starting_pieces(self, rules: RulesConfig) -> dict[PieceType, int]:
        return rules.starting_pieces_for(rules.uses_sea_board(self.game_options))

    def check_invariants(self, rules: RulesConfig) -> None:
        if len(self.seats) != self.max_seats:
            raise SeatCountMismatchError(max_seats=self.max_seats, seat_count=len(self.seats))

        expected_seats = rules.max_seats_for(self.game_options)
        if self.max_seats != expected_seats:
            raise InconsistentSnapshotError(reason="max_seats", max_seats=self.max_seats, expected=expected_seats)

        option_scenario = self.game_options.get("SC") or None
        scenario_value = self.scenario.value if self.scenario is not None else None
        if option_scenario != scenario_value:
            raise InconsistentSnapshotError(reason="scenario", scenario=scenario_value, option=option_scenario)

        names = [seat.occupant_name for seat in self.seats if not seat.is_vacant]
        if len(names) != len(set(names)):
            raise InconsistentSnapshotError(reason="duplicate_occupant")

        allotment = self.starting_pieces(rules)
        for index, seat in enumerate(self.seats):
            self._check_seat(index, seat, allotment)

        # A started game always has someone holding the turn.
        started = self.phase > GamePhase.READY and any(not seat.is_vacant for seat in self.seats)
        for field_name in ("current_player", "first_player"):
            self._check_seat_ref(field_name, getattr(self, field_name), required=started)
        for field_name in ("longest_road_player", "largest_army_player"):
            self._check_seat_ref(field_name, getattr(self, field_name))

    def _check_seat(self, index: int, seat: SeatSnapshot, allotment: dict[PieceType, int]) -> None:
        if set(seat.piece_counts) != set(allotment):
            raise InconsistentSnapshotError(reason="piece_types", seat=index)
        for piece, count in seat.piece_counts.items():
            if count > allotment[piece]:
                raise InconsistentSnapshotError(reason="piece_count", seat=index, piece=piece.value, count=count)

        if seat.is_vacant:
            if not seat.resources.is_empty():
                raise InconsistentSnapshotError(reason="vacant_resources", seat=index)
            if dict(seat.piece_counts) != allotment:
                raise InconsistentSnapshotError(reason="vacant_pieces", seat=index)
            if seat.dev_cards or seat.special_vp or seat.total_victory_points:
                raise InconsistentSnapshotError(reason="vacant_progress", seat=index)
            return

        expected_vp = compute_victory_points(
            seat.piece_counts,
            allotment,
            seat.dev_cards,
            seat.special_vp,
            self.longest_road_player == index,
            self.largest_army_player == index,
        )
        if expected_vp != seat.total_victory_points:
            raise InconsistentSnapshotError(
                reason="victory_points",
                seat=index,
                stored=seat.total_victory_points,
                expected=expected_vp,
            )

    def _check_seat_ref(self, field_name: str, seat: int, required: bool = False) -> None:
        if seat == -1:
            if required:
                raise InconsistentSnapshotError(reason=field_name, seat=seat)
            return
        if not 0 <= seat < self.max_seats or self.seats[seat].is_vacant:
            raise InconsistentSnapshotError(reason=field_name, seat=seat)

    def materialize(self, host: HostContext) -> Game:
        """Build a fresh live game from this snapshot.

        Either a complete game is returned or an error is raised; the
        half-built game is never handed out.
        """
        if host.is_game_running(self.game_name):
            raise GameNameInUseError(game_name=self.game_name)

        options = {key: host.build_option(key, value) for key, value in self.game_options.items()}
        self.check_invariants(host.rules)

        game = Game(self.game_name, options, rules=host.rules)
        if game.max_seats != self.max_seats:
            raise InconsistentSnapshotError(reason="max_seats", max_seats=self.max_seats, expected=game.max_seats)

        for index, seat in enumerate(self.seats):
            game.set_seat_lock(index, seat.lock_state)
            if seat.is_vacant:
                continue
            player = game.add_player(seat.occupant_name, index)
            player.resources = seat.resources.to_resource_set()
            player.pieces = dict(seat.piece_counts)
            player.dev_cards = list(seat.dev_cards)
            player.special_vp = seat.special_vp
            player.face_id = seat.face_id

        game.set_phase(self.phase)
        game.current_player = self.current_player
        game.first_player = self.first_player
        game.round_count = self.round_count
        game.longest_road_player = self.longest_road_player
        game.largest_army_player = self.largest_army_player
        game.dev_cards_remaining = self.dev_cards_remaining
        game.board_layout = thaw_blob(self.board_state)
        game.scenario_state = thaw_blob(self.scenario_options)

        for index, seat in enumerate(self.seats):
            recomputed = game.total_victory_points(index)
            if recomputed != seat.total_victory_points:
                raise InconsistentSnapshotError(
                    reason="victory_points", seat=index, stored=seat.total_victory_points, expected=recomputed
                )

        logger.debug("Materialized game %s with %d occupied seats", game.name, len(game.occupied_seats()))
        return game
