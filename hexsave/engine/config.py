from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt, field_validator, model_validator

from hexsave.engine.types import GamePhase, PieceType

logger = logging.getLogger(__name__)

RULES_FILE_ENV = "HEXSAVE_RULES_FILE"


def _default_pieces() -> dict[PieceType, int]:
    return {
        PieceType.ROAD: 15,
        PieceType.SETTLEMENT: 5,
        PieceType.CITY: 4,
        PieceType.SHIP: 0,
    }


class RulesConfig(BaseModel):
    """Rule constants the snapshot engine depends on.

    Vacant seats are expected to hold exactly ``starting_pieces_for(...)``,
    and phases below ``min_saveable_phase`` cannot be saved.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    classic_max_seats: int = Field(default=4, ge=4)
    extended_max_seats: int = Field(default=6, ge=4)
    starting_pieces: dict[PieceType, NonNegativeInt] = Field(default_factory=_default_pieces)
    sea_board_ships: NonNegativeInt = 15
    min_saveable_phase: GamePhase = GamePhase.ROLL_OR_CARD

    @field_validator("min_saveable_phase", mode="before")
    @classmethod
    def phase_by_name(cls, value: Any) -> Any:
        if isinstance(value, str) and value in GamePhase.__members__:
            return GamePhase[value]
        return value

    @model_validator(mode="after")
    def check_consistency(self) -> "RulesConfig":
        missing = [piece.value for piece in PieceType if piece not in self.starting_pieces]
        if missing:
            raise ValueError(f"starting_pieces missing: {', '.join(missing)}")
        if self.extended_max_seats < self.classic_max_seats:
            raise ValueError("extended_max_seats must be >= classic_max_seats")
        if self.min_saveable_phase <= GamePhase.START3B:
            raise ValueError("min_saveable_phase must come after initial placement")
        return self

    def uses_sea_board(self, option_values: Mapping[str, Any]) -> bool:
        return bool(option_values.get("SBL")) or bool(option_values.get("SC"))

    def max_seats_for(self, option_values: Mapping[str, Any]) -> int:
        players = option_values.get("PL")
        if isinstance(players, int) and not isinstance(players, bool) and players > self.classic_max_seats:
            return self.extended_max_seats
        return self.classic_max_seats

    def starting_pieces_for(self, sea_board: bool) -> dict[PieceType, int]:
        pieces = dict(self.starting_pieces)
        if sea_board:
            pieces[PieceType.SHIP] = self.sea_board_ships
        return pieces


DEFAULT_RULES = RulesConfig()


def load_rules(path: str | Path | None = None) -> RulesConfig:
    if path is None:
        env_path = os.getenv(RULES_FILE_ENV)
        if not env_path:
            return DEFAULT_RULES
        path = env_path
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Rules file not found: {path}")
    with path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    rules = RulesConfig.model_validate(raw)
    logger.debug("Loaded rules from %s: min_saveable_phase=%s", path, rules.min_saveable_phase.name)
    return rules
