from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Callable, ClassVar

from hexsave.engine.config import DEFAULT_RULES, RulesConfig
from hexsave.engine.errors import EligibilityError
from hexsave.engine.game import Game
from hexsave.engine.registry import DEFAULT_REGISTRY, FeatureRegistry
from hexsave.engine.types import GamePhase

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Denial:
    code: ClassVar[str] = "savegame.cannot_save"

    @property
    def params(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class PhaseDenied(Denial):
    code: ClassVar[str] = "savegame.cannot_save.phase"

    phase: GamePhase


@dataclass(frozen=True)
class ScenarioDenied(Denial):
    code: ClassVar[str] = "savegame.cannot_save.scenario"

    scenario_id: str


def _check_scenario(game: Game, registry: FeatureRegistry, rules: RulesConfig) -> Denial | None:
    scenario = game.scenario
    if scenario is not None and not registry.is_scenario_supported(scenario):
        return ScenarioDenied(scenario_id=scenario.value)
    return None


def _check_phase(game: Game, registry: FeatureRegistry, rules: RulesConfig) -> Denial | None:
    if game.phase.is_initial_placement or game.phase < rules.min_saveable_phase:
        return PhaseDenied(phase=game.phase)
    return None


# Scenario first: an unsupported scenario can't be saved at any phase.
_CHECKS: tuple[Callable[[Game, FeatureRegistry, RulesConfig], Denial | None], ...] = (
    _check_scenario,
    _check_phase,
)


def check_can_save(
    game: Game,
    registry: FeatureRegistry = DEFAULT_REGISTRY,
    rules: RulesConfig = DEFAULT_RULES,
) -> Denial | None:
    for check in _CHECKS:
        denial = check(game, registry, rules)
        if denial is not None:
            return denial
    return None


def ensure_can_save(
    game: Game,
    registry: FeatureRegistry = DEFAULT_REGISTRY,
    rules: RulesConfig = DEFAULT_RULES,
) -> None:
    denial = check_can_save(game, registry, rules)
    if denial is not None:
        logger.warning("Cannot save game %s: %s %s", game.name, denial.code, denial.params)
        raise EligibilityError(denial)
