from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from hexsave.engine.config import DEFAULT_RULES, RulesConfig
from hexsave.engine.errors import InconsistentSnapshotError, UnknownOptionError
from hexsave.engine.game import Game, GameOption
from hexsave.engine.registry import HOST_VERSION
from hexsave.engine.types import Scenario


@dataclass(frozen=True)
class OptionDefinition:
    key: str
    type: Literal["bool", "int", "str"]
    default: bool | int | str
    min: int | None = None
    max: int | None = None
    choices: tuple[str, ...] | None = None

    def accepts(self, value: Any) -> bool:
        if self.type == "bool":
            return isinstance(value, bool)
        if self.type == "int":
            if not isinstance(value, int) or isinstance(value, bool):
                return False
            if self.min is not None and value < self.min:
                return False
            if self.max is not None and value > self.max:
                return False
            return True
        if self.type == "str":
            if not isinstance(value, str):
                return False
            return self.choices is None or value == "" or value in self.choices
        return False

    def build(self, value: Any) -> GameOption:
        if not self.accepts(value):
            raise InconsistentSnapshotError(reason="option_value", option_key=self.key, value=value)
        return GameOption(key=self.key, value=value)


def default_option_definitions() -> dict[str, OptionDefinition]:
    definitions = [
        OptionDefinition(key="PL", type="int", default=4, min=2, max=6),
        OptionDefinition(key="SBL", type="bool", default=False),
        OptionDefinition(key="SC", type="str", default="", choices=tuple(s.value for s in Scenario)),
        OptionDefinition(key="VP", type="int", default=10, min=10, max=20),
        OptionDefinition(key="N7", type="int", default=7, min=1, max=999),
        OptionDefinition(key="RD", type="bool", default=False),
    ]
    return {d.key: d for d in definitions}


@dataclass
class HostContext:
    """Host-owned registries the engine reads but never persists."""

    version: int = HOST_VERSION
    games: dict[str, Game] = field(default_factory=dict)
    option_definitions: dict[str, OptionDefinition] = field(default_factory=default_option_definitions)
    rules: RulesConfig = field(default_factory=lambda: DEFAULT_RULES)

    def is_game_running(self, name: str) -> bool:
        return name in self.games

    def build_option(self, key: str, value: Any) -> GameOption:
        definition = self.option_definitions.get(key)
        if definition is None:
            raise UnknownOptionError(option_key=key)
        return definition.build(value)
