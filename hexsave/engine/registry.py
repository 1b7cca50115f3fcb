from __future__ import annotations

from dataclasses import dataclass, field

from hexsave.engine.types import Scenario

PACKAGE_VERSION = "1.0.0"

# Bump when the snapshot schema changes, and add the new version to
# MODEL_VERSION_SUPPORT together with its decoding code.
MODEL_VERSION = 1

MODEL_VERSION_SUPPORT: dict[int, bool] = {
    1: True,
}

SCENARIO_SUPPORT: dict[Scenario, bool] = {
    Scenario.SC_NSHO: True,
    Scenario.SC_4ISL: True,
    Scenario.SC_FOG: True,
    Scenario.SC_TTD: True,
    Scenario.SC_CLVI: False,
    Scenario.SC_PIRI: False,
    Scenario.SC_FTRI: False,
    Scenario.SC_WOND: False,
}


def version_number(version: str) -> int:
    """``"2.4.1"`` -> ``2401``."""
    parts = [int(part) for part in version.split(".")[:3]]
    while len(parts) < 3:
        parts.append(0)
    major, minor, patch = parts
    return major * 1000 + minor * 100 + patch


HOST_VERSION = version_number(PACKAGE_VERSION)


@dataclass
class FeatureRegistry:
    model_versions: dict[int, bool] = field(default_factory=lambda: dict(MODEL_VERSION_SUPPORT))
    scenarios: dict[Scenario, bool] = field(default_factory=lambda: dict(SCENARIO_SUPPORT))

    def is_model_version_supported(self, model_version: int) -> bool:
        return self.model_versions.get(model_version, False)

    def is_scenario_supported(self, scenario: Scenario) -> bool:
        return self.scenarios.get(scenario, False)

    def supported_model_versions(self) -> list[int]:
        return sorted(v for v, ok in self.model_versions.items() if ok)


DEFAULT_REGISTRY = FeatureRegistry()
