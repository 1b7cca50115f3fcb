from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from hexsave.engine.config import DEFAULT_RULES, RulesConfig
from hexsave.engine.errors import MalformedSnapshotError, UnsupportedVersionError
from hexsave.engine.registry import DEFAULT_REGISTRY, HOST_VERSION, FeatureRegistry
from hexsave.engine.snapshot import Snapshot, SnapshotHeader

logger = logging.getLogger(__name__)


def _describe(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc}: {err.get('msg', '')}")
    return "; ".join(parts)


class GameLoader:
    def __init__(
        self,
        registry: FeatureRegistry = DEFAULT_REGISTRY,
        rules: RulesConfig = DEFAULT_RULES,
        host_version: int = HOST_VERSION,
    ) -> None:
        self.registry = registry
        self.rules = rules
        self.host_version = host_version

    def read_document(self, path: Path) -> dict[str, Any]:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Save not found: {path}")
        raw = path.read_bytes()
        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError, RecursionError) as exc:
            # ValueError covers JSONDecodeError and oversized integer literals.
            raise MalformedSnapshotError(detail=str(exc)) from exc
        if not isinstance(data, dict):
            raise MalformedSnapshotError(detail="document is not an object")
        return data

    def parse_header(self, data: dict[str, Any]) -> SnapshotHeader:
        try:
            return SnapshotHeader.model_validate(data)
        except ValidationError as exc:
            raise MalformedSnapshotError(detail=_describe(exc)) from exc

    def read_header(self, path: Path) -> SnapshotHeader:
        return self.parse_header(self.read_document(path))

    def load(self, path: Path) -> Snapshot:
        data = self.read_document(path)
        header = self.parse_header(data)
        if not self.registry.is_model_version_supported(header.model_version):
            raise UnsupportedVersionError(
                model_version=header.model_version,
                supported=self.registry.supported_model_versions(),
            )
        if header.saved_by_version > self.host_version:
            logger.warning(
                "%s was saved by newer host version %d (running %d)",
                path,
                header.saved_by_version,
                self.host_version,
            )

        try:
            snapshot = Snapshot.model_validate(data)
        except ValidationError as exc:
            raise MalformedSnapshotError(detail=_describe(exc)) from exc
        snapshot.check_invariants(self.rules)

        logger.info("Loaded game %s from %s (model_version=%d)", snapshot.game_name, path, snapshot.model_version)
        return snapshot


def load_game(path: Path, registry: FeatureRegistry = DEFAULT_REGISTRY, rules: RulesConfig = DEFAULT_RULES) -> Snapshot:
    return GameLoader(registry, rules).load(path)


def read_header(path: Path) -> SnapshotHeader:
    return GameLoader().read_header(path)
