from __future__ import annotations

import logging
from pathlib import Path

from hexsave.engine.eligibility import ensure_can_save
from hexsave.engine.game import Game
from hexsave.engine.host import HostContext
from hexsave.engine.registry import DEFAULT_REGISTRY, FeatureRegistry
from hexsave.engine.snapshot import Snapshot
from hexsave.engine.utils import atomic_write_text, check_file_name

logger = logging.getLogger(__name__)


class GameSaver:
    def __init__(self, host: HostContext, registry: FeatureRegistry = DEFAULT_REGISTRY) -> None:
        self.host = host
        self.registry = registry

    def save(self, game: Game, target_dir: Path, file_name: str) -> Path:
        """Check, capture and write ``game`` to ``target_dir / file_name``.

        Raises EligibilityError before touching the filesystem when the game
        can't be saved now. The directory must already exist. OSErrors from
        the write propagate unchanged and leave no partial file behind.
        """
        ensure_can_save(game, self.registry, self.host.rules)
        check_file_name(file_name)

        target_dir = Path(target_dir)
        if not target_dir.exists():
            raise FileNotFoundError(f"Save directory not found: {target_dir}")
        if not target_dir.is_dir():
            raise NotADirectoryError(f"Not a directory: {target_dir}")

        snapshot = Snapshot.capture(game, self.host)
        snapshot.check_invariants(self.host.rules)

        path = target_dir / file_name
        atomic_write_text(path, snapshot.to_json())
        logger.info(
            "Saved game %s to %s (model_version=%d, saved_by_version=%d)",
            game.name,
            path,
            snapshot.model_version,
            snapshot.saved_by_version,
        )
        return path


def save_game(game: Game, target_dir: Path, file_name: str, host: HostContext) -> Path:
    return GameSaver(host).save(game, target_dir, file_name)
