from __future__ import annotations

import copy
import os
import stat
import tempfile
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any

from hexsave.engine.errors import InvalidFileNameError


def freeze_blob(value: Any) -> Any:
    """Read-only copy of a JSON-like blob: mappings become proxies, lists tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({key: freeze_blob(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze_blob(item) for item in value)
    return copy.deepcopy(value)


def thaw_blob(value: Any) -> Any:
    """Mutable copy of a frozen blob, back to plain dicts and lists."""
    if isinstance(value, Mapping):
        return {key: thaw_blob(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [thaw_blob(item) for item in value]
    return copy.deepcopy(value)


def check_file_name(file_name: str) -> None:
    if not file_name or file_name in (".", ".."):
        raise InvalidFileNameError(file_name=file_name)
    separators = {"/", "\\", os.sep}
    if os.altsep:
        separators.add(os.altsep)
    if any(sep in file_name for sep in separators):
        raise InvalidFileNameError(file_name=file_name)


def _target_mode(path: Path) -> int:
    # Keep an existing file's permissions; new files get what open() would give.
    if path.exists():
        return stat.S_IMODE(path.stat().st_mode)
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def atomic_write_text(path: Path, content: str) -> None:
    """Write via a temp file in the same directory, then rename over ``path``."""
    with tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        dir=str(path.parent),
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
    ) as tmp:
        tmp_path = Path(tmp.name)
        try:
            tmp.write(content)
            tmp.flush()
            os.fsync(tmp.fileno())
        except BaseException:
            tmp.close()
            tmp_path.unlink(missing_ok=True)
            raise
    try:
        os.chmod(tmp_path, _target_mode(path))
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
