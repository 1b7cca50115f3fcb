from __future__ import annotations

from typing import Any


class SavegameError(Exception):
    """Base error: a stable ``code`` plus named ``params``, no display text."""

    code = "savegame.error"

    def __init__(self, **params: Any) -> None:
        super().__init__(self.code)
        self.params = params

    def __str__(self) -> str:
        if not self.params:
            return self.code
        detail = ", ".join(f"{key}={value!r}" for key, value in sorted(self.params.items()))
        return f"{self.code} ({detail})"


class EligibilityError(SavegameError):
    code = "savegame.cannot_save"

    def __init__(self, denial: Any) -> None:
        self.code = denial.code
        super().__init__(**denial.params)
        self.denial = denial


class InvalidFileNameError(SavegameError):
    code = "savegame.invalid_file_name"


class SnapshotFormatError(SavegameError):
    code = "savegame.load.format"


class MalformedSnapshotError(SnapshotFormatError):
    code = "savegame.load.malformed"


class UnsupportedVersionError(SnapshotFormatError):
    code = "savegame.load.unsupported_version"


class SeatCountMismatchError(SnapshotFormatError):
    code = "savegame.load.seat_count_mismatch"


class InconsistentSnapshotError(SnapshotFormatError):
    code = "savegame.load.inconsistent"


class GameNameInUseError(SavegameError):
    code = "savegame.load.name_in_use"


class UnknownOptionError(SavegameError):
    code = "savegame.load.unknown_option"
