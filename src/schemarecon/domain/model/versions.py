"""IR format versions."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Final

from .errors import IncompatibleIRVersionError, InvalidIRVersionError

_VERSION_PATTERN: Final = re.compile(r"^v?(\d+)\.(\d+)(?:\.(\d+))?$")


@dataclass(frozen=True, slots=True, order=True)
class IRVersion:
    major: int
    minor: int = 0
    patch: int = 0

    @classmethod
    def parse(cls, value: object) -> IRVersion:
        if isinstance(value, IRVersion):
            return value
        if value is None:
            raise InvalidIRVersionError("ir_version is missing")
        if isinstance(value, bool) or not isinstance(value, (str, int, float)):
            raise InvalidIRVersionError(f"ir_version has unsupported type: {type(value).__name__}")
        text = str(value).strip()
        if isinstance(value, int):
            text = f"{value}.0"
        match = _VERSION_PATTERN.match(text)
        if match is None:
            raise InvalidIRVersionError(f"ir_version is not parseable: {value!r}")
        major, minor, patch = match.groups()
        return cls(major=int(major), minor=int(minor), patch=int(patch or 0))

    def is_compatible_with(self, other: IRVersion) -> bool:
        return self.major == other.major

    def __str__(self) -> str:
        if self.patch:
            return f"{self.major}.{self.minor}.{self.patch}"
        return f"{self.major}.{self.minor}"


CURRENT_IR_VERSION: Final = IRVersion(major=1, minor=0)


def ensure_compatible(left: IRVersion, right: IRVersion) -> None:
    """Fail fast when two snapshots cannot be compared."""

    if not left.is_compatible_with(right):
        raise IncompatibleIRVersionError(
            f"Cannot compare IR version {left} with {right}: major versions differ"
        )
