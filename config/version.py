"""Release metadata shared by packaging, the CLI banner and the logger."""

from __future__ import annotations

from pathlib import Path
from typing import Final, NamedTuple, Tuple

MIN_PYTHON_VERSION: Final[Tuple[int, int]] = (3, 10)
MIN_PYTHON_VERSION_STR: Final[str] = ".".join(str(part) for part in MIN_PYTHON_VERSION)
PYTHON_REQUIRES_SPECIFIER: Final[str] = f">={MIN_PYTHON_VERSION_STR}"


class VersionInfo(NamedTuple):
    """Parsed ``major.minor.patch`` triple."""

    major: int
    minor: int
    patch: int

    @classmethod
    def parse(cls, raw: str) -> "VersionInfo":
        parts = raw.strip().split(".")
        if len(parts) != 3:
            raise ValueError(f"VERSION must look like MAJOR.MINOR.PATCH, got {raw!r}")
        numbers = [int(part) for part in parts]
        if any(number < 0 for number in numbers):
            raise ValueError(f"VERSION components must be non-negative, got {raw!r}")
        return cls(*numbers)

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


_VERSION_FILE = Path(__file__).resolve().parent.parent / "VERSION"
PROJECT_VERSION: Final[str] = _VERSION_FILE.read_text(encoding="utf-8").strip()
VERSION_INFO: Final[VersionInfo] = VersionInfo.parse(PROJECT_VERSION)
__version__: Final[str] = PROJECT_VERSION

__all__ = [
    "MIN_PYTHON_VERSION",
    "MIN_PYTHON_VERSION_STR",
    "PYTHON_REQUIRES_SPECIFIER",
    "PROJECT_VERSION",
    "VERSION_INFO",
    "VersionInfo",
    "__version__",
]
