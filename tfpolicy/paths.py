"""Attribute paths that locate conversion errors inside nested values."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Step:
    """One attribute step, with the index operations applied to it."""

    key: str = ""
    indices: tuple[str, ...] = ()

    def __str__(self) -> str:
        if not self.indices:
            return self.key
        return f"{self.key}[{']['.join(self.indices)}]"


@dataclass(frozen=True)
class Path:
    """An immutable sequence of steps, rendered as ``a.b[0]["k"]``."""

    steps: tuple[Step, ...] = ()

    def __str__(self) -> str:
        return ".".join(map(str, self.steps))

    def append(self, key: str) -> Path:
        return Path(self.steps + (Step(key),))

    def with_index(self, index: str) -> Path:
        if not self.steps:
            return Path((Step(indices=(index,)),))
        *head, last = self.steps
        return Path((*head, Step(last.key, last.indices + (index,))))


class PathError(ValueError):
    """An error that happened at a specific path within a value or type."""

    def __init__(self, err: BaseException, path: Path) -> None:
        super().__init__(err, path)
        self.err = err
        self.path = path

    def __str__(self) -> str:
        return f"error at {self.path}: {self.err}"


def with_path(path: Path, err: BaseException | None) -> PathError | None:
    """Attach a path to an error; ``None`` stays ``None``."""
    return None if err is None else PathError(err, path)