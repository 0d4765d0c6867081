"""Dotted names as ordered segment tuples."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Tuple


@dataclass(frozen=True)
class QualifiedName:
    segments: Tuple[str, ...] = ()

    @classmethod
    def parse(cls, name: str) -> QualifiedName:
        if not name:
            return cls()
        return cls(tuple(name.split(".")))

    def __str__(self) -> str:
        return ".".join(self.segments)

    def __bool__(self) -> bool:
        return bool(self.segments)

    @property
    def parent(self) -> QualifiedName:
        return QualifiedName(self.segments[:-1])

    @property
    def trailing_segment(self) -> str:
        return self.segments[-1] if self.segments else ""

    def child(self, name: str) -> QualifiedName:
        return QualifiedName(self.segments + QualifiedName.parse(name).segments)

    def scopes(self) -> Iterator[QualifiedName]:
        """Yield this name and each enclosing prefix, innermost first."""
        name = self
        while name:
            yield name
            name = name.parent


def remove_trailing_segment(name: str) -> str:
    return str(QualifiedName.parse(name).parent)


def trailing_segment(name: str) -> str:
    return QualifiedName.parse(name).trailing_segment
