from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from functools import total_ordering
from types import MappingProxyType
from typing import ClassVar

EMPTY_PROJECT_LABEL = "EmptyProject"


@dataclass(frozen=True, slots=True, order=True)
class User:
    name: str

    def __str__(self) -> str:
        return self.name


@total_ordering
@dataclass(frozen=True, slots=True)
class Project:
    """A project name, or ``None`` for time tracked without a project.

    The empty project is its own category and sorts before every named project.
    """

    name: str | None = None

    @property
    def is_empty(self) -> bool:
        return self.name is None

    @property
    def sort_key(self) -> tuple[int, str]:
        if self.name is None:
            return (0, "")
        return (1, self.name)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Project):
            return NotImplemented
        return self.sort_key < other.sort_key

    def __str__(self) -> str:
        return EMPTY_PROJECT_LABEL if self.name is None else self.name


@dataclass(frozen=True, slots=True, order=True)
class Duration:
    milliseconds: int = 0

    ZERO: ClassVar[Duration]

    def __post_init__(self) -> None:
        if self.milliseconds < 0:
            raise ValueError(f"Duration cannot be negative: {self.milliseconds}")

    def __add__(self, other: object) -> Duration:
        if not isinstance(other, Duration):
            return NotImplemented
        return Duration(self.milliseconds + other.milliseconds)

    def __radd__(self, other: object) -> Duration:
        # sum() starts from the integer 0.
        if other == 0:
            return self
        return self.__add__(other)


Duration.ZERO = Duration(0)


@dataclass(frozen=True, slots=True, order=True)
class RecordKey:
    user: User
    project: Project
    day: date


AggregatedTable = Mapping[RecordKey, Duration]


@dataclass(frozen=True, slots=True)
class ProjectRecords:
    """Per-user project totals as returned by the summary report."""

    entries: Mapping[User, tuple[tuple[Project, Duration], ...]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        frozen = {user: tuple(items) for user, items in self.entries.items()}
        object.__setattr__(self, "entries", MappingProxyType(frozen))

    def users(self) -> list[User]:
        return sorted(self.entries)

    def projects_for(self, user: User) -> tuple[tuple[Project, Duration], ...]:
        return self.entries.get(user, ())

    def __len__(self) -> int:
        return len(self.entries)
