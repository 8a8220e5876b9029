from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta


class InvalidRange(ValueError):
    """Raised when a period ends before it begins."""

    def __init__(self, begin: date, end: date) -> None:
        super().__init__(f"Invalid period: {begin.isoformat()} is after {end.isoformat()}")
        self.begin = begin
        self.end = end


def expand_period(begin: date, end: date) -> list[date]:
    """Return every calendar day from ``begin`` to ``end`` inclusive, ascending."""
    if begin > end:
        raise InvalidRange(begin, end)

    span = (end - begin).days
    return [begin + timedelta(days=offset) for offset in range(span + 1)]


@dataclass(frozen=True, slots=True)
class Period:
    begin: date
    end: date

    def __post_init__(self) -> None:
        if self.begin > self.end:
            raise InvalidRange(self.begin, self.end)

    def days(self) -> list[date]:
        return expand_period(self.begin, self.end)

    def __len__(self) -> int:
        return (self.end - self.begin).days + 1
