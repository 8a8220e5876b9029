from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime, tzinfo
from types import MappingProxyType

from .models import AggregatedTable, Duration, Project, RecordKey, User


def local_day(start: datetime, tz: tzinfo | None = None) -> date:
    """Return the calendar day a timestamp falls on, in its own offset or in ``tz``."""
    if start.tzinfo is None:
        raise ValueError("start must be timezone-aware")

    if tz is not None:
        start = start.astimezone(tz)
    return start.date()


def record_key_for(
    user: str,
    project: str | None,
    start: datetime,
    tz: tzinfo | None = None,
) -> RecordKey:
    return RecordKey(user=User(user), project=Project(project), day=local_day(start, tz))


def aggregate(records: Iterable[tuple[RecordKey, Duration]]) -> AggregatedTable:
    """Sum durations per record key.

    Keys that never occur are left out; filling gaps with zero is up to the renderer.
    """
    totals: dict[RecordKey, int] = {}
    for key, duration in records:
        totals[key] = totals.get(key, 0) + duration.milliseconds

    return MappingProxyType({key: Duration(total) for key, total in totals.items()})
