from __future__ import annotations

import csv
import io
from datetime import date

from .models import AggregatedTable, Duration, ProjectRecords, RecordKey
from .period import expand_period

MILLISECONDS_PER_MINUTE = 60_000
TABLE_DAY_FORMAT = "%Y-%m-%d"
SUMMARY_DAY_FORMAT = "%Y/%m/%d"


def format_duration(duration: Duration) -> str:
    """Render a duration as hours at half-hour resolution.

    A remainder of 30 minutes or more shows as ``.5``; anything less is dropped.
    """
    minutes = duration.milliseconds // MILLISECONDS_PER_MINUTE
    hours, remainder = divmod(minutes, 60)
    if remainder >= 30:
        return f"{hours}.5"
    return str(hours)


def render_summary(records: ProjectRecords, begin: date, end: date) -> str:
    title = (
        f"*Toggl summary report* "
        f"[{begin.strftime(SUMMARY_DAY_FORMAT)}-{end.strftime(SUMMARY_DAY_FORMAT)}]\n"
    )

    blocks: list[str] = [title]
    for user in records.users():
        # Project order within a user is kept as the summary endpoint returned it.
        lines = "".join(
            f"{project}: {format_duration(duration)}h\n"
            for project, duration in records.projects_for(user)
        )
        blocks.append(f"\n*{user}*\n\n```{lines}```")
    return "".join(blocks)


def render_table(aggregated: AggregatedTable, begin: date, end: date) -> str:
    """Render aggregated durations as CSV, one row per project and user, one column per day.

    e.g.
    Project,User,2020-12-01,2020-12-02
    ProjectA,Alice,0.5,1
    ProjectA,Bob,0,2
    """
    days = expand_period(begin, end)

    projects = sorted({key.project for key in aggregated})
    users = sorted({key.user for key in aggregated})

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(["Project", "User", *(day.strftime(TABLE_DAY_FORMAT) for day in days)])

    for project in projects:
        for user in users:
            cells = [
                format_duration(aggregated.get(RecordKey(user, project, day), Duration.ZERO))
                for day in days
            ]
            writer.writerow([str(project), str(user), *cells])

    return buffer.getvalue()
