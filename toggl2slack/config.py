from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .period import Period

DEFAULT_PAGE_DELAY_SECONDS = 2.0
DATE_FORMAT = "%Y-%m-%d"
DATE_FORMAT_HINT = "YYYY-MM-DD"


@dataclass(frozen=True, slots=True)
class Config:
    toggl_token: str
    toggl_workspace: str
    toggl_email: str
    slack_token: str | None
    slack_channel: str | None
    discord_webhook_url: str | None
    timezone: ZoneInfo | None
    page_delay_seconds: float

    @property
    def has_slack(self) -> bool:
        return bool(self.slack_token and self.slack_channel)


def _lookup(name: str, overrides: Mapping[str, str | None]) -> str | None:
    # Command-line values win over the environment.
    value = overrides.get(name)
    if value is None:
        value = os.getenv(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


def _required(name: str, overrides: Mapping[str, str | None]) -> str:
    value = _lookup(name, overrides)
    if value is None:
        raise ValueError(f"Missing required setting: {name}")
    return value


def _page_delay(name: str, overrides: Mapping[str, str | None]) -> float:
    raw = _lookup(name, overrides)
    if raw is None:
        return DEFAULT_PAGE_DELAY_SECONDS
    try:
        parsed = float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number") from exc

    if parsed < 0:
        raise ValueError(f"{name} must not be negative")
    return parsed


def _timezone(name: str, overrides: Mapping[str, str | None]) -> ZoneInfo | None:
    tz_name = _lookup(name, overrides)
    if tz_name is None:
        return None
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Invalid timezone in {name}: {tz_name}") from exc


def load_config(
    overrides: Mapping[str, str | None] | None = None,
    *,
    require_sink: bool = True,
) -> Config:
    overrides = overrides or {}

    config = Config(
        toggl_token=_required("TOGGL_API_TOKEN", overrides),
        toggl_workspace=_required("TOGGL_WORKSPACE", overrides),
        toggl_email=_required("TOGGL_EMAIL", overrides),
        slack_token=_lookup("SLACK_TOKEN", overrides),
        slack_channel=_lookup("SLACK_CHANNEL", overrides),
        discord_webhook_url=_lookup("DISCORD_WEBHOOK_URL", overrides),
        timezone=_timezone("REPORT_TIMEZONE", overrides),
        page_delay_seconds=_page_delay("TOGGL_PAGE_DELAY_SECONDS", overrides),
    )

    if bool(config.slack_token) != bool(config.slack_channel):
        raise ValueError("SLACK_TOKEN and SLACK_CHANNEL must be set together")
    if require_sink and not config.has_slack and config.discord_webhook_url is None:
        raise ValueError("Configure SLACK_TOKEN and SLACK_CHANNEL, or DISCORD_WEBHOOK_URL")
    return config


def parse_date(name: str, value: str) -> date:
    try:
        return datetime.strptime(value.strip(), DATE_FORMAT).date()
    except ValueError as exc:
        raise ValueError(f"{name} must be a date in {DATE_FORMAT_HINT} form: {value!r}") from exc


def parse_period(date_from: str, date_to: str) -> Period:
    """Build the report period; a reversed range raises InvalidRange."""
    return Period(parse_date("date_from", date_from), parse_date("date_to", date_to))
