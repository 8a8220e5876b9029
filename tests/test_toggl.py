from datetime import date, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest
import requests

from toggl2slack.models import Duration, Project, RecordKey, User
from toggl2slack.period import Period
from toggl2slack.toggl import TogglClient, TogglError

PERIOD = Period(date(2020, 12, 1), date(2020, 12, 31))


class FakeResponse:
    def __init__(self, payload, status_code: int = 200) -> None:
        self.payload = payload
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        return self.payload


class FakeSession:
    def __init__(self, responses: list[FakeResponse]) -> None:
        self.responses = list(responses)
        self.calls: list[dict] = []

    def get(self, url: str, **kwargs):
        self.calls.append({"url": url, **kwargs})
        return self.responses.pop(0)


def detail(user: str, project: str | None, start: str, dur: int) -> dict:
    return {"description": "work", "start": start, "dur": dur, "user": user, "project": project}


def make_client(session: FakeSession, sleeps: list[float]) -> TogglClient:
    return TogglClient("token", "42", "me@example.com", session=session, page_delay=2.0, sleep=sleeps.append)


def test_fetch_summary_report_decodes_users_and_projects() -> None:
    payload = {
        "data": [
            {
                "id": 1,
                "title": {"user": "Alice"},
                "items": [
                    {"title": {"project": "ProjectB"}, "time": 7_200_000},
                    {"title": {"project": None}, "time": 1_800_000},
                ],
            },
            {"id": 2, "title": {"user": "Bob"}, "items": [{"title": {}, "time": 60_000}]},
        ]
    }
    session = FakeSession([FakeResponse(payload)])

    records = make_client(session, []).fetch_summary_report(PERIOD)

    assert records.users() == [User("Alice"), User("Bob")]
    assert records.projects_for(User("Alice")) == (
        (Project("ProjectB"), Duration(7_200_000)),
        (Project(None), Duration(1_800_000)),
    )
    assert records.projects_for(User("Bob")) == ((Project(None), Duration(60_000)),)

    call = session.calls[0]
    assert call["url"].endswith("/summary")
    assert call["auth"] == ("token", "api_token")
    assert call["params"]["grouping"] == "users"
    assert call["params"]["subgrouping"] == "projects"
    assert call["params"]["since"] == "2020-12-01"
    assert call["params"]["until"] == "2020-12-31"
    assert call["params"]["workspace_id"] == "42"


def test_fetch_detailed_records_reads_every_page_with_pause() -> None:
    pages = [
        FakeResponse({"total_count": 5, "per_page": 2, "data": [
            detail("Alice", "A", "2020-12-01T09:00:00+09:00", 1_000),
            detail("Bob", None, "2020-12-01T10:00:00+09:00", 2_000),
        ]}),
        FakeResponse({"total_count": 5, "per_page": 2, "data": [
            detail("Alice", "A", "2020-12-01T11:00:00+09:00", 3_000),
            detail("Alice", "A", "2020-12-02T00:10:00+09:00", 4_000),
        ]}),
        FakeResponse({"total_count": 5, "per_page": 2, "data": [
            detail("Carol", "B", "2020-12-03T12:00:00+09:00", 5_000),
        ]}),
    ]
    session = FakeSession(pages)
    sleeps: list[float] = []

    records = make_client(session, sleeps).fetch_detailed_records(PERIOD)

    assert len(records) == 5
    assert sleeps == [2.0, 2.0]
    assert "page" not in session.calls[0]["params"]
    assert [call["params"]["page"] for call in session.calls[1:]] == ["2", "3"]
    # 00:10 local on Dec 2 is still Dec 1 in UTC; the local day wins.
    assert records[3] == (RecordKey(User("Alice"), Project("A"), date(2020, 12, 2)), Duration(4_000))


def test_single_page_does_not_pause() -> None:
    session = FakeSession([FakeResponse({"total_count": 1, "per_page": 50, "data": [
        detail("Alice", None, "2020-12-05T08:00:00+00:00", 1_000),
    ]})])
    sleeps: list[float] = []

    records = make_client(session, sleeps).fetch_detailed_records(PERIOD)

    assert sleeps == []
    assert records == [(RecordKey(User("Alice"), Project(None), date(2020, 12, 5)), Duration(1_000))]


def test_detailed_records_can_use_a_configured_zone() -> None:
    session = FakeSession([FakeResponse({"total_count": 1, "per_page": 50, "data": [
        detail("Alice", "A", "2020-12-05T02:00:00+00:00", 1_000),
    ]})])

    records = make_client(session, []).fetch_detailed_records(PERIOD, tz=ZoneInfo("America/Los_Angeles"))

    assert records[0][0].day == date(2020, 12, 4)


def test_http_error_is_wrapped() -> None:
    session = FakeSession([FakeResponse({}, status_code=403)])

    with pytest.raises(TogglError):
        make_client(session, []).fetch_summary_report(PERIOD)


def test_malformed_payload_is_wrapped() -> None:
    session = FakeSession([FakeResponse({"total_count": "many", "data": []})])

    with pytest.raises(TogglError):
        make_client(session, []).fetch_detailed_records(PERIOD)


def test_detail_without_utc_offset_is_wrapped() -> None:
    session = FakeSession([FakeResponse({"total_count": 1, "per_page": 50, "data": [
        detail("Alice", None, "2020-12-01T09:00:00", 1_000),
    ]})])

    with pytest.raises(TogglError):
        make_client(session, []).fetch_detailed_records(PERIOD)


def test_negative_detail_duration_is_wrapped() -> None:
    session = FakeSession([FakeResponse({"total_count": 1, "per_page": 50, "data": [
        detail("Alice", None, "2020-12-01T09:00:00+00:00", -5),
    ]})])

    with pytest.raises(TogglError):
        make_client(session, []).fetch_detailed_records(PERIOD)


def test_negative_summary_time_is_wrapped() -> None:
    payload = {"data": [{"id": 1, "title": {"user": "Alice"}, "items": [{"title": {"project": "A"}, "time": -1}]}]}
    session = FakeSession([FakeResponse(payload)])

    with pytest.raises(TogglError):
        make_client(session, []).fetch_summary_report(PERIOD)
