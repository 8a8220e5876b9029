from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable
from datetime import tzinfo
from typing import Any, TypeVar

import requests
from pydantic import AwareDatetime, BaseModel, NonNegativeInt, ValidationError

from .aggregator import record_key_for
from .models import Duration, Project, ProjectRecords, RecordKey, User
from .period import Period

DEFAULT_BASE_URL = "https://api.track.toggl.com/reports/api/v2"
DEFAULT_PAGE_DELAY_SECONDS = 2.0
REQUEST_TIMEOUT_SECONDS = 30

ResponseModel = TypeVar("ResponseModel", bound=BaseModel)


class TogglError(RuntimeError):
    """Raised when the Toggl reports API cannot be read."""


class SummaryItemTitle(BaseModel):
    project: str | None = None


class SummaryItem(BaseModel):
    title: SummaryItemTitle
    time: NonNegativeInt


class SummaryUserTitle(BaseModel):
    user: str


class SummaryUser(BaseModel):
    id: int
    title: SummaryUserTitle
    items: list[SummaryItem] = []


class SummaryResponse(BaseModel):
    data: list[SummaryUser] = []


class DetailEntry(BaseModel):
    description: str | None = None
    start: AwareDatetime
    dur: NonNegativeInt
    user: str
    project: str | None = None


class DetailResponse(BaseModel):
    total_count: int
    per_page: int
    data: list[DetailEntry] = []


class TogglClient:
    def __init__(
        self,
        token: str,
        workspace: str,
        email: str,
        *,
        session: requests.Session | None = None,
        base_url: str = DEFAULT_BASE_URL,
        page_delay: float = DEFAULT_PAGE_DELAY_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
        logger: logging.Logger | None = None,
    ) -> None:
        self.token = token
        self.workspace = workspace
        self.email = email
        self.session = session or requests.Session()
        self.base_url = base_url.rstrip("/")
        self.page_delay = page_delay
        self.sleep = sleep
        self.logger = logger or logging.getLogger(__name__)

    def fetch_summary_report(self, period: Period) -> ProjectRecords:
        response = self._get(
            "summary",
            period,
            SummaryResponse,
            grouping="users",
            subgrouping="projects",
        )

        entries: dict[User, list[tuple[Project, Duration]]] = {}
        for user_data in response.data:
            items = entries.setdefault(User(user_data.title.user), [])
            items.extend((Project(item.title.project), Duration(item.time)) for item in user_data.items)

        self.logger.info("Fetched summary report for %d users", len(entries))
        return ProjectRecords(entries)

    def fetch_detailed_records(
        self,
        period: Period,
        tz: tzinfo | None = None,
    ) -> list[tuple[RecordKey, Duration]]:
        first = self._get("details", period, DetailResponse)
        pages = [first]

        max_page = math.ceil(first.total_count / first.per_page) if first.per_page > 0 else 1
        for page in range(2, max_page + 1):
            # Fixed pause between pages to stay under the API rate limit.
            self.sleep(self.page_delay)
            pages.append(self._get("details", period, DetailResponse, page=str(page)))

        records = [
            (record_key_for(entry.user, entry.project, entry.start, tz), Duration(entry.dur))
            for response in pages
            for entry in response.data
        ]
        self.logger.info("Fetched %d detailed entries across %d pages", len(records), len(pages))
        return records

    def _get(
        self,
        endpoint: str,
        period: Period,
        model: type[ResponseModel],
        **extra: str,
    ) -> ResponseModel:
        params = {
            "workspace_id": self.workspace,
            "since": period.begin.isoformat(),
            "until": period.end.isoformat(),
            "user_agent": self.email,
            **extra,
        }
        url = f"{self.base_url}/{endpoint}"
        self.logger.debug("GET %s params=%s", url, {k: v for k, v in params.items() if k != "user_agent"})

        try:
            response = self.session.get(
                url,
                params=params,
                auth=(self.token, "api_token"),
                timeout=REQUEST_TIMEOUT_SECONDS,
            )
            response.raise_for_status()
            payload: Any = response.json()
        except requests.RequestException as exc:
            raise TogglError(f"Toggl {endpoint} request failed: {exc}") from exc
        except ValueError as exc:
            raise TogglError(f"Toggl {endpoint} response is not JSON") from exc

        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise TogglError(f"Unexpected Toggl {endpoint} response: {exc}") from exc
