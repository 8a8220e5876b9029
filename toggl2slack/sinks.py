from __future__ import annotations

import io
import logging
from typing import Protocol

import discord
import requests

SLACK_POST_MESSAGE_URL = "https://slack.com/api/chat.postMessage"
DISCORD_MESSAGE_LIMIT = 2000
REQUEST_TIMEOUT_SECONDS = 30


class SlackError(RuntimeError):
    """Raised when Slack rejects or fails to receive a message."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code


class ReportSink(Protocol):
    def send(self, text: str, *, filename: str | None = None) -> None: ...


class SlackSink:
    def __init__(
        self,
        token: str,
        channel: str,
        *,
        session: requests.Session | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.token = token
        self.channel = channel
        self.session = session or requests.Session()
        self.logger = logger or logging.getLogger(__name__)

    def send(self, text: str, *, filename: str | None = None) -> None:
        # chat.postMessage carries plain text only; the filename is not used here.
        try:
            response = self.session.post(
                SLACK_POST_MESSAGE_URL,
                json={"channel": self.channel, "text": text},
                headers={"Authorization": f"Bearer {self.token}"},
                timeout=REQUEST_TIMEOUT_SECONDS,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as exc:
            raise SlackError(f"Slack request failed: {exc}") from exc
        except ValueError as exc:
            raise SlackError("Slack response is not JSON") from exc

        if not isinstance(payload, dict):
            raise SlackError(f"Unexpected Slack response: {payload!r}")
        if not payload.get("ok"):
            code = payload.get("error")
            raise SlackError(f"Slack rejected message: {code}", code=code)

        self.logger.info("Posted %d characters to Slack channel %s", len(text), self.channel)


class DiscordWebhookSink:
    def __init__(
        self,
        webhook_url: str,
        *,
        webhook: discord.SyncWebhook | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.webhook = webhook or discord.SyncWebhook.from_url(webhook_url)
        self.logger = logger or logging.getLogger(__name__)

    def send(self, text: str, *, filename: str | None = None) -> None:
        # Never ping users in automated summaries.
        kwargs = {"allowed_mentions": discord.AllowedMentions.none()}

        if filename is None and len(text) > DISCORD_MESSAGE_LIMIT:
            filename = "report.txt"

        if filename is None:
            self.webhook.send(content=text, **kwargs)
        else:
            attachment = discord.File(io.BytesIO(text.encode("utf-8")), filename=filename)
            self.webhook.send(file=attachment, **kwargs)

        self.logger.info("Posted %d characters to Discord webhook", len(text))
