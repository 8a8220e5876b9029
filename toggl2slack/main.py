from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence

import discord
from dotenv import load_dotenv

from .aggregator import aggregate
from .config import Config, load_config, parse_period
from .period import Period
from .reporter import render_summary, render_table
from .sinks import DiscordWebhookSink, ReportSink, SlackError, SlackSink
from .toggl import TogglClient, TogglError

logger = logging.getLogger("toggl2slack")

# Command-line flag -> configuration setting it overrides.
CLI_OVERRIDES = {
    "toggl_token": "TOGGL_API_TOKEN",
    "workspace": "TOGGL_WORKSPACE",
    "toggl_email": "TOGGL_EMAIL",
    "slack_token": "SLACK_TOKEN",
    "slack_channel": "SLACK_CHANNEL",
    "discord_webhook_url": "DISCORD_WEBHOOK_URL",
    "timezone": "REPORT_TIMEZONE",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="toggl2slack",
        description="Fetch a Toggl report and send it to Slack",
    )
    parser.add_argument("--date_from", required=True, help="Start date of the report period, e.g. 2020-01-01")
    parser.add_argument("--date_to", required=True, help="End date of the report period, e.g. 2020-01-31")
    parser.add_argument("-t", "--toggl_token", help="Toggl API token (env: TOGGL_API_TOKEN)")
    parser.add_argument("--workspace", help="Toggl workspace id (env: TOGGL_WORKSPACE)")
    parser.add_argument("--toggl_email", help="Email address sent as the Toggl user agent (env: TOGGL_EMAIL)")
    parser.add_argument("--slack_token", help="Slack API token (env: SLACK_TOKEN)")
    parser.add_argument("--slack_channel", help="Slack channel (env: SLACK_CHANNEL)")
    parser.add_argument("--discord_webhook_url", help="Discord webhook URL (env: DISCORD_WEBHOOK_URL)")
    parser.add_argument("--timezone", help="Time zone used to assign entries to days (env: REPORT_TIMEZONE)")
    parser.add_argument("--dry-run", action="store_true", help="Print the reports instead of sending them")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Increase log verbosity")
    return parser


def configure_logging(verbosity: int = 0) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbosity > 0 else logging.INFO,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


def build_sinks(config: Config) -> list[ReportSink]:
    sinks: list[ReportSink] = []
    if config.has_slack:
        sinks.append(SlackSink(config.slack_token, config.slack_channel))
    if config.discord_webhook_url:
        sinks.append(DiscordWebhookSink(config.discord_webhook_url))
    return sinks


def table_filename(period: Period) -> str:
    return f"toggl_report_{period.begin.isoformat()}_{period.end.isoformat()}.csv"


def run(
    config: Config,
    period: Period,
    client: TogglClient,
    sinks: Sequence[ReportSink],
) -> tuple[str, str]:
    """Fetch both reports, render them and hand them to every sink."""
    summary = render_summary(client.fetch_summary_report(period), period.begin, period.end)

    # The detailed table is only built once every page has been fetched.
    records = client.fetch_detailed_records(period, tz=config.timezone)
    table = render_table(aggregate(records), period.begin, period.end)

    filename = table_filename(period)
    for sink in sinks:
        sink.send(summary)
        sink.send(table, filename=filename)
    return summary, table


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    load_dotenv()
    configure_logging(args.verbose)

    overrides = {setting: getattr(args, flag) for flag, setting in CLI_OVERRIDES.items()}
    try:
        # A reversed period is rejected here, before any request is made.
        period = parse_period(args.date_from, args.date_to)
        config = load_config(overrides, require_sink=not args.dry_run)
    except ValueError as exc:
        parser.error(str(exc))

    client = TogglClient(
        config.toggl_token,
        config.toggl_workspace,
        config.toggl_email,
        page_delay=config.page_delay_seconds,
    )
    sinks = [] if args.dry_run else build_sinks(config)

    logger.info("Building Toggl report for %s..%s", period.begin, period.end)
    try:
        summary, table = run(config, period, client, sinks)
    except (TogglError, SlackError, discord.DiscordException):
        logger.exception("Failed to build or send the report")
        return 1

    if args.dry_run:
        sys.stdout.write(summary + "\n\n" + table)
    else:
        logger.info("Report sent to %d sink(s)", len(sinks))
    return 0


if __name__ == "__main__":
    sys.exit(main())
