"""Toggl report aggregation and delivery to Slack or Discord."""

__version__ = "1.0.0"
