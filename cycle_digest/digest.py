#!/usr/bin/env python3
"""Generate a daily cycle digest from an agent's commit log."""
from __future__ import annotations

import argparse
import concurrent.futures
import json
import sys
import time
from datetime import UTC, date, datetime

from loguru import logger

from cycle_digest.days import build_day_summaries, clamp_days, days_ago
from cycle_digest.github import fetch_commits, fetch_health
from cycle_digest.models import DaySummary, Health, RawCommit
from cycle_digest.narrative import (
    narrate_day,
    narrate_health,
    narrate_timeline,
    pluralize,
)
from cycle_digest.settings import Settings, get_settings
from cycle_digest.slack import escape_slack_text, post_to_slack, trim_message

WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
MONTHS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)
STATS_SEPARATOR = " · "
INVALID_REPO_MESSAGE = "Repository must be given as OWNER/NAME."
JSONDict = dict[str, object]


def log_elapsed(message: str, start: float, **fields: object) -> None:
    """Log elapsed time with additional fields."""
    elapsed = f"{time.perf_counter() - start:.2f}s"
    logger.info(
        "{message} (elapsed {elapsed})",
        message=message,
        elapsed=elapsed,
        **fields,
    )


def format_date(day: str) -> str:
    """Format a YYYY-MM-DD key as 'Mon, Oct 19'."""
    parsed = date.fromisoformat(day)
    return f"{WEEKDAYS[parsed.weekday()]}, {MONTHS[parsed.month - 1]} {parsed.day}"


def day_label(day: str, today: date) -> str:
    """Return 'Today' for the current date, otherwise the formatted date."""
    if day == today.isoformat():
        return "Today"
    return format_date(day)


def active_ratio(summary: DaySummary) -> int:
    """Return the share of active cycles as a whole percentage."""
    if summary.total_cycles == 0:
        return 0
    return int(summary.active_cycles * 100 / summary.total_cycles + 0.5)


def stats_line(summary: DaySummary) -> str:
    """Build the one-line stats header for a day."""
    cycles = pluralize(summary.total_cycles, "cycle")
    if summary.manual_commits > 0:
        cycles += f" + {summary.manual_commits} manual"
    parts = [cycles]
    ratio = active_ratio(summary)
    if ratio > 0:
        parts.append(f"{ratio}% active")
    if summary.balance_delta:
        parts.append(f"{summary.balance_delta:+,} sats")
    if summary.balance_end is not None:
        parts.append(f"{summary.balance_end:,} sats")
    if summary.events:
        parts.append(pluralize(len(summary.events), "event"))
    if summary.error_cycles > 0:
        parts.append(pluralize(summary.error_cycles, "error"))
    return STATS_SEPARATOR.join(parts)


def render_day(summary: DaySummary, today: date) -> list[str]:
    """Render one day as heading, stats, narrative and timeline lines."""
    lines = [
        f"{day_label(summary.date, today)} ({summary.date})",
        stats_line(summary),
        narrate_day(summary),
    ]
    lines.extend(f"  {line}" for line in narrate_timeline(summary))
    return lines


def render_digest(
    summaries: list[DaySummary],
    health: Health | None,
    today: date,
) -> str:
    """Render the plain-text digest for a list of day summaries."""
    blocks = [narrate_health(health)]
    if not summaries:
        blocks.append("No activity data found.")
    blocks.extend("\n".join(render_day(summary, today)) for summary in summaries)
    return "\n\n".join(blocks)


def days_to_json(summaries: list[DaySummary]) -> list[JSONDict]:
    """Return the camelCase JSON view of day summaries."""
    return [summary.model_dump(mode="json", by_alias=True) for summary in summaries]


def health_to_json(health: Health | None) -> JSONDict | None:
    """Return the JSON view of the health document."""
    if health is None:
        return None
    return health.model_dump(mode="json")


def iso_window(days: int, now: datetime | None = None) -> tuple[str, str]:
    """Return the UTC since/until timestamps covering the last N days."""
    current = now or datetime.now(UTC)
    since = days_ago(days, current.date()) + "T00:00:00Z"
    until = current.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")
    return since, until


def fetch_inputs(
    settings: Settings,
    repo: str,
    since_iso: str,
    until_iso: str,
) -> tuple[list[RawCommit], Health | None]:
    """Fetch the commit log and the health document concurrently."""
    with concurrent.futures.ThreadPoolExecutor(max_workers=2) as executor:
        commits_future = executor.submit(
            fetch_commits,
            settings,
            repo,
            since_iso,
            until_iso,
        )
        health_future = executor.submit(fetch_health, settings)
        return commits_future.result(), health_future.result()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(description="Daily Cycle Digest")
    parser.add_argument(
        "--days",
        type=int,
        default=None,
        help="Number of days to include (1-30, default from CYCLE_DAYS)",
    )
    parser.add_argument(
        "--repo",
        default=None,
        help="Repository to read as OWNER/NAME (default from CYCLE_REPO)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the JSON view instead of the text digest",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print instead of posting to Slack",
    )
    return parser.parse_args(argv)


def run_digest(args: argparse.Namespace, settings: Settings) -> None:
    """Execute the digest workflow."""
    repo = args.repo or settings.cycle_repo
    if "/" not in repo:
        raise SystemExit(INVALID_REPO_MESSAGE)
    days = clamp_days(args.days if args.days is not None else settings.cycle_days)
    now = datetime.now(UTC)
    since_iso, until_iso = iso_window(days, now)
    logger.info(
        "Window: {start} → {end}",
        start=since_iso,
        end=until_iso,
        repo=repo,
        days=days,
    )

    start = time.perf_counter()
    commits, health = fetch_inputs(settings, repo, since_iso, until_iso)
    log_elapsed("Fetched commits", start, count=len(commits))

    summaries = build_day_summaries(commits, days, now.date())
    logger.info(
        "Built day summaries",
        days=len(summaries),
        cycles=sum(summary.total_cycles for summary in summaries),
        health="ok" if health is not None else "unavailable",
    )

    if args.json:
        payload = {"health": health_to_json(health), "days": days_to_json(summaries)}
        sys.stdout.write(json.dumps(payload, indent=2) + "\n")
        return

    digest = render_digest(summaries, health, now.date())
    window_line = f"{repo}: {since_iso[:10]} → {until_iso[:10]}"
    if args.dry_run or not settings.slack_webhook_url:
        logger.info("--- DRY RUN OUTPUT ---")
        logger.opt(raw=True).info(
            "{message}\n",
            message=f"{window_line}\n\n{digest}",
        )
        return
    message = trim_message(escape_slack_text(digest))
    post_to_slack(settings.slack_webhook_url, message, escape_slack_text(window_line))
    logger.info("Posted digest to Slack")


def main(argv: list[str] | None = None) -> int:
    """Run the digest CLI."""
    logger.info("Starting digest run")
    args = parse_args(argv)
    settings = get_settings()
    run_digest(args, settings)
    return 0


if __name__ == "__main__":
    sys.exit(main())
