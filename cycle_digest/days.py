"""Group cycle records by UTC day and reduce each day to a summary."""
from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from datetime import UTC, date, datetime, timedelta

from loguru import logger

from cycle_digest.models import CycleRecord, CycleStatus, DaySummary, RawCommit
from cycle_digest.parser import parse_commit

DATE_KEY_LENGTH = 10
MAX_DAYS = 30


def date_key(timestamp: str) -> str:
    """Return the UTC calendar date (YYYY-MM-DD) of an ISO timestamp."""
    return timestamp[:DATE_KEY_LENGTH]


def group_records(records: Iterable[CycleRecord]) -> dict[str, list[CycleRecord]]:
    """Bucket already ordered records by day, keeping their order."""
    days: dict[str, list[CycleRecord]] = defaultdict(list)
    for record in records:
        days[date_key(record.timestamp)].append(record)
    return dict(days)


def group_by_day(commits: Iterable[RawCommit]) -> dict[str, list[CycleRecord]]:
    """Parse commits and bucket them by day in chronological order.

    Commits arrive newest-first from the API. They are reversed and then
    stably sorted by timestamp, so ties keep their oldest-first order.
    """
    chronological = sorted(reversed(list(commits)), key=lambda c: c.timestamp)
    records = [parse_commit(c.message, c.timestamp) for c in chronological]
    days = group_records(records)
    logger.debug("Grouped commits", commits=len(records), days=len(days))
    return days


def summarize_day(day: str, records: list[CycleRecord]) -> DaySummary:
    """Reduce a day's ordered records into a summary."""
    counts: dict[CycleStatus, int] = {"idle": 0, "active": 0, "error": 0, "manual": 0}
    events: list[str] = []
    balance_start: int | None = None
    balance_end: int | None = None
    heartbeat_start: int | None = None
    heartbeat_end: int | None = None

    for record in records:
        counts[record.status] += 1
        events.extend(record.events)
        if record.balance is not None:
            if balance_start is None:
                balance_start = record.balance
            balance_end = record.balance
        if record.heartbeat is not None:
            if heartbeat_start is None:
                heartbeat_start = record.heartbeat
            heartbeat_end = record.heartbeat

    balance_delta = None
    if balance_start is not None and balance_end is not None:
        balance_delta = balance_end - balance_start

    return DaySummary(
        date=day,
        cycles=list(records),
        total_cycles=counts["idle"] + counts["active"] + counts["error"],
        active_cycles=counts["active"],
        idle_cycles=counts["idle"],
        error_cycles=counts["error"],
        manual_commits=counts["manual"],
        balance_start=balance_start,
        balance_end=balance_end,
        balance_delta=balance_delta,
        heartbeat_start=heartbeat_start,
        heartbeat_end=heartbeat_end,
        events=events,
    )


def utc_today() -> date:
    """Return the current UTC date."""
    return datetime.now(UTC).date()


def days_ago(n: int, today: date | None = None) -> str:
    """Return the date key for N days before today (UTC)."""
    base = today or utc_today()
    return (base - timedelta(days=n)).isoformat()


def clamp_days(days: int) -> int:
    """Clamp a requested day count to 1..MAX_DAYS."""
    return max(1, min(days, MAX_DAYS))


def select_days(
    grouped: dict[str, list[CycleRecord]],
    days: int,
    today: date | None = None,
) -> list[DaySummary]:
    """Summarize the last N days, most recent first.

    Past days without records are skipped; today is always included.
    """
    base = today or utc_today()
    summaries: list[DaySummary] = []
    for offset in range(clamp_days(days)):
        key = days_ago(offset, base)
        records = grouped.get(key, [])
        if not records and offset > 0:
            continue
        summaries.append(summarize_day(key, records))
    return summaries


def build_day_summaries(
    commits: Iterable[RawCommit],
    days: int,
    today: date | None = None,
) -> list[DaySummary]:
    """Run the parse, group and summarize pipeline over raw commits."""
    return select_days(group_by_day(commits), days, today)
