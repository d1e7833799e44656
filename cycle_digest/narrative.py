"""Rule-based narration of day summaries and individual cycles."""
from __future__ import annotations

from collections.abc import Iterable

from cycle_digest.models import CycleRecord, CycleStatus, DaySummary, Health

NO_ACTIVITY_SENTENCE = "No activity recorded."
STATUS_UNAVAILABLE_SENTENCE = "Status unavailable."
MAX_LISTED_EVENTS = 3
CYCLE_VERBS: dict[CycleStatus, str] = {
    "idle": "checked in (idle)",
    "error": "ran into an issue",
    "active": "was active",
}
TIME_SLICE = slice(11, 16)


def pluralize(count: int, singular: str, plural: str | None = None) -> str:
    """Return '<count> <noun>' with the noun matching the count."""
    noun = singular if count == 1 else (plural or f"{singular}s")
    return f"{count} {noun}"


def unique_events(events: Iterable[str]) -> list[str]:
    """Deduplicate events, keeping the first occurrence of each."""
    return list(dict.fromkeys(events))


def activity_clause(summary: DaySummary) -> str:
    """Describe how many cycles ran and what kind they were."""
    if summary.total_cycles == 0:
        if summary.manual_commits == 0:
            return NO_ACTIVITY_SENTENCE
        manual = pluralize(summary.manual_commits, "manual action")
        return f"No cycles ran, only {manual}."
    cycles = pluralize(summary.total_cycles, "cycle")
    if summary.active_cycles > 0 and summary.idle_cycles > 0:
        return (
            f"Ran {cycles}: {summary.active_cycles} active "
            f"and {summary.idle_cycles} idle."
        )
    if summary.active_cycles == 0:
        return f"Quiet day with {cycles} and no active work."
    return f"Busy day with {cycles}, {summary.active_cycles} of them active."


def issue_clause(summary: DaySummary) -> str | None:
    """Report error cycles, if any."""
    if summary.error_cycles == 0:
        return None
    return f"Ran into {pluralize(summary.error_cycles, 'issue')}."


def balance_clause(summary: DaySummary) -> str | None:
    """Describe the balance movement over the day."""
    if summary.balance_end is None or summary.balance_delta is None:
        return None
    delta = summary.balance_delta
    end = summary.balance_end
    if delta > 0:
        return f"Balance grew by {delta:,} sats to {end:,} sats."
    if delta < 0:
        return f"Balance fell by {abs(delta):,} sats to {end:,} sats."
    return f"Balance held steady at {end:,} sats."


def heartbeat_clause(summary: DaySummary) -> str | None:
    """Report how many heartbeats were sent.

    Assumes heartbeat numbers increase by exactly one per check-in; skipped
    or out-of-order numbers produce a misleading count.
    """
    if summary.heartbeat_start is None or summary.heartbeat_end is None:
        return None
    count = summary.heartbeat_end - summary.heartbeat_start + 1
    return f"Sent {pluralize(count, 'heartbeat')}."


def events_clause(summary: DaySummary) -> str | None:
    """List the day's notable events, capped at a few."""
    events = unique_events(event for event in summary.events if event)
    if not events:
        return None
    if len(events) <= MAX_LISTED_EVENTS:
        return f"Notable: {', '.join(events)}."
    listed = ", ".join(events[:MAX_LISTED_EVENTS])
    return f"Notable: {listed}, and {len(events) - MAX_LISTED_EVENTS} more."


def narrate_day(summary: DaySummary) -> str:
    """Turn a day summary into a short paragraph."""
    clauses = [
        activity_clause(summary),
        issue_clause(summary),
        balance_clause(summary),
        heartbeat_clause(summary),
        events_clause(summary),
    ]
    return " ".join(clause for clause in clauses if clause)


def narrate_cycle(record: CycleRecord) -> str:
    """Describe a single record in one line."""
    if record.status == "manual" or record.cycle is None:
        return record.headline
    line = f"Cycle {record.cycle} {CYCLE_VERBS[record.status]}"
    if record.events:
        line += f": {', '.join(record.events)}"
    if record.balance_delta:
        line += f" ({record.balance_delta:+,} sats)"
    return line


def narrate_timeline(summary: DaySummary) -> list[str]:
    """Return one time-stamped line per record of the day."""
    return [
        f"{record.timestamp[TIME_SLICE]} {narrate_cycle(record)}"
        for record in summary.cycles
    ]


def narrate_health(health: Health | None) -> str:
    """Render the live status line."""
    if health is None:
        return STATUS_UNAVAILABLE_SENTENCE
    parts = [
        f"Cycle {health.cycle}",
        f"{health.stats.sbtc_balance:,} sats",
        f"Heartbeat #{health.stats.checkin_count}",
    ]
    next_at = health.next_cycle_at[TIME_SLICE]
    if next_at:
        parts.append(f"next cycle at {next_at} UTC")
    return " · ".join(parts)
