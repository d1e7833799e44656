"""Parse cycle telemetry out of commit messages.

Cycle reports look like::

    Cycle 412: idle, heartbeat #88, balance 12,400 sats (+200)

Anything that does not start with ``Cycle <n>:`` is a manual commit.
"""
from __future__ import annotations

import re

from cycle_digest.models import CycleRecord, CycleStatus

CYCLE_PREFIX_RE = re.compile(r"^Cycle\s+(\d+)(?:-\d+)?:", re.ASCII)
HEARTBEAT_RE = re.compile(r"heartbeat\s+#(\d+)", re.IGNORECASE | re.ASCII)
BALANCE_RE = re.compile(r"balance\s+([\d,]+)\s*sats", re.IGNORECASE | re.ASCII)
BALANCE_DELTA_RE = re.compile(r"\(([+-]\d[\d,]*)\)", re.ASCII)

# Evaluated top to bottom, first match wins; "active" is the fallback.
STATUS_RULES: list[tuple[CycleStatus, re.Pattern[str]]] = [
    ("idle", re.compile(r"\bidle\b", re.IGNORECASE | re.ASCII)),
    ("error", re.compile(r"\b(fail|error|blocked)\b", re.IGNORECASE | re.ASCII)),
]
DEFAULT_CYCLE_STATUS: CycleStatus = "active"

# Comma segments that only restate a structured field.
ROUTINE_SEGMENT_RES = [
    re.compile(r"idle", re.IGNORECASE | re.ASCII),
    re.compile(r"heartbeat\s+#\d+", re.IGNORECASE | re.ASCII),
    re.compile(
        r"balance\s+[\d,]+\s*sats(\s*\([+-][\d,]+\))?",
        re.IGNORECASE | re.ASCII,
    ),
    re.compile(r"GitHub clean", re.IGNORECASE | re.ASCII),
]


def first_line(message: str) -> str:
    """Return the first line of a commit message."""
    return message.split("\n", 1)[0]


def parse_grouped_int(text: str) -> int | None:
    """Parse an integer that may contain thousands separators.

    Returns None when nothing numeric is left or the digit run is longer than
    the interpreter's integer string conversion limit.
    """
    digits = text.replace(",", "")
    if digits in ("", "+", "-"):
        return None
    try:
        return int(digits)
    except ValueError:
        return None


def classify_status(body: str) -> CycleStatus:
    """Classify a cycle report body using the ordered status rules."""
    for status, pattern in STATUS_RULES:
        if pattern.search(body):
            return status
    return DEFAULT_CYCLE_STATUS


def extract_int(pattern: re.Pattern[str], body: str) -> int | None:
    """Return the first captured integer for a pattern, if any."""
    match = pattern.search(body)
    if match is None:
        return None
    return parse_grouped_int(match.group(1))


def is_routine_segment(segment: str) -> bool:
    """Return True when a segment only restates a recognized field."""
    return any(pattern.fullmatch(segment) for pattern in ROUTINE_SEGMENT_RES)


def extract_events(body: str) -> list[str]:
    """Return the comma-separated fragments not covered by known fields.

    A field written in prose is still extracted by the field patterns, and the
    segment holding it is kept here as an event unless the whole segment has
    one of the routine shapes.
    """
    events: list[str] = []
    for part in body.split(","):
        segment = part.strip()
        if not segment or is_routine_segment(segment):
            continue
        events.append(segment)
    return events


def parse_commit(message: str, timestamp: str) -> CycleRecord:
    """Parse one commit message into a cycle record. Never raises."""
    headline = first_line(message)
    match = CYCLE_PREFIX_RE.match(message)
    cycle = parse_grouped_int(match.group(1)) if match else None
    if match is None or cycle is None:
        return CycleRecord(
            status="manual",
            headline=headline,
            timestamp=timestamp,
            events=[headline],
        )

    body = message[match.end() :].strip()
    return CycleRecord(
        cycle=cycle,
        status=classify_status(body),
        headline=headline,
        timestamp=timestamp,
        heartbeat=extract_int(HEARTBEAT_RE, body),
        balance=extract_int(BALANCE_RE, body),
        balance_delta=extract_int(BALANCE_DELTA_RE, body),
        events=extract_events(body),
    )
