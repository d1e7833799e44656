"""Data models shared by the parser, the day pipeline and the renderers."""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

CycleStatus = Literal["idle", "active", "error", "manual"]


class CamelModel(BaseModel):
    """Base model that serializes to camelCase keys for the JSON view."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RawCommit(BaseModel):
    """A commit as supplied by the hosting API."""

    model_config = ConfigDict(frozen=True)

    message: str
    timestamp: str
    sha: str | None = None


class CycleRecord(CamelModel):
    """Structured telemetry parsed from a single commit message."""

    cycle: int | None = None
    status: CycleStatus = "manual"
    headline: str
    timestamp: str
    heartbeat: int | None = None
    balance: int | None = None
    balance_delta: int | None = None
    events: list[str] = Field(default_factory=list)


class DaySummary(CamelModel):
    """Aggregate view of one UTC calendar day."""

    date: str
    cycles: list[CycleRecord]
    total_cycles: int
    active_cycles: int
    idle_cycles: int
    error_cycles: int
    manual_commits: int
    balance_start: int | None
    balance_end: int | None
    balance_delta: int | None
    heartbeat_start: int | None
    heartbeat_end: int | None
    events: list[str]


class HealthStats(BaseModel):
    """Counters reported by the daemon's health document."""

    checkin_count: int
    sbtc_balance: int
    idle_cycles_count: int = 0
    tasks_executed: int = 0
    replies_sent: int = 0


class Health(BaseModel):
    """Live status document published next to the commit log."""

    cycle: int
    timestamp: str
    status: str
    stats: HealthStats
    next_cycle_at: str
