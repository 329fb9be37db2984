"""Pydantic models for log entries and the structures derived from them."""
from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

# ── Log entries ─────────────────────────────────────────────────────

REQUIRED_FIELDS: tuple[str, ...] = ("log_seq", "timestamp", "agent", "action")

KNOWN_ACTIONS: tuple[str, ...] = (
    "START",
    "COMPLETE",
    "DECISION",
    "REVIEW_PASS",
    "REVIEW_FAIL",
    "TEST_PASS",
    "TEST_FAIL",
    "ERROR",
    "FILE_CREATE",
    "FILE_MODIFY",
    "BLOCKED",
    "UNBLOCKED",
)


class LogEntry(BaseModel):
    """One parsed line of the activity log.

    Field names follow the JSONL line format so entries can be dumped back
    out unchanged. ``action`` is kept as a plain string: values outside
    ``KNOWN_ACTIONS`` flow through untouched.
    """

    model_config = ConfigDict(frozen=True)

    log_seq: int
    work_seq: str = ""
    timestamp: str
    agent: str
    action: str
    phase: str = ""
    parent_log_seq: Optional[int] = None
    requirements: list[str] = Field(default_factory=list)
    task_id: Optional[str] = None
    details: str = ""
    files_created: list[str] = Field(default_factory=list)
    files_modified: list[str] = Field(default_factory=list)
    decisions: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    duration_ms: Optional[float] = None


class FileStats(BaseModel):
    path: str
    directory: str
    createCount: int = 0
    modifyCount: int = 0
    totalCount: int = 0
    agents: set[str] = Field(default_factory=set)
    isChurn: bool = False


class RequirementTrace(BaseModel):
    entry: LogEntry
    phase: str
    action: str


class TimestampRange(BaseModel):
    earliest: str
    latest: str


# ── Parsing / loading ───────────────────────────────────────────────

class ParseResult(BaseModel):
    entries: list[LogEntry] = Field(default_factory=list)
    skippedLines: int = 0
    parseTimeMs: float = 0.0


class FileMetadata(BaseModel):
    fileName: str = ""
    filePath: str = ""
    totalEntries: int = 0
    skippedLines: int = 0
    timestampRange: Optional[TimestampRange] = None


class ParseStats(BaseModel):
    parseTimeMs: float = 0.0
    lastPollTime: Optional[str] = None
    consecutiveFailures: int = 0


class PollResult(BaseModel):
    newEntries: list[LogEntry] = Field(default_factory=list)
    skippedLines: int = 0
    error: Optional[str] = None


# ── Pairing ─────────────────────────────────────────────────────────

class DurationBar(BaseModel):
    startEntry: LogEntry
    endEntry: LogEntry
    outcome: Literal["success", "failure"]


class OrphanStart(BaseModel):
    entry: LogEntry


class MarkerEvent(BaseModel):
    entry: LogEntry
    parentBar: Optional[DurationBar] = None


class PairingResult(BaseModel):
    bars: list[DurationBar] = Field(default_factory=list)
    orphans: list[OrphanStart] = Field(default_factory=list)
    markers: list[MarkerEvent] = Field(default_factory=list)


# ── Phase progress ──────────────────────────────────────────────────

class PhaseStats(BaseModel):
    name: str
    total: int = 0
    completed: int = 0
    inProgress: int = 0
    failures: int = 0
    percentage: int = 0


# ── Filters ─────────────────────────────────────────────────────────

class FilterState(BaseModel):
    agents: set[str] = Field(default_factory=set)
    actions: set[str] = Field(default_factory=set)
    phases: set[str] = Field(default_factory=set)
    workSeqs: set[str] = Field(default_factory=set)
    fileFilter: Optional[str] = None
    requirementFilter: Optional[str] = None
