"""Timeline layout data: work-sequence groups, task rows and parent/child connections."""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from activity_viewer.models import LogEntry, PairingResult

LabelMode = Literal["taskId", "requirements"]


class TaskRow(BaseModel):
    logSeq: int
    agent: str
    type: Literal["bar", "orphan"]
    timestamp: str
    label: str = ""
    barLabel: str = ""


class WorkSeqGroup(BaseModel):
    workSeq: str
    taskRows: list[TaskRow] = Field(default_factory=list)
    entryCount: int = 0
    earliestTimestamp: str = ""


class Connection(BaseModel):
    parentSeq: int
    childSeq: int


def _task_row(start: LogEntry, row_type: Literal["bar", "orphan"], label_mode: LabelMode) -> TaskRow:
    return TaskRow(
        logSeq=start.log_seq,
        agent=start.agent,
        type=row_type,
        timestamp=start.timestamp,
        label=row_label(start, label_mode),
        barLabel=bar_label(start, label_mode),
    )


def build_work_seq_groups(
    entries: list[LogEntry],
    pairing: PairingResult,
    label_mode: LabelMode = "taskId",
) -> list[WorkSeqGroup]:
    """Group task rows by work sequence.

    Rows are keyed by the START's ``work_seq``, whatever sequence the matching
    terminal was logged under. Groups are ordered by the timestamp of their
    first entry and rows by start timestamp.
    """
    entries_by_seq: dict[str, list[LogEntry]] = {}
    for entry in entries:
        entries_by_seq.setdefault(entry.work_seq, []).append(entry)

    rows_by_seq: dict[str, list[TaskRow]] = {}
    for bar in pairing.bars:
        start = bar.startEntry
        rows_by_seq.setdefault(start.work_seq, []).append(_task_row(start, "bar", label_mode))
    for orphan in pairing.orphans:
        start = orphan.entry
        rows_by_seq.setdefault(start.work_seq, []).append(_task_row(start, "orphan", label_mode))

    ordered_seqs = sorted(entries_by_seq, key=lambda seq: entries_by_seq[seq][0].timestamp)

    groups: list[WorkSeqGroup] = []
    for work_seq in ordered_seqs:
        seq_entries = entries_by_seq[work_seq]
        rows = sorted(rows_by_seq.get(work_seq, []), key=lambda row: row.timestamp)
        groups.append(
            WorkSeqGroup(
                workSeq=work_seq,
                taskRows=rows,
                entryCount=len(seq_entries),
                earliestTimestamp=seq_entries[0].timestamp,
            )
        )
    return groups


def build_connections(
    parent_child_map: dict[int, list[int]],
    entry_map: dict[int, LogEntry],
    visible_seqs: set[int],
) -> list[Connection]:
    """Parent -> child links where both ends are known and visible.

    Only direct links are read, so a cyclic ``parent_log_seq`` chain is
    harmless here.
    """
    connections: list[Connection] = []
    for parent_seq, child_seqs in parent_child_map.items():
        if parent_seq not in visible_seqs or parent_seq not in entry_map:
            continue
        for child_seq in child_seqs:
            if child_seq not in visible_seqs or child_seq not in entry_map:
                continue
            connections.append(Connection(parentSeq=parent_seq, childSeq=child_seq))
    return connections


def bar_label(entry: LogEntry, mode: LabelMode = "taskId") -> str:
    """Text drawn on a bar: the task id or requirements, else agent and action."""
    if mode == "taskId" and entry.task_id:
        return entry.task_id
    if mode == "requirements" and entry.requirements:
        return ", ".join(entry.requirements)
    return f"{entry.agent} {entry.action}"


def row_label(entry: LogEntry, mode: LabelMode = "taskId") -> str:
    """Left-column label, always ``"agent: detail"``."""
    if mode == "requirements" and entry.requirements:
        detail = ", ".join(entry.requirements)
    else:
        detail = entry.task_id or entry.action
    return f"{entry.agent}: {detail}"
