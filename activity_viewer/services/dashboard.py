"""Phase progress dashboard data: phase stats, active agents, decisions, work sequences."""
from __future__ import annotations

from typing import Iterable

from pydantic import BaseModel, Field

from activity_viewer.indexer import LogIndices
from activity_viewer.models import LogEntry, PhaseStats
from activity_viewer.pairing import FAILURE_TERMINALS
from activity_viewer.phase_stats import compute_phase_stats

# Actions that close an agent's open START for the active-agent summary.
_CLOSING_ACTIONS = frozenset({"COMPLETE", "REVIEW_PASS", "REVIEW_FAIL", "ERROR"})


class WorkSeqProgress(BaseModel):
    workSeq: str
    phases: list[PhaseStats] = Field(default_factory=list)


class DashboardSummary(BaseModel):
    phases: list[PhaseStats] = Field(default_factory=list)
    activeAgents: list[str] = Field(default_factory=list)
    decisions: list[LogEntry] = Field(default_factory=list)
    errorCount: int = 0
    workSeqs: list[WorkSeqProgress] = Field(default_factory=list)


def find_active_agents(entries: list[LogEntry]) -> list[str]:
    """Agents with at least one START that no later closing entry resolved.

    A START is keyed by ``agent-task_id`` (or its own ``log_seq``); a closing
    entry removes the key ``agent-task_id``, falling back to its
    ``parent_log_seq`` and then its own ``log_seq``.
    """
    open_starts: dict[str, LogEntry] = {}
    for entry in entries:
        if entry.action == "START":
            unit = entry.task_id if entry.task_id is not None else entry.log_seq
            open_starts[f"{entry.agent}-{unit}"] = entry
        elif entry.action in _CLOSING_ACTIONS:
            if entry.task_id is not None:
                unit = entry.task_id
            elif entry.parent_log_seq is not None:
                unit = entry.parent_log_seq
            else:
                unit = entry.log_seq
            open_starts.pop(f"{entry.agent}-{unit}", None)

    agents: list[str] = []
    for entry in open_starts.values():
        if entry.agent not in agents:
            agents.append(entry.agent)
    return agents


def decision_log(entries: list[LogEntry]) -> list[LogEntry]:
    """DECISION entries, newest first."""
    decisions = [entry for entry in entries if entry.action == "DECISION"]
    return sorted(decisions, key=lambda entry: entry.timestamp, reverse=True)


def work_seq_breakdown(indices: LogIndices) -> list[WorkSeqProgress]:
    return [
        WorkSeqProgress(workSeq=work_seq, phases=compute_phase_stats(indices.work_seq_index[work_seq]))
        for work_seq in sorted(indices.work_seq_index)
    ]


def count_failures(entries: Iterable[LogEntry]) -> int:
    """Errors and failed reviews/tests, for the error badge."""
    return sum(1 for entry in entries if entry.action in FAILURE_TERMINALS)


def build_dashboard(entries: list[LogEntry], indices: LogIndices) -> DashboardSummary:
    """Dashboard payload for a (possibly filtered) entry list.

    The per-work-sequence breakdown reads the unfiltered indices and is only
    included when the log spans more than one work sequence. The error badge
    also counts over the whole log.
    """
    breakdown = work_seq_breakdown(indices) if len(indices.work_seq_index) > 1 else []
    return DashboardSummary(
        phases=compute_phase_stats(entries),
        activeAgents=find_active_agents(entries),
        decisions=decision_log(entries),
        errorCount=count_failures(indices.entry_map.values()),
        workSeqs=breakdown,
    )
