"""Pair START entries with terminal entries to reconstruct duration bars.

Algorithm:
1. Split entries into STARTs, terminals and markers by action. Anything else
   (unknown actions) is dropped.
2. Group terminals by agent, keeping arrival order.
3. For each START in input order, look through that agent's unconsumed
   terminals for the first one with a greater ``log_seq`` that matches:
   - primary: same ``task_id`` (only when the START carries one)
   - secondary: same ``phase`` and same ``parent_log_seq``
   A matched terminal is consumed and never offered to another START.
   STARTs without a match become orphans.
4. Markers are attached to the first bar of the same agent whose time span
   contains the marker's timestamp.
"""
from __future__ import annotations

from typing import Callable

from activity_viewer.date_utils import timestamp_epoch_ms
from activity_viewer.models import (
    DurationBar,
    LogEntry,
    MarkerEvent,
    OrphanStart,
    PairingResult,
)

START_ACTION = "START"

SUCCESS_TERMINALS: frozenset[str] = frozenset({"COMPLETE", "REVIEW_PASS", "TEST_PASS"})
FAILURE_TERMINALS: frozenset[str] = frozenset({"REVIEW_FAIL", "TEST_FAIL", "ERROR"})
TERMINAL_ACTIONS: frozenset[str] = SUCCESS_TERMINALS | FAILURE_TERMINALS
MARKER_ACTIONS: frozenset[str] = frozenset(
    {"DECISION", "FILE_CREATE", "FILE_MODIFY", "BLOCKED", "UNBLOCKED"}
)


def _first_unconsumed(
    candidates: list[LogEntry],
    consumed: set[int],
    predicate: Callable[[LogEntry], bool],
) -> LogEntry | None:
    for terminal in candidates:
        if terminal.log_seq in consumed:
            continue
        if predicate(terminal):
            return terminal
    return None


def _find_terminal(start: LogEntry, candidates: list[LogEntry], consumed: set[int]) -> LogEntry | None:
    matched = None
    if start.task_id:
        matched = _first_unconsumed(
            candidates,
            consumed,
            lambda t: t.task_id == start.task_id and t.log_seq > start.log_seq,
        )
    if matched is None:
        matched = _first_unconsumed(
            candidates,
            consumed,
            lambda t: (
                t.phase == start.phase
                and t.parent_log_seq == start.parent_log_seq
                and t.log_seq > start.log_seq
            ),
        )
    return matched


def _bar_contains(bar: DurationBar, marker_ms: float) -> bool:
    start_ms = timestamp_epoch_ms(bar.startEntry.timestamp)
    end_ms = timestamp_epoch_ms(bar.endEntry.timestamp)
    if start_ms is None or end_ms is None:
        return False
    return start_ms <= marker_ms <= end_ms


def pair_entries(entries: list[LogEntry]) -> PairingResult:
    starts: list[LogEntry] = []
    marker_entries: list[LogEntry] = []
    terminals_by_agent: dict[str, list[LogEntry]] = {}

    for entry in entries:
        if entry.action == START_ACTION:
            starts.append(entry)
        elif entry.action in TERMINAL_ACTIONS:
            terminals_by_agent.setdefault(entry.agent, []).append(entry)
        elif entry.action in MARKER_ACTIONS:
            marker_entries.append(entry)

    bars: list[DurationBar] = []
    orphans: list[OrphanStart] = []
    consumed: set[int] = set()

    for start in starts:
        candidates = terminals_by_agent.get(start.agent)
        matched = _find_terminal(start, candidates, consumed) if candidates else None
        if matched is None:
            orphans.append(OrphanStart(entry=start))
            continue

        consumed.add(matched.log_seq)
        outcome = "success" if matched.action in SUCCESS_TERMINALS else "failure"
        bars.append(DurationBar(startEntry=start, endEntry=matched, outcome=outcome))

    markers: list[MarkerEvent] = []
    for marker in marker_entries:
        parent_bar = None
        marker_ms = timestamp_epoch_ms(marker.timestamp)
        if marker_ms is not None:
            for bar in bars:
                if bar.startEntry.agent != marker.agent:
                    continue
                if _bar_contains(bar, marker_ms):
                    parent_bar = bar
                    break
        markers.append(MarkerEvent(entry=marker, parentBar=parent_bar))

    return PairingResult(bars=bars, orphans=orphans, markers=markers)
