"""Per-phase completion statistics computed over unique work units."""
from __future__ import annotations

import math

from activity_viewer.models import LogEntry, PhaseStats
from activity_viewer.pairing import FAILURE_TERMINALS, START_ACTION, SUCCESS_TERMINALS

# Canonical workflow phase order, used everywhere phases are listed.
CANONICAL_PHASE_ORDER: tuple[str, ...] = (
    "requirements",
    "architecture",
    "design",
    "planning",
    "implementation",
    "review",
    "testing",
    "documentation",
    "deployment",
)
_PHASE_RANK = {name: idx for idx, name in enumerate(CANONICAL_PHASE_ORDER)}


def _phase_sort_key(phase: str) -> tuple[int, int, str]:
    rank = _PHASE_RANK.get(phase)
    if rank is not None:
        return (0, rank, "")
    return (1, 0, phase)


def sort_phases(phases: list[str]) -> list[str]:
    """Known phases in canonical order, then unknown phases alphabetically."""
    return sorted(phases, key=_phase_sort_key)


def work_unit_key(entry: LogEntry) -> str:
    # Without a task id every entry is its own unit, so unrelated entries of
    # one agent never merge.
    unit = entry.task_id if entry.task_id is not None else entry.log_seq
    return f"{entry.agent}|{unit}"


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _phase_stats(name: str, phase_entries: list[LogEntry]) -> PhaseStats:
    work_units: dict[str, list[LogEntry]] = {}
    for entry in phase_entries:
        work_units.setdefault(work_unit_key(entry), []).append(entry)

    total = 0
    completed = 0
    failures = 0
    for unit_entries in work_units.values():
        if not any(e.action == START_ACTION for e in unit_entries):
            continue
        total += 1

        latest = max(unit_entries, key=lambda e: e.log_seq)
        if latest.action in SUCCESS_TERMINALS:
            completed += 1
        elif latest.action in FAILURE_TERMINALS:
            failures += 1

    in_progress = max(0, total - completed - failures)
    percentage = min(100, _round_half_up(completed / total * 100)) if total > 0 else 0

    return PhaseStats(
        name=name,
        total=total,
        completed=completed,
        inProgress=in_progress,
        failures=failures,
        percentage=percentage,
    )


def compute_phase_stats(entries: list[LogEntry]) -> list[PhaseStats]:
    """Compute one PhaseStats per phase present, in canonical order.

    ``total`` counts work units (``agent|task_id``, or ``agent|log_seq`` when
    there is no task id) that contain a START. A unit is completed or failed
    according to its latest entry by ``log_seq``; everything else counted is
    in progress. ``percentage`` never exceeds 100. Entries without a phase are
    ignored. The function keeps no state between calls.
    """
    phase_map: dict[str, list[LogEntry]] = {}
    for entry in entries:
        if not entry.phase:
            continue
        phase_map.setdefault(entry.phase, []).append(entry)

    return [_phase_stats(name, phase_map[name]) for name in sort_phases(list(phase_map))]
