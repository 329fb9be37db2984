"""Derived lookup structures built from parsed log entries.

``build_indices`` populates every map from scratch; ``update_indices_incremental``
applies the same per-entry step to newly appended entries so a live tail never
has to rebuild. Both paths go through ``_index_entry``, which is what keeps an
incremental update equivalent to a full rebuild over the concatenated entries.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from activity_viewer.models import FileStats, LogEntry, RequirementTrace, TimestampRange
from activity_viewer.parsers.requirements import expand_all_requirements

ROOT_DIRECTORY = "/"


@dataclass
class LogIndices:
    entry_map: dict[int, LogEntry] = field(default_factory=dict)
    agent_index: dict[str, list[LogEntry]] = field(default_factory=dict)
    phase_index: dict[str, list[LogEntry]] = field(default_factory=dict)
    work_seq_index: dict[str, list[LogEntry]] = field(default_factory=dict)
    file_frequency_map: dict[str, FileStats] = field(default_factory=dict)
    requirement_index: dict[str, list[RequirementTrace]] = field(default_factory=dict)
    parent_child_map: dict[int, list[int]] = field(default_factory=dict)


def empty_indices() -> LogIndices:
    return LogIndices()


def build_indices(entries: list[LogEntry]) -> LogIndices:
    indices = LogIndices()
    for entry in entries:
        _index_entry(indices, entry)
    return indices


def update_indices_incremental(indices: LogIndices, new_entries: list[LogEntry]) -> None:
    """Extend ``indices`` in place with ``new_entries``; nothing is removed or recomputed."""
    for entry in new_entries:
        _index_entry(indices, entry)


def _index_entry(indices: LogIndices, entry: LogEntry) -> None:
    indices.entry_map[entry.log_seq] = entry

    indices.agent_index.setdefault(entry.agent, []).append(entry)

    if entry.phase:
        indices.phase_index.setdefault(entry.phase, []).append(entry)

    indices.work_seq_index.setdefault(entry.work_seq, []).append(entry)

    for file_path in entry.files_created:
        _update_file_stats(indices.file_frequency_map, file_path, entry.agent, "create")
    for file_path in entry.files_modified:
        _update_file_stats(indices.file_frequency_map, file_path, entry.agent, "modify")

    if entry.requirements:
        for req_id in expand_all_requirements(entry.requirements):
            indices.requirement_index.setdefault(req_id, []).append(
                RequirementTrace(entry=entry, phase=entry.phase, action=entry.action)
            )

    if entry.parent_log_seq is not None:
        indices.parent_child_map.setdefault(entry.parent_log_seq, []).append(entry.log_seq)


def file_directory(file_path: str) -> str:
    cut = file_path.rfind("/")
    return (file_path[:cut] if cut >= 0 else "") or ROOT_DIRECTORY


def _update_file_stats(
    file_frequency_map: dict[str, FileStats],
    file_path: str,
    agent: str,
    change: Literal["create", "modify"],
) -> None:
    stats = file_frequency_map.get(file_path)
    if stats is None:
        stats = FileStats(path=file_path, directory=file_directory(file_path))
        file_frequency_map[file_path] = stats

    stats.agents.add(agent)
    if change == "create":
        stats.createCount += 1
    else:
        stats.modifyCount += 1
    stats.totalCount = stats.createCount + stats.modifyCount
    stats.isChurn = stats.createCount > 0 and stats.modifyCount > 0


def compute_timestamp_range(entries: list[LogEntry]) -> TimestampRange | None:
    """Return the lexicographic min/max timestamp, or None for no entries."""
    if not entries:
        return None

    earliest = latest = entries[0].timestamp
    for entry in entries:
        if entry.timestamp < earliest:
            earliest = entry.timestamp
        if entry.timestamp > latest:
            latest = entry.timestamp
    return TimestampRange(earliest=earliest, latest=latest)
