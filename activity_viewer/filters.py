"""Filter evaluation: OR within a dimension, AND across dimensions."""
from __future__ import annotations

from typing import Iterable, Literal

from activity_viewer.models import FilterState, LogEntry

FilterDimension = Literal["agents", "actions", "phases", "workSeqs"]
FILTER_DIMENSIONS: tuple[str, ...] = ("agents", "actions", "phases", "workSeqs")


def create_empty_filter_state() -> FilterState:
    return FilterState()


def is_filter_active(state: FilterState) -> bool:
    return bool(
        state.agents
        or state.actions
        or state.phases
        or state.workSeqs
        or state.fileFilter is not None
        or state.requirementFilter is not None
    )


def matches_filter(entry: LogEntry, state: FilterState) -> bool:
    if state.agents and entry.agent not in state.agents:
        return False
    if state.actions and entry.action not in state.actions:
        return False
    if state.phases and entry.phase not in state.phases:
        return False
    if state.workSeqs and entry.work_seq not in state.workSeqs:
        return False
    if state.fileFilter:
        path = state.fileFilter
        if path not in entry.files_created and path not in entry.files_modified:
            return False
    if state.requirementFilter:
        if state.requirementFilter not in entry.requirements:
            return False
    return True


def apply_filters(entries: list[LogEntry], state: FilterState) -> list[LogEntry]:
    """Return the entries matching ``state``; the input list itself when no filter is set."""
    if not is_filter_active(state):
        return entries
    return [entry for entry in entries if matches_filter(entry, state)]


# ── State transitions ───────────────────────────────────────────────

def _check_dimension(dimension: str) -> None:
    if dimension not in FILTER_DIMENSIONS:
        raise ValueError(f"Unknown filter dimension: {dimension}")


def set_filter(state: FilterState, dimension: FilterDimension, values: Iterable[str]) -> FilterState:
    _check_dimension(dimension)
    return state.model_copy(update={dimension: set(values)})


def toggle_filter_value(state: FilterState, dimension: FilterDimension, value: str) -> FilterState:
    _check_dimension(dimension)
    current = set(getattr(state, dimension))
    if value in current:
        current.discard(value)
    else:
        current.add(value)
    return state.model_copy(update={dimension: current})


def clear_filter(state: FilterState, dimension: FilterDimension) -> FilterState:
    _check_dimension(dimension)
    return state.model_copy(update={dimension: set()})


def set_file_filter(state: FilterState, file_path: str | None) -> FilterState:
    return state.model_copy(update={"fileFilter": file_path})


def set_requirement_filter(state: FilterState, requirement: str | None) -> FilterState:
    return state.model_copy(update={"requirementFilter": requirement})


def clear_all() -> FilterState:
    return create_empty_filter_state()
