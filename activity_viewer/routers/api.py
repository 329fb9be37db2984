"""API routers for loading the log, browsing entries and driving the live tail."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from activity_viewer import config
from activity_viewer.file_watcher import LogFileSource, TailState, default_ticks, live_tail
from activity_viewer.filters import apply_filters
from activity_viewer.log_store import load_log_file, log_store, start_live_tail, tail_callbacks
from activity_viewer.models import (
    KNOWN_ACTIONS,
    FileMetadata,
    FilterState,
    LogEntry,
    ParseStats,
    PollResult,
)
from activity_viewer.phase_stats import sort_phases

log_router = APIRouter(prefix="/api/log", tags=["log"])
tail_router = APIRouter(prefix="/api/tail", tags=["tail"])


# ── Request / response models ───────────────────────────────────────

class LoadRequest(BaseModel):
    path: str


class LoadResponse(BaseModel):
    metadata: FileMetadata
    parseTimeMs: float = 0.0
    liveTail: str = TailState.IDLE.value


class EntryDetail(BaseModel):
    entry: LogEntry
    parent: Optional[LogEntry] = None
    children: list[LogEntry] = Field(default_factory=list)


class Facets(BaseModel):
    agents: list[str] = Field(default_factory=list)
    actions: list[str] = Field(default_factory=list)
    phases: list[str] = Field(default_factory=list)
    workSeqs: list[str] = Field(default_factory=list)


class TailStatus(BaseModel):
    state: str
    loaded: bool = False
    fileName: str = ""
    consecutiveFailures: int = 0
    maxFailures: int = config.LIVE_TAIL_MAX_FAILURES
    parseStats: ParseStats = Field(default_factory=ParseStats)


def filter_params(
    agent: Optional[list[str]] = Query(None),
    action: Optional[list[str]] = Query(None),
    phase: Optional[list[str]] = Query(None),
    work_seq: Optional[list[str]] = Query(None),
    file: Optional[str] = Query(None),
    requirement: Optional[str] = Query(None),
) -> FilterState:
    """Build a FilterState from repeated query parameters."""
    return FilterState(
        agents=set(agent or []),
        actions=set(action or []),
        phases=set(phase or []),
        workSeqs=set(work_seq or []),
        fileFilter=file or None,
        requirementFilter=requirement or None,
    )


def _current_source() -> LogFileSource:
    if not log_store.metadata.filePath:
        raise HTTPException(status_code=409, detail="No log file loaded")
    return LogFileSource(Path(log_store.metadata.filePath))


# ── Log ─────────────────────────────────────────────────────────────

@log_router.post("/load", response_model=LoadResponse)
async def load_log(req: LoadRequest):
    """Load (or reload) a JSONL activity log from disk, replacing the current one."""
    source = LogFileSource(Path(req.path).expanduser())
    await live_tail.stop()
    try:
        result = await load_log_file(log_store, source)
    except (OSError, UnicodeDecodeError) as e:
        raise HTTPException(status_code=400, detail=f"Could not read {req.path}: {e}")

    if config.LIVE_TAIL_ENABLED:
        await start_live_tail(log_store, live_tail, source, default_ticks(source.path))
    else:
        live_tail.configure(source.reacquire, tail_callbacks(log_store))

    return LoadResponse(
        metadata=log_store.metadata,
        parseTimeMs=result.parseTimeMs,
        liveTail=live_tail.state.value,
    )


@log_router.get("/metadata", response_model=FileMetadata)
async def get_metadata():
    return log_store.metadata


@log_router.get("/entries", response_model=list[LogEntry])
async def list_entries(filters: FilterState = Depends(filter_params)):
    """Entries in file order, narrowed by the active filters."""
    return apply_filters(log_store.entries, filters)


@log_router.get("/entries/{log_seq}", response_model=EntryDetail)
async def get_entry(log_seq: int):
    entry = log_store.get_entry(log_seq)
    if entry is None:
        raise HTTPException(status_code=404, detail=f"Entry {log_seq} not found")

    indices = log_store.indices
    parent = indices.entry_map.get(entry.parent_log_seq) if entry.parent_log_seq is not None else None
    children = [
        indices.entry_map[seq]
        for seq in indices.parent_child_map.get(log_seq, [])
        if seq in indices.entry_map
    ]
    return EntryDetail(entry=entry, parent=parent, children=children)


@log_router.get("/facets", response_model=Facets)
async def get_facets():
    """Distinct values available to each filter dimension."""
    indices = log_store.indices
    seen: list[str] = []
    for entry in log_store.entries:
        if entry.action not in seen:
            seen.append(entry.action)
    # Known actions in their fixed order, then anything else as it appeared.
    actions = [action for action in KNOWN_ACTIONS if action in seen]
    actions += [action for action in seen if action not in KNOWN_ACTIONS]
    return Facets(
        agents=list(indices.agent_index),
        actions=actions,
        phases=sort_phases(list(indices.phase_index)),
        workSeqs=sorted(indices.work_seq_index),
    )


# ── Live tail ───────────────────────────────────────────────────────

def _tail_status() -> TailStatus:
    return TailStatus(
        state=live_tail.state.value,
        loaded=log_store.is_loaded,
        fileName=log_store.metadata.fileName,
        consecutiveFailures=live_tail.consecutive_failures,
        maxFailures=live_tail.max_failures,
        parseStats=log_store.parse_stats,
    )


@tail_router.get("/status", response_model=TailStatus)
async def get_tail_status():
    return _tail_status()


@tail_router.post("/poll", response_model=PollResult)
async def poll_now():
    """Run one acquisition immediately and return the entries it appended."""
    source = _current_source()
    if live_tail.state is TailState.DISABLED:
        raise HTTPException(status_code=409, detail="Live tail is disabled; restart it first")
    if not live_tail.is_configured:
        live_tail.configure(source.reacquire, tail_callbacks(log_store))

    delivered = await live_tail.poll_now()
    if not delivered:
        return PollResult(error=f"Could not re-read {source.path}")
    return PollResult(
        newEntries=log_store.last_append.entries,
        skippedLines=log_store.last_append.skippedLines,
    )


@tail_router.post("/start", response_model=TailStatus)
async def start_tail():
    source = _current_source()
    await start_live_tail(log_store, live_tail, source, default_ticks(source.path))
    return _tail_status()


@tail_router.post("/stop", response_model=TailStatus)
async def stop_tail():
    await live_tail.stop()
    return _tail_status()
