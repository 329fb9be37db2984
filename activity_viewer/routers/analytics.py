"""Analytics router for the timeline, phase progress, file heatmap and traceability views."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from activity_viewer.filters import apply_filters
from activity_viewer.log_store import log_store
from activity_viewer.models import (
    DurationBar,
    FilterState,
    MarkerEvent,
    OrphanStart,
    PhaseStats,
)
from activity_viewer.observability import start_span
from activity_viewer.pairing import pair_entries
from activity_viewer.phase_stats import compute_phase_stats
from activity_viewer.routers.api import filter_params
from activity_viewer.services.dashboard import DashboardSummary, build_dashboard
from activity_viewer.services.heatmap import HeatmapData, SortMode, build_heatmap
from activity_viewer.services.timeline import (
    Connection,
    LabelMode,
    WorkSeqGroup,
    build_connections,
    build_work_seq_groups,
)
from activity_viewer.services.traceability import TraceabilityMatrix, build_traceability

analytics_router = APIRouter(prefix="/api/analytics", tags=["analytics"])


class TimelineResponse(BaseModel):
    groups: list[WorkSeqGroup] = Field(default_factory=list)
    bars: list[DurationBar] = Field(default_factory=list)
    orphans: list[OrphanStart] = Field(default_factory=list)
    markers: list[MarkerEvent] = Field(default_factory=list)
    connections: list[Connection] = Field(default_factory=list)


@analytics_router.get("/timeline", response_model=TimelineResponse)
async def get_timeline(
    filters: FilterState = Depends(filter_params),
    label_mode: LabelMode = Query("taskId"),
):
    """Duration bars, orphans and markers for the filtered entries, grouped by work sequence."""
    entries = apply_filters(log_store.entries, filters)
    with start_span("analytics.timeline", {"entries": len(entries)}):
        pairing = pair_entries(entries)
        groups = build_work_seq_groups(entries, pairing, label_mode)
        connections = build_connections(
            log_store.indices.parent_child_map,
            log_store.indices.entry_map,
            {entry.log_seq for entry in entries},
        )
    return TimelineResponse(
        groups=groups,
        bars=pairing.bars,
        orphans=pairing.orphans,
        markers=pairing.markers,
        connections=connections,
    )


@analytics_router.get("/phases", response_model=list[PhaseStats])
async def get_phases(filters: FilterState = Depends(filter_params)):
    return compute_phase_stats(apply_filters(log_store.entries, filters))


@analytics_router.get("/dashboard", response_model=DashboardSummary)
async def get_dashboard(filters: FilterState = Depends(filter_params)):
    return build_dashboard(apply_filters(log_store.entries, filters), log_store.indices)


@analytics_router.get("/files", response_model=HeatmapData)
async def get_file_heatmap(sort: SortMode = Query("count")):
    """File activity over the whole log; filters do not apply."""
    return build_heatmap(log_store.indices.file_frequency_map, sort)


@analytics_router.get("/requirements", response_model=TraceabilityMatrix)
async def get_requirements():
    return build_traceability(log_store.indices)
