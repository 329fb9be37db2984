"""Requirements traceability matrix and coverage summary."""
from __future__ import annotations

import re

from pydantic import BaseModel, Field

from activity_viewer.indexer import LogIndices
from activity_viewer.models import RequirementTrace
from activity_viewer.pairing import FAILURE_TERMINALS, SUCCESS_TERMINALS
from activity_viewer.phase_stats import sort_phases

_TRAILING_NUMBER = re.compile(r"-\d+$")

# Phases that count toward requirement coverage.
_COVERAGE_PHASES = ("implementation", "review", "testing")


class ReqPhaseStatus(BaseModel):
    hasEntry: bool = False
    actions: list[str] = Field(default_factory=list)
    hasFail: bool = False
    hasPass: bool = False


class RequirementRow(BaseModel):
    reqId: str
    phases: dict[str, ReqPhaseStatus] = Field(default_factory=dict)


class RequirementGroup(BaseModel):
    prefix: str
    requirements: list[RequirementRow] = Field(default_factory=list)


class CoverageStats(BaseModel):
    total: int = 0
    withImpl: int = 0
    withReview: int = 0
    withTest: int = 0
    coveragePercent: int = 0


class TraceabilityMatrix(BaseModel):
    phases: list[str] = Field(default_factory=list)
    groups: list[RequirementGroup] = Field(default_factory=list)
    coverage: CoverageStats = Field(default_factory=CoverageStats)


def requirement_prefix(req_id: str) -> str:
    """``REQ-CORE-FN-001`` -> ``REQ-CORE-FN``."""
    return _TRAILING_NUMBER.sub("", req_id)


def _phase_status(traces: list[RequirementTrace]) -> ReqPhaseStatus:
    return ReqPhaseStatus(
        hasEntry=bool(traces),
        actions=[t.action for t in traces],
        hasFail=any(t.action in FAILURE_TERMINALS for t in traces),
        hasPass=any(t.action in SUCCESS_TERMINALS for t in traces),
    )


def build_requirement_matrix(indices: LogIndices) -> list[RequirementGroup]:
    phases = sort_phases(list(indices.phase_index))
    groups: dict[str, RequirementGroup] = {}

    for req_id, traces in indices.requirement_index.items():
        prefix = requirement_prefix(req_id)
        group = groups.setdefault(prefix, RequirementGroup(prefix=prefix))
        group.requirements.append(
            RequirementRow(
                reqId=req_id,
                phases={phase: _phase_status([t for t in traces if t.phase == phase]) for phase in phases},
            )
        )

    return [groups[prefix] for prefix in sorted(groups)]


def compute_coverage(indices: LogIndices) -> CoverageStats:
    total = len(indices.requirement_index)
    hits = {phase: 0 for phase in _COVERAGE_PHASES}
    for traces in indices.requirement_index.values():
        for phase in _COVERAGE_PHASES:
            if any(t.phase == phase for t in traces):
                hits[phase] += 1

    covered = sum(hits.values())
    percent = int(covered / (total * len(_COVERAGE_PHASES)) * 100 + 0.5) if total > 0 else 0
    return CoverageStats(
        total=total,
        withImpl=hits["implementation"],
        withReview=hits["review"],
        withTest=hits["testing"],
        coveragePercent=percent,
    )


def build_traceability(indices: LogIndices) -> TraceabilityMatrix:
    return TraceabilityMatrix(
        phases=sort_phases(list(indices.phase_index)),
        groups=build_requirement_matrix(indices),
        coverage=compute_coverage(indices),
    )
