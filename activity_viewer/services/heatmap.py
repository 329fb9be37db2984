"""File activity heatmap data: sorted file statistics grouped by directory."""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from activity_viewer.indexer import ROOT_DIRECTORY
from activity_viewer.models import FileStats

SortMode = Literal["count", "path", "directory", "churn"]


class DirectoryGroup(BaseModel):
    directory: str
    totalCount: int = 0
    hasChurn: bool = False
    files: list[FileStats] = Field(default_factory=list)


class HeatmapData(BaseModel):
    maxCount: int = 1
    churnCount: int = 0
    directories: list[DirectoryGroup] = Field(default_factory=list)


def sort_files(files: list[FileStats], mode: SortMode = "count") -> list[FileStats]:
    if mode == "path":
        return sorted(files, key=lambda f: f.path)
    if mode == "directory":
        return sorted(files, key=lambda f: (f.directory, -f.totalCount))
    if mode == "churn":
        return sorted(files, key=lambda f: (not f.isChurn, -f.totalCount))
    return sorted(files, key=lambda f: -f.totalCount)


def group_by_directory(files: list[FileStats]) -> list[DirectoryGroup]:
    """Group files by directory, busiest directory first; file order is kept."""
    groups: dict[str, DirectoryGroup] = {}
    for stats in files:
        directory = stats.directory or ROOT_DIRECTORY
        group = groups.setdefault(directory, DirectoryGroup(directory=directory))
        group.files.append(stats)
        group.totalCount += stats.totalCount
        group.hasChurn = group.hasChurn or stats.isChurn
    return sorted(groups.values(), key=lambda g: -g.totalCount)


def max_count(files: list[FileStats]) -> int:
    return max([1, *(f.totalCount for f in files)])


def build_heatmap(file_frequency_map: dict[str, FileStats], mode: SortMode = "count") -> HeatmapData:
    files = sort_files(list(file_frequency_map.values()), mode)
    return HeatmapData(
        maxCount=max_count(files),
        churnCount=sum(1 for f in files if f.isChurn),
        directories=group_by_directory(files),
    )
