"""In-memory log store owning the parsed entries and their derived indices."""
from __future__ import annotations

import logging
from typing import AsyncIterator, Optional

from activity_viewer.date_utils import utc_now_iso
from activity_viewer.file_watcher import LiveTail, LogFileSource, TailCallbacks
from activity_viewer.indexer import (
    LogIndices,
    build_indices,
    compute_timestamp_range,
    empty_indices,
    update_indices_incremental,
)
from activity_viewer.models import FileMetadata, LogEntry, ParseResult, ParseStats
from activity_viewer.observability import record_ingestion, record_skipped_lines, start_span
from activity_viewer.parsers.activity_log import parse_incremental_content, parse_log_content

logger = logging.getLogger("activity_viewer.store")


class LogStore:
    """Holds one loaded log file for the session.

    A file load replaces entries, indices and metadata wholesale. An append
    only ever adds: new entries go on the end and the existing indices are
    extended in place. Callers must not run two ingestion operations at once.
    """

    def __init__(self):
        self.entries: list[LogEntry] = []
        self.indices: LogIndices = empty_indices()
        self.metadata = FileMetadata()
        self.parse_stats = ParseStats()
        self.last_append = ParseResult()

    @property
    def is_loaded(self) -> bool:
        return bool(self.metadata.filePath or self.entries)

    @property
    def last_log_seq(self) -> int:
        return self.entries[-1].log_seq if self.entries else 0

    def load_file(self, content: str, file_name: str, file_path: str) -> ParseResult:
        with start_span("log.load", {"file.path": file_path}):
            result = parse_log_content(content)
            indices = build_indices(result.entries)
            timestamp_range = compute_timestamp_range(result.entries)

        self.entries = list(result.entries)
        self.indices = indices
        self.metadata = FileMetadata(
            fileName=file_name,
            filePath=file_path,
            totalEntries=len(result.entries),
            skippedLines=result.skippedLines,
            timestampRange=timestamp_range,
        )
        self.parse_stats = ParseStats(parseTimeMs=result.parseTimeMs)

        record_ingestion("load", "success", result.parseTimeMs, entries=len(result.entries))
        record_skipped_lines(result.skippedLines, kind="load")
        logger.info(
            "Loaded %s: %d entries, %d skipped lines (%.1f ms)",
            file_name or file_path,
            len(result.entries),
            result.skippedLines,
            result.parseTimeMs,
        )
        return result

    def append_entries(self, content: str) -> ParseResult:
        """Ingest re-read file content, keeping only entries past the last held ``log_seq``."""
        with start_span("log.append", {"watermark": self.last_log_seq}):
            result = parse_incremental_content(content, self.last_log_seq)
        self.last_append = result

        now = utc_now_iso()
        if not result.entries:
            self.parse_stats = self.parse_stats.model_copy(
                update={"lastPollTime": now, "consecutiveFailures": 0}
            )
            record_ingestion("append", "empty", result.parseTimeMs)
            return result

        self.entries.extend(result.entries)
        update_indices_incremental(self.indices, result.entries)
        self.metadata = self.metadata.model_copy(
            update={
                "totalEntries": len(self.entries),
                "skippedLines": self.metadata.skippedLines + result.skippedLines,
                "timestampRange": compute_timestamp_range(self.entries),
            }
        )
        self.parse_stats = ParseStats(
            parseTimeMs=result.parseTimeMs,
            lastPollTime=now,
            consecutiveFailures=0,
        )

        record_ingestion("append", "success", result.parseTimeMs, entries=len(result.entries))
        record_skipped_lines(result.skippedLines, kind="append")
        logger.info("Appended %d new entries (last log_seq %d)", len(result.entries), self.last_log_seq)
        return result

    def record_poll_failure(self, consecutive_failures: int) -> None:
        self.parse_stats = self.parse_stats.model_copy(
            update={"consecutiveFailures": consecutive_failures}
        )

    def get_entry(self, log_seq: int) -> Optional[LogEntry]:
        return self.indices.entry_map.get(log_seq)

    def reset(self) -> None:
        self.entries = []
        self.indices = empty_indices()
        self.metadata = FileMetadata()
        self.parse_stats = ParseStats()
        self.last_append = ParseResult()


async def load_log_file(store: LogStore, source: LogFileSource) -> ParseResult:
    """Read ``source`` and replace the store contents; OSError propagates."""
    content = await source.acquire_initial()
    return store.load_file(content, source.path.name, str(source.path))


def tail_callbacks(store: LogStore) -> TailCallbacks:
    def on_new_content(content: str) -> None:
        store.append_entries(content)

    def on_error(exc: Exception, consecutive_failures: int) -> None:
        store.record_poll_failure(consecutive_failures)

    def on_disabled() -> None:
        logger.warning("Live updates disabled for %s; restart the tail to resume", store.metadata.fileName)

    return TailCallbacks(on_new_content=on_new_content, on_error=on_error, on_disabled=on_disabled)


async def start_live_tail(
    store: LogStore,
    tail: LiveTail,
    source: LogFileSource,
    ticks: AsyncIterator[None] | None = None,
) -> None:
    await tail.start(source.reacquire, tail_callbacks(store), ticks)


# Global instance for the running application
log_store = LogStore()
