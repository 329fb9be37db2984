"""Observability helpers."""

from activity_viewer.observability.otel import (
    initialize,
    shutdown,
    start_span,
    record_ingestion,
    record_poll_failure,
    record_skipped_lines,
)

__all__ = [
    "initialize",
    "shutdown",
    "start_span",
    "record_ingestion",
    "record_poll_failure",
    "record_skipped_lines",
]
