"""Parse JSONL activity log content into LogEntry models.

Every line is parsed on its own. A line that is not a JSON object, or that
lacks one of the required fields, is counted as skipped and never aborts the
rest of the file.
"""
from __future__ import annotations

import json
import time
from typing import Any

from pydantic import ValidationError

from activity_viewer.models import REQUIRED_FIELDS, LogEntry, ParseResult


def _as_int(raw: Any) -> int | None:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw) if raw.is_integer() else None
    if isinstance(raw, str):
        try:
            return int(raw.strip())
        except ValueError:
            return None
    return None


def _as_float(raw: Any) -> float | None:
    if isinstance(raw, bool) or raw is None:
        return None
    if isinstance(raw, (int, float)):
        return float(raw)
    return None


def _as_text(raw: Any) -> str:
    return "" if raw is None else str(raw)


def _as_optional_text(raw: Any) -> str | None:
    return None if raw is None else str(raw)


def _as_str_list(raw: Any) -> list[str]:
    if not isinstance(raw, list):
        return []
    return [str(item) for item in raw if item is not None]


def parse_line(line: str) -> LogEntry | None:
    """Parse one log line, returning None for blank or malformed input."""
    if not line.strip():
        return None

    try:
        parsed = json.loads(line)
    except (json.JSONDecodeError, ValueError):
        return None
    if not isinstance(parsed, dict):
        return None

    for field in REQUIRED_FIELDS:
        if parsed.get(field) is None:
            return None

    log_seq = _as_int(parsed["log_seq"])
    if log_seq is None:
        return None

    try:
        return LogEntry(
            log_seq=log_seq,
            work_seq=_as_text(parsed.get("work_seq")),
            timestamp=_as_text(parsed.get("timestamp")),
            agent=_as_text(parsed.get("agent")),
            action=_as_text(parsed.get("action")),
            phase=_as_text(parsed.get("phase")),
            parent_log_seq=_as_int(parsed.get("parent_log_seq")),
            requirements=_as_str_list(parsed.get("requirements")),
            task_id=_as_optional_text(parsed.get("task_id")),
            details=_as_text(parsed.get("details")),
            files_created=_as_str_list(parsed.get("files_created")),
            files_modified=_as_str_list(parsed.get("files_modified")),
            decisions=_as_str_list(parsed.get("decisions")),
            errors=_as_str_list(parsed.get("errors")),
            duration_ms=_as_float(parsed.get("duration_ms")),
        )
    except ValidationError:
        return None


def _parse(content: str, last_log_seq: int | None) -> ParseResult:
    started = time.perf_counter()
    entries: list[LogEntry] = []
    skipped = 0

    for line in content.split("\n"):
        if not line.strip():
            continue
        entry = parse_line(line)
        if entry is None:
            skipped += 1
            continue
        if last_log_seq is None or entry.log_seq > last_log_seq:
            entries.append(entry)

    elapsed_ms = (time.perf_counter() - started) * 1000.0
    return ParseResult(entries=entries, skippedLines=skipped, parseTimeMs=elapsed_ms)


def parse_log_content(content: str) -> ParseResult:
    """Parse full file content into ordered entries plus a skipped-line count."""
    return _parse(content, None)


def parse_incremental_content(content: str, last_log_seq: int) -> ParseResult:
    """Parse re-read file content, keeping only entries past ``last_log_seq``.

    The whole content is parsed again (the file is re-read in full on every
    poll); entries at or below the watermark are dropped so they are not
    emitted twice. ``skippedLines`` still counts malformed lines anywhere in
    the content.
    """
    return _parse(content, last_log_seq)
