"""Shared timestamp parsing helpers."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any


def _format_datetime_utc(value: datetime) -> str:
    dt = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 token into an aware datetime (naive values are UTC)."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        cleaned = value.strip()
        if not cleaned:
            return None
        try:
            parsed = datetime.fromisoformat(cleaned.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def timestamp_epoch_ms(value: Any) -> float | None:
    parsed = parse_timestamp(value)
    if parsed is None:
        return None
    return parsed.timestamp() * 1000.0


def utc_now_iso() -> str:
    return _format_datetime_utc(datetime.now(timezone.utc))
