#!/usr/bin/env python3
"""Summarize an activity log without starting the server.

Usage:
  python -m activity_viewer.scripts.log_summary path/to/activity.jsonl
  python -m activity_viewer.scripts.log_summary path/to/activity.jsonl --json
"""
from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any

from activity_viewer.indexer import compute_timestamp_range
from activity_viewer.models import ParseResult
from activity_viewer.pairing import pair_entries
from activity_viewer.parsers.activity_log import parse_log_content
from activity_viewer.phase_stats import compute_phase_stats


def summarize(result: ParseResult) -> dict[str, Any]:
    pairing = pair_entries(result.entries)
    timestamp_range = compute_timestamp_range(result.entries)
    return {
        "entries": len(result.entries),
        "skippedLines": result.skippedLines,
        "timestampRange": timestamp_range.model_dump() if timestamp_range else None,
        "phases": [stats.model_dump() for stats in compute_phase_stats(result.entries)],
        "pairing": {
            "bars": len(pairing.bars),
            "failedBars": sum(1 for bar in pairing.bars if bar.outcome == "failure"),
            "orphans": len(pairing.orphans),
            "markers": len(pairing.markers),
        },
    }


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Summarize a JSONL activity log")
    parser.add_argument("path")
    parser.add_argument("--json", action="store_true")
    args = parser.parse_args(argv)

    path = Path(args.path).expanduser()
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        print(f"Could not read {path}: {e}")
        return 2

    payload = summarize(parse_log_content(content))
    if args.json:
        print(json.dumps(payload, indent=2))
        return 0

    print(f"Log: {path}")
    print(f"Entries: {payload['entries']} (skipped lines: {payload['skippedLines']})")
    if payload["timestampRange"]:
        print(f"Range: {payload['timestampRange']['earliest']} .. {payload['timestampRange']['latest']}")
    print("")
    for stats in payload["phases"]:
        print(
            f"  {stats['name']:<16} {stats['completed']}/{stats['total']} complete"
            f" ({stats['percentage']}%), {stats['inProgress']} in progress, {stats['failures']} failures"
        )
    pairing = payload["pairing"]
    print("")
    print(
        f"Bars: {pairing['bars']} ({pairing['failedBars']} failed)"
        f", orphans: {pairing['orphans']}, markers: {pairing['markers']}"
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
