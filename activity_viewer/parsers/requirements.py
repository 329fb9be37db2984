"""Expand requirement range shorthand into individual identifiers."""
from __future__ import annotations

import re

# "REQ-CORE-FN-001 through REQ-CORE-FN-051": the prefix must repeat verbatim
# (case-insensitively) on the right-hand side.
_RANGE_PATTERN = re.compile(r"(.+-?)(\d+)\s+through\s+\1(\d+)", re.IGNORECASE)


def expand_requirement_range(range_str: str) -> list[str]:
    """Expand ``<prefix><digits> through <prefix><digits>`` into every id in the range.

    Ids are zero-padded to the digit width of the start value. Strings that do
    not match the range shape, or whose start exceeds the end, come back
    unchanged as a single-element list.
    """
    match = _RANGE_PATTERN.fullmatch(range_str)
    if not match:
        return [range_str]

    prefix, start_digits, end_digits = match.group(1), match.group(2), match.group(3)
    start = int(start_digits)
    end = int(end_digits)
    if start > end:
        return [range_str]

    width = len(start_digits)
    return [f"{prefix}{str(value).zfill(width)}" for value in range(start, end + 1)]


def expand_all_requirements(requirements: list[str]) -> list[str]:
    expanded: list[str] = []
    for requirement in requirements:
        expanded.extend(expand_requirement_range(requirement))
    return expanded
