"""Operator range expressions ("1-5, 8, 10-12") to commit indices."""

from __future__ import annotations

import re

__all__ = ["parse_selection"]

_SINGLE = re.compile(r"^(\d+)$")
_RANGE = re.compile(r"^(\d+)\s*-\s*(\d+)$")


def parse_selection(text: str, maximum: int) -> list[int]:
    """Parse a comma-separated list of 1-based indices and ranges.

    `5-2` is read as `2-5`. Tokens that are not numbers or ranges, and indices
    outside `[1, maximum]`, are dropped without error. The result is sorted
    and free of duplicates; it is empty when nothing valid was given.
    """
    if maximum < 1:
        return []

    picked: set[int] = set()
    for raw in text.split(","):
        token = raw.strip()
        if not token:
            continue

        if single := _SINGLE.match(token):
            index = int(single.group(1))
            if 1 <= index <= maximum:
                picked.add(index)
            continue

        if span := _RANGE.match(token):
            low, high = sorted((int(span.group(1)), int(span.group(2))))
            picked.update(range(max(low, 1), min(high, maximum) + 1))

    return sorted(picked)
