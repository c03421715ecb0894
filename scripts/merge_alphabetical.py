from __future__ import annotations

import logging

from data_lines import (
    block_sort_key,
    coalesce_comments,
    flatten_blocks,
    is_comment,
    leading_field,
    leading_id,
)

logger = logging.getLogger(__name__)


def find_data_start(lines: list[str]) -> int:
    """Index of the first data line; line 0 is the file's version number."""
    for idx, line in enumerate(lines):
        if idx > 0 and line != "" and not is_comment(line):
            return idx
    return len(lines)


def _is_new(existing: list[str], value: str) -> bool:
    field = leading_field(value)
    prefix = f"{field}\t"
    for block in existing:
        data = block.split("\n")[-1]
        if data == value or data.startswith(prefix):
            return False
    return True


def fill_gaps(lines: list[str], start: int) -> list[str]:
    """Insert placeholder ids between consecutive increasing real ids.

    Placeholders go in front of any comments leading up to the real id so the
    comments stay attached to it.
    """
    filled = list(lines[:start])
    waiting: list[str] = []
    last_id = 0
    for line in lines[start:]:
        if line == "" or is_comment(line):
            waiting.append(line)
            continue
        value = leading_id(line)
        if value is not None and value > last_id:
            filled.extend(str(missing) for missing in range(last_id + 1, value))
            last_id = value
        filled.extend(waiting)
        filled.append(line)
        waiting = []
    filled.extend(waiting)
    return filled


def merge_alphabetical(lines: list[str], values: list[str], fill: bool = False) -> list[str]:
    start = find_data_start(lines)
    preamble = lines[:start]
    existing = coalesce_comments(lines[start:])

    fresh: list[str] = []
    for value in values:
        if not _is_new(existing, value) or value in fresh:
            continue
        fresh.append(value)

    if not fresh:
        return list(lines)

    placeholders = {leading_field(value) for value in fresh}
    carried: dict[str, list[str]] = {}
    kept: list[str] = []
    for block in existing:
        *comments, data = block.split("\n")
        if data.strip() in placeholders:
            carried[data.strip()] = comments
            continue
        kept.append(block)
    fresh = ["\n".join([*carried.get(leading_field(value), []), value]) for value in fresh]
    logger.debug("adding %d entries", len(fresh))

    region = sorted(kept + fresh, key=block_sort_key)
    merged = preamble + flatten_blocks(region)

    if fill:
        merged = fill_gaps(merged, start)
    if not merged or merged[-1] != "":
        merged.append("")
    return merged
