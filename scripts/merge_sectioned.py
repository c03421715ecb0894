"""Merges for files split into ``# <name> section`` regions.

``equipment.txt`` and ``modifiers.txt`` are both laid out this way; each
section stays sorted on its own and comments travel with the line they
introduce.
"""
from __future__ import annotations

import logging
import re
from typing import Optional

from data_lines import (
    block_sort_key,
    coalesce_comments,
    flatten_blocks,
    is_comment,
    natural_key,
    strip_row_marker,
)

logger = logging.getLogger(__name__)

SECTION_HEADER_PATTERN = re.compile(r"# .*? section")
MODIFIER_BLOCK_PREFIX = "# *"

SECTION_PHRASES = {
    "offhand": "off-hand items",
    "accessory": "accessories",
    "food": "food",
    "pants": "pants",
    "drink": "booze",
    "spleen": "spleen toxins",
    "skill": "passive skills",
    "misc": "everything else",
}


def normalise_section(section: str, phrases: Optional[dict] = None) -> str:
    table = SECTION_PHRASES if phrases is None else phrases
    return table.get(section, f"{section}s")


def find_section(lines: list[str], section: str, phrases: Optional[dict] = None) -> Optional[tuple[int, int]]:
    """Return the ``(start, end)`` slice of a section's body, or None.

    The body starts two lines below the header and stops at the blank line
    before the next section header.
    """
    header = f"# {normalise_section(section, phrases)} section"
    start = next((idx for idx, line in enumerate(lines) if line.lower().startswith(header)), None)
    if start is None:
        logger.warning("Couldn't find section %s (%r)", section, header)
        return None

    start = min(start + 2, len(lines))
    end = next(
        (idx for idx in range(start + 1, len(lines)) if SECTION_HEADER_PATTERN.match(lines[idx])),
        None,
    )
    end = len(lines) if end is None else end - 1
    return start, max(start, end)


def _group_by_section(entries) -> dict[str, list[str]]:
    grouped: dict[str, list[str]] = {}
    for section, text in entries:
        grouped.setdefault(section, []).append(text)
    return grouped


def merge_equipment(lines: list[str], entries, phrases: Optional[dict] = None) -> list[str]:
    """Merge ``(section, line)`` pairs into equipment sections."""
    merged = list(lines)
    for section, new_lines in _group_by_section(entries).items():
        bounds = find_section(merged, section, phrases)
        if bounds is None:
            continue
        start, end = bounds

        present = set(merged)
        fresh: list[str] = []
        for line in new_lines:
            if line not in present and line not in fresh:
                fresh.append(line)
        if not fresh:
            continue

        blocks = coalesce_comments(merged[start:end]) + fresh
        body = sorted(blocks, key=block_sort_key)
        merged[start:end] = flatten_blocks(body)

    if not merged or merged[-1] != "":
        merged.append("")
    return merged


def modifier_sort_key(block: str) -> list:
    last = block.split("\n")[-1]
    if last.startswith("# "):
        piece = last[2:].split(":", 1)[0]
    else:
        piece = "\t".join(last.split("\t")[1:])
    return natural_key(strip_row_marker(piece))


def _is_modifier_block(line: str) -> bool:
    return line.startswith(MODIFIER_BLOCK_PREFIX)


def _is_malformed(block: str) -> bool:
    first = block.split("\n")[0]
    return is_comment(first) and ":" not in first


def merge_modifiers(lines: list[str], entries, phrases: Optional[dict] = None) -> list[str]:
    """Merge ``(section, block)`` pairs into modifier sections.

    A block is one or more newline-joined lines; its first line identifies it.
    """
    merged = list(lines)
    for section, new_blocks in _group_by_section(entries).items():
        candidates = [block for block in new_blocks if block and not _is_malformed(block)]
        if not candidates:
            continue

        bounds = find_section(merged, section, phrases)
        if bounds is None:
            continue
        start, end = bounds

        existing = coalesce_comments(merged[start:end], _is_modifier_block)
        seen = {line for block in existing for line in block.split("\n")}
        fresh: list[str] = []
        for block in candidates:
            first = block.split("\n")[0]
            if first in seen:
                continue
            seen.add(first)
            fresh.append(block)
        if not fresh:
            continue

        body = sorted(existing + fresh, key=modifier_sort_key)
        merged[start:end] = flatten_blocks(body)

    if not merged or merged[-1] != "":
        merged.append("")
    return merged
