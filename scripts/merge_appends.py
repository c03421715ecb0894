from __future__ import annotations

import logging

from data_lines import leading_field, natural_key

logger = logging.getLogger(__name__)

MONSTER_SCRATCH_HEADER = "# NEW MONSTERS - DO NOT COMMIT THIS TEXT"


def _row_sort_key(line: str) -> list:
    # Trailing field looks like ROW123; only the number part orders.
    return natural_key(line.split("\t")[-1][3:])


def _vendor_block(lines: list[str], vendor: str):
    prefix = f"{vendor}\t"
    start = next((idx for idx, line in enumerate(lines) if line.startswith(prefix)), None)
    if start is None:
        return None
    end = start
    while end < len(lines) and lines[end] != "":
        end += 1
    return start, end


def merge_shops(lines: list[str], rows: list[str]) -> list[str]:
    """Merge shop rows into each vendor's block of lines."""
    merged = list(lines)
    grouped: dict[str, list[str]] = {}
    for row in rows:
        grouped.setdefault(leading_field(row), []).append(row)

    for vendor, vendor_rows in grouped.items():
        present = set(merged)
        fresh: list[str] = []
        for row in vendor_rows:
            if row not in present and row not in fresh:
                fresh.append(row)
        if not fresh:
            continue

        bounds = _vendor_block(merged, vendor)
        if bounds is None:
            logger.info("new vendor block %s", vendor)
            while merged and merged[-1] == "":
                merged.pop()
            merged.append("")
            bounds = (len(merged), len(merged))
        start, end = bounds
        merged[start:end] = sorted(merged[start:end] + fresh, key=_row_sort_key)

    return merged


def merge_monsters(lines: list[str], monsters: list[str], header: str = MONSTER_SCRATCH_HEADER) -> list[str]:
    """Park new monsters under a scratch header for manual filing."""
    if header in lines:
        at = lines.index(header)
        body, scratch = lines[:at], lines[at + 1:]
    else:
        body, scratch = list(lines), []

    present = set(body)
    fresh = sorted({line for line in [*scratch, *monsters] if line and line not in present})
    if fresh == scratch:
        return list(lines)

    while body and body[-1] == "":
        body.pop()
    return [*body, "", header, *fresh]
