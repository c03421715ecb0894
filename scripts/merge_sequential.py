"""Merge records into files keyed by an ascending integer id.

``items.txt`` is one continuous run of ids. ``classskills.txt`` is split into
per-class blocks separated by blank lines; ids only ascend inside a block and
the block-aware variant keeps a new skill inside the block it extends.
Unused ids are held by placeholder lines carrying the bare id.
"""
from __future__ import annotations

import logging
from collections import deque

from data_lines import is_placeholder, leading_id

logger = logging.getLogger(__name__)


def _record_order(line: str):
    value = leading_id(line)
    return (value if value is not None else -1, line)


def _already_present(lines: list[str], record: str) -> bool:
    # Stored rows can carry trailing fields newer captures lack.
    return any(line.startswith(record) for line in lines)


def _absent(lines: list[str], records: list[str]) -> list[str]:
    kept: list[str] = []
    for record in sorted(set(records), key=_record_order):
        if _already_present(lines, record) or _already_present(kept, record):
            continue
        kept.append(record)
    return kept


def merge_sequential(lines: list[str], records: list[str], block_aware: bool = False) -> list[str]:
    merged = list(lines)
    pending = deque(_absent(lines, records))

    cursor = 1
    last_id = 0
    last_id_at = 0
    while pending:
        record = pending[0]
        incoming = leading_id(record)
        if incoming is None:
            logger.warning("Record has no leading id: %r", record)
            pending.popleft()
            continue

        if cursor >= len(merged):
            merged.append(str(last_id + 1))

        current = leading_id(merged[cursor])
        if current is None:
            cursor += 1
            continue

        if current > incoming:
            if last_id_at > 0 and last_id >= incoming:
                logger.warning("Id %s is already taken, dropping %r", incoming, record)
                pending.popleft()
                continue
            if block_aware and last_id_at > 0:
                # The record belongs to the block that just closed: grow it by one.
                cursor = last_id_at + 1
                current = last_id + 1
                merged.insert(cursor, str(current))
            else:
                merged.insert(cursor, pending.popleft())
                last_id, last_id_at = incoming, cursor
                cursor += 1
                continue

        last_id, last_id_at = current, cursor

        if current < incoming:
            cursor += 1
            continue

        if is_placeholder(merged[cursor], incoming):
            merged[cursor] = pending.popleft()
            cursor += 1
            continue

        logger.warning("Id %s already holds %r, keeping it over %r", incoming, merged[cursor], record)
        pending.popleft()

    return merged


def merge_items(lines: list[str], records: list[str]) -> list[str]:
    return merge_sequential(lines, records)


def merge_skills(lines: list[str], records: list[str]) -> list[str]:
    return merge_sequential(lines, records, block_aware=True)
