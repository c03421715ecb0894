"""Line-buffer helpers shared by the data file merges.

A data file is handled as a list of lines: read once, merged into a new list
by one of the ``merge_*`` modules, then written back once.
"""
from __future__ import annotations

import logging
import os
import re
import unicodedata
from pathlib import Path
from typing import Callable, Optional

logger = logging.getLogger(__name__)

DIGITS_PATTERN = re.compile(r"(\d+)")
ROW_MARKER_PATTERN = re.compile(r"^\[\d+\]")
LEADING_ID_PATTERN = re.compile(r"^-?\d+$")


def split_lines(text: str) -> list[str]:
    return text.replace("\r\n", "\n").strip("\n").split("\n")


def join_lines(lines: list[str]) -> str:
    return "\n".join(lines).rstrip("\n") + "\n"


def flatten_blocks(blocks: list[str]) -> list[str]:
    lines: list[str] = []
    for block in blocks:
        lines.extend(block.split("\n"))
    return lines


def is_comment(line: str) -> bool:
    return line.startswith("#")


def leading_field(line: str) -> str:
    return line.split("\t", 1)[0]


def leading_id(line: str) -> Optional[int]:
    """Integer id in the first tab field of ``line``, or None."""
    token = leading_field(line).strip()
    if not LEADING_ID_PATTERN.match(token):
        return None
    return int(token)


def is_placeholder(line: str, value: int) -> bool:
    return line.strip() == str(value)


def strip_row_marker(text: str) -> str:
    return ROW_MARKER_PATTERN.sub("", text, count=1)


def _fold(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).casefold()


def natural_key(text: str) -> list:
    """Case- and accent-insensitive key that orders digit runs by value.

    ``Item 2`` < ``Item 9`` < ``Item 10``.
    """
    parts = DIGITS_PATTERN.split(_fold(text))
    return [int(part) if idx % 2 else part for idx, part in enumerate(parts)]


def block_sort_key(block: str) -> list:
    """Natural key of a coalesced block: its last line, ``[n]`` marker removed."""
    return natural_key(strip_row_marker(block.split("\n")[-1]))


def coalesce_comments(
    lines: list[str],
    attaches: Callable[[str], bool] = is_comment,
) -> list[str]:
    """Join every line matching ``attaches`` onto the line that follows it.

    Runs of matching lines chain together, so ``# a``, ``# b``, ``data``
    becomes the single block ``"# a\\n# b\\ndata"``. A trailing comment with
    nothing after it stays a block of its own.
    """
    blocks: list[str] = []
    carry: Optional[str] = None
    for line in lines:
        block = line if carry is None else f"{carry}\n{line}"
        if attaches(line):
            carry = block
            continue
        blocks.append(block)
        carry = None
    if carry is not None:
        blocks.append(carry)
    return blocks


def write_lines(path: Path, lines: list[str]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(join_lines(lines), encoding="utf-8")
    os.replace(tmp, path)


def reconcile_file(path: Path, merge: Callable[[list[str]], list[str]]) -> tuple[str, str]:
    """Read ``path``, apply ``merge`` and write the result if it changed.

    Returns the text before and after the merge.
    """
    before = path.read_text(encoding="utf-8")
    merged = merge(split_lines(before))
    after = join_lines(merged)
    if after != before:
        write_lines(path, merged)
        logger.debug("rewrote %s", path)
    return before, after
