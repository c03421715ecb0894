#!/usr/bin/env python3
"""Fold the discoveries from a session log into the data repository files.

    sync-discoveries sessions/player_20231215.txt
    sync-discoveries --snapshot discoveries.json --no-sync --repo-dir ../kolmafia

The working copy is reset, checked out and pulled first (or cloned when
missing), each data file is merged in turn, and the resulting diff is printed
for review. Nothing is committed.
"""
import argparse
import difflib
import logging
import sys
from functools import partial
from pathlib import Path

import repo_sync
from data_lines import reconcile_file
from discover_session import (
    CONSUMABLE,
    EFFECT,
    EQUIPMENT,
    FAMILIAR,
    ITEM,
    MODIFIER,
    MONSTER,
    OUTFIT,
    SHOP,
    SKILL,
    DiscoverySession,
    dump_snapshot,
    load_snapshot,
    read_session_log,
)
from merge_alphabetical import merge_alphabetical
from merge_appends import merge_monsters, merge_shops
from merge_sectioned import merge_equipment, merge_modifiers
from merge_sequential import merge_items, merge_skills
from sync_config import load_config, target_path


def _plan(session: DiscoverySession, config):
    """Yield ``(target, values, merge)`` for every data file in merge order."""
    phrases = config["section_phrases"]
    gaps = set(config["fill_gaps"])

    def simple(target, values):
        return target, values, partial(merge_alphabetical, values=values, fill=target in gaps)

    items = session.lines(ITEM)
    yield "items", items, partial(merge_items, records=items)
    skills = session.lines(SKILL)
    yield "skills", skills, partial(merge_skills, records=skills)
    equipment = session.sectioned(EQUIPMENT)
    yield "equipment", equipment, partial(merge_equipment, entries=equipment, phrases=phrases)
    for section in ("food", "drink", "spleen"):
        yield simple(section, [block for _, block in session.sectioned(CONSUMABLE, section)])
    yield simple("outfits", session.lines(OUTFIT))
    yield simple("effects", session.lines(EFFECT))
    yield simple("familiars", session.lines(FAMILIAR))
    monsters = session.lines(MONSTER)
    yield "monsters", monsters, partial(merge_monsters, monsters=monsters, header=config["monster_header"])
    shops = session.lines(SHOP)
    yield "shops", shops, partial(merge_shops, rows=shops)
    modifiers = session.sectioned(MODIFIER)
    yield "modifiers", modifiers, partial(merge_modifiers, entries=modifiers, phrases=phrases)


def reconcile_session(session: DiscoverySession, config):
    """Merge every category into its target file; return the changed files."""
    changes = []
    for target, values, merge in _plan(session, config):
        if not values:
            continue
        path = target_path(config, target)
        if not path.exists():
            raise FileNotFoundError(f"Target file not found: {path}")
        before, after = reconcile_file(path, merge)
        if before == after:
            print(f"unchanged {path.name}")
            continue
        changes.append((path, before, after))
        print(f"reconciled {path.name}: {len(before.splitlines())} -> {len(after.splitlines())} lines")
    return changes


def render_diff(changes) -> str:
    chunks = []
    for path, before, after in changes:
        chunks.extend(difflib.unified_diff(
            before.splitlines(keepends=True),
            after.splitlines(keepends=True),
            fromfile=f"a/{path}",
            tofile=f"b/{path}",
        ))
    return "".join(chunks)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Merge discoveries from a session log into the data repository files.")
    parser.add_argument("session", nargs="?", type=Path, help="Session log to scan for discoveries.")
    parser.add_argument("--snapshot", type=Path, help="Load discoveries from a JSON snapshot instead of a session log.")
    parser.add_argument("--dump-snapshot", type=Path, help="Write the discoveries to a JSON snapshot.")
    parser.add_argument("--config", type=Path, help="YAML file overriding repository and data file settings.")
    parser.add_argument("--repo-dir", type=Path, help="Working copy of the data repository.")
    parser.add_argument("--branch", help="Branch to check out before merging.")
    parser.add_argument("--no-sync", action="store_true", help="Use the working copy as-is; skip reset, pull and clone.")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(levelname)s %(name)s: %(message)s")

    if args.session is None and args.snapshot is None:
        parser.error("a session log or --snapshot is required")

    config = load_config(args.config)
    if args.repo_dir is not None:
        config["repo_dir"] = str(args.repo_dir)
    if args.branch:
        config["branch"] = args.branch

    if args.snapshot is not None:
        session = load_snapshot(args.snapshot)
    else:
        session = read_session_log(args.session)
    counts = ", ".join(f"{category}={count}" for category, count in session.counts().items() if count)
    print(f"discovered {counts or 'nothing'}")

    if args.dump_snapshot is not None:
        dump_snapshot(session, args.dump_snapshot)
        print(f"wrote snapshot {args.dump_snapshot}")

    repo_dir = Path(config["repo_dir"])
    if not args.no_sync:
        repo_sync.prepare_repo(repo_dir, config["remote"], config["branch"])

    changes = reconcile_session(session, config)

    if args.no_sync:
        print(render_diff(changes))
    else:
        print(repo_sync.diff(repo_dir))
    return 0


if __name__ == "__main__":
    sys.exit(main())
