"""Turn session log fragments into discovery records.

A fragment is the block of lines the client prints between two rows of
twenty dashes when it meets something its data files do not know about.
Monsters and familiars are reported as single log sentences instead.
"""
from __future__ import annotations

import json
import logging
import re
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Callable, Optional

logger = logging.getLogger(__name__)

ITEM = "item"
SKILL = "skill"
EQUIPMENT = "equipment"
CONSUMABLE = "consumable"
EFFECT = "effect"
OUTFIT = "outfit"
MONSTER = "monster"
FAMILIAR = "familiar"
SHOP = "shop"
MODIFIER = "modifier"
CATEGORIES = (ITEM, SKILL, EQUIPMENT, CONSUMABLE, EFFECT, OUTFIT, MONSTER, FAMILIAR, SHOP, MODIFIER)

EQUIPMENT_SECTIONS = ("weapon", "offhand", "container", "accessory", "shirt", "pants", "hat")
CONSUMABLE_SECTIONS = ("food", "drink", "spleen")
SECTIONS = (*EQUIPMENT_SECTIONS, *CONSUMABLE_SECTIONS, "potion")

FRAGMENT_PATTERN = re.compile(r"-{20}\n(.*?)\n-{20}", re.DOTALL)
MONSTER_PATTERN = re.compile(r"\*\*\* Monster '(.*?)' has monsterId = (\d+) and image '(.*?)'")
FAMILIAR_PATTERN = re.compile(r'New familiar: "(.*?)" hatches into "(.*?)" \((\d+)\) @ (.*)')
NUMERIC_PATTERN = re.compile(r"^-?\d+$")
DESCID_PATTERN = re.compile(r"^[a-f0-9]{32}$")
SHOP_ROW_PATTERN = re.compile(r"\tROW\d+$")


@dataclass
class DiscoveryRecord:
    category: str
    primary_line: str
    annotation_lines: list[str] = field(default_factory=list)
    section: str = ""
    key: str = ""

    @property
    def block(self) -> str:
        return "\n".join([self.primary_line, *self.annotation_lines])


@dataclass
class DiscoverySession:
    """Records found during one run plus the run's duplicate caches."""

    records: dict[str, list[DiscoveryRecord]] = field(
        default_factory=lambda: {category: [] for category in CATEGORIES}
    )
    seen_fragments: set[str] = field(default_factory=set)
    seen_items: set[str] = field(default_factory=set)
    seen_keys: set[tuple[str, str]] = field(default_factory=set)

    def add(self, record: DiscoveryRecord) -> bool:
        """Append ``record`` unless its category already holds its key."""
        if record.key:
            marker = (record.category, record.key)
            if marker in self.seen_keys:
                return False
            self.seen_keys.add(marker)
        self.records[record.category].append(record)
        return True

    def replace(self, record: DiscoveryRecord) -> Optional[DiscoveryRecord]:
        """Swap in ``record`` for the one sharing its key; return the old one."""
        bucket = self.records[record.category]
        for idx, current in enumerate(bucket):
            if current.key == record.key and current.section == record.section:
                bucket[idx] = record
                return current
        bucket.append(record)
        return None

    def lines(self, category: str) -> list[str]:
        return [record.primary_line for record in self.records[category]]

    def sectioned(self, category: str, section: Optional[str] = None) -> list[tuple[str, str]]:
        return [
            (record.section, record.block)
            for record in self.records[category]
            if section is None or record.section == section
        ]

    def counts(self) -> dict[str, int]:
        return {category: len(records) for category, records in self.records.items()}


def _is_numeric(value: str) -> bool:
    return bool(NUMERIC_PATTERN.match(value))


def _is_image(value: str) -> bool:
    return value.endswith(".gif")


def _is_descid(value: str) -> bool:
    return bool(DESCID_PATTERN.match(value))


def _fields(fragment: list[str]) -> list[str]:
    return fragment[0].split("\t")


def get_section(types: list[str]) -> str:
    return next((kind for kind in types if kind in SECTIONS), "misc")


def _add_modifier(session: DiscoverySession, section: str, lines: list[str]) -> None:
    if not lines:
        return
    session.add(DiscoveryRecord(MODIFIER, lines[0], list(lines[1:]), section=section))


def discover_item(session: DiscoverySession, fragment: list[str]) -> None:
    item = _fields(fragment)
    key = item[0]
    if key in session.seen_items:
        return
    session.seen_items.add(key)

    session.add(DiscoveryRecord(ITEM, fragment[0], key=key))
    if len(fragment) == 1:
        return

    types = item[4].split(", ") if len(item) > 4 else []
    section = get_section(types)

    if section in EQUIPMENT_SECTIONS:
        session.add(DiscoveryRecord(EQUIPMENT, fragment[1], section=section))
        _add_modifier(session, section, fragment[2:])
        return

    if section in CONSUMABLE_SECTIONS:
        name = fragment[1].split("\t")[0]
        session.add(DiscoveryRecord(CONSUMABLE, fragment[1], section=section, key=f"{section}\t{name}"))
        _add_modifier(session, section, fragment[2:])
        return

    display_name = item[1] if len(item) > 1 else ""
    if fragment[1] != f"# {display_name}":
        _add_modifier(session, section, fragment[1:])


def discover_skill(session: DiscoverySession, fragment: list[str]) -> None:
    if not session.add(DiscoveryRecord(SKILL, fragment[0], key=_fields(fragment)[0])):
        return
    _add_modifier(session, "skill", fragment[1:])


def discover_effect(session: DiscoverySession, fragment: list[str]) -> None:
    if not session.add(DiscoveryRecord(EFFECT, fragment[0], key=_fields(fragment)[0])):
        return
    _add_modifier(session, "status effect", fragment[1:])


def discover_outfit(session: DiscoverySession, fragment: list[str]) -> None:
    """Outfit captures get more complete over a session, so replace rather than append."""
    line = fragment[0]
    key = line[: line.find("\t") + 1]
    previous = session.replace(DiscoveryRecord(OUTFIT, line, key=key))
    if previous is None or len(fragment) == 1:
        return
    modifier = DiscoveryRecord(MODIFIER, fragment[1], list(fragment[2:]), section="outfit", key=key)
    session.replace(modifier)


def discover_shop(session: DiscoverySession, fragment: list[str]) -> None:
    for row in fragment:
        pieces = row.split("\t")
        session.add(DiscoveryRecord(SHOP, row, key=f"{pieces[0]}\t{pieces[-1]}"))


def discover_monster(session: DiscoverySession, monster_id: int, name: str, image: str) -> None:
    line = f"{name}\t{monster_id}\t{image}\t"
    session.add(DiscoveryRecord(MONSTER, line, key=line))


def discover_familiar(session: DiscoverySession, familiar_id: int, name: str, image: str, hatchling: str) -> None:
    # Types, equipment and the numeric stats are filled in by hand later.
    types = ""
    equip = ""
    line = f"{familiar_id}\t{name}\t{image}\t{types}\t{hatchling}\t{equip}\t0\t0\t0\t0"
    session.add(DiscoveryRecord(FAMILIAR, line, key=str(familiar_id)))


def _last_starts(tag: str) -> Callable[[list[str]], bool]:
    return lambda fragment: fragment[-1].startswith(f"{tag}\t")


def _looks_like_item(fragment: list[str]) -> bool:
    pieces = _fields(fragment)
    return len(pieces) in (7, 8) and _is_numeric(pieces[2]) and _is_image(pieces[3])


def _looks_like_effect_or_skill(fragment: list[str]) -> bool:
    pieces = _fields(fragment)
    return len(pieces) in (6, 7) and _is_image(pieces[2])


def _effect_or_skill(session: DiscoverySession, fragment: list[str]) -> None:
    if _is_descid(_fields(fragment)[3]):
        discover_effect(session, fragment)
    else:
        discover_skill(session, fragment)


RULES: tuple[tuple[Callable[[list[str]], bool], Callable[[DiscoverySession, list[str]], None]], ...] = (
    (_last_starts("Item"), discover_item),
    (_last_starts("Skill"), discover_skill),
    (_last_starts("Effect"), discover_effect),
    (_last_starts("Outfit"), discover_outfit),
    (lambda fragment: bool(SHOP_ROW_PATTERN.search(fragment[-1])), discover_shop),
    (_looks_like_item, discover_item),
    (_looks_like_effect_or_skill, _effect_or_skill),
)


def discover(session: DiscoverySession, fragment: list[str]) -> bool:
    """Classify one fragment. Returns False for repeats and unidentified fragments."""
    text = "\n".join(fragment)
    if not fragment or text in session.seen_fragments:
        return False
    session.seen_fragments.add(text)

    for matches, handler in RULES:
        if matches(fragment):
            handler(session, fragment)
            return True

    logger.warning("Did not identify %r", fragment)
    return False


def parse_session_log(text: str, session: Optional[DiscoverySession] = None) -> DiscoverySession:
    session = session if session is not None else DiscoverySession()
    text = text.replace("\r\n", "\n")

    for match in FRAGMENT_PATTERN.finditer(text):
        discover(session, match.group(1).split("\n"))
    for match in MONSTER_PATTERN.finditer(text):
        discover_monster(session, int(match.group(2)), match.group(1), match.group(3))
    for match in FAMILIAR_PATTERN.finditer(text):
        discover_familiar(session, int(match.group(3)), match.group(2), match.group(4), match.group(1))
    return session


def read_session_log(path: Path, session: Optional[DiscoverySession] = None) -> DiscoverySession:
    return parse_session_log(path.read_text(encoding="utf-8", errors="replace"), session)


def dump_snapshot(session: DiscoverySession, path: Path) -> None:
    payload = {
        category: [asdict(record) for record in records]
        for category, records in session.records.items()
    }
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle, ensure_ascii=False, indent=2)
        handle.write("\n")


def load_snapshot(path: Path) -> DiscoverySession:
    with path.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)
    if not isinstance(payload, dict):
        raise ValueError(f"Snapshot {path} is not a mapping of categories")

    session = DiscoverySession()
    for category, entries in payload.items():
        if category not in session.records:
            raise ValueError(f"Snapshot {path} has unknown category {category!r}")
        for entry in entries:
            record = DiscoveryRecord(
                category=category,
                primary_line=str(entry["primary_line"]),
                annotation_lines=[str(line) for line in entry.get("annotation_lines") or []],
                section=str(entry.get("section") or ""),
                key=str(entry.get("key") or ""),
            )
            session.records[category].append(record)
            if record.key:
                session.seen_keys.add((category, record.key))
                if category == ITEM:
                    session.seen_items.add(record.key)
    return session
