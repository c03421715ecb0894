"""Where the data files live and how their headers read.

Everything here can be overridden from a YAML file passed with ``--config``;
nested mappings are merged one level deep so a config only has to name the
keys it changes.
"""
from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any, Optional

import yaml

from merge_appends import MONSTER_SCRATCH_HEADER
from merge_sectioned import SECTION_PHRASES

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: dict[str, Any] = {
    "remote": "https://github.com/kolmafia/kolmafia",
    "branch": "main",
    "repo_dir": "kolmafia",
    "data_dir": "src/data",
    "targets": {
        "items": "items.txt",
        "skills": "classskills.txt",
        "equipment": "equipment.txt",
        "food": "fullness.txt",
        "drink": "inebriety.txt",
        "spleen": "spleenhit.txt",
        "outfits": "outfits.txt",
        "effects": "statuseffects.txt",
        "familiars": "familiars.txt",
        "monsters": "monsters.txt",
        "shops": "npcstores.txt",
        "modifiers": "modifiers.txt",
    },
    "fill_gaps": ["outfits", "effects", "familiars"],
    "monster_header": MONSTER_SCRATCH_HEADER,
    "section_phrases": dict(SECTION_PHRASES),
}


def _merge(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in overrides.items():
        if key not in merged:
            raise ValueError(f"Unknown config key: {key}")
        if isinstance(merged[key], dict):
            if not isinstance(value, dict):
                raise ValueError(f"Config key {key} must be a mapping")
            merged[key].update(value)
        else:
            merged[key] = value
    return merged


def load_config(path: Optional[Path] = None) -> dict[str, Any]:
    if path is None:
        return copy.deepcopy(DEFAULT_CONFIG)

    with open(path, "r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle)
    if not data:
        logger.warning("Config file %s is empty, using defaults", path)
        return copy.deepcopy(DEFAULT_CONFIG)
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must hold a mapping")
    return _merge(DEFAULT_CONFIG, data)


def target_path(config: dict[str, Any], name: str) -> Path:
    return Path(config["repo_dir"]) / config["data_dir"] / config["targets"][name]
