"""Tests for configuration defaults and YAML overrides."""

from pathlib import Path

import pytest

from sync_config import DEFAULT_CONFIG, load_config, target_path


def test_defaults_without_file():
    config = load_config()
    assert config == DEFAULT_CONFIG
    assert config is not DEFAULT_CONFIG


def test_target_path_joins_repo_and_data_dir():
    config = load_config()
    assert target_path(config, "skills") == Path("kolmafia") / "src/data" / "classskills.txt"


def test_yaml_overrides_merge_one_level_deep(tmp_path):
    path = tmp_path / "sync.yaml"
    path.write_text(
        "repo_dir: /srv/data-repo\n"
        "targets:\n"
        "  shops: coinmasters.txt\n"
        "section_phrases:\n"
        "  hat: headgear\n",
        encoding="utf-8",
    )
    config = load_config(path)
    assert config["repo_dir"] == "/srv/data-repo"
    assert config["targets"]["shops"] == "coinmasters.txt"
    assert config["targets"]["items"] == "items.txt"
    assert config["section_phrases"]["hat"] == "headgear"
    assert config["section_phrases"]["drink"] == "booze"
    assert DEFAULT_CONFIG["targets"]["shops"] == "npcstores.txt"


def test_unknown_key_is_rejected(tmp_path):
    path = tmp_path / "sync.yaml"
    path.write_text("colour: blue\n", encoding="utf-8")
    with pytest.raises(ValueError, match="colour"):
        load_config(path)


def test_mapping_key_needs_mapping(tmp_path):
    path = tmp_path / "sync.yaml"
    path.write_text("targets: items.txt\n", encoding="utf-8")
    with pytest.raises(ValueError, match="targets"):
        load_config(path)


def test_empty_file_uses_defaults(tmp_path):
    path = tmp_path / "sync.yaml"
    path.write_text("", encoding="utf-8")
    assert load_config(path) == DEFAULT_CONFIG
