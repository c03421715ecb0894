"""End-to-end runs of the command line entry point against a scratch data repo."""

from unittest.mock import patch

import pytest

from sync_discoveries import main

HAT_FRAGMENT = (
    "--------------------\n"
    "10001\tFancy Hat\t123456789\that.gif\that\tt,d\t50\n"
    "Fancy Hat\t10\tnone\n"
    "Item\tFancy Hat\tMuscle: +3\n"
    "--------------------\n"
)


@pytest.fixture
def data_repo(tmp_path):
    data = tmp_path / "repo" / "src" / "data"
    data.mkdir(parents=True)
    (data / "items.txt").write_text("1\n10000\tOld Thing\t100\told.gif\tnone\tt,d\t0\n", encoding="utf-8")
    (data / "equipment.txt").write_text(
        "1\n# Hats section of equipment.txt\n\nAaa Hat\t1\tnone\n", encoding="utf-8"
    )
    (data / "modifiers.txt").write_text(
        "1\n# Hats section of modifiers.txt\n\nItem\tAaa Hat\tMoxie: +1\n", encoding="utf-8"
    )
    return tmp_path / "repo"


@pytest.fixture
def session_log(tmp_path):
    path = tmp_path / "session.txt"
    path.write_text("Logged in\n" + HAT_FRAGMENT, encoding="utf-8")
    return path


def _read(repo, name):
    return (repo / "src" / "data" / name).read_text(encoding="utf-8")


def test_merges_every_touched_file(data_repo, session_log, capsys):
    assert main([str(session_log), "--repo-dir", str(data_repo), "--no-sync"]) == 0

    assert _read(data_repo, "items.txt").splitlines()[-1] == "10001\tFancy Hat\t123456789\that.gif\that\tt,d\t50"
    assert _read(data_repo, "equipment.txt") == (
        "1\n# Hats section of equipment.txt\n\nAaa Hat\t1\tnone\nFancy Hat\t10\tnone\n"
    )
    assert _read(data_repo, "modifiers.txt").endswith("Item\tAaa Hat\tMoxie: +1\nItem\tFancy Hat\tMuscle: +3\n")

    out = capsys.readouterr().out
    assert "reconciled items.txt" in out
    assert "+Fancy Hat\t10\tnone" in out


def test_second_run_changes_nothing(data_repo, session_log, capsys):
    main([str(session_log), "--repo-dir", str(data_repo), "--no-sync"])
    snapshot = {name: _read(data_repo, name) for name in ("items.txt", "equipment.txt", "modifiers.txt")}
    capsys.readouterr()

    main([str(session_log), "--repo-dir", str(data_repo), "--no-sync"])
    assert {name: _read(data_repo, name) for name in snapshot} == snapshot
    out = capsys.readouterr().out
    assert "unchanged items.txt" in out
    assert "reconciled" not in out


def test_snapshot_can_replace_the_log(data_repo, session_log, tmp_path):
    snapshot = tmp_path / "discoveries.json"
    original = _read(data_repo, "equipment.txt")
    assert main([str(session_log), "--dump-snapshot", str(snapshot), "--repo-dir", str(data_repo), "--no-sync"]) == 0
    assert snapshot.exists()

    (data_repo / "src" / "data" / "equipment.txt").write_text(original, encoding="utf-8")
    assert main(["--snapshot", str(snapshot), "--repo-dir", str(data_repo), "--no-sync"]) == 0
    assert "Fancy Hat\t10\tnone" in _read(data_repo, "equipment.txt")


def test_missing_target_file_is_fatal(data_repo, tmp_path):
    log = tmp_path / "skills.txt"
    log.write_text("--------------------\n7001\tBig Punch\tpunch.gif\t0\t5\t0\n--------------------\n", encoding="utf-8")
    with pytest.raises(FileNotFoundError, match="classskills.txt"):
        main([str(log), "--repo-dir", str(data_repo), "--no-sync"])


def test_sync_prepares_repo_and_prints_git_diff(data_repo, session_log, capsys):
    with patch("repo_sync.prepare_repo") as prepare, patch("repo_sync.diff", return_value="GIT DIFF\n") as diff:
        assert main([str(session_log), "--repo-dir", str(data_repo), "--branch", "release"]) == 0

    prepare.assert_called_once_with(data_repo, "https://github.com/kolmafia/kolmafia", "release")
    diff.assert_called_once_with(data_repo)
    assert "GIT DIFF" in capsys.readouterr().out


def test_requires_log_or_snapshot():
    with pytest.raises(SystemExit):
        main(["--no-sync"])
