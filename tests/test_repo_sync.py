"""Tests for the git working copy wrapper."""

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, call, patch

import pytest

import repo_sync


def _completed(stdout=""):
    result = MagicMock()
    result.stdout = stdout
    return result


class TestPrepareRepo:
    def test_existing_copy_is_reset_checked_out_and_pulled(self, tmp_path):
        with patch("repo_sync.subprocess.run", return_value=_completed()) as run:
            repo_sync.prepare_repo(tmp_path, "https://example.invalid/data.git", "main")

        commands = [args[0] for args, _ in run.call_args_list]
        assert commands == [
            ["git", "reset", "--hard"],
            ["git", "checkout", "main"],
            ["git", "pull"],
        ]
        assert all(kwargs["cwd"] == str(tmp_path) and kwargs["check"] for _, kwargs in run.call_args_list)

    def test_missing_copy_is_shallow_cloned(self, tmp_path):
        target = tmp_path / "data-repo"
        with patch("repo_sync.subprocess.run", return_value=_completed()) as run:
            repo_sync.prepare_repo(target, "https://example.invalid/data.git", "main")

        run.assert_called_once()
        assert run.call_args == call(
            [
                "git", "clone", "--branch", "main", "--single-branch", "--depth", "1",
                "https://example.invalid/data.git", str(target),
            ],
            cwd=None,
            check=True,
            capture_output=False,
            text=True,
        )

    def test_git_failure_propagates(self, tmp_path):
        error = subprocess.CalledProcessError(1, ["git", "pull"])
        with patch("repo_sync.subprocess.run", side_effect=error):
            with pytest.raises(subprocess.CalledProcessError):
                repo_sync.prepare_repo(tmp_path, "https://example.invalid/data.git", "main")


def test_diff_returns_output():
    with patch("repo_sync.subprocess.run", return_value=_completed("diff --git a/x b/x\n")) as run:
        assert repo_sync.diff(Path("repo")) == "diff --git a/x b/x\n"
    assert run.call_args.kwargs["capture_output"] is True
