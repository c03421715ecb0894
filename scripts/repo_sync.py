"""Thin wrapper over the ``git`` CLI for the data repository working copy.

Failures raise ``subprocess.CalledProcessError`` and end the run.
"""
from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


def _git(args: list[str], cwd: Optional[Path] = None, capture: bool = False) -> str:
    logger.debug("git %s", " ".join(args))
    result = subprocess.run(
        ["git", *args],
        cwd=str(cwd) if cwd is not None else None,
        check=True,
        capture_output=capture,
        text=True,
    )
    return result.stdout if capture else ""


def clone(remote: str, repo_dir: Path, branch: str) -> None:
    _git(["clone", "--branch", branch, "--single-branch", "--depth", "1", remote, str(repo_dir)])


def reset_hard(repo_dir: Path) -> None:
    _git(["reset", "--hard"], cwd=repo_dir)


def checkout(repo_dir: Path, ref: str) -> None:
    _git(["checkout", ref], cwd=repo_dir)


def pull(repo_dir: Path) -> None:
    _git(["pull"], cwd=repo_dir)


def diff(repo_dir: Path) -> str:
    return _git(["diff"], cwd=repo_dir, capture=True)


def prepare_repo(repo_dir: Path, remote: str, branch: str) -> Path:
    """Bring the working copy to a clean, current ``branch``."""
    if repo_dir.exists():
        reset_hard(repo_dir)
        checkout(repo_dir, branch)
        pull(repo_dir)
        return repo_dir

    clone(remote, repo_dir, branch)
    return repo_dir
