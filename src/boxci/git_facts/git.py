# git.py
# Small, focused wrapper around the Git CLI.
# The runner only needs a handful of facts about the repository to describe
# the event that triggered a run; all of them come from here.

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Optional

from ..model import Trigger


def _git(args: list[str], cwd: Optional[str] = None) -> str:
    """
    Execute a git command and return its stdout as a clean string.

    Args:
        args: List of git arguments (e.g. ["rev-parse", "HEAD"])
        cwd: Optional working directory in which to run the git command.

    Returns:
        Stdout from the git command with surrounding whitespace removed.

    Raises:
        subprocess.CalledProcessError: git exited non-zero
        FileNotFoundError: git is not installed
    """
    out = subprocess.check_output(
        ["git", *args],
        cwd=cwd,
        text=True,
        stderr=subprocess.DEVNULL,
    )
    return out.strip()


def head_sha(cwd: Optional[str] = None) -> str:
    """Full SHA of the HEAD commit."""
    return _git(["rev-parse", "HEAD"], cwd=cwd)


def get_current_ref(cwd: Optional[str] = None) -> str:
    """
    Current branch name, or "HEAD" when detached.

    `rev-parse --abbrev-ref` prints "HEAD" for a detached checkout, which is
    what CI systems usually hand us.
    """
    return _git(["rev-parse", "--abbrev-ref", "HEAD"], cwd=cwd)


def get_remote_url(remote: str = "origin", cwd: Optional[str] = None) -> str:
    return _git(["remote", "get-url", remote], cwd=cwd)


def repo_name(cwd: Optional[str] = None) -> str:
    """Repository name from the origin URL, falling back to the directory name."""
    try:
        url = get_remote_url("origin", cwd=cwd)
        return url.rstrip("/").split("/")[-1].removesuffix(".git")
    except (subprocess.CalledProcessError, FileNotFoundError):
        return Path(cwd or ".").resolve().name


def trigger_from_git(
    event: str = "manual",
    ref: Optional[str] = None,
    cwd: Optional[str] = None,
) -> Trigger:
    """
    Describe the triggering event using whatever git can tell us.

    Outside a repository (or without git) the ref falls back to "HEAD"
    and the commit is left unset.
    """
    commit: Optional[str] = None
    try:
        commit = head_sha(cwd=cwd)
        if ref is None:
            ref = get_current_ref(cwd=cwd)
    except (subprocess.CalledProcessError, FileNotFoundError):
        commit = None
    return Trigger(event=event, ref=ref or "HEAD", commit=commit)
