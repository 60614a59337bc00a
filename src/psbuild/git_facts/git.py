# git.py
# Small, focused wrapper around the Git CLI.
# Everything that shells out to git for the build lives here, so the
# step workflows never call subprocess("git ...") directly.

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Iterable, List, Optional

from ..errors import ExternalToolError


def _mask(text: str, secrets: Iterable[str]) -> str:
    for secret in secrets:
        if secret:
            text = text.replace(secret, "****")
    return text


def _git(args: List[str], cwd: Optional[Path] = None, secrets: Iterable[str] = ()) -> str:
    """
    Execute a git command and return its stdout as a clean string.

    This is the single low-level entry point for all Git operations in this
    file. A non-zero exit becomes an ExternalToolError; any secret passed in
    (for example a token embedded in a remote URL) is masked in the error.
    """
    secrets = tuple(secrets)
    try:
        proc = subprocess.run(
            ["git", *args],
            cwd=str(cwd) if cwd else None,
            text=True,
            capture_output=True,
        )
    except FileNotFoundError:
        raise ExternalToolError(message="git is not available", cmd="git")

    if proc.returncode != 0:
        shown = _mask(" ".join(["git", *args]), secrets)
        raise ExternalToolError(
            message=f"{shown} failed (exit={proc.returncode})",
            cmd=shown,
            exit_code=proc.returncode,
            details={"stderr": _mask(proc.stderr.strip()[-2000:], secrets)},
        )

    # Strip trailing newlines so callers can do clean string comparisons
    return proc.stdout.strip()


def is_dirty(cwd: Optional[Path] = None) -> bool:
    """
    Check whether the working tree has uncommitted changes.

    Modified, staged and untracked files all count.
    """
    # `git status --porcelain` is stable, machine-readable; any output means dirty
    return _git(["status", "--porcelain"], cwd=cwd) != ""


def configure_identity(name: str, email: str, cwd: Optional[Path] = None) -> None:
    _git(["config", "user.name", name], cwd=cwd)
    _git(["config", "user.email", email], cwd=cwd)


def checkout(branch: str, cwd: Optional[Path] = None) -> None:
    _git(["checkout", "-q", branch], cwd=cwd)


def add_all(cwd: Optional[Path] = None) -> None:
    _git(["add", "--all"], cwd=cwd)


def commit(message: str, cwd: Optional[Path] = None) -> None:
    _git(["commit", "-q", "-m", message], cwd=cwd)


def authenticated_remote(repo_name: str, token: str) -> str:
    """HTTPS remote for `owner/repo` with the token as credential."""
    return f"https://{token}@github.com/{repo_name}.git"


def push(remote: str, branch: str, cwd: Optional[Path] = None, secrets: Iterable[str] = ()) -> None:
    _git(["push", "-q", remote, f"HEAD:{branch}"], cwd=cwd, secrets=secrets)
