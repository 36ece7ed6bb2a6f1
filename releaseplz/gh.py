"""Helpers running the `gh` command-line tool."""

from __future__ import annotations

import subprocess


class GhError(RuntimeError):
    """Raised when `gh` can't be run or reports a failure."""


def _stdout_if_success(result: subprocess.CompletedProcess[bytes]) -> str:
    if result.returncode != 0:
        stderr = (result.stderr or b"").decode("utf-8", errors="replace")
        raise GhError(f"gh failed: {stderr}")
    try:
        return (result.stdout or b"").decode("utf-8").strip()
    except UnicodeDecodeError as err:
        raise GhError("error while reading gh stdout") from err


def _gh_repo_view(*query: str) -> str:
    try:
        result = subprocess.run(
            ["gh", "repo", "view", "--json", *query],
            capture_output=True,
            check=False,
        )
    except OSError as err:
        raise GhError("error while running gh") from err
    return _stdout_if_success(result)


def _repo_view(context: str, *query: str) -> str:
    try:
        return _gh_repo_view(*query)
    except GhError as err:
        raise GhError(f"{context}: {err}") from err


def repo_url() -> str:
    """URL of the repository in the current directory."""
    return _repo_view("error while retrieving repository url", "url", "-q", ".url")


def repo_owner() -> str:
    """Login of the owner of the repository in the current directory."""
    return _repo_view(
        "error while retrieving repository owner", "owner", "-q", ".owner.login"
    )


def default_branch() -> str:
    """Name of the default branch of the repository in the current directory."""
    return _repo_view(
        "error while retrieving default branch",
        "defaultBranchRef",
        "--jq",
        ".defaultBranchRef.name",
    )


def store_secret(token_name: str) -> None:
    """Store a repository secret, letting `gh` read its value from stdin."""
    try:
        result = subprocess.run(["gh", "secret", "set", token_name], check=False)
    except OSError as err:
        raise GhError("error while spawning gh to set repository secret") from err
    try:
        _stdout_if_success(result)
    except GhError as err:
        raise GhError(f"error while setting repository secret: {err}") from err
    print()


def is_gh_installed() -> bool:
    """Whether `gh version` runs successfully."""
    try:
        result = subprocess.run(["gh", "version"], capture_output=True, check=False)
    except OSError:
        return False
    return result.returncode == 0