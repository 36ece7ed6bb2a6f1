"""Detection of the registry index hash kind used by the installed cargo."""

from __future__ import annotations

import logging
import os
import subprocess
from enum import Enum

import semver

logger = logging.getLogger(__name__)

_FIRST_STABLE_HASH = semver.Version(1, 85, 0)


class HashKind(Enum):
    """How cargo hashes registry index paths."""

    LEGACY = "legacy"
    STABLE = "stable"


def cargo_version_from_stdout(stdout: str) -> semver.Version:
    """Extract the version from the output of `cargo --version`."""
    words = stdout.split()
    if len(words) < 2:
        raise ValueError(f"failed to parse cargo version from cargo stdout `{stdout}`")
    version = words[1]
    try:
        return semver.Version.parse(version)
    except ValueError as err:
        raise ValueError(
            f"failed to parse cargo version from version `{version}`"
        ) from err


def get_hash_kind_from_stdout(output: str) -> HashKind:
    """Hash kind for the cargo whose `--version` output is given."""
    try:
        version = cargo_version_from_stdout(output)
    except ValueError as err:
        logger.warning("Error parsing cargo version: %s. Assuming cargo > 1.85.0", err)
        return HashKind.STABLE
    # Cargo 1.85.0 (edition 2024) changed the hash kind.
    return HashKind.LEGACY if version < _FIRST_STABLE_HASH else HashKind.STABLE


def _cargo_version_stdout() -> str:
    try:
        result = subprocess.run(
            ["cargo", "--version"],
            cwd=os.getcwd(),
            capture_output=True,
            text=True,
            check=True,
        )
    except (OSError, subprocess.CalledProcessError) as err:
        raise RuntimeError("failed to run cargo --version. Is cargo installed?") from err
    return result.stdout


def get_hash_kind() -> HashKind:
    """Hash kind of the cargo installed on this machine."""
    return get_hash_kind_from_stdout(_cargo_version_stdout())