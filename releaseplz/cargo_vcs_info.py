"""Reading the commit sha from a packaged crate's `.cargo_vcs_info.json`."""

from __future__ import annotations

import json
import logging
from os import PathLike

logger = logging.getLogger(__name__)


def read_sha1_from_cargo_vcs_info(cargo_vcs_info_path: str | PathLike[str]) -> str | None:
    """Return `git.sha1` from the file, or None if it can't be read or parsed."""
    try:
        with open(cargo_vcs_info_path, encoding="utf-8") as handle:
            text = handle.read()
    except (OSError, UnicodeDecodeError):
        return None
    try:
        info = json.loads(text)
        sha1 = info["git"]["sha1"]
        if not isinstance(sha1, str):
            raise TypeError("`git.sha1` is not a string")
    except (ValueError, KeyError, TypeError) as err:
        logger.warning("failed to parse .cargo_vcs_info.json: %s", err)
        return None
    return sha1