"""Checking whether a newer release-plz version is available."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

import requests

LATEST_RELEASE_URL = (
    "https://api.github.com/repos/release-plz/release-plz/releases/latest"
)
_TAG_PREFIX = "release-plz-v"
_USER_AGENT = "release-plz"
_TIMEOUT_SECONDS = 30


class UpdateCheckError(RuntimeError):
    """Raised when the latest version can't be determined."""


def _current_version() -> str:
    try:
        return version("releaseplz")
    except PackageNotFoundError:
        return "0.0.0"


CURRENT_VERSION = _current_version()


def extract_version(tag: str) -> str | None:
    """The version in a release tag such as `release-plz-v0.2.37`."""
    if tag.startswith(_TAG_PREFIX):
        return tag[len(_TAG_PREFIX) :]
    return None


def get_latest_version() -> str:
    """Ask the release API for the latest published version."""
    try:
        response = requests.get(
            LATEST_RELEASE_URL,
            headers={"User-Agent": _USER_AGENT},
            timeout=_TIMEOUT_SECONDS,
        )
    except requests.RequestException as err:
        raise UpdateCheckError("error while sending request") from err

    try:
        tag_name = response.json()["tag_name"]
        if not isinstance(tag_name, str):
            raise TypeError("tag_name is not a string")
    except (ValueError, KeyError, TypeError) as err:
        raise UpdateCheckError("can't parse response") from err

    latest = extract_version(tag_name)
    if latest is None:
        raise UpdateCheckError(
            f"can't extract latest release-plz version from tag name {tag_name}"
        )
    return latest


def check_update() -> None:
    """Print whether the running version is the latest one."""
    try:
        latest = get_latest_version()
    except UpdateCheckError as err:
        raise UpdateCheckError(f"error while checking for updates: {err}") from err
    if latest == CURRENT_VERSION:
        print(f"Your release-plz version ({CURRENT_VERSION}) is up to date")
    else:
        print(
            f"Your release-plz version is {CURRENT_VERSION}. "
            f"A newer version ({latest}) is available"
        )