"""Reading headers and release notes out of Markdown changelogs."""

from __future__ import annotations

import re
from dataclasses import dataclass
from os import PathLike

_FIRST_HEADER_RE = re.compile(
    r"^(# Changelog|# CHANGELOG|# changelog)(.*)"
    r"(## Unreleased|## \[Unreleased\]|## unreleased|## \[unreleased\])(.*?)(\n)",
    re.DOTALL,
)
_SECOND_HEADER_RE = re.compile(
    r"^(# Changelog|# CHANGELOG|# changelog)(.*?)(\n## )", re.DOTALL
)

_HEADING_RE = re.compile(r"^ {0,3}(#{1,6})(?:[ \t]+(.*?))?(?:[ \t]+#+)?[ \t]*$")
_FENCE_RE = re.compile(r"^ {0,3}(```|~~~)")
_PREFIX_RE = re.compile(r"^(?:v|Version |Release )", re.IGNORECASE)
_VERSION_RE = re.compile(
    r"(unreleased|\d+\.\d+\.\d+(?:-[\w.-]+)?(?:\+[\w.-]+)?)(?=$|[\] (])",
    re.IGNORECASE,
)


class ChangelogParseError(ValueError):
    """Raised when a changelog can't be read or parsed."""


def parse_header(changelog: str) -> str | None:
    """Return the header of a changelog, if one is recognized.

    The header starts with `# Changelog` and ends with the `## Unreleased`
    line, or just before the first other `## ` heading.
    """
    first = _FIRST_HEADER_RE.match(changelog)
    if first:
        return first.group(0)
    second = _SECOND_HEADER_RE.match(changelog)
    if second:
        return second.group(1) + second.group(2)
    return None


@dataclass(frozen=True)
class ChangelogRelease:
    """A release section of a changelog."""

    version: str
    title: str
    notes: str


def _heading(line: str) -> tuple[int, str] | None:
    match = _HEADING_RE.match(line.rstrip("\r\n"))
    if not match:
        return None
    return len(match.group(1)), (match.group(2) or "").strip()


def _version_of(title: str) -> str | None:
    text = title.lstrip("[")
    text = _PREFIX_RE.sub("", text, count=1)
    match = _VERSION_RE.match(text)
    return match.group(1) if match else None


class ChangelogParser:
    """Parses the release sections of a changelog, newest first."""

    def __init__(self, changelog_text: str) -> None:
        self.releases = self._parse(changelog_text)

    @staticmethod
    def _parse(text: str) -> list[ChangelogRelease]:
        lines = text.splitlines(keepends=True)
        headings: list[tuple[int, int, str]] = []
        in_fence = False
        for number, line in enumerate(lines):
            if _FENCE_RE.match(line):
                in_fence = not in_fence
                continue
            if in_fence:
                continue
            heading = _heading(line)
            if heading:
                headings.append((number, *heading))

        release_level = next(
            (level for _, level, title in headings if _version_of(title)), None
        )
        if release_level is None:
            raise ChangelogParseError("can't parse changelog: no release was found")

        releases: list[ChangelogRelease] = []
        seen: set[str] = set()
        for position, (number, level, title) in enumerate(headings):
            version = _version_of(title)
            if level != release_level or version is None:
                continue
            end = next(
                (n for n, lvl, _ in headings[position + 1 :] if lvl <= release_level),
                len(lines),
            )
            if version in seen:
                raise ChangelogParseError(
                    f"can't parse changelog: multiple release notes for '{version}'"
                )
            seen.add(version)
            notes = "".join(lines[number + 1 : end]).strip()
            releases.append(ChangelogRelease(version=version, title=title, notes=notes))
        return releases

    def last_release(self) -> ChangelogRelease | None:
        """The newest released section, skipping an `Unreleased` one."""
        if not self.releases:
            return None
        first = self.releases[0]
        if "unreleased" in first.version.lower():
            return self.releases[1] if len(self.releases) > 1 else None
        return first


def last_changes(changelog: str | PathLike[str]) -> str | None:
    """Notes of the last release of the changelog file at the given path."""
    try:
        with open(changelog, encoding="utf-8") as handle:
            text = handle.read()
    except OSError as err:
        raise ChangelogParseError("can't read changelog file") from err
    return last_changes_from_str(text)


def last_changes_from_str(changelog: str) -> str | None:
    release = ChangelogParser(changelog).last_release()
    return release.notes if release else None


def last_version_from_str(changelog: str) -> str | None:
    release = ChangelogParser(changelog).last_release()
    return release.version if release else None


def last_release_from_str(changelog: str) -> ChangelogRelease | None:
    return ChangelogParser(changelog).last_release()