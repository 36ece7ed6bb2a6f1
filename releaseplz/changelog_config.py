"""The `[changelog]` section of the configuration and its conversion to a cliff config."""

from __future__ import annotations

import re
from dataclasses import MISSING, dataclass, field, fields
from enum import Enum
from typing import Any


class ChangelogConfigError(ValueError):
    """Raised when the `[changelog]` section is invalid."""


class Sorting(str, Enum):
    """How to sort the commits inside the various sections."""

    OLDEST = "oldest"
    NEWEST = "newest"

    def __str__(self) -> str:
        return self.value


@dataclass
class CliffTextProcessor:
    """A compiled commit preprocessor."""

    pattern: re.Pattern[str]
    replace: str | None = None
    replace_command: str | None = None


@dataclass
class CliffLinkParser:
    """A compiled link parser."""

    pattern: re.Pattern[str]
    href: str
    text: str | None = None


@dataclass
class CliffCommitParser:
    """A compiled commit parser."""

    message: re.Pattern[str] | None = None
    body: re.Pattern[str] | None = None
    group: str | None = None
    default_scope: str | None = None
    scope: str | None = None
    skip: bool | None = None
    field: str | None = None
    pattern: re.Pattern[str] | None = None
    sha: str | None = None
    footer: re.Pattern[str] | None = None


@dataclass
class CliffChangelogConfig:
    """Changelog rendering settings."""

    header: str | None = None
    body: str | None = None
    footer: str | None = None
    trim: bool | None = None
    postprocessors: list[CliffTextProcessor] | None = None


@dataclass
class CliffGitConfig:
    """Commit processing settings."""

    conventional_commits: bool | None = None
    filter_unconventional: bool | None = None
    split_commits: bool | None = None
    commit_preprocessors: list[CliffTextProcessor] | None = None
    commit_parsers: list[CliffCommitParser] | None = None
    protect_breaking_commits: bool | None = None
    link_parsers: list[CliffLinkParser] | None = None
    filter_commits: bool | None = None
    tag_pattern: re.Pattern[str] | None = None
    skip_tags: re.Pattern[str] | None = None
    ignore_tags: re.Pattern[str] | None = None
    topo_order: bool | None = None
    sort_commits: str | None = None
    limit_commits: int | None = None


@dataclass
class CliffRemoteConfig:
    """Remote repositories, as `{"owner": ..., "repo": ...}` tables."""

    github: dict[str, str] | None = None
    gitlab: dict[str, str] | None = None
    gitea: dict[str, str] | None = None
    bitbucket: dict[str, str] | None = None


@dataclass
class CliffConfig:
    """A full cliff configuration."""

    changelog: CliffChangelogConfig = field(default_factory=CliffChangelogConfig)
    git: CliffGitConfig = field(default_factory=CliffGitConfig)
    remote: CliffRemoteConfig = field(default_factory=CliffRemoteConfig)


_BOOL_FIELDS = frozenset({"skip", "trim", "protect_breaking_commits"})


def _to_regex(value: str, element_name: str) -> re.Pattern[str]:
    try:
        return re.compile(value)
    except re.error as err:
        raise ChangelogConfigError(f"failed to parse `{element_name}` regex") from err


def _to_opt_regex(value: str | None, element_name: str) -> re.Pattern[str] | None:
    return None if value is None else _to_regex(value, element_name)


def _convert_all(items: list[Any] | None, element_name: str) -> list[Any] | None:
    if items is None:
        return None
    converted = []
    for item in items:
        try:
            converted.append(item.to_cliff())
        except ChangelogConfigError as err:
            raise ChangelogConfigError(f"failed to parse {element_name}") from err
    return converted


def _check_value(name: str, value: Any) -> None:
    expected = bool if name in _BOOL_FIELDS else str
    if not isinstance(value, expected):
        kind = "a boolean" if expected is bool else "a string"
        raise ChangelogConfigError(f"invalid type for `{name}`: expected {kind}")


def _build_item(cls: type, data: Any, element_name: str) -> Any:
    if not isinstance(data, dict):
        raise ChangelogConfigError(
            f"invalid type for `{element_name}`: expected a table"
        )
    kwargs = {}
    for item_field in fields(cls):
        if item_field.name in data:
            value = data[item_field.name]
            _check_value(item_field.name, value)
            kwargs[item_field.name] = value
        elif item_field.default is MISSING:
            raise ChangelogConfigError(f"missing field `{item_field.name}`")
    return cls(**kwargs)


def _item_to_dict(item: Any) -> dict[str, Any]:
    return {
        f.name: getattr(item, f.name)
        for f in fields(item)
        if getattr(item, f.name) is not None
    }


@dataclass
class TextProcessor:
    """Used for modifying commit messages."""

    pattern: str
    replace: str | None = None
    replace_command: str | None = None

    def to_cliff(self) -> CliffTextProcessor:
        return CliffTextProcessor(
            pattern=_to_regex(self.pattern, "pattern"),
            replace=self.replace,
            replace_command=self.replace_command,
        )


@dataclass
class LinkParser:
    """Extracts external references from commit messages."""

    pattern: str
    href: str
    text: str | None = None

    def to_cliff(self) -> CliffLinkParser:
        return CliffLinkParser(
            pattern=_to_regex(self.pattern, "pattern"),
            href=self.href,
            text=self.text,
        )


@dataclass
class CommitParser:
    """Parser for grouping commits."""

    message: str | None = None
    body: str | None = None
    group: str | None = None
    default_scope: str | None = None
    scope: str | None = None
    skip: bool | None = None
    field: str | None = None
    pattern: str | None = None
    sha: str | None = None

    def to_cliff(self) -> CliffCommitParser:
        return CliffCommitParser(
            message=_to_opt_regex(self.message, "message"),
            body=_to_opt_regex(self.body, "body"),
            group=self.group,
            default_scope=self.default_scope,
            scope=self.scope,
            skip=self.skip,
            field=self.field,
            pattern=_to_opt_regex(self.pattern, "pattern"),
            sha=self.sha,
            footer=None,
        )


_LIST_ITEMS: dict[str, type] = {
    "commit_preprocessors": TextProcessor,
    "link_parsers": LinkParser,
    "commit_parsers": CommitParser,
}


@dataclass
class ChangelogCfg:
    """User settings of the `[changelog]` section."""

    header: str | None = None
    body: str | None = None
    trim: bool | None = None
    commit_preprocessors: list[TextProcessor] | None = None
    sort_commits: Sorting | None = None
    link_parsers: list[LinkParser] | None = None
    commit_parsers: list[CommitParser] | None = None
    protect_breaking_commits: bool | None = None
    tag_pattern: str | None = None

    def is_default(self) -> bool:
        return self == ChangelogCfg()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ChangelogCfg:
        """Build the section from a parsed TOML table, rejecting unknown keys."""
        names = [f.name for f in fields(cls)]
        for key in data:
            if key not in names:
                expected = ", ".join(f"`{name}`" for name in names)
                raise ChangelogConfigError(
                    f"unknown field `{key}`, expected one of {expected}"
                )
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            if key in _LIST_ITEMS:
                if not isinstance(value, list):
                    raise ChangelogConfigError(
                        f"invalid type for `{key}`: expected an array"
                    )
                kwargs[key] = [_build_item(_LIST_ITEMS[key], item, key) for item in value]
            elif key == "sort_commits":
                try:
                    kwargs[key] = Sorting(value)
                except ValueError as err:
                    raise ChangelogConfigError(
                        f"unknown variant `{value}`, expected `oldest` or `newest`"
                    ) from err
            else:
                _check_value(key, value)
                kwargs[key] = value
        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        """The section as a TOML-ready table; unset values are left out."""
        result: dict[str, Any] = {}
        for cfg_field in fields(self):
            value = getattr(self, cfg_field.name)
            if value is None:
                continue
            if cfg_field.name in _LIST_ITEMS:
                result[cfg_field.name] = [_item_to_dict(item) for item in value]
            elif isinstance(value, Sorting):
                result[cfg_field.name] = value.value
            else:
                result[cfg_field.name] = value
        return result

    def to_cliff_config(self) -> CliffConfig:
        commit_preprocessors = _convert_all(
            self.commit_preprocessors, "commit_preprocessors"
        )
        link_parsers = _convert_all(self.link_parsers, "link_parsers")
        tag_pattern = _to_opt_regex(self.tag_pattern, "tag_pattern")
        sort_commits = str(self.sort_commits) if self.sort_commits is not None else None
        commit_parsers = _convert_all(self.commit_parsers, "commit_parsers")
        return CliffConfig(
            changelog=CliffChangelogConfig(
                header=self.header,
                body=self.body,
                trim=self.trim,
            ),
            git=CliffGitConfig(
                commit_preprocessors=commit_preprocessors,
                commit_parsers=commit_parsers,
                protect_breaking_commits=self.protect_breaking_commits,
                link_parsers=link_parsers,
                tag_pattern=tag_pattern,
                sort_commits=sort_commits,
            ),
            remote=CliffRemoteConfig(),
        )