"""Building changelog entries from commits and rendering them to Markdown."""

from __future__ import annotations

import logging
import os
import re
import subprocess
import time
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import jinja2

from releaseplz.changelog_config import (
    CliffCommitParser,
    CliffConfig,
    CliffGitConfig,
    CliffLinkParser,
    CliffTextProcessor,
)
from releaseplz.changelog_defaults import (
    RELEASE_LINK,
    REMOTE,
    apply_defaults_to_changelog_config,
    apply_defaults_to_git_config,
    default_git_config,
)
from releaseplz.changelog_parser import parse_header

logger = logging.getLogger(__name__)

NO_COMMIT_ID = "0000000"

_BREAKING_TOKENS = ("BREAKING CHANGE", "BREAKING-CHANGE")
_CONV_HEADER_RE = re.compile(
    r"(?P<type>[A-Za-z][\w-]*)(?:\((?P<scope>[^()\r\n]+)\))?(?P<breaking>!)?: "
    r"(?P<description>.+)"
)
_FOOTER_RE = re.compile(
    r"(?P<token>BREAKING[ -]CHANGE|[A-Za-z][\w-]*)(?P<separator>: | #)(?P<value>.*)"
)
_PARAGRAPH_SPLIT_RE = re.compile(r"\r?\n[ \t]*\r?\n")
_REPLACEMENT_RE = re.compile(r"\$(?:\$|\{([^}]*)\}|([A-Za-z0-9_]+))")


class ChangelogError(RuntimeError):
    """Raised when a commit can't be processed or the changelog can't be rendered."""


@dataclass(frozen=True)
class _Footer:
    token: str
    separator: str
    value: str

    @property
    def breaking(self) -> bool:
        return self.token in _BREAKING_TOKENS


@dataclass(frozen=True)
class _Conventional:
    type: str
    scope: str | None
    description: str
    body: str | None
    footers: tuple[_Footer, ...]
    breaking: bool
    breaking_description: str | None


def _parse_conventional(message: str) -> _Conventional | None:
    first, _, rest = message.partition("\n")
    header = _CONV_HEADER_RE.fullmatch(first.rstrip("\r"))
    if header is None or not header["description"].strip():
        return None
    paragraphs = [
        p for p in _PARAGRAPH_SPLIT_RE.split(rest.strip("\r\n")) if p.strip()
    ]
    raw_footers: list[list[str]] = []
    if paragraphs:
        last_lines = paragraphs[-1].splitlines()
        if _FOOTER_RE.fullmatch(last_lines[0]):
            for line in last_lines:
                footer = _FOOTER_RE.fullmatch(line)
                if footer:
                    raw_footers.append(
                        [footer["token"], footer["separator"], footer["value"]]
                    )
                else:
                    raw_footers[-1][2] += "\n" + line
            paragraphs = paragraphs[:-1]
    footers = tuple(_Footer(*parts) for parts in raw_footers)
    breaking_footer = next((f for f in footers if f.breaking), None)
    bang = header["breaking"] is not None
    if breaking_footer is not None:
        breaking_description: str | None = breaking_footer.value
    elif bang:
        breaking_description = header["description"]
    else:
        breaking_description = None
    return _Conventional(
        type=header["type"],
        scope=header["scope"],
        description=header["description"],
        body="\n\n".join(paragraphs) or None,
        footers=footers,
        breaking=bang or breaking_footer is not None,
        breaking_description=breaking_description,
    )


def _expand(template: str, match: re.Match[str]) -> str:
    """Expand `$1`, `${name}` and `$$` references of a replacement template."""

    def substitute(ref: re.Match[str]) -> str:
        if ref.group(0) == "$$":
            return "$"
        name = ref.group(1) if ref.group(1) is not None else ref.group(2)
        try:
            value = match.group(int(name) if name.isdigit() else name)
        except (IndexError, ValueError):
            return ""
        return value or ""

    return _REPLACEMENT_RE.sub(substitute, template)


def _replace(
    pattern: re.Pattern[str], template: str, text: str, count: int = 0
) -> str:
    return pattern.sub(lambda m: _expand(template, m), text, count=count)


def _run_command(command: str, text: str, sha: str) -> str:
    try:
        result = subprocess.run(
            ["sh", "-c", command],
            input=text,
            capture_output=True,
            text=True,
            check=True,
            env={**os.environ, "COMMIT_SHA": sha},
        )
    except (OSError, subprocess.CalledProcessError) as err:
        raise ChangelogError(f"failed to run command `{command}`: {err}") from err
    return result.stdout.rstrip("\n")


def _apply_processors(
    text: str, processors: list[CliffTextProcessor], sha: str = ""
) -> str:
    for processor in processors:
        if processor.replace is not None:
            text = _replace(processor.pattern, processor.replace, text)
        elif processor.replace_command is not None and processor.pattern.search(text):
            text = _run_command(processor.replace_command, text, sha)
    return text


def _empty_signature() -> dict[str, Any]:
    return {"name": None, "email": None, "timestamp": 0}


@dataclass
class Commit:
    """A commit, possibly already grouped by the commit parsers."""

    id: str
    message: str
    group: str | None = None
    scope: str | None = None
    default_scope: str | None = None
    links: list[dict[str, str]] = field(default_factory=list)
    author: dict[str, Any] = field(default_factory=_empty_signature)
    committer: dict[str, Any] = field(default_factory=_empty_signature)
    remote: dict[str, Any] | None = None
    conventional: _Conventional | None = None

    @property
    def is_breaking(self) -> bool:
        return self.conventional is not None and self.conventional.breaking

    def process(self, git_config: CliffGitConfig) -> Commit:
        """Preprocess, parse and group the commit; raise if it must be left out."""
        commit = replace(self, links=list(self.links))
        if git_config.commit_preprocessors:
            commit.message = _apply_processors(
                commit.message, git_config.commit_preprocessors, commit.id
            )
        if _or(git_config.conventional_commits, True):
            conventional = _parse_conventional(commit.message)
            if (
                conventional is None
                and _or(git_config.filter_unconventional, True)
                and not _or(git_config.split_commits, False)
            ):
                raise ChangelogError(f"commit {commit.id} is not conventional")
            commit.conventional = conventional
        if git_config.commit_parsers is not None:
            commit = commit._parse(
                git_config.commit_parsers,
                _or(git_config.protect_breaking_commits, False),
                _or(git_config.filter_commits, False),
            )
        if git_config.link_parsers is not None:
            commit.links.extend(commit._find_links(git_config.link_parsers))
        return commit

    def _parse(
        self,
        parsers: list[CliffCommitParser],
        protect_breaking: bool,
        filter_commits: bool,
    ) -> Commit:
        conv = self.conventional
        for parser in parsers:
            checks: list[tuple[re.Pattern[str], str]] = []
            if parser.message is not None:
                checks.append((parser.message, self.message))
            if parser.body is not None:
                body = conv.body if conv is not None and conv.body else ""
                checks.append((parser.body, body))
            if parser.footer is not None and conv is not None:
                checks.extend(
                    (parser.footer, f"{f.token}{f.separator}{f.value}")
                    for f in conv.footers
                )
            if parser.field is not None and parser.pattern is not None:
                checks.append((parser.pattern, self._field_value(parser.field)))
            if parser.sha is not None and parser.sha == self.id:
                if parser.skip:
                    raise ChangelogError(f"commit {self.id} is skipped")
                return replace(
                    self,
                    group=parser.group,
                    scope=parser.scope,
                    default_scope=parser.default_scope,
                )
            for regex, text in checks:
                if regex.search(text.strip()):
                    if parser.skip and not (protect_breaking and self.is_breaking):
                        raise ChangelogError(f"commit {self.id} is skipped")
                    return replace(
                        self,
                        group=parser.group,
                        scope=parser.scope,
                        default_scope=parser.default_scope,
                    )
        if filter_commits:
            raise ChangelogError(f"commit {self.id} does not belong to any group")
        return self

    def _field_value(self, name: str) -> str:
        conv = self.conventional
        values: dict[str, Any] = {
            "id": self.id,
            "message": self.message,
            "body": conv.body if conv is not None else None,
            "group": self.group,
            "scope": self.scope,
            "default_scope": self.default_scope,
            "author.name": self.author.get("name"),
            "author.email": self.author.get("email"),
            "committer.name": self.committer.get("name"),
            "committer.email": self.committer.get("email"),
        }
        if self.remote is not None:
            values["remote.username"] = self.remote.get("username")
            values["remote.pr_title"] = self.remote.get("pr_title")
        value = values.get(name)
        if value is None:
            raise ChangelogError(f"field {name} does not have a value")
        return str(value)

    def _find_links(self, parsers: list[CliffLinkParser]) -> list[dict[str, str]]:
        links = []
        for parser in parsers:
            for match in parser.pattern.finditer(self.message):
                matched = match.group(0)
                text = (
                    _replace(parser.pattern, parser.text, matched, count=1)
                    if parser.text is not None
                    else matched
                )
                href = _replace(parser.pattern, parser.href, matched, count=1)
                links.append({"text": text, "href": href})
        return links

    def to_context(self) -> dict[str, Any]:
        """The commit as seen by the templates."""
        conv = self.conventional
        conv_scope = conv.scope if conv is not None else None
        if self.scope is not None:
            scope = self.scope
        elif conv_scope is not None:
            scope = conv_scope
        else:
            scope = self.default_scope
        return {
            "id": self.id,
            "message": conv.description if conv is not None else self.message,
            "body": conv.body if conv is not None else None,
            "footers": [
                {
                    "token": f.token,
                    "separator": f.separator,
                    "value": f.value,
                    "breaking": f.breaking,
                }
                for f in (conv.footers if conv is not None else ())
            ],
            "group": self.group,
            "breaking_description": conv.breaking_description if conv else None,
            "breaking": self.is_breaking,
            "scope": scope,
            "links": [dict(link) for link in self.links],
            "author": dict(self.author),
            "committer": dict(self.committer),
            "conventional": conv is not None,
            "merge_commit": self.message.startswith("Merge"),
            "remote": dict(self.remote) if self.remote is not None else None,
            "raw_message": self.message,
        }


def _or(value: bool | None, default: bool) -> bool:
    return default if value is None else value


@dataclass
class Release:
    """A version together with the commits it contains."""

    version: str | None = None
    commits: list[Commit] = field(default_factory=list)
    commit_id: str | None = None
    timestamp: int = 0
    previous: Release | None = None
    message: str | None = None
    repository: str | None = None

    def to_context(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "message": self.message,
            "commits": [c.to_context() for c in self.commits],
            "commit_id": self.commit_id,
            "timestamp": self.timestamp,
            "previous": self.previous.to_context() if self.previous else None,
            "repository": self.repository,
        }


@dataclass
class Remote:
    """The repository hosting the project."""

    owner: str
    repo: str
    link: str
    contributors: list[dict[str, Any]] = field(default_factory=list)

    def to_context(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "owner": self.owner,
            "repo": self.repo,
            "link": self.link,
        }
        if self.contributors:
            result["contributors"] = [dict(c) for c in self.contributors]
        return result


def _lookup(item: Any, attribute: str) -> Any:
    value = item
    for part in attribute.split("."):
        if isinstance(value, dict):
            value = value.get(part)
        else:
            value = getattr(value, part, None)
        if value is None:
            return None
    return value


def _group_by(items: list[Any], attribute: str) -> list[tuple[str, list[Any]]]:
    groups: dict[str, list[Any]] = {}
    for item in items:
        key = _lookup(item, attribute)
        if key is None:
            continue
        groups.setdefault(key if isinstance(key, str) else str(key), []).append(item)
    return sorted(groups.items())


def _upper_first(value: Any) -> str:
    text = str(value)
    return text[:1].upper() + text[1:]


def _date(value: Any, format: str = "%Y-%m-%d", timezone: str | None = None) -> str:
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, date):
        moment = datetime(value.year, value.month, value.day, tzinfo=_UTC)
    else:
        moment = datetime.fromtimestamp(int(value), tz=_UTC)
    if timezone is not None:
        try:
            moment = moment.astimezone(ZoneInfo(timezone))
        except ZoneInfoNotFoundError as err:
            raise ChangelogError(f"unknown timezone `{timezone}`") from err
    return moment.strftime(format)


_UTC = timezone.utc
_ENV = jinja2.Environment(keep_trailing_newline=True, autoescape=False)
_ENV.filters["group_by"] = _group_by
_ENV.filters["upper_first"] = _upper_first
_ENV.filters["date"] = _date


def _trim_template(template: str) -> str:
    lines = template.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return "\n".join(line.strip() for line in lines)


def _render_template(
    template: str,
    trim: bool,
    context: dict[str, Any],
    postprocessors: list[CliffTextProcessor],
) -> str:
    if trim:
        template = _trim_template(template)
    try:
        rendered = _ENV.from_string(template).render(context)
    except jinja2.TemplateError as err:
        raise ChangelogError(f"cannot generate changelog: {err}") from err
    return _apply_processors(rendered, postprocessors)


@dataclass
class Changelog:
    """A changelog entry for one release, ready to be rendered."""

    release: Release
    package: str
    config: CliffConfig | None = None
    release_link: str | None = None
    remote: Remote | None = None
    pr_link: str | None = None

    def generate(self) -> str:
        """Render the full changelog."""
        return self._render(self._changelog_config(None))

    def prepend(self, old_changelog: str) -> str:
        """Add this release on top of an existing changelog."""
        if self._is_version_unchanged():
            return old_changelog
        header = parse_header(old_changelog)
        config = self._changelog_config(header)
        new_entry = self._render(config)
        if config.changelog.header is not None:
            old_changelog = old_changelog.replace(config.changelog.header, "", 1)
        return new_entry + old_changelog

    def _is_version_unchanged(self) -> bool:
        previous = self.release.previous
        previous_version = previous.version if previous is not None else None
        return previous_version == self.release.version

    def _changelog_config(self, header: str | None) -> CliffConfig:
        user_config = self.config if self.config is not None else CliffConfig()
        return CliffConfig(
            changelog=apply_defaults_to_changelog_config(user_config.changelog, header),
            git=apply_defaults_to_git_config(user_config.git, self.pr_link),
            remote=user_config.remote,
        )

    def _additional_context(self) -> dict[str, Any]:
        context: dict[str, Any] = {"package": self.package}
        if self.release_link is not None:
            context[RELEASE_LINK] = self.release_link
        if self.remote is not None:
            context[REMOTE] = self.remote.to_context()
        return context

    def _render(self, config: CliffConfig) -> str:
        settings = config.changelog
        trim = bool(settings.trim)
        postprocessors = settings.postprocessors or []
        extra = self._additional_context()
        release_context = self.release.to_context()
        parts = []
        if settings.header is not None:
            header_context = {"releases": [release_context], **extra}
            parts.append(
                _render_template(settings.header, trim, header_context, postprocessors)
                + "\n"
            )
        parts.append(
            _render_template(
                settings.body or "", trim, {**release_context, **extra}, postprocessors
            )
        )
        if settings.footer is not None:
            footer_context = {"releases": [release_context], **extra}
            parts.append(
                _render_template(settings.footer, trim, footer_context, postprocessors)
                + "\n"
            )
        return "".join(parts)


@dataclass
class ChangelogBuilder:
    """Collects what is needed to build a `Changelog`."""

    commits: list[Commit]
    version: str
    package: str
    previous_version: str | None = None
    config: CliffConfig | None = None
    remote: Remote | None = None
    release_date: date | None = None
    release_link: str | None = None
    pr_link: str | None = None

    def with_previous_version(self, previous_version: str) -> ChangelogBuilder:
        return replace(self, previous_version=previous_version)

    def with_pr_link(self, pr_link: str) -> ChangelogBuilder:
        return replace(self, pr_link=pr_link)

    def with_release_date(self, release_date: date) -> ChangelogBuilder:
        return replace(self, release_date=release_date)

    def with_release_link(self, release_link: str) -> ChangelogBuilder:
        return replace(self, release_link=release_link)

    def with_config(self, config: CliffConfig) -> ChangelogBuilder:
        return replace(self, config=config)

    def with_remote(self, remote: Remote) -> ChangelogBuilder:
        return replace(self, remote=remote)

    def build(self) -> Changelog:
        git_config = (
            self.config.git
            if self.config is not None
            else default_git_config(self.pr_link)
        )
        git_config = apply_defaults_to_git_config(git_config, self.pr_link)
        commits = []
        for commit in self.commits:
            try:
                commits.append(commit.process(git_config))
            except ChangelogError as err:
                logger.debug("commit %s left out of the changelog: %s", commit.id, err)

        sort_commits = (
            git_config.sort_commits.lower()
            if git_config.sort_commits is not None
            else None
        )
        if sort_commits == "oldest":
            commits.reverse()
        elif sort_commits not in ("newest", None):
            # Commits are already sorted from newest to oldest.
            logger.warning(
                "Invalid setting for sort_commits: '%s'. "
                "Valid values are 'newest' and 'oldest'.",
                sort_commits,
            )

        previous = (
            Release(version=self.previous_version)
            if self.previous_version is not None
            else None
        )
        return Changelog(
            release=Release(
                version=self.version,
                commits=commits,
                timestamp=self._release_timestamp(),
                previous=previous,
            ),
            package=self.package,
            config=self.config,
            release_link=self.release_link,
            remote=self.remote,
            pr_link=self.pr_link,
        )

    def _release_timestamp(self) -> int:
        if self.release_date is None:
            return int(time.time())
        day = self.release_date
        return int(datetime(day.year, day.month, day.day, tzinfo=_UTC).timestamp())