"""Default changelog and commit-processing settings, in Keep a Changelog style."""

from __future__ import annotations

import re
from dataclasses import replace

from releaseplz.changelog_config import (
    CliffChangelogConfig,
    CliffCommitParser,
    CliffGitConfig,
    CliffTextProcessor,
)

CHANGELOG_HEADER = """# Changelog

All notable changes to this project will be documented in this file.

The format is based on [Keep a Changelog](https://keepachangelog.com/en/1.0.0/),
and this project adheres to [Semantic Versioning](https://semver.org/spec/v2.0.0.html).

## [Unreleased]
"""

CHANGELOG_FILENAME = "CHANGELOG.md"
RELEASE_LINK = "release_link"
REMOTE = "remote"

DEFAULT_CHANGELOG_BODY = """
## [{{ version }}]{%- if release_link -%}({{ release_link }}){% endif %} - {{ timestamp | date(format="%Y-%m-%d") }}
{% for group, commits in commits | group_by(attribute="group") %}
### {{ group | upper_first }}

{% for commit in commits %}
{%- if commit.scope -%}
- *({{commit.scope}})* {% if commit.breaking %}[**breaking**] {% endif %}{{ commit.message }}{%- if commit.links %} ({% for link in commit.links %}[{{link.text}}]({{link.href}}) {% endfor -%}){% endif %}
{% else -%}
- {% if commit.breaking %}[**breaking**] {% endif %}{{ commit.message }}
{% endif -%}
{% endfor -%}
{% endfor %}"""

_PR_NUMBER_RE = r"\(#([0-9]+)\)"

_KAC_GROUPS = (
    ("^feat", "added"),
    ("^changed", "changed"),
    ("^deprecated", "deprecated"),
    ("^removed", "removed"),
    ("^fix", "fixed"),
    ("^security", "security"),
    (".*", "other"),
)


def _commit_parser(pattern: str, group: str) -> CliffCommitParser:
    try:
        message = re.compile(pattern)
    except re.error:
        message = None
    return CliffCommitParser(message=message, group=group)


def kac_commit_parsers() -> list[CliffCommitParser]:
    """Commit parsers grouping commits into Keep a Changelog sections."""
    return [_commit_parser(pattern, group) for pattern, group in _KAC_GROUPS]


def default_changelog_config(header: str | None) -> CliffChangelogConfig:
    """The default changelog settings, keeping `header` if one is given."""
    return CliffChangelogConfig(
        header=header if header is not None else CHANGELOG_HEADER,
        body=DEFAULT_CHANGELOG_BODY,
        footer=None,
        trim=True,
        postprocessors=None,
    )


def default_git_config(pr_link: str | None) -> CliffGitConfig:
    """The default commit processing settings.

    With a `pr_link`, references such as `(#123)` become links to the PR.
    """
    commit_preprocessors = None
    if pr_link is not None:
        commit_preprocessors = [
            CliffTextProcessor(
                pattern=re.compile(_PR_NUMBER_RE),
                replace=f"([#${{1}}]({pr_link}/${{1}}))",
                replace_command=None,
            )
        ]
    return CliffGitConfig(
        conventional_commits=True,
        filter_unconventional=False,
        commit_parsers=kac_commit_parsers(),
        filter_commits=True,
        sort_commits="newest",
        commit_preprocessors=commit_preprocessors,
    )


def apply_defaults_to_changelog_config(
    changelog: CliffChangelogConfig, header: str | None
) -> CliffChangelogConfig:
    """Fill the unset header, body and trim of `changelog` with the defaults."""
    defaults = default_changelog_config(header)
    return replace(
        changelog,
        header=changelog.header if changelog.header is not None else defaults.header,
        body=changelog.body if changelog.body is not None else defaults.body,
        trim=changelog.trim if changelog.trim is not None else defaults.trim,
    )


def apply_defaults_to_git_config(
    git: CliffGitConfig, pr_link: str | None
) -> CliffGitConfig:
    """Fill the unset commit-processing values of `git` with the defaults."""
    defaults = default_git_config(pr_link)
    names = (
        "conventional_commits",
        "filter_unconventional",
        "commit_parsers",
        "filter_commits",
        "sort_commits",
        "commit_preprocessors",
    )
    return replace(
        git,
        **{
            name: getattr(defaults, name)
            for name in names
            if getattr(git, name) is None
        },
    )