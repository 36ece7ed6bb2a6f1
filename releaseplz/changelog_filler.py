"""Finding out which commit details a changelog template needs."""

from __future__ import annotations

from dataclasses import dataclass

from releaseplz.changelog_config import CliffChangelogConfig


@dataclass(frozen=True)
class RequiredInfo:
    """Commit details referenced by the changelog body template."""

    author_name: bool = False
    author_email: bool = False
    committer_name: bool = False
    committer_email: bool = False
    remote_username: bool = False
    remote_pr_number: bool = False

    def is_remote_required(self) -> bool:
        """Whether details must be fetched from the git forge."""
        return self.remote_username or self.remote_pr_number


def get_required_info(changelog_config: CliffChangelogConfig) -> RequiredInfo:
    """Inspect the body template for the commit fields it uses."""
    body = changelog_config.body
    if body is None:
        return RequiredInfo()
    return RequiredInfo(
        author_name="author.name" in body,
        author_email="author.email" in body,
        committer_name="committer.name" in body,
        committer_email="committer.email" in body,
        remote_username="remote.username" in body,
        remote_pr_number="remote.pr_number" in body,
    )