import pytest

from releaseplz.changelog_parser import (
    ChangelogParseError,
    ChangelogParser,
    last_changes,
    last_changes_from_str,
    last_release_from_str,
    last_version_from_str,
    parse_header,
)

WITH_UNRELEASED = """\
# Changelog
All notable changes to this project will be documented in this file.

The format is based on [Keep a Changelog](https://keepachangelog.com/en/1.0.0/),
and this project adheres to [Semantic Versioning](https://semver.org/spec/v2.0.0.html).

## [Unreleased]

## [0.2.5] - 2022-12-16

### Added

- Add function to retrieve default branch (#372)

## [0.2.4] - 2022-12-12

### Changed

- improved error message
"""

WITHOUT_UNRELEASED = """\
# Changelog

All notable changes to this project will be documented in this file.

The format is based on [Keep a Changelog](https://keepachangelog.com/en/1.0.0/),
and this project adheres to [Semantic Versioning](https://semver.org/spec/v2.0.0.html).

## [0.2.5](https://github.com/release-plz/release-plz/compare/git_cmd-v0.2.4...git_cmd-v0.2.5) - 2022-12-16

### Added

- Add function to retrieve default branch (#372)

## [0.2.4] - 2022-12-12

### Changed

- improved error message
"""

EXPECTED_CHANGES = """\
### Added

- Add function to retrieve default branch (#372)"""


def test_changelog_header_is_parsed():
    changelog = "# Changelog\n\nMy custom changelog header\n\n## [Unreleased]\n"
    assert parse_header(changelog) == changelog


def test_changelog_header_with_crlf_parsed_will_contain_crlf():
    changelog = "# Changelog\r\n\r\nMy custom changelog header\r\n\r\n## [Unreleased]\r\n"
    assert parse_header(changelog) == changelog


def test_changelog_header_without_unreleased_is_parsed():
    changelog = "# Changelog\n\nMy custom changelog header\n\n## [0.2.5] - 2022-12-16\n\n"
    assert parse_header(changelog) == "# Changelog\n\nMy custom changelog header\n"


def test_changelog_header_without_unreleased_and_two_previous_versions_is_parsed():
    changelog = """\
# Changelog

My custom changelog header

## [0.2.5] - 2022-12-16

### Added

- Incredible feature

## [0.2.5] - 2022-12-16

### Fixed

- Incredible bug
"""
    assert parse_header(changelog) == "# Changelog\n\nMy custom changelog header\n"


def test_changelog_header_with_versions_is_parsed():
    changelog = """\
# Changelog

My custom changelog header

## [Unreleased]

## [0.2.5] - 2022-12-16
"""
    expected = "# Changelog\n\nMy custom changelog header\n\n## [Unreleased]\n"
    assert parse_header(changelog) == expected


def test_changelog_header_isnt_recognized():
    assert parse_header("# Changelog\n\nMy custom changelog header\n") is None


def test_changelog_with_unreleased_section_is_parsed():
    assert last_changes_from_str(WITH_UNRELEASED) == EXPECTED_CHANGES


def test_changelog_without_unreleased_section_is_parsed():
    assert last_changes_from_str(WITHOUT_UNRELEASED) == EXPECTED_CHANGES


def test_last_version():
    assert last_version_from_str(WITH_UNRELEASED) == "0.2.5"
    assert last_version_from_str(WITHOUT_UNRELEASED) == "0.2.5"


def test_last_release_title_and_notes():
    release = last_release_from_str(WITH_UNRELEASED)
    assert release.title == "[0.2.5] - 2022-12-16"
    assert release.notes == EXPECTED_CHANGES


def test_only_unreleased_has_no_last_release():
    changelog = "# Changelog\n\n## [Unreleased]\n\n- pending\n"
    assert last_changes_from_str(changelog) is None


def test_changelog_without_releases_is_an_error():
    with pytest.raises(ChangelogParseError):
        ChangelogParser("# Changelog\n\nnothing here\n")


def test_duplicate_versions_are_an_error():
    changelog = "# Changelog\n\n## [1.0.0]\n\n- a\n\n## [1.0.0]\n\n- b\n"
    with pytest.raises(ChangelogParseError, match="multiple release notes"):
        ChangelogParser(changelog)


def test_headings_in_code_fences_are_ignored():
    changelog = "# Changelog\n\n## [1.0.0]\n\n```\n## [0.9.0]\n```\n\n## [0.1.0]\n\n- old\n"
    parser = ChangelogParser(changelog)
    assert [r.version for r in parser.releases] == ["1.0.0", "0.1.0"]
    assert parser.last_release().notes == "```\n## [0.9.0]\n```"


def test_last_changes_reads_file(tmp_path):
    path = tmp_path / "CHANGELOG.md"
    path.write_text(WITHOUT_UNRELEASED, encoding="utf-8")
    assert last_changes(path) == EXPECTED_CHANGES


def test_last_changes_missing_file(tmp_path):
    with pytest.raises(ChangelogParseError, match="can't read changelog file"):
        last_changes(tmp_path / "missing.md")