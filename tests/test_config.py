import tomllib
from datetime import timedelta

import pytest

from releaseplz.changelog_config import ChangelogCfg
from releaseplz.config import Config, Workspace
from releaseplz.package_config import (
    ConfigError,
    PackageConfig,
    PackageSpecificConfig,
    PackageSpecificConfigWithName,
    ReleaseType,
)

BASE_WORKSPACE_CONFIG = """
[workspace]
dependencies_update = false
allow_dirty = false
changelog_config = "../git-cliff.toml"
repo_url = "https://github.com/release-plz/release-plz"
git_release_enable = true
git_release_type = "prod"
git_release_draft = false
pr_branch_prefix = "f-"
publish_timeout = "10m"
release_commits = "^feat:"
"""

BASE_PACKAGE_CONFIG = """
[[package]]
name = "crate1"
"""


def create_base_workspace_config() -> Config:
    return Config(
        changelog=ChangelogCfg(),
        workspace=Workspace(
            dependencies_update=False,
            changelog_config="../git-cliff.toml",
            allow_dirty=False,
            repo_url="https://github.com/release-plz/release-plz",
            packages_defaults=PackageConfig(
                git_release_enable=True,
                git_release_type=ReleaseType.PROD,
                git_release_draft=False,
            ),
            pr_draft=False,
            pr_labels=[],
            pr_branch_prefix="f-",
            publish_timeout="10m",
            release_commits="^feat:",
        ),
        package=[],
    )


def create_base_package_config() -> PackageSpecificConfigWithName:
    return PackageSpecificConfigWithName(
        name="crate1", config=PackageSpecificConfig(common=PackageConfig())
    )


def test_config_without_update_config_is_deserialized():
    assert Config.from_toml(BASE_WORKSPACE_CONFIG) == create_base_workspace_config()


def test_config_is_deserialized():
    text = BASE_WORKSPACE_CONFIG + "changelog_update = true"
    expected = create_base_workspace_config()
    expected.workspace.packages_defaults.changelog_update = True
    assert Config.from_toml(text) == expected


@pytest.mark.parametrize("flag,value", [("true", True), ("false", False)])
def test_config_package_release_is_deserialized(flag, value):
    text = f"{BASE_WORKSPACE_CONFIG}\n{BASE_PACKAGE_CONFIG}release = {flag}"
    expected = create_base_workspace_config()
    package = create_base_package_config()
    package.config.common.release = value
    expected.package = [package]
    assert Config.from_toml(text) == expected


@pytest.mark.parametrize("flag,value", [("true", True), ("false", False)])
def test_config_workspace_release_is_deserialized(flag, value):
    text = f"{BASE_WORKSPACE_CONFIG}release = {flag}"
    expected = create_base_workspace_config()
    expected.workspace.packages_defaults.release = value
    assert Config.from_toml(text) == expected


def _serialized_config() -> Config:
    return Config(
        changelog=ChangelogCfg(),
        workspace=Workspace(
            changelog_config="../git-cliff.toml",
            repo_url="https://github.com/release-plz/release-plz",
            pr_labels=["label1"],
            pr_branch_prefix="f-",
            packages_defaults=PackageConfig(
                changelog_update=True,
                git_release_enable=True,
                git_release_type=ReleaseType.PROD,
                git_release_draft=False,
                release=True,
                changelog_path="./CHANGELOG.md",
            ),
            publish_timeout="10m",
            release_commits="^feat:",
        ),
        package=[
            PackageSpecificConfigWithName(
                name="crate1",
                config=PackageSpecificConfig(
                    common=PackageConfig(
                        semver_check=False,
                        changelog_update=True,
                        git_release_enable=True,
                        git_release_type=ReleaseType.PROD,
                        git_release_draft=False,
                        release=False,
                    ),
                    changelog_include=["pkg1"],
                ),
            )
        ],
    )


def test_config_is_serialized():
    text = _serialized_config().to_toml()
    parsed = tomllib.loads(text)
    assert list(parsed["workspace"]) == [
        "changelog_path",
        "changelog_update",
        "git_release_enable",
        "git_release_type",
        "git_release_draft",
        "release",
        "changelog_config",
        "pr_draft",
        "pr_labels",
        "pr_branch_prefix",
        "publish_timeout",
        "repo_url",
        "release_commits",
    ]
    assert parsed["workspace"]["git_release_type"] == "prod"
    assert parsed["workspace"]["pr_labels"] == ["label1"]
    assert parsed["changelog"] == {}
    assert parsed["package"] == [
        {
            "name": "crate1",
            "changelog_update": True,
            "git_release_enable": True,
            "git_release_type": "prod",
            "git_release_draft": False,
            "semver_check": False,
            "release": False,
            "changelog_include": ["pkg1"],
        }
    ]
    assert text.startswith("[workspace]\n")
    assert "[changelog]" in text
    assert "[[package]]" in text


def test_serialized_config_round_trips():
    config = _serialized_config()
    assert Config.from_toml(config.to_toml()) == config


def test_default_config_round_trips():
    assert Config.from_toml(Config().to_toml()) == Config()


def test_wrong_config_section_is_not_deserialized():
    with pytest.raises(ConfigError) as info:
        Config.from_toml("[unknown]")
    assert str(info.value) == (
        "unknown field `unknown`, expected one of `workspace`, `changelog`, `package`"
    )


def test_wrong_workspace_section_is_not_deserialized():
    text = "\n[workspace]\nunknown = false\nallow_dirty = true"
    with pytest.raises(ConfigError) as info:
        Config.from_toml(text)
    assert str(info.value) == "unknown field `unknown`"


def test_wrong_changelog_section_is_not_deserialized():
    text = "\n[changelog]\ntrim = true\nunknown = false"
    with pytest.raises(ConfigError) as info:
        Config.from_toml(text)
    assert str(info.value) == (
        "unknown field `unknown`, expected one of `header`, `body`, `trim`, "
        "`commit_preprocessors`, `sort_commits`, `link_parsers`, `commit_parsers`, "
        "`protect_breaking_commits`, `tag_pattern`"
    )


def test_wrong_package_section_is_not_deserialized():
    text = '\n[[package]]\nname = "crate1"\nunknown = false'
    with pytest.raises(ConfigError) as info:
        Config.from_toml(text)
    assert str(info.value) == "unknown field `unknown`"


def test_package_without_name_is_rejected():
    with pytest.raises(ConfigError, match="missing field `name`"):
        Config.from_toml("[[package]]\nrelease = true")


def test_invalid_toml_is_rejected():
    with pytest.raises(ConfigError, match="TOML parse error"):
        Config.from_toml("invalid toml content [[[")


def test_relative_repo_url_is_rejected():
    with pytest.raises(ConfigError, match="repo_url"):
        Config.from_toml('[workspace]\nrepo_url = "not a url"')


def test_packages_are_indexed_by_name():
    text = (
        '[[package]]\nname = "a"\nrelease = false\n'
        '[[package]]\nname = "b"\nversion_group = "g"\n'
    )
    packages = Config.from_toml(text).packages()
    assert list(packages) == ["a", "b"]
    assert packages["a"].common.release is False
    assert packages["b"].version_group == "g"


def test_publish_timeout_defaults_to_thirty_minutes():
    assert Workspace().parsed_publish_timeout() == timedelta(minutes=30)


def test_publish_timeout_is_parsed():
    assert Workspace(publish_timeout="10m").parsed_publish_timeout() == timedelta(
        seconds=600
    )


def test_invalid_publish_timeout_is_reported():
    with pytest.raises(ConfigError, match="invalid publish_timeout '30x'"):
        Workspace(publish_timeout="30x").parsed_publish_timeout()