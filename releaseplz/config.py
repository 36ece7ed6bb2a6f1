"""The release-plz configuration file: `[workspace]`, `[changelog]` and `[[package]]`."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any
from urllib.parse import urlsplit

import tomli_w

from releaseplz.changelog_config import ChangelogCfg, ChangelogConfigError
from releaseplz.package_config import (
    ConfigError,
    PackageConfig,
    PackageSpecificConfig,
    PackageSpecificConfigWithName,
    parse_duration,
)

_DEFAULT_PUBLISH_TIMEOUT = "30m"

_WORKSPACE_BOOL_FIELDS = ("allow_dirty", "dependencies_update", "pr_draft", "release_always")
_WORKSPACE_STR_FIELDS = (
    "changelog_config",
    "pr_name",
    "pr_body",
    "pr_branch_prefix",
    "publish_timeout",
    "release_commits",
)
_WORKSPACE_OWN_FIELDS = (
    "allow_dirty",
    "changelog_config",
    "dependencies_update",
    "pr_name",
    "pr_body",
    "pr_draft",
    "pr_labels",
    "pr_branch_prefix",
    "publish_timeout",
    "repo_url",
    "release_commits",
    "release_always",
)
_TOP_LEVEL_FIELDS = ("workspace", "changelog", "package")


def _expect_table(value: Any, name: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ConfigError(f"invalid type for `{name}`: expected a table")
    return value


def _expect_str_list(value: Any, name: str) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"invalid type for `{name}`: expected an array of strings")
    return list(value)


def _validate_url(value: Any) -> str:
    if not isinstance(value, str):
        raise ConfigError("invalid type for `repo_url`: expected a string")
    try:
        parts = urlsplit(value)
    except ValueError as err:
        raise ConfigError(f"invalid value for `repo_url`: {err}") from err
    if not parts.scheme:
        raise ConfigError("invalid value for `repo_url`: relative URL without a base")
    return value


@dataclass
class Workspace:
    """Settings of the `[workspace]` section, applied to all packages by default."""

    packages_defaults: PackageConfig = field(default_factory=PackageConfig)
    allow_dirty: bool | None = None
    changelog_config: str | None = None
    dependencies_update: bool | None = None
    pr_name: str | None = None
    pr_body: str | None = None
    pr_draft: bool = False
    pr_labels: list[str] = field(default_factory=list)
    pr_branch_prefix: str | None = None
    publish_timeout: str | None = None
    repo_url: str | None = None
    release_commits: str | None = None
    release_always: bool | None = None

    def parsed_publish_timeout(self) -> timedelta:
        """The publish timeout; 30 minutes when unset."""
        publish_timeout = (
            self.publish_timeout
            if self.publish_timeout is not None
            else _DEFAULT_PUBLISH_TIMEOUT
        )
        try:
            return parse_duration(publish_timeout)
        except ConfigError as err:
            raise ConfigError(
                f"invalid publish_timeout '{publish_timeout}': {err}"
            ) from err

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Workspace:
        own: dict[str, Any] = {}
        common: dict[str, Any] = {}
        for key, value in data.items():
            if key in _WORKSPACE_BOOL_FIELDS:
                if not isinstance(value, bool):
                    raise ConfigError(f"invalid type for `{key}`: expected a boolean")
                own[key] = value
            elif key in _WORKSPACE_STR_FIELDS:
                if not isinstance(value, str):
                    raise ConfigError(f"invalid type for `{key}`: expected a string")
                own[key] = value
            elif key == "pr_labels":
                own[key] = _expect_str_list(value, key)
            elif key == "repo_url":
                own[key] = _validate_url(value)
            else:
                common[key] = value
        return cls(packages_defaults=PackageConfig.from_dict(common), **own)

    def to_dict(self) -> dict[str, Any]:
        result = self.packages_defaults.to_dict()
        for name in _WORKSPACE_OWN_FIELDS:
            value = getattr(self, name)
            if value is None:
                continue
            result[name] = list(value) if isinstance(value, list) else value
        return result


def _package_from_dict(data: dict[str, Any]) -> PackageSpecificConfigWithName:
    if "name" not in data:
        raise ConfigError("missing field `name`")
    name = data["name"]
    if not isinstance(name, str):
        raise ConfigError("invalid type for `name`: expected a string")
    changelog_include = None
    version_group = None
    common: dict[str, Any] = {}
    for key, value in data.items():
        if key == "name":
            continue
        if key == "changelog_include":
            changelog_include = _expect_str_list(value, key)
        elif key == "version_group":
            if not isinstance(value, str):
                raise ConfigError(f"invalid type for `{key}`: expected a string")
            version_group = value
        else:
            common[key] = value
    return PackageSpecificConfigWithName(
        name=name,
        config=PackageSpecificConfig(
            common=PackageConfig.from_dict(common),
            changelog_include=changelog_include,
            version_group=version_group,
        ),
    )


def _package_to_dict(package: PackageSpecificConfigWithName) -> dict[str, Any]:
    result: dict[str, Any] = {"name": package.name}
    result.update(package.config.common.to_dict())
    if package.config.changelog_include is not None:
        result["changelog_include"] = list(package.config.changelog_include)
    if package.config.version_group is not None:
        result["version_group"] = package.config.version_group
    return result


@dataclass
class Config:
    """The whole release-plz configuration."""

    workspace: Workspace = field(default_factory=Workspace)
    changelog: ChangelogCfg = field(default_factory=ChangelogCfg)
    package: list[PackageSpecificConfigWithName] = field(default_factory=list)

    def packages(self) -> dict[str, PackageSpecificConfig]:
        """Package-specific configurations, by package name."""
        return {p.name: p.config for p in self.package}

    @classmethod
    def from_toml(cls, text: str) -> Config:
        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as err:
            raise ConfigError(f"TOML parse error: {err}") from err
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Config:
        for key in data:
            if key not in _TOP_LEVEL_FIELDS:
                expected = ", ".join(f"`{name}`" for name in _TOP_LEVEL_FIELDS)
                raise ConfigError(f"unknown field `{key}`, expected one of {expected}")
        workspace = Workspace.from_dict(
            _expect_table(data.get("workspace", {}), "workspace")
        )
        try:
            changelog = ChangelogCfg.from_dict(
                _expect_table(data.get("changelog", {}), "changelog")
            )
        except ChangelogConfigError as err:
            raise ConfigError(str(err)) from err
        raw_packages = data.get("package", [])
        if not isinstance(raw_packages, list):
            raise ConfigError("invalid type for `package`: expected an array of tables")
        packages = [
            _package_from_dict(_expect_table(item, "package")) for item in raw_packages
        ]
        return cls(workspace=workspace, changelog=changelog, package=packages)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "workspace": self.workspace.to_dict(),
            "changelog": self.changelog.to_dict(),
        }
        if self.package:
            result["package"] = [_package_to_dict(p) for p in self.package]
        return result

    def to_toml(self) -> str:
        return tomli_w.dumps(self.to_dict())