"""Settings shared by the `[workspace]` and `[[package]]` sections."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, fields, replace
from datetime import timedelta
from enum import Enum
from typing import Any


class ConfigError(ValueError):
    """Raised when the release-plz configuration is invalid."""


class ReleaseType(str, Enum):
    """Whether a git release is marked as ready for production."""

    PROD = "prod"
    PRE = "pre"
    AUTO = "auto"

    def __str__(self) -> str:
        return self.value


class SemverCheck(str, Enum):
    """Whether to run cargo-semver-checks."""

    YES = "yes"
    NO = "no"

    def __str__(self) -> str:
        return self.value


_BOOL_FIELDS = frozenset(
    {
        "changelog_update",
        "features_always_increment_minor",
        "git_release_enable",
        "git_release_draft",
        "git_release_latest",
        "git_tag_enable",
        "publish",
        "publish_allow_dirty",
        "publish_no_verify",
        "publish_all_features",
        "semver_check",
        "release",
    }
)
_STR_FIELDS = frozenset(
    {"changelog_path", "git_release_body", "git_release_name", "git_tag_name"}
)


def _convert(key: str, value: Any) -> Any:
    if key == "git_release_type":
        if not isinstance(value, str):
            raise ConfigError(f"invalid type for `{key}`: expected a string")
        try:
            return ReleaseType(value)
        except ValueError as err:
            raise ConfigError(
                f"unknown variant `{value}`, expected one of `prod`, `pre`, `auto`"
            ) from err
    if key == "publish_features":
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ConfigError(f"invalid type for `{key}`: expected an array of strings")
        return list(value)
    if key in _BOOL_FIELDS:
        if not isinstance(value, bool):
            raise ConfigError(f"invalid type for `{key}`: expected a boolean")
        return value
    if key in _STR_FIELDS:
        if not isinstance(value, str):
            raise ConfigError(f"invalid type for `{key}`: expected a string")
        return value
    raise ConfigError(f"unknown field `{key}`")


@dataclass
class PackageConfig:
    """Settings valid both at the workspace and at the package level."""

    changelog_path: str | None = None
    changelog_update: bool | None = None
    features_always_increment_minor: bool | None = None
    git_release_enable: bool | None = None
    git_release_body: str | None = None
    git_release_type: ReleaseType | None = None
    git_release_draft: bool | None = None
    git_release_latest: bool | None = None
    git_release_name: str | None = None
    git_tag_enable: bool | None = None
    git_tag_name: str | None = None
    publish: bool | None = None
    publish_allow_dirty: bool | None = None
    publish_no_verify: bool | None = None
    publish_features: list[str] | None = None
    publish_all_features: bool | None = None
    semver_check: bool | None = None
    release: bool | None = None

    def merge(self, default: PackageConfig) -> PackageConfig:
        """Fill the unset values of this config with those of `default`."""
        return replace(
            self,
            **{
                f.name: getattr(default, f.name)
                for f in fields(self)
                if getattr(self, f.name) is None
            },
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PackageConfig:
        """Build the config from a parsed TOML table, rejecting unknown keys."""
        return cls(**{key: _convert(key, value) for key, value in data.items()})

    def to_dict(self) -> dict[str, Any]:
        """The config as a TOML-ready table; unset values are left out."""
        result: dict[str, Any] = {}
        for cfg_field in fields(self):
            value = getattr(self, cfg_field.name)
            if value is None:
                continue
            if isinstance(value, Enum):
                value = value.value
            elif isinstance(value, list):
                value = list(value)
            result[cfg_field.name] = value
        return result


@dataclass
class PackageSpecificConfig:
    """Settings of a `[[package]]` section."""

    common: PackageConfig = field(default_factory=PackageConfig)
    changelog_include: list[str] | None = None
    version_group: str | None = None

    def merge(self, default: PackageConfig) -> PackageSpecificConfig:
        """Fill the unset common values with the workspace defaults."""
        return PackageSpecificConfig(
            common=self.common.merge(default),
            changelog_include=self.changelog_include,
            version_group=self.version_group,
        )


@dataclass
class PackageSpecificConfigWithName:
    """A `[[package]]` section together with the package name."""

    name: str
    config: PackageSpecificConfig = field(default_factory=PackageSpecificConfig)


_NUMBER_RE = re.compile(r"\+?[0-9]+")
_UNITS = {"s": 1, "m": 60, "h": 60 * 60}


def parse_duration(input: str) -> timedelta:
    """Parse durations such as `30s`, `5m`, `1h` or `60` (seconds)."""
    if not input:
        raise ConfigError("input cannot be empty")
    unit = input[-1]
    if unit in _UNITS:
        number_str, multiplier = input[:-1], _UNITS[unit]
    elif unit.isascii() and unit.isalpha():
        raise ConfigError(
            f"'{unit}' is not a valid time unit. Valid units are: 's', 'm' and 'h'"
        )
    else:
        number_str, multiplier = input, 1
    if not _NUMBER_RE.fullmatch(number_str):
        raise ConfigError("invalid duration number")
    return timedelta(seconds=int(number_str) * multiplier)