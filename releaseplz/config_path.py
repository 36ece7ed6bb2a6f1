"""Locating and loading the release-plz configuration file."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from releaseplz.config import Config
from releaseplz.package_config import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATHS = ("release-plz.toml", ".release-plz.toml")


def load_config(path: str | Path) -> Config | None:
    """Load the config at `path`; None if the file doesn't exist."""
    path = Path(path)
    try:
        contents = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    try:
        config = Config.from_toml(contents)
    except ConfigError as err:
        raise ConfigError(f"invalid config file {path}: {err}") from err
    logger.info("using release-plz config file %s", path)
    return config


@dataclass
class ConfigPath:
    """Path to the release-plz config file, if one was given."""

    path: Path | None = None

    def load(self) -> Config:
        """Load the given file, else the first default file found, else the defaults."""
        if self.path is not None:
            try:
                config = load_config(self.path)
            except (ConfigError, OSError) as err:
                raise ConfigError(f"failed to read config file: {err}") from err
            if config is None:
                raise ConfigError(f"specified config file {self.path} does not exist")
            return config

        for candidate in DEFAULT_CONFIG_PATHS:
            try:
                config = load_config(candidate)
            except (ConfigError, OSError):
                continue
            if config is not None:
                return config

        logger.info("release-plz config file not found, using default configuration")
        return Config()