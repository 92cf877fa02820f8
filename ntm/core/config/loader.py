"""
Configuration loader — reads config.yml into the ntm config model.

Lookup order: explicit path (``--config``), ``NTM_CONFIG``, then
``$XDG_CONFIG_HOME/ntm/config.yml``. Only an explicitly requested file
must exist; a missing default file means defaults.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from ntm.core.models.profile import NtmConfig

logger = logging.getLogger(__name__)

CONFIG_FILE = "config.yml"
ENV_CONFIG = "NTM_CONFIG"


class ConfigError(Exception):
    """Raised when ntm configuration is invalid or missing."""


def default_config_path() -> Path:
    """``$XDG_CONFIG_HOME/ntm/config.yml`` (``~/.config`` when unset)."""
    base = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(base) / "ntm" / CONFIG_FILE


def find_config_file(explicit: Path | None = None) -> tuple[Path | None, bool]:
    """Locate the config file.

    Returns:
        ``(path, required)``. ``required`` is True when the path came from
        ``--config`` or ``NTM_CONFIG``. ``path`` is None when no default
        file exists.
    """
    if explicit is not None:
        return Path(explicit).expanduser(), True

    env_path = os.environ.get(ENV_CONFIG)
    if env_path:
        return Path(env_path).expanduser(), True

    candidate = default_config_path()
    if candidate.is_file():
        return candidate, False
    return None, False


def load_config(path: Path | None = None) -> NtmConfig:
    """Load and validate the ntm configuration.

    Args:
        path: Explicit path to config.yml. If None, uses the lookup order.

    Returns:
        Validated NtmConfig (defaults when no file exists).

    Raises:
        ConfigError: If a required file is missing, or any file is invalid.
    """
    config_path, required = find_config_file(path)

    if config_path is None:
        logger.debug("No config file found, using defaults")
        return NtmConfig()

    if not config_path.is_file():
        if required:
            raise ConfigError(f"Config file not found: {config_path}")
        return NtmConfig()

    logger.debug("Loading config from %s", config_path)

    try:
        raw = config_path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {config_path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if data is None:
        return NtmConfig()

    if not isinstance(data, dict):
        raise ConfigError(
            f"Expected a YAML mapping in {config_path}, got {type(data).__name__}"
        )

    try:
        config = NtmConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {config_path}: {e}") from e

    logger.info(
        "Loaded config from %s (upstream %s/%s)",
        config_path,
        config.upgrade.owner,
        config.upgrade.repo,
    )
    return config
