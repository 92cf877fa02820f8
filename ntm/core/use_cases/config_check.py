"""
Config check use case — validate the ntm config file and report issues.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from ntm.core.config.loader import ConfigError, find_config_file, load_config
from ntm.core.models.profile import DEFAULT_API_BASE, NtmConfig


@dataclass
class ConfigCheckResult:
    """Result of configuration validation."""

    valid: bool = False
    config: NtmConfig | None = None
    config_path: Path | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        upgrade = self.config.upgrade if self.config else None
        return {
            "valid": self.valid,
            "config_path": str(self.config_path) if self.config_path else None,
            "errors": self.errors,
            "warnings": self.warnings,
            "upstream": f"{upgrade.owner}/{upgrade.repo}" if upgrade else None,
            "api_base": upgrade.api_base if upgrade else None,
            "require_checksums": upgrade.require_checksums if upgrade else None,
        }


def check_config(config_path: Path | None = None) -> ConfigCheckResult:
    """Validate the ntm configuration and report issues.

    A missing default config file is valid (defaults apply) but noted
    as a warning.
    """
    result = ConfigCheckResult()

    path, _required = find_config_file(config_path)
    result.config_path = path

    try:
        config = load_config(config_path)
    except ConfigError as e:
        result.errors.append(str(e))
        return result

    result.config = config
    if path is None:
        result.warnings.append("No config file found, using built-in defaults.")

    upgrade = config.upgrade
    if not upgrade.api_base.startswith("https://"):
        result.warnings.append(
            f"upgrade.api_base is not HTTPS ({upgrade.api_base}); releases are fetched unencrypted."
        )
    if upgrade.api_base != DEFAULT_API_BASE and not upgrade.require_checksums:
        result.warnings.append(
            "Custom release host without upgrade.require_checksums: downloads may go unverified."
        )
    if upgrade.install_path and not Path(upgrade.install_path).expanduser().is_file():
        result.warnings.append(f"upgrade.install_path does not exist: {upgrade.install_path}")

    result.valid = True
    return result
