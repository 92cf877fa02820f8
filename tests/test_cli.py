"""
Tests for CLI commands — upgrade, version, config check, and global options.
"""

import json
import textwrap
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from ntm import __version__
from ntm.main import cli
from tests.helpers import (
    API_BASE,
    DOWNLOAD_BASE,
    LATEST_ENDPOINT,
    FakeOpener,
    needs_posix,
    release_payload,
    tar_gz_bytes,
    version_script,
    write_executable,
)

ARCHIVE = "ntm_9.9.9_linux_amd64.tar.gz"


def _make_config(tmp_path: Path, extra: str = "") -> Path:
    content = textwrap.dedent(f"""\
        upgrade:
          api_base: {API_BASE}
          require_checksums: false
    """) + extra
    config = tmp_path / "config.yml"
    config.write_text(content)
    return config


def _invoke(args, routes=None):
    opener = FakeOpener(routes or {})
    with patch("ntm.core.services.upgrade.catalog.urlopen", opener):
        return CliRunner().invoke(cli, args), opener


class TestCLIGlobal:
    """Tests for global CLI behavior."""

    def test_help(self):
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "upgrade" in result.output

    def test_version_option(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output


class TestVersionCommand:
    def test_short(self):
        result = CliRunner().invoke(cli, ["version", "--short"])
        assert result.exit_code == 0
        assert result.output.strip() == __version__

    def test_json(self):
        result = CliRunner().invoke(cli, ["version", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["version"] == __version__
        assert "/" in data["platform"]

    def test_human(self):
        result = CliRunner().invoke(cli, ["version"])
        assert f"ntm version {__version__}" in result.output


class TestUpgradeCommand:
    def _args(self, config, *extra):
        return ["--config", str(config), "upgrade", "--target", "linux/amd64", *extra]

    def test_check_reports_newer(self, tmp_path):
        config = _make_config(tmp_path)
        result, opener = _invoke(
            self._args(config, "--check"),
            {LATEST_ENDPOINT: release_payload("v9.9.9", [ARCHIVE])},
        )
        assert result.exit_code == 0
        assert "New version available" in result.output
        assert len(opener.requests) == 1

    def test_check_json(self, tmp_path):
        config = _make_config(tmp_path)
        result, _ = _invoke(
            self._args(config, "--check", "--json"),
            {LATEST_ENDPOINT: release_payload("v9.9.9", [ARCHIVE])},
        )
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["status"] == "update_available"
        assert data["latest_version"] == "9.9.9"
        assert data["current_version"] == __version__

    def test_up_to_date(self, tmp_path):
        config = _make_config(tmp_path)
        result, _ = _invoke(
            self._args(config),
            {LATEST_ENDPOINT: release_payload(f"v{__version__}", [ARCHIVE])},
        )
        assert result.exit_code == 0
        assert "already on the latest version" in result.output

    def test_no_releases_is_not_an_error(self, tmp_path):
        config = _make_config(tmp_path)
        result, _ = _invoke(self._args(config), {LATEST_ENDPOINT: 404})
        assert result.exit_code == 0
        assert "no releases found" in result.output

    def test_resolution_miss_prints_report(self, tmp_path):
        config = _make_config(tmp_path)
        result, _ = _invoke(
            self._args(config, "--strict", "-y"),
            {LATEST_ENDPOINT: release_payload("v9.9.9", ["ntm_9.9.9_linux_arm64.tar.gz"])},
        )
        assert result.exit_code == 1
        assert "Upgrade Asset Lookup Failed" in result.output
        assert "ntm_9.9.9_linux_arm64.tar.gz" in result.output

    def test_resolution_miss_json(self, tmp_path):
        config = _make_config(tmp_path)
        result, _ = _invoke(
            self._args(config, "--json", "-y"),
            {LATEST_ENDPOINT: release_payload("v9.9.9", ["checksums.txt"])},
        )
        assert result.exit_code == 1
        assert '"resolution_miss"' in result.output
        assert '"available_assets"' in result.output

    def test_transport_error(self, tmp_path):
        config = _make_config(tmp_path)
        result, _ = _invoke(self._args(config, "--check"), {LATEST_ENDPOINT: 403})
        assert result.exit_code == 1
        assert "❌" in result.output
        assert "HTTP 403" in result.output

    def test_bad_target(self, tmp_path):
        config = _make_config(tmp_path)
        result, _ = _invoke(["--config", str(config), "upgrade", "--target", "linux"])
        assert result.exit_code == 2

    def test_invalid_config(self, tmp_path):
        config = _make_config(tmp_path, "  catalog_timeout: 99\n")
        result, _ = _invoke(self._args(config, "--check"))
        assert result.exit_code == 1
        assert "Invalid configuration" in result.output

    @needs_posix
    def test_full_upgrade(self, tmp_path):
        config = _make_config(tmp_path)
        target = write_executable(tmp_path / "ntm", version_script(__version__))
        routes = {
            LATEST_ENDPOINT: release_payload("v9.9.9", [ARCHIVE]),
            f"{DOWNLOAD_BASE}/{ARCHIVE}": tar_gz_bytes({"ntm": version_script("9.9.9")}),
        }
        # -q keeps the checksum warning off the captured output
        result, _ = _invoke(
            ["-q", *self._args(config, "-y", "--json", "--binary-path", str(target))], routes
        )
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["status"] == "upgraded"
        assert data["strategy"] == "exact_archive"
        assert b"9.9.9" in target.read_bytes()
        assert not (tmp_path / "ntm.old").exists()

    @needs_posix
    def test_interrupted_verification_exits_nonzero(self, tmp_path):
        config = _make_config(tmp_path)
        target = write_executable(tmp_path / "ntm", version_script(__version__))
        before = target.read_bytes()
        routes = {
            LATEST_ENDPOINT: release_payload("v9.9.9", [ARCHIVE]),
            f"{DOWNLOAD_BASE}/{ARCHIVE}": tar_gz_bytes({"ntm": version_script("9.9.9")}),
        }
        with patch(
            "ntm.core.services.upgrade.verify.verify_upgrade",
            side_effect=KeyboardInterrupt,
        ):
            result, _ = _invoke(
                ["-q", *self._args(config, "-y", "--json", "--binary-path", str(target))],
                routes,
            )
        assert result.exit_code == 1
        data = json.loads(result.output)
        assert data["status"] == "error"
        assert data["kind"] == "verification_failed"
        assert "Previous version restored" in data["remediation"]
        assert target.read_bytes() == before
        assert not (tmp_path / "ntm.old").exists()

    @needs_posix
    def test_prompt_declined(self, tmp_path):
        config = _make_config(tmp_path)
        target = write_executable(tmp_path / "ntm", version_script(__version__))
        opener = FakeOpener({LATEST_ENDPOINT: release_payload("v9.9.9", [ARCHIVE])})
        with patch("ntm.core.services.upgrade.catalog.urlopen", opener):
            result = CliRunner().invoke(
                cli, self._args(config, "--binary-path", str(target)), input="n\n"
            )
        assert result.exit_code == 0
        assert "Upgrade cancelled" in result.output
        assert len(opener.requests) == 1


class TestConfigCheckCommand:
    """Tests for the config check command."""

    def test_valid_config(self, tmp_path: Path):
        config = _make_config(tmp_path)
        result = CliRunner().invoke(cli, ["--config", str(config), "config", "check"])
        assert result.exit_code == 0
        assert "valid" in result.output.lower()
        assert API_BASE in result.output

    def test_valid_config_json(self, tmp_path: Path):
        config = _make_config(tmp_path)
        result = CliRunner().invoke(cli, ["--config", str(config), "config", "check", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["valid"] is True
        assert data["upstream"] == "Dicklesworthstone/ntm"

    def test_defaults_without_file(self):
        result = CliRunner().invoke(cli, ["config", "check"])
        assert result.exit_code == 0
        assert "built-in defaults" in result.output

    def test_missing_explicit_config(self, tmp_path: Path):
        result = CliRunner().invoke(
            cli, ["--config", str(tmp_path / "nope.yml"), "config", "check"]
        )
        assert result.exit_code == 1
        assert "not found" in result.output

    @pytest.mark.parametrize(
        "content, message",
        [
            ("upgrade: [1, 2\n", "Invalid YAML"),
            ("- just\n- a list\n", "Expected a YAML mapping"),
            ("upgrade:\n  retry_attempts: 0\n", "Invalid configuration"),
        ],
    )
    def test_invalid(self, tmp_path: Path, content, message):
        config = tmp_path / "config.yml"
        config.write_text(content)
        result = CliRunner().invoke(cli, ["--config", str(config), "config", "check", "--json"])
        assert result.exit_code == 1
        data = json.loads(result.output)
        assert data["valid"] is False
        assert message in data["errors"][0]
