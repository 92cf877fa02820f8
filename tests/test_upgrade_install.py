"""
Tests for the binary swap and backup restore.
"""

import os
import stat
from unittest.mock import patch

import pytest

from ntm.core.services.upgrade import install
from ntm.core.services.upgrade.errors import SwapFailedError, UpgradeError
from ntm.core.services.upgrade.install import (
    backup_path_for,
    replace_binary,
    restore_backup,
    staged_path,
)


@pytest.fixture
def installed(tmp_path):
    bindir = tmp_path / "bin"
    bindir.mkdir()
    target = bindir / "ntm"
    target.write_bytes(b"OLD")
    new = tmp_path / "download" / "ntm"
    new.parent.mkdir()
    new.write_bytes(b"NEW")
    return target, new


class TestReplaceBinary:
    def test_swap(self, installed):
        target, new = installed
        backup = replace_binary(new, target)
        assert backup == backup_path_for(target)
        assert target.read_bytes() == b"NEW"
        assert backup.read_bytes() == b"OLD"
        assert not staged_path(target).exists()
        if os.name != "nt":
            assert stat.S_IMODE(target.stat().st_mode) == 0o755

    def test_stale_staging_and_backup_replaced(self, installed):
        target, new = installed
        staged_path(target).write_bytes(b"STALE")
        backup_path_for(target).write_bytes(b"ANCIENT")
        backup = replace_binary(new, target)
        assert backup.read_bytes() == b"OLD"
        assert target.read_bytes() == b"NEW"

    def test_staging_failure_leaves_target(self, installed, tmp_path):
        target, _ = installed
        with pytest.raises(SwapFailedError, match="stage"):
            replace_binary(tmp_path / "missing", target)
        assert target.read_bytes() == b"OLD"
        assert not staged_path(target).exists()
        assert not backup_path_for(target).exists()

    def test_backup_rename_failure(self, installed):
        target, new = installed
        with patch.object(install, "_rename", side_effect=OSError("busy")):
            with pytest.raises(SwapFailedError, match="back up"):
                replace_binary(new, target)
        assert target.read_bytes() == b"OLD"
        assert not staged_path(target).exists()

    def test_install_rename_failure_restores(self, installed):
        target, new = installed
        real = install._rename
        calls = []

        def flaky(src, dst):
            calls.append((src.name, dst.name))
            if src.name.endswith(".new"):
                raise OSError("cross-device")
            real(src, dst)

        with patch.object(install, "_rename", side_effect=flaky):
            with pytest.raises(SwapFailedError, match="previous version restored"):
                replace_binary(new, target)

        assert calls == [("ntm", "ntm.old"), ("ntm.new", "ntm"), ("ntm.old", "ntm")]
        assert target.read_bytes() == b"OLD"
        assert not backup_path_for(target).exists()

    def test_double_failure_names_backup(self, installed):
        target, new = installed
        real = install._rename

        def flaky(src, dst):
            if src.name == "ntm":
                return real(src, dst)
            raise OSError(f"cannot move {src.name}")

        with patch.object(install, "_rename", side_effect=flaky):
            with pytest.raises(SwapFailedError) as exc:
                replace_binary(new, target)

        err = exc.value
        assert "restore also failed" in str(err)
        assert str(backup_path_for(target)) in str(err)
        assert err.backup_path == backup_path_for(target)
        assert backup_path_for(target).read_bytes() == b"OLD"
        assert "preserved" in err.remediation


class TestRestoreBackup:
    def test_restore(self, installed):
        target, new = installed
        backup = replace_binary(new, target)
        restore_backup(target, backup)
        assert target.read_bytes() == b"OLD"
        assert not backup.exists()

    def test_restore_when_new_binary_gone(self, installed):
        target, new = installed
        backup = replace_binary(new, target)
        target.unlink()
        restore_backup(target, backup)
        assert target.read_bytes() == b"OLD"

    def test_missing_backup(self, installed):
        target, _ = installed
        with pytest.raises(UpgradeError, match="backup binary not found"):
            restore_backup(target, backup_path_for(target))
        assert target.read_bytes() == b"OLD"
