"""
Binary swap — install a new executable over the running one.

The new binary is staged as ``P.new`` next to the target so both renames
stay on one filesystem. The previous binary is kept as ``P.old`` until
post-install verification decides whether to delete or restore it.
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

from ntm.core.services.upgrade.errors import SwapFailedError, UpgradeError

logger = logging.getLogger(__name__)


def staged_path(target: Path) -> Path:
    return target.with_name(target.name + ".new")


def backup_path_for(target: Path) -> Path:
    return target.with_name(target.name + ".old")


def _rename(src: Path, dst: Path) -> None:
    os.replace(src, dst)


def _unlink_quietly(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning("Could not remove %s: %s", path, e)


def _stage(new_binary: Path, staged: Path) -> None:
    with new_binary.open("rb") as src, staged.open("wb") as dst:
        shutil.copyfileobj(src, dst)
        dst.flush()
        os.fsync(dst.fileno())
    staged.chmod(0o755)


def replace_binary(new_binary: Path, target: Path) -> Path:
    """Swap ``new_binary`` into ``target``, keeping the old one as ``P.old``.

    At every point either ``target`` or its backup holds a runnable binary.

    Args:
        new_binary: Extracted executable (may live on another filesystem).
        target: Installed binary path ``P``.

    Returns:
        The backup path ``P.old``.

    Raises:
        SwapFailedError: Staging or renaming failed. If the rollback rename
            also failed, the message names both errors and ``P.old``.
    """
    staged = staged_path(target)
    backup = backup_path_for(target)

    # Stage
    try:
        staged.unlink(missing_ok=True)
        _stage(new_binary, staged)
        if backup.exists():
            logger.debug("Removing stale backup %s", backup)
            backup.unlink()
    except OSError as e:
        _unlink_quietly(staged)
        raise SwapFailedError(f"failed to stage new binary at {staged}: {e}") from e

    # Move the current binary aside
    try:
        _rename(target, backup)
    except OSError as e:
        _unlink_quietly(staged)
        raise SwapFailedError(f"failed to back up current binary {target}: {e}") from e

    # Put the new one in place
    try:
        _rename(staged, target)
    except OSError as e:
        logger.error("Install rename failed, restoring %s: %s", backup, e)
        try:
            _rename(backup, target)
        except OSError as restore_err:
            raise SwapFailedError(
                f"failed to install new binary: {e}; restore also failed: "
                f"{restore_err}. Previous binary is at {backup}",
                backup_path=backup,
            ) from e
        _unlink_quietly(staged)
        raise SwapFailedError(
            f"failed to install new binary (previous version restored): {e}"
        ) from e

    logger.info("Installed %s (backup at %s)", target, backup)
    return backup


def restore_backup(current: Path, backup: Path) -> None:
    """Put ``backup`` back at ``current``, discarding the new binary.

    Raises:
        UpgradeError: The backup is missing or the rename failed.
    """
    if not backup.exists():
        raise UpgradeError(f"backup binary not found at {backup}")
    try:
        current.unlink(missing_ok=True)
    except OSError as e:
        raise UpgradeError(f"failed to remove new binary {current}: {e}") from e
    try:
        _rename(backup, current)
    except OSError as e:
        raise UpgradeError(f"failed to restore {backup} to {current}: {e}") from e
    logger.info("Restored previous binary to %s", current)
