"""
Post-install verification and rollback.

After the swap, the installed binary is asked for its version. A binary
that will not run, or reports the wrong version, is rolled back to
``P.old`` unless the operator declines.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from ntm.core.context import InvocationContext
from ntm.core.services.upgrade.errors import UpgradeError, VerificationFailedError
from ntm.core.services.upgrade.install import restore_backup
from ntm.core.services.upgrade.versioning import normalize_version

logger = logging.getLogger(__name__)

DEFAULT_VERIFY_TIMEOUT = 15.0


def verify_upgrade(
    binary: Path,
    expected_version: str,
    timeout: float = DEFAULT_VERIFY_TIMEOUT,
) -> str:
    """Run ``<binary> version --short`` and check what it reports.

    Passes when the normalized output equals the normalized expected
    version, or the raw output contains it.

    Returns:
        The version string the binary printed.

    Raises:
        VerificationFailedError: Spawn failure, timeout, non-zero exit, or
            version mismatch.
    """
    cmd = [str(binary), "version", "--short"]
    logger.debug("Verifying install: %s", " ".join(cmd))
    try:
        proc = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
    except subprocess.TimeoutExpired as e:
        raise VerificationFailedError(
            f"new binary did not respond within {timeout:.0f}s"
        ) from e
    except OSError as e:
        raise VerificationFailedError(f"failed to run new binary: {e}") from e

    if proc.returncode != 0:
        raise VerificationFailedError(
            f"new binary exited with code {proc.returncode}: {proc.stderr.strip()}"
        )

    actual = proc.stdout.strip()
    expected = normalize_version(expected_version)
    if normalize_version(actual) != expected and expected not in actual:
        raise VerificationFailedError(
            f"version mismatch: expected {expected_version}, got {actual}"
        )
    logger.info("Installed binary reports version %s", actual)
    return actual


def finalize_install(
    ctx: InvocationContext,
    install_path: Path,
    backup_path: Path,
    expected_version: str,
    timeout: float = DEFAULT_VERIFY_TIMEOUT,
) -> None:
    """Verify the swapped binary, then drop or restore the backup.

    An interrupt while the new binary is being checked counts as a failed
    verification: the backup is restored without asking.

    Raises:
        VerificationFailedError: Verification failed or was interrupted.
            ``rolled_back`` tells whether the previous binary is back in
            place.
    """
    sink = ctx.sink
    sink.write("  Verifying... ")
    try:
        verify_upgrade(install_path, expected_version, timeout)
    except VerificationFailedError as failure:
        sink.line("✗", "error")
        sink.line()
        sink.line(f"  ⚠ Verification failed: {failure}", "warn")
        sink.line("  The new binary may be corrupted or incompatible.", "dim")
        raise _rollback(ctx, install_path, backup_path, failure) from failure
    except KeyboardInterrupt:
        ctx.cancel.set()
        sink.line("✗", "error")
        sink.line()
        sink.line("  ⚠ Verification interrupted, restoring previous version", "warn")
        failure = VerificationFailedError("verification interrupted")
        raise _rollback(ctx, install_path, backup_path, failure, ask=False) from None

    sink.line("✓", "ok")
    try:
        backup_path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning("Could not remove backup %s: %s", backup_path, e)


def _rollback(
    ctx: InvocationContext,
    install_path: Path,
    backup_path: Path,
    failure: VerificationFailedError,
    ask: bool = True,
) -> VerificationFailedError:
    """Restore the backup (asking first when ``ask``); return the error
    describing the outcome."""
    sink = ctx.sink
    if not backup_path.exists():
        sink.line("  No backup available for rollback.", "error")
        return VerificationFailedError(str(failure))

    restore = True
    if ask:
        try:
            restore = ctx.confirm("  Restore previous version?", True)
        except (EOFError, OSError, KeyboardInterrupt):
            # Unreadable input means restore
            restore = True

    if not restore:
        sink.line()
        sink.line("  ⚠ Keeping potentially broken binary. Backup available at:", "warn")
        sink.line(f"    {backup_path}", "dim")
        return VerificationFailedError(
            f"upgrade verification failed: {failure}",
            rolled_back=False,
            backup_path=backup_path,
        )

    try:
        restore_backup(install_path, backup_path)
    except UpgradeError as restore_err:
        sink.line(f"  ✗ Failed to restore: {restore_err}", "error")
        return VerificationFailedError(
            f"upgrade verification failed ({failure}) and rollback failed ({restore_err})",
            backup_path=backup_path,
        )

    sink.line("  ✓ Previous version restored", "ok")
    return VerificationFailedError(
        f"upgrade rolled back due to verification failure: {failure}",
        rolled_back=True,
    )
