"""
Upgrade errors — one exception type per failure kind.

Every error carries a short ``kind`` label (stable, used in JSON output)
and a ``remediation`` hint that the CLI prints under the message.
Errors are raised by the core and rendered once at the command boundary.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from ntm.core.models.profile import UpstreamProfile

if TYPE_CHECKING:
    from ntm.core.models.upgrade import UpgradeReport

_DEFAULT_PROFILE = UpstreamProfile()
RELEASES_PAGE = _DEFAULT_PROFILE.releases_page
ISSUES_PAGE = _DEFAULT_PROFILE.issues_page


class UpgradeError(Exception):
    """Base class for every upgrade failure."""

    kind = "upgrade_failed"
    remediation = f"Download a release manually from {RELEASES_PAGE}"

    def __init__(self, message: str, *, remediation: str | None = None) -> None:
        super().__init__(message)
        if remediation is not None:
            self.remediation = remediation

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "error": str(self),
            "remediation": self.remediation,
        }


class NoReleasesError(UpgradeError):
    """The upstream index has nothing published (development build)."""

    kind = "no_releases"
    remediation = (
        "If this is a development build, releases may not exist yet. "
        f"Check: {RELEASES_PAGE}"
    )


class TransportError(UpgradeError):
    """Network or HTTP status failure talking to the release host."""

    kind = "transport"
    remediation = "Check your network connection and try again."

    def __init__(
        self,
        message: str,
        *,
        endpoint: str,
        status: int | None = None,
        retryable: bool = True,
    ) -> None:
        super().__init__(message)
        self.endpoint = endpoint
        self.status = status
        self.retryable = retryable

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["endpoint"] = self.endpoint
        data["status"] = self.status
        return data


class ResolutionMissError(UpgradeError):
    """No release asset satisfies the strategy ladder for this platform."""

    kind = "resolution_miss"

    def __init__(self, report: UpgradeReport) -> None:
        super().__init__(f"no release asset found for {report.platform}")
        self.report = report
        self.remediation = f"Compare the asset names at {report.release_url or RELEASES_PAGE}"

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["report"] = self.report.model_dump(mode="json", exclude_none=True)
        return data


class ChecksumMissingError(UpgradeError):
    """The digest manifest is absent or does not list the chosen asset."""

    kind = "checksum_missing"
    remediation = (
        "Set 'upgrade.require_checksums: false' to proceed without "
        "verification, or wait for the release to publish checksums.txt."
    )


class ChecksumMismatchError(UpgradeError):
    """The downloaded file does not match its published digest."""

    kind = "checksum_mismatch"

    def __init__(self, expected: str, actual: str) -> None:
        super().__init__(f"checksum mismatch: expected {expected}, got {actual}")
        self.expected = expected
        self.actual = actual
        self.remediation = (
            "The download may be corrupted. Try again, or download manually "
            f"from {RELEASES_PAGE}"
        )


class ExtractionError(UpgradeError):
    """Archive unreadable, unsafe entry, or binary missing."""

    kind = "extraction_malformed"
    remediation = f"Report the broken archive at {ISSUES_PAGE}"


class SwapFailedError(UpgradeError):
    """Installing the new binary over the old one failed."""

    kind = "swap_failed"

    def __init__(self, message: str, *, backup_path: Path | None = None) -> None:
        super().__init__(message)
        self.backup_path = backup_path
        if backup_path is not None and backup_path.exists():
            self.remediation = f"The previous binary is preserved at {backup_path}"
        else:
            self.remediation = "Check write permissions on the install directory."


class VerificationFailedError(UpgradeError):
    """The installed binary does not report the expected version."""

    kind = "verification_failed"

    def __init__(
        self,
        message: str,
        *,
        rolled_back: bool = False,
        backup_path: Path | None = None,
    ) -> None:
        super().__init__(message)
        self.rolled_back = rolled_back
        self.backup_path = backup_path
        if rolled_back:
            self.remediation = f"Previous version restored. Please report this issue: {ISSUES_PAGE}"
        elif backup_path is not None:
            self.remediation = f"Backup available for manual recovery at {backup_path}"
        else:
            self.remediation = f"Reinstall manually from {RELEASES_PAGE}"


class UpgradeCancelledError(UpgradeError):
    """The operator interrupted the upgrade."""

    kind = "cancelled"
    remediation = "The installed binary was not modified."
