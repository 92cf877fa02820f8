"""
Upgrade orchestration — check, resolve, download, verify, swap, confirm.

``run_upgrade`` drives one upgrade end to end against an
``InvocationContext``. It reports progress through ``ctx.sink``, raises
``UpgradeError`` subclasses for failures, and returns an
``UpgradeResult`` describing what happened.

Every temporary file lives in one ``TemporaryDirectory`` that is removed
on all exit paths, Ctrl-C included.
"""

from __future__ import annotations

import logging
import tempfile
from dataclasses import dataclass, field, replace
from pathlib import Path

from ntm.core.context import InvocationContext
from ntm.core.models.release import ReleaseAsset, ReleaseDescriptor
from ntm.core.models.upgrade import MatchResult, PlatformTuple
from ntm.core.services.upgrade.archive import extract_binary, extractor_for
from ntm.core.services.upgrade.catalog import ReleaseCatalogClient
from ntm.core.services.upgrade.diagnostics import build_upgrade_report
from ntm.core.services.upgrade.download import (
    cancel_on_sigint,
    download_asset,
    verify_checksum,
)
from ntm.core.services.upgrade.errors import (
    ChecksumMissingError,
    ResolutionMissError,
    UpgradeCancelledError,
    UpgradeError,
)
from ntm.core.services.upgrade.install import replace_binary
from ntm.core.services.upgrade.naming import archive_asset_name
from ntm.core.services.upgrade.platform import resolve_install_path
from ntm.core.services.upgrade.progress import format_size
from ntm.core.services.upgrade.resolver import find_upgrade_asset
from ntm.core.services.upgrade.verify import finalize_install
from ntm.core.services.upgrade.versioning import (
    DEV_VERSION,
    is_newer_version,
    same_version,
)

logger = logging.getLogger(__name__)

STATUS_UP_TO_DATE = "up_to_date"
STATUS_LOCAL_NEWER = "local_newer"
STATUS_UPDATE_AVAILABLE = "update_available"
STATUS_CANCELLED = "cancelled"
STATUS_UPGRADED = "upgraded"

_MATCH_KEYS = ("asset", "strategy", "confidence", "reason")


@dataclass
class UpgradeResult:
    """Outcome of one ``run_upgrade`` call."""

    status: str
    current_version: str
    latest_version: str = ""
    match: MatchResult | None = None
    tried_names: list[str] = field(default_factory=list)
    install_path: Path | None = None
    release_url: str = ""

    def to_dict(self) -> dict:
        matched = self.match.to_dict() if self.match else dict.fromkeys(_MATCH_KEYS)
        return {
            "status": self.status,
            "current_version": self.current_version,
            "latest_version": self.latest_version,
            **matched,
            "tried_names": self.tried_names,
            "install_path": str(self.install_path) if self.install_path else None,
            "release_url": self.release_url,
        }


def run_upgrade(
    ctx: InvocationContext,
    client: ReleaseCatalogClient,
    current_version: str,
    platform_os: str,
    platform_arch: str,
    install_path: str | Path | None = None,
) -> UpgradeResult:
    """Upgrade the installed ntm binary to the latest release.

    Args:
        ctx: Flags, output sink and prompt for this invocation.
        client: Release catalog client.
        current_version: Version of the running binary (``dev`` if unset).
        platform_os: Target OS.
        platform_arch: Target arch.
        install_path: Explicit binary to replace (``--binary-path``).

    Returns:
        The outcome. Failures are raised, never returned.

    Raises:
        NoReleasesError: Nothing is published upstream.
        ResolutionMissError: No asset fits the platform.
        UpgradeError: Any other failure along the pipeline.
    """
    sink = ctx.sink
    current_version = current_version or DEV_VERSION
    local = PlatformTuple(platform_os, platform_arch, current_version)

    sink.line("🔄 NTM Upgrade", "title")
    sink.line()
    sink.line(f"  Current version: {current_version}")
    sink.line(f"  Platform: {local.label}")
    sink.line()

    # 1. Latest release
    sink.write("  Checking for updates... ")
    try:
        release = client.fetch_latest()
    except UpgradeError:
        sink.line("✗", "error")
        raise
    sink.line("✓", "ok")

    latest_version = release.version
    sink.line(f"  Latest version:  {latest_version}")
    sink.line()

    result = UpgradeResult(
        status=STATUS_UP_TO_DATE,
        current_version=current_version,
        latest_version=latest_version,
        release_url=release.html_url,
    )

    # 2. Compare
    newer = is_newer_version(current_version, latest_version)
    if same_version(current_version, latest_version) and not ctx.force:
        sink.line("  ✓ You're already on the latest version!", "ok")
        return result

    if not newer and not ctx.force:
        sink.line(
            f"  ⚠ Your version ({current_version}) appears to be newer than "
            f"the latest release ({latest_version})",
            "warn",
        )
        sink.line("    Use --force to reinstall anyway", "dim")
        result.status = STATUS_LOCAL_NEWER
        return result

    # 3. Check only
    if ctx.check_only:
        result.status = STATUS_UPDATE_AVAILABLE if newer else STATUS_UP_TO_DATE
        if newer:
            sink.line(f"  ⬆ New version available: {current_version} → {latest_version}", "warn")
            sink.line()
            sink.line("  Run 'ntm upgrade' to install", "dim")
        return result

    # 4. Resolve
    wanted = replace(local, version=latest_version)
    match, tried = find_upgrade_asset(
        release.assets, wanted.os, wanted.arch, wanted.version, strict=ctx.strict
    )
    result.tried_names = tried
    if match is None:
        report = build_upgrade_report(
            wanted.os, wanted.arch, wanted.version, tried, release.assets, release.html_url
        )
        raise ResolutionMissError(report)
    result.match = match
    _announce_match(ctx, match, tried, archive_asset_name(wanted.version, wanted.os, wanted.arch))

    target = resolve_install_path(install_path, client.profile.install_path)
    result.install_path = target

    # 5. Confirm
    if not ctx.assume_yes:
        try:
            proceed = ctx.confirm(f"  Upgrade to {latest_version}?", False)
        except EOFError:
            proceed = False
        if not proceed:
            sink.line("  Upgrade cancelled", "dim")
            result.status = STATUS_CANCELLED
            return result
        sink.line()

    # 6. Download, checksum, extract, swap, verify
    try:
        with tempfile.TemporaryDirectory(prefix="ntm-upgrade-") as tmp:
            _install(ctx, client, release, match.asset, Path(tmp), target, wanted)
    except KeyboardInterrupt:
        ctx.cancel.set()
        sink.line()
        sink.line("  Upgrade interrupted", "dim")
        result.status = STATUS_CANCELLED
        return result
    except UpgradeCancelledError:
        sink.line("  Upgrade cancelled", "dim")
        result.status = STATUS_CANCELLED
        return result

    sink.line()
    sink.line(f"  ✓ Successfully upgraded to {latest_version}!", "ok")
    sink.line()
    sink.line(f"  Release notes: {release.html_url}", "dim")
    result.status = STATUS_UPGRADED
    return result


def _announce_match(
    ctx: InvocationContext, match: MatchResult, tried: list[str], expected: str
) -> None:
    sink = ctx.sink
    if match.strategy != "exact_archive":
        sink.line(f"  ⚠ Note: using fallback asset discovery ({match.strategy})", "warn")
        sink.line(f"    Expected: {expected}")
        sink.line(f"    Found:    {match.asset.name}")
        if match.reason:
            sink.line(f"    Reason:   {match.reason}")
        if ctx.verbose and tried:
            sink.line("    Tried:", "dim")
            for name in tried:
                sink.line(f"      - {name}")
        sink.line()
    elif ctx.verbose:
        sink.line("  Asset match: exact archive", "dim")

    sink.line(f"  Download: {match.asset.name} ({format_size(match.asset.size_bytes)})")
    sink.line()


def _install(
    ctx: InvocationContext,
    client: ReleaseCatalogClient,
    release: ReleaseDescriptor,
    asset: ReleaseAsset,
    workdir: Path,
    target: Path,
    wanted: PlatformTuple,
) -> None:
    sink = ctx.sink
    profile = client.profile

    sink.write("  Downloading... ")
    try:
        with cancel_on_sigint(ctx.cancel):
            downloaded = download_asset(
                client, asset, workdir, sink, profile.download_timeout, ctx.cancel
            )
    except UpgradeError:
        sink.line("✗", "error")
        raise
    sink.line("✓", "ok")

    _check_digest(ctx, client, release, asset, downloaded)

    is_archive = extractor_for(downloaded) is not None
    if is_archive:
        sink.write("  Extracting... ")
    try:
        binary = extract_binary(downloaded, workdir / "extracted", wanted.os)
    except UpgradeError:
        if is_archive:
            sink.line("✗", "error")
        raise
    if is_archive:
        sink.line("✓", "ok")

    sink.write("  Installing... ")
    try:
        backup = replace_binary(binary, target)
    except UpgradeError:
        sink.line("✗", "error")
        raise
    sink.line("✓", "ok")

    finalize_install(ctx, target, backup, release.version, profile.verify_timeout)


def _check_digest(
    ctx: InvocationContext,
    client: ReleaseCatalogClient,
    release: ReleaseDescriptor,
    asset: ReleaseAsset,
    downloaded: Path,
) -> None:
    sink = ctx.sink
    sink.write("  Verifying checksum... ")
    try:
        checksums = client.fetch_checksums(release)
        expected = checksums.get(asset.name)
        if expected is None:
            raise ChecksumMissingError(
                f"{asset.name} not listed in {client.profile.checksum_asset}"
            )
    except ChecksumMissingError as e:
        if ctx.require_checksums:
            sink.line("✗", "error")
            raise
        logger.warning("Skipping checksum verification: %s", e)
        sink.line("⚠ (not available)", "warn")
        sink.line(f"    {e} - skipping verification", "dim")
        return

    try:
        verify_checksum(downloaded, expected)
    except UpgradeError:
        sink.line("✗", "error")
        raise
    sink.line("✓", "ok")
