"""
Asset resolver — pick the release asset for a platform tuple.

Strategies are tried in order, first match wins:

    1. exact_archive   (1.0)  canonical archive name
    2. exact_binary    (0.9)  canonical bare-binary name, any extension
       ── strict mode stops here ──
    3. prefix_match    (0.7)  base name starts with a canonical prefix
    4. fuzzy_same_os   (0.5)  parsed (os, arch) in the compatibility table
    5. legacy_dash     (0.3)  legacy ``ntm-...`` names

Within a strategy the catalog's asset order decides. ``tried_names``
records what was searched so a failure report can show it.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from ntm.core.models.release import ReleaseAsset
from ntm.core.models.upgrade import MatchResult
from ntm.core.services.upgrade.naming import (
    PREFIX,
    UNIVERSAL_ARCH,
    arch_candidates,
    archive_asset_name,
    binary_asset_name,
    legacy_dash_names,
    normalized_arch,
    parse_asset_info,
    trim_asset_ext,
)

logger = logging.getLogger(__name__)


def find_upgrade_asset(
    assets: Sequence[ReleaseAsset],
    target_os: str,
    target_arch: str,
    version: str,
    strict: bool = False,
) -> tuple[MatchResult | None, list[str]]:
    """Resolve the best asset for ``(target_os, target_arch, version)``.

    Args:
        assets: Remote assets in catalog order.
        target_os: Local OS (``linux``, ``darwin``, ``windows``, ...).
        target_arch: Local arch (``amd64``, ``arm64``, ``arm``, ...).
        version: Release version without ``v`` prefix.
        strict: Only allow the two exact strategies.

    Returns:
        ``(match, tried_names)``. ``match`` is None when nothing fits.
    """
    archive_name = archive_asset_name(version, target_os, target_arch)
    binary_name = binary_asset_name(target_os, target_arch)
    tried = [archive_name, binary_name]

    match = _match_exact_archive(assets, archive_name) or _match_exact_binary(
        assets, binary_name
    )
    if match is not None or strict:
        _log_outcome(match, tried)
        return match, tried

    arch = normalized_arch(target_os, target_arch)
    version_prefix = f"{PREFIX}_{version}_{target_os}_{arch}"
    tried += [f"{binary_name}*", f"{version_prefix}*"]
    match = _match_prefix(assets, binary_name, version_prefix)
    if match is not None:
        _log_outcome(match, tried)
        return match, tried

    tried.append(f"any {target_os} asset with compatible arch")
    match = _match_same_os(assets, target_os, target_arch)
    if match is not None:
        _log_outcome(match, tried)
        return match, tried

    legacy = legacy_dash_names(target_os, target_arch, version)
    tried += legacy
    match = _match_legacy_dash(assets, legacy)
    _log_outcome(match, tried)
    return match, tried


def _match_exact_archive(
    assets: Sequence[ReleaseAsset], archive_name: str
) -> MatchResult | None:
    for asset in assets:
        if asset.name == archive_name:
            return MatchResult.for_strategy(asset, "exact_archive", "exact archive match")
    return None


def _match_exact_binary(
    assets: Sequence[ReleaseAsset], binary_name: str
) -> MatchResult | None:
    for asset in assets:
        if trim_asset_ext(asset.name) == binary_name:
            return MatchResult.for_strategy(asset, "exact_binary", "exact binary match")
    return None


def _match_prefix(
    assets: Sequence[ReleaseAsset], binary_name: str, version_prefix: str
) -> MatchResult | None:
    for asset in assets:
        base = trim_asset_ext(asset.name)
        if base.startswith(binary_name) or base.startswith(version_prefix):
            return MatchResult.for_strategy(asset, "prefix_match", "prefix match")
    return None


def _match_same_os(
    assets: Sequence[ReleaseAsset], target_os: str, target_arch: str
) -> MatchResult | None:
    for arch in arch_candidates(target_os, target_arch):
        for asset in assets:
            # Legacy names belong to the legacy_dash strategy
            if trim_asset_ext(asset.name).startswith(f"{PREFIX}-"):
                continue
            info = parse_asset_info(asset.name, target_os, target_arch)
            if info.os == target_os and info.arch == arch:
                return MatchResult.for_strategy(
                    asset, "fuzzy_same_os", _fuzzy_reason(target_os, target_arch, arch)
                )
    return None


def _fuzzy_reason(target_os: str, target_arch: str, arch: str) -> str:
    if target_os == "darwin" and target_arch == "arm64" and arch == "amd64":
        return "same OS, amd64 via Rosetta 2"
    if target_os == "darwin" and arch == UNIVERSAL_ARCH:
        return "same OS, universal binary"
    return f"same OS, compatible arch ({arch})"


def _match_legacy_dash(
    assets: Sequence[ReleaseAsset], names: Sequence[str]
) -> MatchResult | None:
    wanted = set(names)
    for asset in assets:
        if trim_asset_ext(asset.name) in wanted:
            return MatchResult.for_strategy(asset, "legacy_dash", "legacy dash naming")
    return None


def _log_outcome(match: MatchResult | None, tried: list[str]) -> None:
    if match is None:
        logger.debug("No asset matched; tried %s", tried)
    else:
        logger.debug(
            "Matched %s via %s (confidence %.1f)",
            match.asset.name,
            match.strategy,
            match.confidence,
        )
