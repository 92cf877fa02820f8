"""
Diagnostic report — explain why no release asset matched.

Builds an ``UpgradeReport`` that classifies every remote asset, and
renders it for humans. The JSON form is ``UpgradeReport.to_json()``.
"""

from __future__ import annotations

from collections.abc import Sequence

import click

from ntm.core.models.profile import UpstreamProfile
from ntm.core.models.release import ReleaseAsset
from ntm.core.models.upgrade import AssetInfo, UpgradeReport
from ntm.core.services.upgrade.naming import CONVENTION, UNIVERSAL_ARCH, parse_asset_info

# Where the two halves of the naming contract live
PUBLISHER_MANIFEST = ".goreleaser.yaml"
RESOLVER_MODULE = "ntm/core/services/upgrade/naming.py"
NAMING_TEST = "tests/test_upgrade_naming.py"


def build_upgrade_report(
    target_os: str,
    target_arch: str,
    version: str,
    tried_names: Sequence[str],
    assets: Sequence[ReleaseAsset],
    release_url: str,
) -> UpgradeReport:
    """Classify every asset and pick the closest one.

    Each asset appears exactly once, in catalog order. The closest match is
    the first ``exact`` asset, else the first ``close`` one, else none.
    """
    # Darwin assets are universal, so classify against "all"
    display_arch = UNIVERSAL_ARCH if target_os == "darwin" else target_arch

    available: list[AssetInfo] = [
        parse_asset_info(asset.name, target_os, display_arch) for asset in assets
    ]

    closest = next((a for a in available if a.match == "exact"), None)
    if closest is None:
        closest = next((a for a in available if a.match == "close"), None)

    return UpgradeReport(
        platform=f"{target_os}/{target_arch}",
        convention=CONVENTION,
        tried_names=list(tried_names),
        available_assets=available,
        closest_match=closest.model_copy() if closest else None,
        release_url=release_url,
    )


def render_report(
    report: UpgradeReport,
    profile: UpstreamProfile | None = None,
    *,
    color: bool = False,
) -> str:
    """Render the report as multi-line human text.

    Args:
        report: The diagnostic report.
        profile: Upstream profile for the releases/issues links.
        color: Emit ANSI styling (only when writing to a terminal).
    """
    profile = profile or UpstreamProfile()

    def style(text: str, **kw) -> str:
        return click.style(text, **kw) if color else text

    def dim(text: str) -> str:
        return style(text, dim=True)

    def warn(text: str) -> str:
        return style(text, fg="yellow")

    def hint(text: str) -> str:
        return style(text, fg="blue")

    lines: list[str] = []
    lines.append(style("Upgrade Asset Lookup Failed", fg="red", bold=True))
    lines.append("")
    lines.append(f"  Platform:      {report.platform}")
    lines.append(f"  Convention:    {report.convention}")
    if report.tried_names:
        lines.append(f"  Tried:         {report.tried_names[0]}")
        for name in report.tried_names[1:]:
            lines.append(f"                 {name}")
    else:
        lines.append("  Tried:         [none]")
    lines.append(f"  Found:         {style('[none matching]', fg='red')}")
    if report.closest_match is not None:
        lines.append(f"  Closest:       {report.closest_match.name}")
    lines.append("")

    lines.append("Available release assets:")
    if not report.available_assets:
        lines.append(dim("  (release has no assets)"))
    for asset in report.available_assets:
        if asset.match == "exact":
            marker = warn("?")
            suffix = warn(" ← platform match, name mismatch (check version?)")
        elif asset.match == "close":
            marker = warn("≈")
            suffix = warn(f" ← {asset.reason or 'closest match'}")
        else:
            marker = dim("✗")
            suffix = ""
        platform_info = f" ({asset.os}/{asset.arch})" if asset.os and asset.arch else ""
        lines.append(f"  {marker} {asset.name}{dim(platform_info)}{suffix}")
    lines.append("")

    lines.append(hint("This usually indicates a naming convention mismatch between:"))
    lines.append(f"  • {dim(PUBLISHER_MANIFEST)} (how assets are built)")
    lines.append(f"  • {dim(RESOLVER_MODULE)} (how assets are found)")
    lines.append("")
    lines.append(hint("To diagnose:"))
    lines.append(f"  1. Run: {dim(f'pytest -v {NAMING_TEST}')}")
    lines.append(f"  2. Check: {dim(report.release_url or profile.releases_page)}")
    lines.append("  3. Compare asset names against expected patterns above")
    lines.append("")
    lines.append(hint("Resources:"))
    lines.append(f"  • Releases: {dim(profile.releases_page)}")
    lines.append(f"  • Report issue: {dim(profile.issues_page)}")

    return "\n".join(lines)
