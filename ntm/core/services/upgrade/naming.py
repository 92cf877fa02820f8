"""
Asset naming contract — platform tuple ⇄ release asset filename.

IMPORTANT: this module is one half of a contract with the release
pipeline's ``.goreleaser.yaml`` (``archives.name_template``). Changing a
rule here without changing the publisher (and tests/test_upgrade_naming.py)
breaks ``ntm upgrade`` for every installed binary.

Canonical forms (emitted and accepted):
    ntm_<version>_<os>_<arch>.tar.gz    (.zip on windows)
    ntm_<os>_<arch>

Legacy forms (accepted only):
    ntm-<version>-<os>-<arch>
    ntm-<os>-<arch>
"""

from __future__ import annotations

from ntm.core.models.upgrade import AssetInfo

PREFIX = "ntm"
UNIVERSAL_ARCH = "all"
ASSET_EXTENSIONS = (".tar.gz", ".zip", ".exe")
CONVENTION = "ntm_{version}_{os}_{arch}.tar.gz"


def normalized_arch(target_os: str, target_arch: str) -> str:
    """The arch string used in asset filenames.

    Darwin ships a universal binary (``all``); 32-bit ARM is built as
    ``armv7``. Everything else passes through.
    """
    arch = target_arch
    if target_os == "darwin":
        arch = UNIVERSAL_ARCH
    if target_arch == "arm":
        arch = "armv7"
    return arch


def archive_extension(target_os: str) -> str:
    return "zip" if target_os == "windows" else "tar.gz"


def archive_asset_name(version: str, target_os: str, target_arch: str) -> str:
    """``ntm_1.4.1_linux_amd64.tar.gz`` style name for a platform tuple."""
    arch = normalized_arch(target_os, target_arch)
    return f"{PREFIX}_{version}_{target_os}_{arch}.{archive_extension(target_os)}"


def binary_asset_name(target_os: str, target_arch: str) -> str:
    """``ntm_linux_amd64`` style bare-binary name (no version, no extension)."""
    return f"{PREFIX}_{target_os}_{normalized_arch(target_os, target_arch)}"


def binary_name_for(target_os: str) -> str:
    """Name of the executable inside a release archive."""
    return f"{PREFIX}.exe" if target_os == "windows" else PREFIX


def split_asset_ext(name: str) -> tuple[str, str]:
    """Split ``name`` into (base, extension) using the known extensions."""
    for suffix in ASSET_EXTENSIONS:
        if name.endswith(suffix):
            return name[: -len(suffix)], suffix
    return name, ""


def trim_asset_ext(name: str) -> str:
    return split_asset_ext(name)[0]


def arch_candidates(target_os: str, target_arch: str) -> list[str]:
    """Compatible filename archs for a platform, most preferred first."""
    if target_os == "darwin":
        if target_arch == "arm64":
            return [UNIVERSAL_ARCH, "arm64", "amd64"]
        if target_arch == "amd64":
            return [UNIVERSAL_ARCH, "amd64"]
        return [target_arch]
    if target_arch == "arm":
        return ["armv7", "arm"]
    return [target_arch]


def legacy_dash_names(target_os: str, target_arch: str, version: str) -> list[str]:
    """Legacy ``ntm-...`` base names for every compatible arch."""
    names: list[str] = []
    for arch in arch_candidates(target_os, target_arch):
        if version:
            names.append(f"{PREFIX}-{version}-{target_os}-{arch}")
        names.append(f"{PREFIX}-{target_os}-{arch}")
    return names


def parse_asset_info(name: str, target_os: str, target_arch: str) -> AssetInfo:
    """Parse an asset filename and classify it against a target platform.

    Args:
        name: Remote asset filename.
        target_os: Requested OS.
        target_arch: Requested arch, already in filename form
            (``all`` for darwin).

    Returns:
        AssetInfo with platform fields filled when the name follows either
        naming form, and ``match`` set to exact / close / none.
    """
    base, ext = split_asset_ext(name)
    info = AssetInfo(name=name, extension=ext or None)

    parts = base.split("_")
    if parts[0] == PREFIX and len(parts) == 4:
        info.version, info.os, info.arch = parts[1], parts[2], parts[3]
    elif parts[0] == PREFIX and len(parts) == 3:
        info.os, info.arch = parts[1], parts[2]

    if info.os is None and base.startswith(f"{PREFIX}-"):
        dash = base.split("-")
        if len(dash) == 4:
            info.version, info.os, info.arch = dash[1], dash[2], dash[3]
        elif len(dash) == 3:
            info.os, info.arch = dash[1], dash[2]

    if info.os is None or info.os != target_os or not info.arch:
        return info

    if info.arch == target_arch:
        info.match = "exact"
    elif target_arch == UNIVERSAL_ARCH and info.arch in ("arm64", "amd64"):
        info.match = "close"
        info.reason = f"same OS, specific arch (got {info.arch}, want universal)"
    elif info.arch == UNIVERSAL_ARCH:
        info.match = "close"
        info.reason = f"same OS, universal binary available (got all, want {target_arch})"
    else:
        info.match = "close"
        info.reason = f"same OS, different arch (got {info.arch}, want {target_arch})"
    return info
