"""
Local platform detection and install path resolution.
"""

from __future__ import annotations

import logging
import platform as _platform
import shutil
import sys
from pathlib import Path

from ntm.core.services.upgrade.errors import UpgradeError

logger = logging.getLogger(__name__)

# platform.machine() → release arch label
_ARCH_MAP = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv7l": "arm",
    "armv6l": "arm",
    "i386": "386",
    "i686": "386",
    "x86": "386",
}

_OS_MAP = {
    "linux": "linux",
    "darwin": "darwin",
    "windows": "windows",
    "freebsd": "freebsd",
}


def detect_platform() -> tuple[str, str]:
    """Return ``(os, arch)`` using release naming (``linux``, ``amd64``, ...)."""
    system = _platform.system().lower()
    machine = _platform.machine().lower()
    target_os = _OS_MAP.get(system, system)
    target_arch = _ARCH_MAP.get(machine, machine)
    logger.debug("Detected platform %s/%s (machine=%s)", target_os, target_arch, machine)
    return target_os, target_arch


def parse_target(value: str) -> tuple[str, str]:
    """Parse an ``os/arch`` override such as ``linux/arm64``."""
    target_os, sep, target_arch = value.strip().partition("/")
    if not sep or not target_os or not target_arch:
        raise ValueError(f"expected OS/ARCH, got {value!r}")
    return target_os.lower(), target_arch.lower()


def resolve_install_path(
    explicit: str | Path | None = None,
    configured: str | None = None,
) -> Path:
    """Find the installed ntm binary to replace.

    Precedence: ``explicit`` (``--binary-path``), ``configured``
    (``upgrade.install_path``), ``ntm`` on ``PATH``, then ``sys.argv[0]``.
    Symlinks are resolved so the real file is swapped.

    Raises:
        UpgradeError: No candidate points at an existing file.
    """
    candidates: list[tuple[str, str | Path | None]] = [
        ("--binary-path", explicit),
        ("config upgrade.install_path", configured),
        ("PATH", shutil.which("ntm")),
        ("argv[0]", sys.argv[0] if sys.argv and sys.argv[0] else None),
    ]
    for source, value in candidates:
        if not value:
            continue
        path = Path(value).expanduser()
        if path.is_file():
            resolved = path.resolve()
            logger.debug("Install path from %s: %s", source, resolved)
            return resolved
        if source in ("--binary-path", "config upgrade.install_path"):
            raise UpgradeError(
                f"install path {path} does not exist",
                remediation="Pass --binary-path pointing at the installed ntm binary.",
            )

    raise UpgradeError(
        "could not locate the installed ntm binary",
        remediation="Pass --binary-path pointing at the installed ntm binary.",
    )
