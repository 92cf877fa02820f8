"""
Version algebra — normalize and compare release versions (pure).

Pre-release and build suffixes are dropped before comparison, so
``1.0.0-beta`` compares equal to ``1.0.0``. No I/O.
"""

from __future__ import annotations

import re

DEV_VERSION = "dev"

_LEADING_DIGITS = re.compile(r"\d+")


def normalize_version(version: str) -> str:
    """Strip one leading ``v`` and everything from the first ``-`` or ``+``."""
    v = version.strip()
    if v.startswith("v"):
        v = v[1:]
    for i, ch in enumerate(v):
        if ch in "-+":
            return v[:i]
    return v


def _parse_part(part: str) -> int:
    # Leading digits only: "3rc1" → 3, "x" → 0
    m = _LEADING_DIGITS.match(part)
    return int(m.group(0)) if m else 0


def _components(version: str) -> list[int]:
    return [_parse_part(p) for p in version.split(".")]


def is_newer_version(current: str, latest: str) -> bool:
    """Return True if ``latest`` is strictly newer than ``current``.

    An empty or ``dev`` current version is older than any real release.

    Args:
        current: Installed version, e.g. ``"v1.4.0"`` or ``"dev"``.
        latest: Candidate version from the release index.
    """
    current = normalize_version(current)
    latest = normalize_version(latest)

    if latest in ("", DEV_VERSION):
        return False
    if current in ("", DEV_VERSION):
        return True

    cur = _components(current)
    new = _components(latest)

    # Zero-pad the shorter side
    width = max(len(cur), len(new))
    cur += [0] * (width - len(cur))
    new += [0] * (width - len(new))

    for c, n in zip(cur, new):
        if n > c:
            return True
        if c > n:
            return False
    return False


def same_version(a: str, b: str) -> bool:
    """Whether two version strings are equal after normalization."""
    return normalize_version(a) == normalize_version(b)
