"""
Archive extraction for downloaded release assets.

The extractor is picked from the archive suffix through ``EXTRACTORS``.
Both formats refuse entries that would land outside the extraction root
(absolute names, ``..`` traversal) before anything is written.
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
import tarfile
import zipfile
from pathlib import Path
from typing import Callable

from ntm.core.services.upgrade.errors import ExtractionError
from ntm.core.services.upgrade.naming import binary_name_for

logger = logging.getLogger(__name__)

Extractor = Callable[[Path, Path], None]


def _safe_destination(root: Path, name: str) -> Path:
    """Resolve an archive member name under ``root`` or raise."""
    path = Path(name)
    if path.is_absolute() or name.startswith(("/", "\\")):
        raise ExtractionError(f"archive contains an absolute path entry: {name}")
    destination = (root / path).resolve()
    try:
        destination.relative_to(root)
    except ValueError:
        raise ExtractionError(f"archive entry escapes the extraction directory: {name}")
    return destination


def extract_tar_gz(archive: Path, dest: Path) -> None:
    """Extract a gzip tarball. Only regular files and directories are kept."""
    root = dest.resolve()
    try:
        with tarfile.open(archive, "r:gz") as tar:
            for member in tar.getmembers():
                destination = _safe_destination(root, member.name)
                if member.isdir():
                    destination.mkdir(parents=True, exist_ok=True)
                    continue
                if not member.isreg():
                    logger.debug("Skipping non-regular tar entry %s", member.name)
                    continue
                source = tar.extractfile(member)
                if source is None:
                    continue
                destination.parent.mkdir(parents=True, exist_ok=True)
                with source, destination.open("wb") as target:
                    shutil.copyfileobj(source, target)
                os.chmod(destination, member.mode & 0o777 or 0o644)
    except (tarfile.TarError, EOFError, OSError) as e:
        raise ExtractionError(f"failed to read tar archive {archive.name}: {e}") from e


def extract_zip(archive: Path, dest: Path) -> None:
    """Extract a zip archive."""
    root = dest.resolve()
    try:
        with zipfile.ZipFile(archive) as zf:
            for member in zf.infolist():
                if not member.filename:
                    continue
                destination = _safe_destination(root, member.filename)
                if member.is_dir():
                    destination.mkdir(parents=True, exist_ok=True)
                    continue
                destination.parent.mkdir(parents=True, exist_ok=True)
                with zf.open(member) as source, destination.open("wb") as target:
                    shutil.copyfileobj(source, target)
    except (zipfile.BadZipFile, OSError) as e:
        raise ExtractionError(f"failed to read zip archive {archive.name}: {e}") from e


EXTRACTORS: dict[str, Extractor] = {
    ".tar.gz": extract_tar_gz,
    ".tgz": extract_tar_gz,
    ".zip": extract_zip,
}


def extractor_for(path: Path) -> Extractor | None:
    """Return the extractor registered for the file's suffix, if any."""
    name = path.name.lower()
    for suffix, extractor in EXTRACTORS.items():
        if name.endswith(suffix):
            return extractor
    return None


def make_executable(path: Path) -> None:
    mode = path.stat().st_mode
    path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


def extract_binary(archive: Path, dest: Path, target_os: str) -> Path:
    """Get the ntm executable out of a downloaded asset.

    Bare binaries (no registered archive suffix) are returned as-is. For
    archives, the contents go to ``dest`` and the executable is located by
    its base name anywhere in the tree.

    Args:
        archive: Downloaded asset.
        dest: Empty directory to extract into.
        target_os: Platform the binary is for (decides ``ntm`` vs ``ntm.exe``).

    Returns:
        Path to the executable, with execute bits set.

    Raises:
        ExtractionError: Unreadable archive, unsafe entry, or no binary inside.
    """
    extractor = extractor_for(archive)
    if extractor is None:
        logger.debug("%s is a bare binary, no extraction needed", archive.name)
        make_executable(archive)
        return archive

    dest.mkdir(parents=True, exist_ok=True)
    logger.info("Extracting %s", archive.name)
    extractor(archive, dest)

    binary_name = binary_name_for(target_os)
    candidates = sorted(
        (p for p in dest.rglob(binary_name) if p.is_file()),
        key=lambda p: len(p.relative_to(dest).parts),
    )
    if not candidates:
        raise ExtractionError(f"binary '{binary_name}' not found in {archive.name}")

    binary = candidates[0]
    make_executable(binary)
    logger.debug("Located binary at %s", binary)
    return binary
