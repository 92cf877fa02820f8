"""
Asset download and checksum verification.

Streams a release asset into the upgrade's temp directory, reporting
progress through the output sink, then checks it against the published
SHA-256 digest.
"""

from __future__ import annotations

import hashlib
import logging
import signal
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from ntm.core.models.release import ReleaseAsset
from ntm.core.services.upgrade.catalog import ReleaseCatalogClient
from ntm.core.services.upgrade.errors import (
    ChecksumMismatchError,
    TransportError,
    UpgradeCancelledError,
)
from ntm.core.services.upgrade.progress import OutputSink, ProgressWriter

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


def download_asset(
    client: ReleaseCatalogClient,
    asset: ReleaseAsset,
    dest_dir: Path,
    sink: OutputSink,
    timeout: float | None = None,
    cancel: threading.Event | None = None,
) -> Path:
    """Download ``asset`` into ``dest_dir`` and return the file path.

    Transient transport failures restart the whole download (no resume)
    under the client's retry policy.

    Raises:
        TransportError: The download failed after retries.
        UpgradeCancelledError: ``cancel`` was set mid-download.
    """
    dest = dest_dir / Path(asset.name).name
    logger.info("Downloading %s from %s", asset.name, asset.download_url)

    def _attempt() -> Path:
        with client.open_asset(asset.download_url, timeout) as resp:
            total = _content_length(resp) or asset.size_bytes
            try:
                with dest.open("wb") as fh:
                    progress = ProgressWriter(fh, sink, total=total)
                    try:
                        for chunk in iter(lambda: resp.read(CHUNK_SIZE), b""):
                            if cancel is not None and cancel.is_set():
                                raise UpgradeCancelledError("download cancelled")
                            progress.write(chunk)
                    finally:
                        progress.finish()
            except OSError as e:
                raise TransportError(
                    f"download of {asset.name} interrupted: {e}",
                    endpoint=asset.download_url,
                ) from e
        return dest

    path = client.retry.call(_attempt, retry_on=(TransportError,), label="download")
    logger.debug("Downloaded %s (%d bytes)", path, path.stat().st_size)
    return path


def _content_length(resp) -> int:
    headers = getattr(resp, "headers", None)
    if headers is None:
        return 0
    try:
        return int(headers.get("Content-Length") or 0)
    except (TypeError, ValueError):
        return 0


def calculate_sha256(path: Path) -> str:
    """Hex SHA-256 of a file, read in chunks."""
    digest = hashlib.sha256()
    with path.open("rb") as fh:
        for chunk in iter(lambda: fh.read(CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def verify_checksum(path: Path, expected: str) -> str:
    """Compare a file's SHA-256 with ``expected`` (case-insensitive).

    Returns:
        The computed digest.

    Raises:
        ChecksumMismatchError: On mismatch.
    """
    expected = expected.strip().lower()
    actual = calculate_sha256(path).lower()
    if actual != expected:
        logger.error("Checksum mismatch for %s: expected %s, got %s", path.name, expected, actual)
        raise ChecksumMismatchError(expected, actual)
    logger.debug("Checksum verified for %s", path.name)
    return actual


@contextmanager
def cancel_on_sigint(cancel: threading.Event) -> Iterator[threading.Event]:
    """Turn the first Ctrl-C into ``cancel.set()`` for the duration.

    The download loop then stops at the next chunk boundary. A second
    Ctrl-C raises ``KeyboardInterrupt`` as usual. Outside the main thread
    signals cannot be handled, so this is a no-op there.
    """
    if threading.current_thread() is not threading.main_thread():
        yield cancel
        return

    def _handler(signum, frame):
        if cancel.is_set():
            raise KeyboardInterrupt
        logger.info("Interrupt received, cancelling download")
        cancel.set()

    previous = signal.signal(signal.SIGINT, _handler)
    try:
        yield cancel
    finally:
        signal.signal(signal.SIGINT, previous)
