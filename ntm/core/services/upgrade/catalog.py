"""
Release catalog client — latest release descriptor and checksum manifest.

Talks HTTPS to the release index described by an ``UpstreamProfile``.
The opener is injectable (same signature as ``urllib.request.urlopen``)
so tests can serve canned responses without a network.
"""

from __future__ import annotations

import json
import logging
from pathlib import PurePosixPath
from typing import Any, Callable
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from pydantic import ValidationError

from ntm import __version__
from ntm.core.models.profile import UpstreamProfile
from ntm.core.models.release import ReleaseDescriptor
from ntm.core.reliability.retry import RetryPolicy
from ntm.core.services.upgrade.errors import (
    ChecksumMissingError,
    NoReleasesError,
    TransportError,
)

logger = logging.getLogger(__name__)

Opener = Callable[..., Any]

_RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504})


def parse_checksums(text: str) -> dict[str, str]:
    """Parse a ``checksums.txt`` body into ``{asset_name: sha256}``.

    Accepts BSD (``<hex>  <name>``) and GNU (``<hex> <name>``) layouts.
    Blank and ``#`` lines are skipped. The filename is the last token,
    reduced to its basename; digests are stored lowercase.

    Raises:
        ChecksumMissingError: If no entries were found.
    """
    checksums: dict[str, str] = {}
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        parts = line.split()
        if len(parts) < 2:
            continue
        digest = parts[0].lower()
        # GNU binary-mode marker: "<hex> *name"
        filename = parts[-1].lstrip("*")
        filename = PurePosixPath(filename).name or filename
        checksums[filename] = digest

    if not checksums:
        raise ChecksumMissingError("no checksums found in checksums.txt")
    return checksums


class ReleaseCatalogClient:
    """Fetch release metadata and assets from the upstream release index."""

    def __init__(
        self,
        profile: UpstreamProfile | None = None,
        *,
        opener: Opener | None = None,
        retry: RetryPolicy | None = None,
    ) -> None:
        self.profile = profile or UpstreamProfile()
        self._opener = opener or urlopen
        self.retry = retry or RetryPolicy(max_attempts=self.profile.retry_attempts)

    @property
    def user_agent(self) -> str:
        return f"ntm-upgrade/{__version__}"

    # ── Latest release ──────────────────────────────────────────

    def fetch_latest(self) -> ReleaseDescriptor:
        """Fetch the latest published release.

        Raises:
            NoReleasesError: The index returned 404 (nothing published).
            TransportError: Network, HTTP status, or payload failure.
        """
        endpoint = self.profile.latest_release_endpoint
        logger.debug("Fetching latest release from %s", endpoint)

        def _fetch() -> bytes:
            with self._open(endpoint, self.profile.catalog_timeout, json_api=True) as resp:
                return resp.read()

        try:
            body = self.retry.call(_fetch, retry_on=(TransportError,), label="release lookup")
        except TransportError as e:
            if e.status == 404:
                raise NoReleasesError(
                    "no releases found - this is a development version"
                ) from e
            raise

        try:
            release = ReleaseDescriptor.model_validate(json.loads(body))
        except (json.JSONDecodeError, UnicodeDecodeError, ValidationError) as e:
            raise TransportError(
                f"failed to parse release index response: {e}",
                endpoint=endpoint,
                retryable=False,
            ) from e

        logger.info(
            "Latest release %s with %d assets", release.tag, len(release.assets)
        )
        return release

    # ── Checksums ───────────────────────────────────────────────

    def fetch_checksums(self, release: ReleaseDescriptor) -> dict[str, str]:
        """Download and parse the release's checksum manifest.

        Raises:
            ChecksumMissingError: Manifest absent, unreachable, or empty.
        """
        name = self.profile.checksum_asset
        asset = release.find_asset(name)
        if asset is None:
            raise ChecksumMissingError(f"{name} not found in release")

        def _fetch() -> bytes:
            with self._open(asset.download_url, self.profile.catalog_timeout) as resp:
                return resp.read()

        try:
            body = self.retry.call(_fetch, retry_on=(TransportError,), label="checksum download")
        except TransportError as e:
            raise ChecksumMissingError(f"failed to download {name}: {e}") from e

        return parse_checksums(body.decode("utf-8", errors="replace"))

    # ── Assets ──────────────────────────────────────────────────

    def open_asset(self, url: str, timeout: float | None = None) -> Any:
        """Open a streaming response for a release asset download."""
        return self._open(url, timeout or self.profile.download_timeout)

    def _open(self, url: str, timeout: float, *, json_api: bool = False) -> Any:
        headers = {"User-Agent": self.user_agent}
        if json_api:
            headers["Accept"] = "application/vnd.github.v3+json"
        req = Request(url, headers=headers)
        try:
            return self._opener(req, timeout=timeout)
        except HTTPError as e:
            raise TransportError(
                f"{url} returned HTTP {e.code}",
                endpoint=url,
                status=e.code,
                retryable=e.code in _RETRYABLE_STATUS,
            ) from e
        except (URLError, TimeoutError, OSError) as e:
            reason = getattr(e, "reason", e)
            raise TransportError(
                f"request to {url} failed: {reason}", endpoint=url
            ) from e
