"""
Upstream profile — where releases come from and how to fetch them.

Loaded from the ``upgrade:`` section of the ntm config file. Every
endpoint the upgrade pipeline talks to is derived from this model so an
alternative release host (or a local fixture server) can be swapped in.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

DEFAULT_API_BASE = "https://api.github.com"
DEFAULT_OWNER = "Dicklesworthstone"
DEFAULT_REPO = "ntm"
DEFAULT_CHECKSUM_ASSET = "checksums.txt"


class UpstreamProfile(BaseModel):
    """Release host, naming of well-known assets, and network budgets."""

    api_base: str = DEFAULT_API_BASE
    owner: str = DEFAULT_OWNER
    repo: str = DEFAULT_REPO
    checksum_asset: str = DEFAULT_CHECKSUM_ASSET
    releases_url: str = ""
    issues_url: str = ""

    # Seconds
    catalog_timeout: float = Field(default=30.0, gt=0, le=30)
    download_timeout: float = Field(default=300.0, ge=300)
    verify_timeout: float = Field(default=15.0, gt=0)

    retry_attempts: int = Field(default=3, ge=1, le=10)
    require_checksums: bool = False
    install_path: str | None = None

    @property
    def latest_release_endpoint(self) -> str:
        return f"{self.api_base.rstrip('/')}/repos/{self.owner}/{self.repo}/releases/latest"

    @property
    def releases_page(self) -> str:
        return self.releases_url or f"https://github.com/{self.owner}/{self.repo}/releases"

    @property
    def issues_page(self) -> str:
        return self.issues_url or f"https://github.com/{self.owner}/{self.repo}/issues/new"


class NtmConfig(BaseModel):
    """Root of the ntm config file (only the sections this package reads)."""

    version: int = 1
    upgrade: UpstreamProfile = Field(default_factory=UpstreamProfile)
