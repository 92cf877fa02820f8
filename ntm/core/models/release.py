"""
Release models — the upstream "latest release" descriptor.

Parsed straight from the release index JSON. Field aliases follow the
GitHub Releases API so ``ReleaseDescriptor.model_validate(payload)``
works on the raw response body.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ReleaseAsset(BaseModel):
    """One file attached to a published release."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    size_bytes: int = Field(default=0, alias="size")
    download_url: str = Field(default="", alias="browser_download_url")
    content_type: str = ""


class ReleaseDescriptor(BaseModel):
    """The latest release as published by the release pipeline.

    ``tag`` is the upstream version string and may carry a ``v`` prefix.
    """

    model_config = ConfigDict(populate_by_name=True)

    tag: str = Field(alias="tag_name")
    name: str = ""
    is_draft: bool = Field(default=False, alias="draft")
    is_prerelease: bool = Field(default=False, alias="prerelease")
    published_at: datetime | None = None
    body: str = ""
    html_url: str = ""
    assets: list[ReleaseAsset] = Field(default_factory=list)

    @property
    def version(self) -> str:
        """Tag without its leading ``v``."""
        return self.tag[1:] if self.tag.startswith("v") else self.tag

    def find_asset(self, name: str) -> ReleaseAsset | None:
        """Look up an asset by exact name."""
        for asset in self.assets:
            if asset.name == name:
                return asset
        return None
