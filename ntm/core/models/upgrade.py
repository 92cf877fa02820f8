"""
Upgrade models — platform tuple, resolver output, diagnostic report.

``AssetInfo`` and ``UpgradeReport`` are pydantic models because they are
serialized to JSON for machine consumers; the field names are part of
that contract and must not change.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel, Field

from ntm.core.models.release import ReleaseAsset

MatchKind = Literal["exact", "close", "none"]

# Strategy name → fixed confidence
STRATEGY_CONFIDENCE: dict[str, float] = {
    "exact_archive": 1.0,
    "exact_binary": 0.9,
    "prefix_match": 0.7,
    "fuzzy_same_os": 0.5,
    "legacy_dash": 0.3,
}

STRICT_STRATEGIES = frozenset({"exact_archive", "exact_binary"})


@dataclass(frozen=True)
class PlatformTuple:
    """Local machine identity plus the requested version."""

    os: str
    arch: str
    version: str = ""

    @property
    def label(self) -> str:
        return f"{self.os}/{self.arch}"


@dataclass(frozen=True)
class MatchResult:
    """The asset the resolver picked and how it got there."""

    asset: ReleaseAsset
    strategy: str
    confidence: float
    reason: str

    @classmethod
    def for_strategy(cls, asset: ReleaseAsset, strategy: str, reason: str) -> MatchResult:
        return cls(
            asset=asset,
            strategy=strategy,
            confidence=STRATEGY_CONFIDENCE[strategy],
            reason=reason,
        )

    def to_dict(self) -> dict:
        return {
            "asset": self.asset.name,
            "strategy": self.strategy,
            "confidence": self.confidence,
            "reason": self.reason,
        }


class AssetInfo(BaseModel):
    """Classification of one remote asset against the local platform."""

    name: str
    os: str | None = None
    arch: str | None = None
    version: str | None = None
    extension: str | None = None
    match: MatchKind = "none"
    reason: str | None = None


class UpgradeReport(BaseModel):
    """Structured diagnostic produced when asset resolution fails."""

    platform: str
    convention: str
    tried_names: list[str] = Field(default_factory=list)
    available_assets: list[AssetInfo] = Field(default_factory=list)
    closest_match: AssetInfo | None = None
    release_url: str = ""

    def to_json(self) -> str:
        return self.model_dump_json(indent=2, exclude_none=True)
