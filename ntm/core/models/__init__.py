"""
Domain models — pydantic types and value objects for ntm.

All models are re-exported here for convenient access:

    from ntm.core.models import ReleaseDescriptor, UpgradeReport, UpstreamProfile
"""

from ntm.core.models.profile import NtmConfig, UpstreamProfile
from ntm.core.models.release import ReleaseAsset, ReleaseDescriptor
from ntm.core.models.upgrade import (
    STRATEGY_CONFIDENCE,
    STRICT_STRATEGIES,
    AssetInfo,
    MatchResult,
    PlatformTuple,
    UpgradeReport,
)

__all__ = [
    # profile.py
    "NtmConfig",
    "UpstreamProfile",
    # release.py
    "ReleaseAsset",
    "ReleaseDescriptor",
    # upgrade.py
    "STRATEGY_CONFIDENCE",
    "STRICT_STRATEGIES",
    "AssetInfo",
    "MatchResult",
    "PlatformTuple",
    "UpgradeReport",
]
