"""
Self-upgrade service — package re-exports.

Layers, leaves first: versioning and naming (pure) → resolver and
diagnostics → catalog, download, archive → install and verify →
orchestrator::

    from ntm.core.services.upgrade import run_upgrade
"""

# ── Pure algebra ──
from ntm.core.services.upgrade.versioning import (  # noqa: F401
    is_newer_version,
    normalize_version,
    same_version,
)
from ntm.core.services.upgrade.naming import (  # noqa: F401
    archive_asset_name,
    binary_asset_name,
    parse_asset_info,
    trim_asset_ext,
)

# ── Resolution ──
from ntm.core.services.upgrade.resolver import find_upgrade_asset  # noqa: F401
from ntm.core.services.upgrade.diagnostics import (  # noqa: F401
    build_upgrade_report,
    render_report,
)

# ── I/O ──
from ntm.core.services.upgrade.catalog import (  # noqa: F401
    ReleaseCatalogClient,
    parse_checksums,
)
from ntm.core.services.upgrade.download import (  # noqa: F401
    calculate_sha256,
    download_asset,
    verify_checksum,
)
from ntm.core.services.upgrade.archive import extract_binary  # noqa: F401
from ntm.core.services.upgrade.install import replace_binary, restore_backup  # noqa: F401
from ntm.core.services.upgrade.verify import finalize_install, verify_upgrade  # noqa: F401

# ── Orchestration ──
from ntm.core.services.upgrade.orchestrator import UpgradeResult, run_upgrade  # noqa: F401
