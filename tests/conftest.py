"""
Shared test fixtures and configuration.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from ntm.core.context import InvocationContext
from ntm.core.models.profile import UpstreamProfile
from ntm.core.reliability.retry import RetryPolicy
from ntm.core.services.upgrade.catalog import ReleaseCatalogClient
from tests.helpers import API_BASE, FakeOpener, RecordingSink


# ── Fixtures ────────────────────────────────────────────────────────


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def profile() -> UpstreamProfile:
    return UpstreamProfile(api_base=API_BASE)


@pytest.fixture
def no_sleep_retry() -> RetryPolicy:
    return RetryPolicy(max_attempts=3, sleep=lambda _s: None)


@pytest.fixture
def make_client(profile: UpstreamProfile, no_sleep_retry: RetryPolicy):
    """Build a catalog client over a FakeOpener."""

    def _make(routes: dict | None = None) -> tuple[ReleaseCatalogClient, FakeOpener]:
        opener = FakeOpener(routes)
        return ReleaseCatalogClient(profile, opener=opener, retry=no_sleep_retry), opener

    return _make


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def make_ctx(sink: RecordingSink):
    """Build an InvocationContext that records output and scripts answers."""

    def _make(answers: list[bool] | None = None, **flags) -> InvocationContext:
        queue = list(answers or [])
        prompts: list[str] = []

        def confirm(prompt: str, default: bool) -> bool:
            prompts.append(prompt)
            if not queue:
                raise EOFError("no scripted answer")
            return queue.pop(0)

        ctx = InvocationContext(sink=sink, confirm=confirm, **flags)
        ctx.prompts = prompts  # type: ignore[attr-defined]
        return ctx

    return _make


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path_factory, monkeypatch):
    """Keep tests away from the real ~/.config/ntm and NTM_* env."""
    home = tmp_path_factory.mktemp("xdg")
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home))
    for var in ("NTM_CONFIG", "NTM_LOG_LEVEL", "NTM_LOG_FILE", "NTM_LOG_FILE_LEVEL"):
        monkeypatch.delenv(var, raising=False)
