"""
Test doubles and builders for the upgrade tests.
"""

from __future__ import annotations

import io
import json
import stat
import sys
import tarfile
import zipfile
from pathlib import Path
from urllib.error import HTTPError

import pytest

from ntm.core.models.release import ReleaseAsset

API_BASE = "https://releases.test"
DOWNLOAD_BASE = "https://dl.test/download"
LATEST_ENDPOINT = f"{API_BASE}/repos/Dicklesworthstone/ntm/releases/latest"

needs_posix = pytest.mark.skipif(sys.platform == "win32", reason="needs POSIX shell scripts")


# ── Fakes ───────────────────────────────────────────────────────────


class RecordingSink:
    """OutputSink that keeps everything it is given."""

    def __init__(self, tty: bool = False) -> None:
        self.tty = tty
        self.chunks: list[str] = []

    def write(self, text: str) -> None:
        self.chunks.append(text)

    def line(self, text: str = "", style: str | None = None) -> None:
        self.chunks.append(text + "\n")

    def isatty(self) -> bool:
        return self.tty

    @property
    def text(self) -> str:
        return "".join(self.chunks)


class FakeResponse(io.BytesIO):
    """Minimal stand-in for an ``http.client.HTTPResponse``."""

    def __init__(self, body: bytes, headers: dict | None = None) -> None:
        super().__init__(body)
        self.headers = headers or {}


class FakeOpener:
    """urlopen replacement serving canned routes.

    A route value may be bytes (200 OK), an int (HTTP error status), an
    exception instance (raised), or a list of those consumed in order.
    """

    def __init__(self, routes: dict | None = None) -> None:
        self.routes = dict(routes or {})
        self.requests: list = []

    def __call__(self, req, timeout=None):
        url = req.full_url
        self.requests.append(req)
        if url not in self.routes:
            raise HTTPError(url, 404, "Not Found", {}, None)
        outcome = self.routes[url]
        if isinstance(outcome, list):
            outcome = outcome.pop(0) if len(outcome) > 1 else outcome[0]
        if isinstance(outcome, BaseException):
            raise outcome
        if isinstance(outcome, int):
            raise HTTPError(url, outcome, "error", {}, None)
        return FakeResponse(outcome, {"Content-Length": str(len(outcome))})

    def hits(self, url: str) -> int:
        return sum(1 for r in self.requests if r.full_url == url)


# ── Builders ────────────────────────────────────────────────────────


def asset(name: str, size: int = 1024) -> ReleaseAsset:
    return ReleaseAsset(name=name, size_bytes=size, download_url=f"{DOWNLOAD_BASE}/{name}")


def release_payload(tag: str, names: list[str], sizes: dict | None = None) -> bytes:
    sizes = sizes or {}
    return json.dumps(
        {
            "tag_name": tag,
            "name": tag,
            "html_url": f"https://github.com/Dicklesworthstone/ntm/releases/tag/{tag}",
            "assets": [
                {
                    "name": n,
                    "size": sizes.get(n, 1024),
                    "browser_download_url": f"{DOWNLOAD_BASE}/{n}",
                }
                for n in names
            ],
        }
    ).encode()


def version_script(version: str, exit_code: int = 0) -> bytes:
    """A fake ntm binary that answers ``version --short``."""
    return f'#!/bin/sh\necho "{version}"\nexit {exit_code}\n'.encode()


def write_executable(path: Path, content: bytes) -> Path:
    path.write_bytes(content)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


def tar_gz_bytes(members: dict[str, bytes], mode: int = 0o755) -> bytes:
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tar:
        for name, data in members.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = mode
            tar.addfile(info, io.BytesIO(data))
    return buf.getvalue()


def zip_bytes(members: dict[str, bytes]) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, data in members.items():
            zf.writestr(name, data)
    return buf.getvalue()
