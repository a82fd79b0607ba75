"""Shared test fixtures."""

from __future__ import annotations

import io
import tarfile
import zipfile
from collections.abc import Callable
from pathlib import Path

import httpx
import pytest

from adapters.http_client import HttpTransport, build_async_client
from core.config import AppSettings

CDN = "https://cdn.test/framework"

_ENV_VARS = (
    "GITHUB_TOKEN",
    "GH_TOKEN",
    "SIMPL_GITHUB_TOKEN",
    "SIMPL_CACHE_DIR",
    "SIMPL_SOURCE",
    "SIMPL_ARCHIVE_BASE_URL",
    "SIMPL_LOG_LEVEL",
    "SIMPL_REMOVE_PARTIAL_ON_FAILURE",
)


class MockRouter:
    """Maps absolute URLs to response factories and records every request."""

    def __init__(self) -> None:
        self.routes: dict[str, Callable[[httpx.Request], httpx.Response]] = {}
        self.requests: list[httpx.Request] = []

    def add(self, url: str, status: int = 200, **kwargs: object) -> None:
        self.routes[url] = lambda request: httpx.Response(status, **kwargs)

    def redirect(self, url: str, location: str, status: int = 302) -> None:
        self.add(url, status, headers={"Location": location})

    def handle(self, url: str, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.routes[url] = handler

    def urls(self) -> list[str]:
        return [str(r.url) for r in self.requests]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get(str(request.url))
        if handler is None:
            return httpx.Response(404)
        return handler(request)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def settings(tmp_path: Path) -> AppSettings:
    return AppSettings(
        _env_file=None,
        archive_base_url=CDN,
        cache_dir=tmp_path / "releases",
        tree_api_base="https://api.test",
        tree_raw_base="https://raw.test",
        tree_repo="owner/repo",
        tree_default_ref="main",
    )


@pytest.fixture
def router() -> MockRouter:
    return MockRouter()


@pytest.fixture
def make_transport(router: MockRouter) -> Callable[[AppSettings], HttpTransport]:
    def factory(settings: AppSettings) -> HttpTransport:
        client = build_async_client(settings, transport=httpx.MockTransport(router))
        return HttpTransport(settings, client=client)

    return factory


@pytest.fixture
def transport(settings: AppSettings, make_transport: Callable[[AppSettings], HttpTransport]) -> HttpTransport:
    return make_transport(settings)


def zip_bytes(files: dict[str, bytes | str]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for name, content in files.items():
            zf.writestr(name, content)
    return buffer.getvalue()


@pytest.fixture
def make_zip() -> Callable[[Path, dict[str, bytes | str]], Path]:
    def factory(path: Path, files: dict[str, bytes | str]) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(zip_bytes(files))
        return path

    return factory


@pytest.fixture
def make_tar() -> Callable[[Path, dict[str, bytes]], Path]:
    def factory(path: Path, files: dict[str, bytes]) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tarfile.open(path, "w:gz") as tf:
            for name, content in files.items():
                info = tarfile.TarInfo(name)
                info.size = len(content)
                tf.addfile(info, io.BytesIO(content))
        return path

    return factory


@pytest.fixture
def zip_payload() -> Callable[[dict[str, bytes | str]], bytes]:
    return zip_bytes
