"""Selección de la fuente de una versión.

Prioridad:
1) cache local (`<cache_dir>/<version>/src.zip`), sin tocar la red;
2) estrategia de red configurada (`archive` o `tree`), previo sondeo;
3) si el sondeo falla, `SourceUnavailableError`. No hay fallback entre estrategias.
"""

from __future__ import annotations

from pathlib import Path

from loguru import logger
from pydantic import ValidationError

from adapters.tree_walker import with_ref
from core.config import AppSettings
from core.domain.errors import InvalidVersionError, SourceUnavailableError, TransportError
from core.domain.models import (
    LATEST,
    LocalCacheSource,
    RemoteArchiveSource,
    RemoteTreeSource,
    SourceDescriptor,
    VersionManifest,
)
from core.interfaces.transport import Transport

ARCHIVE_NAME = "src.zip"
MANIFEST_NAME = "versions.json"


def check_version(version: str) -> None:
    """La versión se usa como segmento de path y de URL: nada de separadores ni `..`."""

    if not version or version in (".", "..") or "/" in version or "\\" in version:
        raise InvalidVersionError(version)


class SourceResolver:
    def __init__(self, settings: AppSettings, transport: Transport, *, base_dir: Path | None = None) -> None:
        self._settings = settings
        self._transport = transport
        self._base_dir = base_dir

    @property
    def manifest_url(self) -> str:
        return f"{self._settings.archive_base_url.rstrip('/')}/{MANIFEST_NAME}"

    def archive_url(self, version: str) -> str:
        return f"{self._settings.archive_base_url.rstrip('/')}/{version}/{ARCHIVE_NAME}"

    def cached_archive(self, version: str) -> Path | None:
        candidate = self._settings.resolve_cache_dir(self._base_dir) / version / ARCHIVE_NAME
        return candidate if candidate.is_file() else None

    async def resolve(self, version: str) -> SourceDescriptor:
        check_version(version)
        cached = self.cached_archive(version)
        if cached is not None:
            logger.info("Using cached release {}", cached)
            return LocalCacheSource(path=cached)

        if self._settings.source == "tree":
            return await self._resolve_tree(version)
        return await self._resolve_archive(version)

    async def _resolve_archive(self, version: str) -> RemoteArchiveSource:
        if not await self._transport.probe(self.manifest_url, self._settings.probe_timeout_seconds):
            raise SourceUnavailableError(self.manifest_url)
        url = self.archive_url(version)
        logger.info("Using archive endpoint {}", url)
        return RemoteArchiveSource(url=url)

    async def _resolve_tree(self, version: str) -> RemoteTreeSource:
        ref = self._settings.tree_default_ref if version == LATEST else version
        api_root = self._settings.tree_api_root()
        probe_url = with_ref(api_root, ref)
        if not await self._transport.probe(probe_url, self._settings.probe_timeout_seconds, authenticated=True):
            raise SourceUnavailableError(probe_url)
        logger.info("Using tree API {} at ref {}", api_root, ref)
        return RemoteTreeSource(api_root=api_root, raw_root=self._settings.tree_raw_root(ref), ref=ref)

    async def fetch_manifest(self) -> VersionManifest:
        payload = await self._transport.fetch_json(self.manifest_url)
        try:
            return VersionManifest.model_validate(payload)
        except ValidationError as exc:
            raise TransportError(self.manifest_url, status_code=200, status_message=f"Malformed manifest: {exc}") from exc
