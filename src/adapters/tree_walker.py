"""Materialización desde una API de árbol remoto (listados + contenido crudo).

Un round-trip por directorio y otro por fichero, en serie. Los paths
relativos se construyen siempre con `/`, independientemente del SO.
"""

from __future__ import annotations

from pathlib import Path
from urllib.parse import quote

import httpx
from loguru import logger
from pydantic import ValidationError

from core.domain.errors import ExtractionError, TransportError
from core.domain.models import TreeEntry
from core.interfaces.transport import Transport


def with_ref(url: str, ref: str) -> str:
    """Añade `ref` a la query de `url`, conservando los parámetros existentes."""

    return str(httpx.URL(url).copy_merge_params({"ref": ref}))


def raw_file_url(raw_base: str, relative: str) -> str:
    """URL del contenido crudo; cada segmento va codificado (`#`, `?`, `%` son válidos en nombres)."""

    return f"{raw_base}/" + "/".join(quote(part, safe="") for part in relative.split("/"))


def _check_entry_name(name: str, listing_url: str) -> None:
    if not name or name in (".", "..") or "/" in name or "\\" in name:
        raise ExtractionError(f"Unsafe entry name in listing: {name!r}", path=listing_url)


class TreeWalker:
    """Recorre un listado remoto y escribe cada fichero en el destino."""

    def __init__(self, transport: Transport) -> None:
        self._transport = transport

    async def _list(self, url: str) -> list[TreeEntry]:
        payload = await self._transport.fetch_json(url, authenticated=True)
        if not isinstance(payload, list):
            raise TransportError(url, status_code=200, status_message="Directory listing is not a JSON array")
        try:
            return [TreeEntry.model_validate(item) for item in payload]
        except ValidationError as exc:
            raise TransportError(url, status_code=200, status_message=f"Malformed directory listing: {exc}") from exc

    async def materialize(self, api_root: str, raw_root: str, ref: str, target_dir: Path) -> int:
        target_dir = Path(target_dir)
        raw_base = raw_root.rstrip("/")
        written = 0

        # (url del listado, path relativo del directorio)
        stack: list[tuple[str, str]] = [(with_ref(api_root, ref), "")]
        while stack:
            listing_url, prefix = stack.pop()
            for entry in await self._list(listing_url):
                _check_entry_name(entry.name, listing_url)
                relative = f"{prefix}/{entry.name}" if prefix else entry.name

                if entry.type == "dir":
                    if not entry.url:
                        raise TransportError(listing_url, status_code=200, status_message=f"Directory {relative!r} has no url")
                    (target_dir / relative).mkdir(parents=True, exist_ok=True)
                    stack.append((with_ref(entry.url, ref), relative))
                elif entry.type == "file":
                    await self._transport.fetch_to_file(
                        raw_file_url(raw_base, relative),
                        target_dir.joinpath(*relative.split("/")),
                        authenticated=True,
                    )
                    written += 1
                    logger.debug("Fetched {}", relative)
                else:
                    logger.debug("Skipping {} entry {}", entry.type, relative)

        logger.info("Tree materialized: {} files into {}", written, target_dir)
        return written
