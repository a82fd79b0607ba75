"""Wrapper de httpx.

Por qué un wrapper:
- Estandariza timeouts, headers, redirecciones y clasificación de errores.
- Facilita testeo: se puede inyectar un `httpx.AsyncClient` con `MockTransport`.

Las redirecciones se siguen a mano (no con `follow_redirects`) para poder
acotar los saltos y cortar el token al cambiar de host.
"""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any
from urllib.parse import urljoin

import httpx
from loguru import logger

from core.config import AppSettings
from core.domain.errors import InstallerError, RateLimitedError, TransportError

REDIRECT_STATUSES = frozenset({301, 302})
RATE_LIMIT_STATUSES = frozenset({403, 429})


def build_async_client(
    settings: AppSettings | None = None,
    *,
    extra_headers: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Crea un `httpx.AsyncClient` con los defaults del instalador."""

    settings = settings or AppSettings()
    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
        "Accept": "*/*",
    }
    if extra_headers:
        headers.update(extra_headers)
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        follow_redirects=False,
        headers=headers,
        transport=transport,
    )


def _has_rate_limit_headers(response: httpx.Response) -> bool:
    headers = response.headers
    if "x-ratelimit-reset" in headers:
        return True
    if headers.get("x-ratelimit-remaining") == "0":
        return True
    return response.status_code == 429 and "retry-after" in headers


def parse_reset_time(headers: httpx.Headers) -> datetime | None:
    """Momento (UTC) en que se levanta el rate limit, si las cabeceras lo dicen."""

    reset = (headers.get("x-ratelimit-reset") or "").strip()
    if reset.isdigit():
        return datetime.fromtimestamp(int(reset), tz=timezone.utc)
    retry_after = (headers.get("retry-after") or "").strip()
    if retry_after.isdigit():
        return datetime.now(timezone.utc) + timedelta(seconds=int(retry_after))
    return None


def classify_failure(url: str, response: httpx.Response) -> InstallerError:
    """Traduce una respuesta no-200 a un error tipado."""

    if response.status_code in RATE_LIMIT_STATUSES and _has_rate_limit_headers(response):
        reset_time = parse_reset_time(response.headers)
        logger.warning("Rate limited by {} (reset: {})", url, reset_time)
        return RateLimitedError(url, reset_time=reset_time)
    return TransportError(url, status_code=response.status_code, status_message=response.reason_phrase)


class HttpTransport:
    """Transporte HTTP asíncrono con redirecciones acotadas.

    Uso:
        async with HttpTransport(settings) as transport:
            text = await transport.fetch_text(url)
    """

    def __init__(self, settings: AppSettings | None = None, *, client: httpx.AsyncClient | None = None) -> None:
        self._settings = settings or AppSettings()
        self._owns_client = client is None
        self._client = client or build_async_client(self._settings)

    async def __aenter__(self) -> "HttpTransport":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _auth_headers(self, authenticated: bool) -> dict[str, str]:
        token = (self._settings.github_token or "").strip()
        if authenticated and token:
            return {"Authorization": f"Bearer {token}"}
        return {}

    async def _open(self, url: str, *, authenticated: bool, timeout: float | None = None) -> httpx.Response:
        """GET siguiendo 301/302; devuelve la respuesta 200 final sin leer el cuerpo.

        El llamador debe cerrar la respuesta (`aclose`).
        """

        extra: dict[str, Any] = {}
        if timeout is not None:
            extra["timeout"] = httpx.Timeout(timeout)

        current = url
        origin_host: str | None = None
        hops = 0
        while True:
            logger.debug("GET {}", current)
            try:
                host = httpx.URL(current).host
                origin_host = origin_host or host
                # El token solo viaja al host original.
                send_auth = authenticated and host == origin_host
                request = self._client.build_request(
                    "GET", current, headers=self._auth_headers(send_auth), **extra
                )
                response = await self._client.send(request, stream=True)
            except (httpx.HTTPError, httpx.InvalidURL) as exc:
                raise TransportError(
                    current, status_code=None, status_message=str(exc) or type(exc).__name__
                ) from exc

            if response.status_code in REDIRECT_STATUSES:
                await response.aclose()
                location = response.headers.get("location")
                if not location:
                    raise TransportError(
                        current,
                        status_code=response.status_code,
                        status_message="Redirect without Location header",
                    )
                if hops >= self._settings.max_redirects:
                    raise TransportError(url, status_code=response.status_code, status_message="Too many redirects")
                hops += 1
                current = urljoin(str(response.url), location)
                logger.debug("Redirect {} -> {}", response.status_code, current)
                continue

            if response.status_code != 200:
                await response.aclose()
                raise classify_failure(current, response)
            return response

    async def fetch_text(self, url: str, *, authenticated: bool = False) -> str:
        response = await self._open(url, authenticated=authenticated)
        try:
            await response.aread()
        except httpx.HTTPError as exc:
            raise TransportError(url, status_code=None, status_message=str(exc)) from exc
        finally:
            await response.aclose()
        return response.text

    async def fetch_json(self, url: str, *, authenticated: bool = False) -> Any:
        text = await self.fetch_text(url, authenticated=authenticated)
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise TransportError(url, status_code=200, status_message=f"Invalid JSON: {exc}") from exc

    async def fetch_to_file(self, url: str, dest: Path, *, authenticated: bool = False) -> Path:
        """Vuelca el cuerpo a `dest` por bloques.

        Si algo falla después de abrir `dest`, el fichero se borra antes de
        propagar el error: nunca queda un artefacto truncado.
        """

        dest = Path(dest)
        opened = False
        try:
            response = await self._open(url, authenticated=authenticated)
            try:
                dest.parent.mkdir(parents=True, exist_ok=True)
                with dest.open("wb") as fh:
                    opened = True
                    async for chunk in response.aiter_bytes(self._settings.download_chunk_size):
                        fh.write(chunk)
            except httpx.HTTPError as exc:
                raise TransportError(url, status_code=None, status_message=str(exc)) from exc
            finally:
                await response.aclose()
        except BaseException:
            if opened:
                dest.unlink(missing_ok=True)
            raise
        return dest

    async def probe(self, url: str, timeout: float | None = None, *, authenticated: bool = False) -> bool:
        """Sondeo de disponibilidad: `True` solo si el GET termina en 200. Nunca lanza."""

        limit = timeout if timeout is not None else self._settings.probe_timeout_seconds
        try:
            response = await self._open(url, authenticated=authenticated, timeout=limit)
        except Exception as exc:
            logger.warning("Probe failed for {}: {}", url, exc)
            return False
        await response.aclose()
        return True
