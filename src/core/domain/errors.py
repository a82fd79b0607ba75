"""Modelo de errores tipado del instalador.

Cada fallo lleva un `ErrorKind` estable, un hint opcional para el usuario y
contexto (url, status, paths) para la CLI y los logs.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from enum import StrEnum


class ErrorKind(StrEnum):
    """Identificadores estables de error."""

    EMPTY_NAME = "empty_name"
    INVALID_CHARACTERS = "invalid_characters"
    DIRECTORY_EXISTS = "directory_exists"
    RATE_LIMITED = "rate_limited"
    TRANSPORT = "transport"
    SOURCE_UNAVAILABLE = "source_unavailable"
    INVALID_VERSION = "invalid_version"
    EXTRACTION = "extraction"


class InstallerError(Exception):
    """Base error class that carries kind, optional hint, and context."""

    kind: ErrorKind
    hint: str | None
    context: Mapping[str, str]

    def __init__(
        self,
        message: str,
        *,
        kind: ErrorKind,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.hint = hint
        self.context = dict(context or {})

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "kind": self.kind.value,
            "message": self.message,
            "context": dict(self.context),
        }
        if self.hint is not None:
            payload["hint"] = self.hint
        return payload


class NameValidationError(InstallerError):
    """Pre-flight failure; recoverable by asking for another name."""

    def __init__(self, message: str, *, kind: ErrorKind, name: str | None) -> None:
        super().__init__(message, kind=kind, context={"name": name or ""})
        self.name = name


class EmptyNameError(NameValidationError):
    def __init__(self, name: str | None = None) -> None:
        super().__init__("Project name cannot be empty", kind=ErrorKind.EMPTY_NAME, name=name)


class InvalidCharactersError(NameValidationError):
    def __init__(self, name: str) -> None:
        super().__init__(
            "Project name can only contain letters, numbers, hyphens, and underscores",
            kind=ErrorKind.INVALID_CHARACTERS,
            name=name,
        )


class DirectoryExistsError(NameValidationError):
    def __init__(self, name: str) -> None:
        super().__init__(f'Directory "{name}" already exists', kind=ErrorKind.DIRECTORY_EXISTS, name=name)


class RateLimitedError(InstallerError):
    def __init__(self, url: str, *, reset_time: datetime | None) -> None:
        reset = reset_time.isoformat() if reset_time else ""
        super().__init__(
            "Rate limit exceeded" + (f" (resets at {reset})" if reset else ""),
            kind=ErrorKind.RATE_LIMITED,
            hint="Set GITHUB_TOKEN to raise the API rate limit, or wait for the reset time.",
            context={"url": url, "reset_time": reset},
        )
        self.url = url
        self.reset_time = reset_time


class TransportError(InstallerError):
    def __init__(
        self,
        url: str,
        *,
        status_code: int | None,
        status_message: str,
        hint: str | None = None,
    ) -> None:
        prefix = f"HTTP {status_code}: " if status_code is not None else ""
        super().__init__(
            f"{prefix}{status_message or 'Request failed'}",
            kind=ErrorKind.TRANSPORT,
            hint=hint,
            context={"url": url, "status_code": "" if status_code is None else str(status_code)},
        )
        self.url = url
        self.status_code = status_code
        self.status_message = status_message


class SourceUnavailableError(InstallerError):
    def __init__(self, url: str) -> None:
        super().__init__(
            f"Source is not reachable: {url}",
            kind=ErrorKind.SOURCE_UNAVAILABLE,
            hint="Check your network connection or stage the release in the local cache directory.",
            context={"url": url},
        )
        self.url = url


class ExtractionError(InstallerError):
    def __init__(self, message: str, *, path: str | None = None) -> None:
        super().__init__(message, kind=ErrorKind.EXTRACTION, context={"path": path or ""})
        self.path = path


class InvalidVersionError(InstallerError):
    def __init__(self, version: str) -> None:
        super().__init__(
            f'Invalid version "{version}"',
            kind=ErrorKind.INVALID_VERSION,
            hint="Use a release name such as 1.5.0 or latest (see --list-versions).",
            context={"version": version},
        )
        self.version = version
