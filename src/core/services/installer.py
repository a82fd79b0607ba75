"""Install orchestration.

Sequences name validation, source resolution, materialization and file
counting. The CLI only supplies a prompt callable and UI hooks; every
decision about which path to take and how failures propagate lives here,
so the same pipeline can be driven from tests with injected fixtures.
"""

from __future__ import annotations

import shutil
import tempfile
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable

from loguru import logger

from adapters.archive import ArchiveMaterializer
from adapters.http_client import HttpTransport
from adapters.tree_walker import TreeWalker
from core.config import AppSettings
from core.domain.errors import (
    DirectoryExistsError,
    EmptyNameError,
    ExtractionError,
    InstallerError,
    NameValidationError,
)
from core.domain.models import (
    LATEST,
    InstallResult,
    LocalCacheSource,
    RemoteArchiveSource,
    RemoteTreeSource,
    SourceDescriptor,
    VersionManifest,
)
from core.file_counter import count_files
from core.interfaces.transport import Transport
from core.resolver import SourceResolver
from core.validation import validate_project_name


class InstallState(str, Enum):
    IDLE = "idle"
    NAME_VALIDATED = "name_validated"
    SOURCE_RESOLVED = "source_resolved"
    MATERIALIZING = "materializing"
    REPORTED = "reported"
    FAILED = "failed"


@dataclass
class InstallRequest:
    """Parameters for one install run."""

    project_name: str | None
    version: str = LATEST


@dataclass
class InstallHooks:
    """Optional callbacks for UI layers (progress, source info)."""

    state_changed: Callable[[InstallState], None] | None = None
    source_selected: Callable[[SourceDescriptor], None] | None = None


def obtain_project_name(
    name: str | None,
    *,
    prompt: Callable[[], str] | None = None,
    on_invalid: Callable[[NameValidationError], None] | None = None,
    base_dir: Path | None = None,
) -> str:
    """Return a valid project name.

    A name given up front is validated once and any error is raised. Without
    one, `prompt` is called until it yields a valid name; each rejected
    attempt is reported through `on_invalid`.
    """

    if name is not None:
        error = validate_project_name(name, base_dir=base_dir)
        if error is not None:
            raise error
        return name
    if prompt is None:
        raise EmptyNameError()

    while True:
        candidate = prompt().strip()
        error = validate_project_name(candidate, base_dir=base_dir)
        if error is None:
            return candidate
        logger.debug("Rejected project name {!r}: {}", candidate, error.kind.value)
        if on_invalid is not None:
            on_invalid(error)


async def _materialize(
    descriptor: SourceDescriptor,
    *,
    transport: Transport,
    target_dir: Path,
) -> int:
    if isinstance(descriptor, LocalCacheSource):
        return ArchiveMaterializer().materialize(descriptor.path, target_dir)

    if isinstance(descriptor, RemoteArchiveSource):
        download_dir = Path(tempfile.mkdtemp(prefix="simpl-download-"))
        try:
            archive_path = await transport.fetch_to_file(descriptor.url, download_dir / "src.zip")
            return ArchiveMaterializer().materialize(archive_path, target_dir)
        finally:
            shutil.rmtree(download_dir, ignore_errors=True)

    if isinstance(descriptor, RemoteTreeSource):
        return await TreeWalker(transport).materialize(
            descriptor.api_root, descriptor.raw_root, descriptor.ref, target_dir
        )

    raise TypeError(f"Unsupported source descriptor: {descriptor!r}")


async def install(
    *,
    settings: AppSettings,
    request: InstallRequest,
    transport: Transport | None = None,
    hooks: InstallHooks | None = None,
    base_dir: Path | None = None,
) -> InstallResult:
    hooks = hooks or InstallHooks()
    base_dir = base_dir or Path.cwd()

    def move_to(state: InstallState) -> None:
        logger.info("Install state -> {}", state.value)
        if hooks.state_changed is not None:
            hooks.state_changed(state)

    owned_transport: HttpTransport | None = None
    if transport is None:
        owned_transport = HttpTransport(settings)
        transport = owned_transport

    target_dir: Path | None = None
    created = False
    try:
        move_to(InstallState.IDLE)
        project_name = obtain_project_name(request.project_name, base_dir=base_dir)
        move_to(InstallState.NAME_VALIDATED)

        descriptor = await SourceResolver(settings, transport, base_dir=base_dir).resolve(request.version)
        if hooks.source_selected is not None:
            hooks.source_selected(descriptor)
        move_to(InstallState.SOURCE_RESOLVED)

        target_dir = base_dir / project_name
        try:
            target_dir.mkdir(parents=False, exist_ok=False)
        except FileExistsError as exc:
            raise DirectoryExistsError(project_name) from exc
        except OSError as exc:
            raise ExtractionError(f"Cannot create {target_dir}: {exc}", path=str(target_dir)) from exc
        created = True

        move_to(InstallState.MATERIALIZING)
        try:
            await _materialize(descriptor, transport=transport, target_dir=target_dir)
        except OSError as exc:
            raise ExtractionError(str(exc), path=getattr(exc, "filename", None)) from exc

        file_count = count_files(target_dir)
        move_to(InstallState.REPORTED)
        return InstallResult(
            project_name=project_name,
            version=request.version,
            target_dir=target_dir,
            source_kind=descriptor.kind,
            file_count=file_count,
        )
    except InstallerError as exc:
        logger.info("Install failed ({}): {}", exc.kind.value, exc.message)
        if created and target_dir is not None and settings.remove_partial_on_failure:
            logger.info("Removing partial project directory {}", target_dir)
            shutil.rmtree(target_dir, ignore_errors=True)
        move_to(InstallState.FAILED)
        raise
    finally:
        if owned_transport is not None:
            await owned_transport.aclose()


async def list_versions(*, settings: AppSettings, transport: Transport | None = None) -> VersionManifest:
    if transport is not None:
        return await SourceResolver(settings, transport).fetch_manifest()
    async with HttpTransport(settings) as owned:
        return await SourceResolver(settings, owned).fetch_manifest()
