"""Materialización desde un archivo comprimido (cache local o descarga).

Pasos:
1) extraer en un directorio de staging fuera del destino;
2) si el nivel superior es un único directorio (`repo-name/`), usar su contenido;
3) mover el payload al destino y borrar el staging (éxito o fallo);
4) contar los ficheros resultantes.
"""

from __future__ import annotations

import shutil
import tarfile
import tempfile
import zipfile
from pathlib import Path

from loguru import logger

from core.domain.errors import ExtractionError
from core.file_counter import count_files

# zipfile lanza RuntimeError (entrada cifrada) y NotImplementedError (compresión no soportada).
_ARCHIVE_ERRORS = (
    shutil.ReadError,
    zipfile.BadZipFile,
    tarfile.TarError,
    ValueError,
    EOFError,
    RuntimeError,
    NotImplementedError,
)


def detect_format(path: Path) -> str | None:
    if zipfile.is_zipfile(path):
        return "zip"
    if tarfile.is_tarfile(path):
        return "tar"
    return None


def unwrap_single_root(extracted: Path) -> Path:
    """Devuelve el directorio que contiene el payload real."""

    entries = list(extracted.iterdir())
    if len(entries) == 1 and entries[0].is_dir() and not entries[0].is_symlink():
        return entries[0]
    return extracted


class ArchiveMaterializer:
    """Extrae un bundle en `target_dir`, normalizando el directorio envoltorio."""

    def __init__(self, *, staging_root: Path | None = None) -> None:
        self._staging_root = staging_root

    def _extract(self, archive_path: Path, staging: Path) -> None:
        if not archive_path.is_file():
            raise ExtractionError(f"Archive not found: {archive_path}", path=str(archive_path))
        # El formato se detecta por contenido: las descargas van a temporales sin extensión fiable.
        fmt = detect_format(archive_path)
        if fmt is None:
            raise ExtractionError(f"Unsupported or corrupt archive: {archive_path.name}", path=str(archive_path))
        if fmt == "tar":
            # El filtro "data" rechaza miembros fuera del staging, enlaces absolutos y ficheros especiales.
            shutil.unpack_archive(str(archive_path), str(staging), format=fmt, filter="data")
        else:
            shutil.unpack_archive(str(archive_path), str(staging), format=fmt)

    def materialize(self, archive_path: Path, target_dir: Path) -> int:
        archive_path = Path(archive_path)
        target_dir = Path(target_dir)
        staging = Path(tempfile.mkdtemp(prefix="simpl-extract-", dir=self._staging_root))
        try:
            try:
                self._extract(archive_path, staging)
            except _ARCHIVE_ERRORS as exc:
                raise ExtractionError(f"Failed to extract {archive_path.name}: {exc}", path=str(archive_path)) from exc

            payload = unwrap_single_root(staging)
            if payload != staging:
                logger.debug("Unwrapping top-level directory {}", payload.name)

            target_dir.mkdir(parents=True, exist_ok=True)
            for item in payload.iterdir():
                shutil.move(str(item), str(target_dir / item.name))
        finally:
            shutil.rmtree(staging, ignore_errors=True)

        total = count_files(target_dir)
        logger.info("Archive materialized: {} files into {}", total, target_dir)
        return total
