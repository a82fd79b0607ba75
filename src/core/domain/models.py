"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Validación estricta de las respuestas remotas (manifest, listados) en el borde.
- Los descriptores de fuente son una unión discriminada: se eligen una vez y
  el resto del pipeline despacha por `kind` sin volver a inspeccionar nada.

Nota:
- Estos modelos describen *qué* se instala, no *cómo* se descarga.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

LATEST = "latest"


class VersionManifest(BaseModel):
    """Contenido de `{base}/versions.json`."""

    model_config = ConfigDict(extra="ignore")

    versions: list[str] = Field(
        default_factory=list,
        description="Versiones publicadas, en el orden del manifest.",
    )
    latest: str = Field(
        default="",
        description="Versión marcada como más reciente.",
    )


class TreeEntry(BaseModel):
    """Una entrada de un listado de directorio de la API de árbol."""

    model_config = ConfigDict(extra="ignore")

    name: str = Field(..., description="Nombre del fichero o directorio (sin path).")
    type: Literal["file", "dir"] | str = Field(..., description="'file', 'dir' u otro tipo (symlink, submodule).")
    url: str | None = Field(default=None, description="URL del listado propio (para directorios).")


class LocalCacheSource(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["local_cache"] = "local_cache"
    path: Path = Field(..., description="Ruta al bundle pre-descargado.")


class RemoteArchiveSource(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["remote_archive"] = "remote_archive"
    url: str = Field(..., description="URL del archivo comprimido de la versión.")


class RemoteTreeSource(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["remote_tree"] = "remote_tree"
    api_root: str = Field(..., description="URL del listado raíz.")
    raw_root: str = Field(..., description="Base para el contenido crudo de cada fichero.")
    ref: str = Field(..., min_length=1, description="Rama o tag a materializar.")


SourceDescriptor = Annotated[
    Union[LocalCacheSource, RemoteArchiveSource, RemoteTreeSource],
    Field(discriminator="kind"),
]


class InstallResult(BaseModel):
    """Resultado de una instalación completa."""

    project_name: str = Field(..., min_length=1)
    version: str = Field(..., min_length=1)
    target_dir: Path
    source_kind: str = Field(..., description="`kind` del descriptor que sirvió la versión.")
    file_count: int = Field(..., ge=0)
