"""Configuración del Core.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- Permite que adaptadores (HTTP/cache/árbol remoto) lean config de forma consistente.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_user_config_dir() -> Path:
    """Directorio de configuración por usuario (cross-platform, sin dependencias)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "simpl-install"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "simpl-install"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "simpl-install"
    return Path.home() / ".config" / "simpl-install"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


class AppSettings(BaseSettings):
    """Configuración central del instalador.

    Se construye una vez al arrancar y se pasa explícitamente al orquestador;
    ningún módulo lee variables de entorno por su cuenta.
    """

    model_config = SettingsConfigDict(
        env_prefix="SIMPL_",
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
        # Orden: proyecto primero (dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    archive_base_url: str = Field(
        default="https://cdn.simpl.iwanvanderwal.nl/framework",
        min_length=8,
        description="Base del endpoint de archivos (versions.json + <version>/src.zip).",
    )
    source: Literal["archive", "tree"] = Field(
        default="archive",
        description="Estrategia de red: endpoint de archivos o API de árbol remoto (excluyentes).",
    )
    cache_dir: Path = Field(
        default=Path("releases"),
        description="Cache local de releases (<cache_dir>/<version>/src.zip). Relativo al cwd.",
    )

    tree_api_base: str = Field(
        default="https://api.github.com",
        min_length=8,
        description="Base de la API de listados de directorio.",
    )
    tree_raw_base: str = Field(
        default="https://raw.githubusercontent.com",
        min_length=8,
        description="Base para contenido crudo de ficheros.",
    )
    tree_repo: str = Field(
        default="IjuanTM/simpl",
        min_length=3,
        description="Repositorio <owner>/<name> servido por la API de árbol.",
    )
    tree_path: str = Field(
        default="",
        description="Subdirectorio del repositorio a materializar (vacío = raíz).",
    )
    tree_default_ref: str = Field(
        default="main",
        min_length=1,
        description="Ref usada cuando se pide la versión 'latest'.",
    )
    github_token: str | None = Field(
        default=None,
        validation_alias=AliasChoices("SIMPL_GITHUB_TOKEN", "GH_TOKEN", "GITHUB_TOKEN"),
        description="Bearer token opcional para subir el rate limit de la API de árbol.",
    )

    user_agent: str = Field(
        default="simpl-install/1.0",
        min_length=1,
        description="User-Agent de todas las peticiones.",
    )
    http_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Timeout por request (segundos). None = sin límite.",
    )
    probe_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Timeout del sondeo de disponibilidad del endpoint.",
    )
    max_redirects: int = Field(
        default=10,
        ge=0,
        le=50,
        description="Saltos 301/302 máximos antes de abortar.",
    )
    download_chunk_size: int = Field(
        default=64 * 1024,
        ge=1024,
        description="Tamaño de bloque al volcar descargas a disco.",
    )

    remove_partial_on_failure: bool = Field(
        default=False,
        description="Borrar el directorio del proyecto si la materialización falla a medias.",
    )
    log_level: str = Field(
        default="ERROR",
        min_length=1,
        description="Nivel de log de loguru para la CLI.",
    )

    def resolve_cache_dir(self, base_dir: Path | None = None) -> Path:
        if self.cache_dir.is_absolute():
            return self.cache_dir
        return (base_dir or Path.cwd()) / self.cache_dir

    def tree_api_root(self) -> str:
        root = f"{self.tree_api_base.rstrip('/')}/repos/{self.tree_repo}/contents"
        path = self.tree_path.strip("/")
        return f"{root}/{path}" if path else root

    def tree_raw_root(self, ref: str) -> str:
        root = f"{self.tree_raw_base.rstrip('/')}/{self.tree_repo}/{ref}"
        path = self.tree_path.strip("/")
        return f"{root}/{path}" if path else root
