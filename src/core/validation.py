"""Validación del nombre de proyecto.

Las reglas se evalúan en orden y gana el primer fallo; el chequeo de
sistema de ficheros va al final para que los nombres vacíos o inválidos no
toquen el disco.
"""

from __future__ import annotations

import re
from pathlib import Path

from core.domain.errors import (
    DirectoryExistsError,
    EmptyNameError,
    InvalidCharactersError,
    NameValidationError,
)

_NAME_PATTERN = re.compile(r"[A-Za-z0-9_-]+")


def validate_project_name(name: str | None, *, base_dir: Path | None = None) -> NameValidationError | None:
    """Devuelve el error del primer criterio que falla, o `None` si el nombre es válido."""

    if not name:
        return EmptyNameError(name)
    if not _NAME_PATTERN.fullmatch(name):
        return InvalidCharactersError(name)
    target = (base_dir or Path.cwd()) / name
    if target.exists() or target.is_symlink():
        return DirectoryExistsError(name)
    return None
