"""Contrato del transporte HTTP.

Por qué Protocol:
- El resolver y los materializadores dependen de esta forma, no de httpx.
- Permite sustituir el transporte real por uno falso en tests.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Transport(Protocol):
    """Contrato mínimo de descarga.

    Reglas de diseño:
    - Todo es asíncrono: la única suspensión del pipeline es I/O.
    - Los fallos se elevan como `InstallerError` ya clasificados, salvo `probe`,
      que nunca lanza.
    """

    async def fetch_text(self, url: str, *, authenticated: bool = False) -> str:
        ...

    async def fetch_json(self, url: str, *, authenticated: bool = False) -> Any:
        ...

    async def fetch_to_file(self, url: str, dest: Path, *, authenticated: bool = False) -> Path:
        ...

    async def probe(self, url: str, timeout: float | None = None, *, authenticated: bool = False) -> bool:
        ...
