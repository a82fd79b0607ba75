"""Entry point de desarrollo (sin instalar el paquete).

Permite ejecutar la CLI con `python main.py ...` desde la raíz del repo.
Instalado, el script `simpl-install` apunta directamente a `cli.main:run`.
"""

from __future__ import annotations

import sys
from pathlib import Path


def main() -> None:
    src = Path(__file__).resolve().parent / "src"
    if str(src) not in sys.path:
        sys.path.insert(0, str(src))

    # Consolas Windows en cp1252 no pueden imprimir los emojis del panel final.
    if sys.platform == "win32":
        sys.stdout.reconfigure(encoding="utf-8")
        sys.stderr.reconfigure(encoding="utf-8")

    from cli.main import run  # noqa: PLC0415

    run()


if __name__ == "__main__":
    main()
