from __future__ import annotations

import os
from pathlib import Path


def count_files(directory: Path) -> int:
    """Cuenta recursivamente los ficheros (no directorios) bajo `directory`."""

    count = 0
    stack = [Path(directory)]
    while stack:
        current = stack.pop()
        with os.scandir(current) as entries:
            for entry in entries:
                if entry.is_dir(follow_symlinks=False):
                    stack.append(Path(entry.path))
                else:
                    count += 1
    return count
