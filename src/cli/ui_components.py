"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Permite reutilizar paneles/tablas entre la instalación y el listado de versiones.
"""

from __future__ import annotations

from rich.align import Align
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.errors import InstallerError
from core.domain.models import LocalCacheSource, RemoteArchiveSource, RemoteTreeSource, SourceDescriptor, VersionManifest


def print_banner(console: Console, title: str = "Simpl Installer", subtitle: str | None = None) -> None:
    """Imprime el banner de cabecera."""

    body = Text(title, style="bold cyan")
    if subtitle:
        body = Text.assemble(body, "\n", Text(subtitle, style="dim"))
    console.print(Panel(Align.center(body, vertical="middle"), border_style="cyan", padding=(0, 4)))


def build_versions_table(manifest: VersionManifest) -> Table:
    table = Table(title="Available Versions")
    table.add_column("Version", style="cyan", no_wrap=True)
    table.add_column("", style="green")
    for version in manifest.versions:
        table.add_row(version, "latest" if version == manifest.latest else "")
    return table


def describe_source(descriptor: SourceDescriptor) -> str:
    if isinstance(descriptor, LocalCacheSource):
        return f"local cache ({descriptor.path})"
    if isinstance(descriptor, RemoteArchiveSource):
        return f"archive endpoint ({descriptor.url})"
    if isinstance(descriptor, RemoteTreeSource):
        return f"tree API ({descriptor.api_root} @ {descriptor.ref})"
    return str(descriptor)


def print_error(console: Console, error: InstallerError | str, *, prefix: str = "") -> None:
    """Línea de error con el hint (si lo hay) debajo, atenuado."""

    message = error if isinstance(error, str) else error.message
    console.print(f"  [red]✗[/red] [red]{escape(prefix + message)}[/red]")
    hint = None if isinstance(error, str) else error.hint
    if hint:
        console.print(f"  [dim]{escape(hint)}[/dim]")


def build_getting_started_panel(project_name: str, file_count: int) -> Panel:
    """Panel final: resumen y siguientes pasos (incluye el instalador de add-ons)."""

    body = Text()
    body.append("✓ ", style="green")
    body.append("Downloaded ")
    body.append(str(file_count), style="bold")
    body.append(" file" + ("" if file_count == 1 else "s") + "\n\n")

    body.append("Getting started:\n", style="bold blue")
    steps = [
        f"Navigate to the project directory with `cd {project_name}`",
        "Install dependencies with `composer install && npm install`",
        "Set up a virtual host pointing to the `public` directory",
        "Start developing with `npm run dev`",
    ]
    for index, step in enumerate(steps, start=1):
        body.append(f"  {index}. ", style="dim")
        body.append(step + "\n")

    body.append("\nInstall add-ons:\n", style="bold blue")
    body.append("  npx @ijuantm/simpl-addon <name>\n", style="dim")
    body.append("  npx @ijuantm/simpl-addon --list", style="dim")

    return Panel(body, title=Text("Installation complete!", style="bold green"), border_style="green")
