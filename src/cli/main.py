"""simpl-install CLI entry point."""

from __future__ import annotations

import asyncio
import sys
from typing import Optional

import typer
from loguru import logger
from rich.console import Console
from rich.markup import escape

from cli.ui_components import (
    build_getting_started_panel,
    build_versions_table,
    describe_source,
    print_banner,
    print_error,
)
from core.config import AppSettings
from core.domain.errors import InstallerError, NameValidationError, TransportError
from core.domain.models import LATEST, SourceDescriptor
from core.services.installer import (
    InstallHooks,
    InstallRequest,
    InstallState,
    install,
    list_versions,
    obtain_project_name,
)

app = typer.Typer(
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
    help="Bootstrap a new Simpl project in a fresh directory.",
)

_console = Console()

_LOG_FORMAT = "<dim>{time:HH:mm:ss}</dim> <level>{level: <8}</level> {name}: {message}"


def configure_logging(level: str) -> None:
    """Replace loguru's default sink with a stderr sink at `level`."""

    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format=_LOG_FORMAT)


def _show_versions(settings: AppSettings) -> None:
    print_banner(_console, "Available Versions")
    _console.print("  📦 Fetching available versions...")
    try:
        manifest = asyncio.run(list_versions(settings=settings))
    except InstallerError as exc:
        print_error(_console, exc, prefix="Failed to fetch versions: ")
        raise typer.Exit(code=1)

    if not manifest.versions:
        _console.print("  [yellow]⚠[/yellow] No versions available")
        return
    _console.print(build_versions_table(manifest))


def _prompt_name() -> str:
    return typer.prompt("  Project name", default="", show_default=False)


def _report_invalid(error: NameValidationError) -> None:
    print_error(_console, error)


@app.command()
def install_command(
    project_name: Optional[str] = typer.Argument(None, help="Name of the project directory (prompted when omitted)."),
    version: str = typer.Argument(LATEST, help="Simpl version to install."),
    show_versions: bool = typer.Option(False, "--list-versions", "-lv", help="List all available versions."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log requests and pipeline steps to stderr."),
) -> None:
    """Download a Simpl release and materialize it into PROJECT_NAME."""

    settings = AppSettings()
    configure_logging("DEBUG" if verbose else settings.log_level)

    if show_versions:
        _show_versions(settings)
        return

    if project_name is None:
        print_banner(_console)
        name = obtain_project_name(None, prompt=_prompt_name, on_invalid=_report_invalid)
    else:
        try:
            name = obtain_project_name(project_name)
        except NameValidationError as exc:
            print_error(_console, exc)
            raise typer.Exit(code=1)

    print_banner(_console, f"Installing: {name}", subtitle=version)

    def on_state(state: InstallState) -> None:
        if state is InstallState.MATERIALIZING:
            _console.print("  📦 Downloading files...")

    def on_source(descriptor: SourceDescriptor) -> None:
        _console.print(f"  [dim]Source: {escape(describe_source(descriptor))}[/dim]")

    hooks = InstallHooks(state_changed=on_state, source_selected=on_source)
    try:
        result = asyncio.run(install(settings=settings, request=InstallRequest(name, version), hooks=hooks))
    except InstallerError as exc:
        print_error(_console, exc, prefix="Installation failed: ")
        if isinstance(exc, TransportError):
            _console.print(f'  [dim]Make sure version "{version}" exists on the CDN[/dim]')
        raise typer.Exit(code=1)

    _console.print(build_getting_started_panel(result.project_name, result.file_count))


def run() -> None:
    app()


if __name__ == "__main__":
    run()
