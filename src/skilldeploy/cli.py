"""
Command line front end for the installer.
"""

from __future__ import annotations

import logging
from pathlib import Path

import click
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from skilldeploy import __version__
from skilldeploy.adapters import available_adapters
from skilldeploy.config import Settings, get_settings
from skilldeploy.exceptions import SkillDeployError
from skilldeploy.installer import InstallOptions, install, uninstall
from skilldeploy.types import FileScope

console = Console()
err_console = Console(stderr=True)


def _load_settings() -> Settings:
    try:
        return get_settings()
    except ValidationError as exc:
        problems = "; ".join(error["msg"] for error in exc.errors())
        raise click.UsageError(f"Invalid environment: {problems}") from exc


def _configure_logging(verbose: bool, settings: Settings) -> None:
    level = logging.DEBUG if verbose else settings.log_level
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@click.command()
@click.version_option(version=__version__)
@click.option("--codex", is_flag=True, help="Target Codex.")
@click.option("--claude", is_flag=True, help="Target Claude Code.")
@click.option("--all", "all_adapters", is_flag=True, help="Target every supported tool.")
@click.option("-g", "--global", "global_", is_flag=True, help="Install into the user config directory.")
@click.option("-l", "--local", is_flag=True, help="Install into the current project.")
@click.option(
    "-c",
    "--config-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Override the global config directory.",
)
@click.option("-u", "--uninstall", "remove", is_flag=True, help="Remove a previous install.")
@click.option("--only", multiple=True, help="Limit to these identifiers (repeatable).")
@click.option("-v", "--verbose", is_flag=True, help="Log every file touched.")
@click.pass_context
def cli(
    ctx: click.Context,
    codex: bool,
    claude: bool,
    all_adapters: bool,
    global_: bool,
    local: bool,
    config_dir: Path | None,
    remove: bool,
    only: tuple[str, ...],
    verbose: bool,
):
    """Install or remove the gsd skills and workflows for an AI coding tool."""
    settings = _load_settings()
    _configure_logging(verbose, settings)

    if all_adapters:
        adapters = available_adapters()
    else:
        adapters = [name for name, chosen in (("codex", codex), ("claude", claude)) if chosen]
    if not adapters:
        raise click.UsageError("Choose a target: --codex, --claude or --all")
    if global_ == local:
        raise click.UsageError("Choose exactly one of --global or --local")
    if local and config_dir is not None:
        raise click.UsageError("--config-dir only applies to --global installs")

    scope = FileScope.GLOBAL if global_ else FileScope.LOCAL
    options = InstallOptions(config_dir=config_dir, only=list(only) or None)

    try:
        for name in adapters:
            if remove:
                removed = uninstall(name, scope, options, settings)
                console.print(
                    f"[green]✓[/green] Removed {removed.files_removed} files for "
                    f"[bold]{name}[/bold] ({scope.value})"
                )
                for path in removed.missing:
                    console.print(f"  [yellow]already gone:[/yellow] {escape(str(path))}")
            else:
                installed = install(name, scope, options, settings)
                console.print(
                    f"[green]✓[/green] Installed {installed.files_written} files for "
                    f"[bold]{name}[/bold] ({scope.value})"
                )
                console.print(f"  [dim]manifest:[/dim] {escape(str(installed.manifest_path))}")
                for path in installed.backed_up:
                    console.print(f"  [yellow]backed up local changes:[/yellow] {escape(str(path))}")
    except SkillDeployError as exc:
        err_console.print(f"[red]Error:[/red] {escape(str(exc))}")
        ctx.exit(1)


def main() -> None:
    cli()
