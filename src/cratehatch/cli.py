"""
cratehatch.cli - Command Line Interface
=======================================

This module provides the command-line interface for cratehatch using Typer.

Architecture
------------
The CLI is a thin layer over the library; it picks a template source,
prepares the destination and hands over to the generator:

    app (main entry point)
    ├── new          - Generate from a bookmark in settings.toml
    ├── git          - Generate from a git repository
    ├── local        - Generate from a local directory
    ├── list         - Show the configured bookmarks
    ├── completions  - Print a shell completion script
    └── init         - Turn a directory into a template (not implemented)

The generating commands share the ``--yes`` flag, which answers every
question with its default instead of prompting, so they can run in scripts.

Usage Examples
--------------
    $ cratehatch new axum my-service
    $ cratehatch git https://github.com/owner/templates my-lib --folder lib
    $ cratehatch local ../templates/cli my-tool --yes
    $ cratehatch completions zsh > ~/.zfunc/_cratehatch

See Also
--------
- generator.py: The generation pipeline
- fetch.py: Locating template sources
- settings.py: Bookmarks and the configuration directory
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from typing import Annotated

import questionary
import typer
from rich import print as rprint
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from typer.completion import get_completion_script

from cratehatch import __version__
from cratehatch.errors import GenerationCancelled, HatchError
from cratehatch.fetch import fetch_git_template, resolve_bookmark, resolve_local_template
from cratehatch.generator import generate_project
from cratehatch.models import DefaultSetting
from cratehatch.resolver import DefaultsPrompter
from cratehatch.settings import (
    APP_NAME,
    GLOBAL_SETTINGS_FILE,
    config_dir,
    find_bookmark,
    load_global_settings,
)


# =============================================================================
# CLI Application Setup
# =============================================================================

app = typer.Typer(
    name=APP_NAME,
    help="Generate new Rust crates from templates.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=True,
)

# Console for rich output
console = Console()

COMPLETE_VAR = "_CRATEHATCH_COMPLETE"


class Shell(str, Enum):
    """Shells a completion script can be printed for."""

    BASH = "bash"
    ZSH = "zsh"
    FISH = "fish"
    POWERSHELL = "powershell"


# =============================================================================
# Version Callback
# =============================================================================

def version_callback(value: bool) -> None:
    """
    Display version information and exit.

    Parameters
    ----------
    value : bool
        True if --version was passed.
    """
    if value:
        console.print(Panel(
            f"[bold green]cratehatch[/] version [cyan]{__version__}[/]\n\n"
            f"[dim]Project generator for Rust crates[/]",
            border_style="green",
        ))
        raise typer.Exit()


# =============================================================================
# Helpers
# =============================================================================

def setup_logging(verbose: bool = False) -> None:
    """Route the package's log records through a rich handler on stderr."""
    logger = logging.getLogger("cratehatch")
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)

    if any(isinstance(handler, RichHandler) for handler in logger.handlers):
        return

    handler = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=False,
        markup=False,
    )
    logger.addHandler(handler)


def target_directory(name: str | None) -> Path:
    """The directory to generate into: ``./name``, or the working directory."""
    cwd = Path.cwd()
    return cwd / name if name else cwd


def confirm_destination(destination: Path, yes: bool) -> None:
    """
    Ask before generating into a directory that already has content.

    Existing files are overwritten when they collide with generated ones;
    everything else in the directory is left alone.
    """
    if not destination.is_dir() or not any(destination.iterdir()):
        return
    if yes:
        return

    answer = questionary.confirm(
        f"Target directory {destination} is not empty. Generate into it anyway?",
        default=False,
    ).ask()
    if not answer:
        raise typer.Abort()


def run_generation(
    source: Path,
    name: str | None,
    *,
    yes: bool,
    verbose: bool,
    defaults: Mapping[str, DefaultSetting] | None = None,
) -> None:
    """Generate into the target directory and report the outcome."""
    destination = target_directory(name)
    confirm_destination(destination, yes)

    result = generate_project(
        source,
        destination,
        prompter=DefaultsPrompter() if yes else None,
        defaults=defaults,
        verbose=verbose,
    )

    for warning in result.warnings:
        rprint(f"[yellow]Warning:[/] {warning}")
    if not verbose:
        console.print(
            f"[bold green]done![/] Generated [cyan]{result.project_name}[/] "
            f"with {len(result.files_created)} file(s)"
        )


def _fail(error: HatchError) -> typer.Exit:
    rprint(f"[red]Error:[/] {error}")
    return typer.Exit(1)


# Options shared by the generating commands
YesOption = Annotated[
    bool,
    typer.Option("--yes", "-y", help="Don't prompt, use default values"),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Show progress and debug output"),
]
NameArgument = Annotated[
    str | None,
    typer.Argument(help="Directory to create; defaults to the current directory"),
]


# =============================================================================
# Main Application Callback
# =============================================================================

@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """
    [bold]cratehatch[/] - Generate new Rust crates from templates.

    [bold]Quick Start:[/]

        cratehatch git https://github.com/owner/templates my-crate --folder lib
    """


# =============================================================================
# Generating Commands
# =============================================================================

@app.command()
def new(
    bookmark: Annotated[str, typer.Argument(help="Name of a bookmark from settings.toml")],
    name: NameArgument = None,
    yes: YesOption = False,
    verbose: VerboseOption = False,
) -> None:
    """
    Create a new project from a bookmark.

    Bookmarks are configured in [cyan]settings.toml[/] in the configuration
    directory and may carry default values for the template's arguments.
    """
    setup_logging(verbose)
    try:
        settings = load_global_settings()
        entry = find_bookmark(settings, bookmark)
        source = resolve_bookmark(entry, settings)
        run_generation(source, name, yes=yes, verbose=verbose, defaults=entry.defaults)
    except GenerationCancelled:
        raise typer.Abort() from None
    except HatchError as e:
        raise _fail(e) from None


@app.command()
def git(
    url: Annotated[str, typer.Argument(help="Git URL of the template repository")],
    name: NameArgument = None,
    folder: Annotated[
        str | None,
        typer.Option("--folder", "-f", help="Sub-folder of the repository holding the template"),
    ] = None,
    yes: YesOption = False,
    verbose: VerboseOption = False,
) -> None:
    """
    Create a new project from a template in a git repository.

    The repository is cloned into the cache directory, or updated if it was
    cloned before.
    """
    setup_logging(verbose)
    try:
        settings = load_global_settings()
        source = fetch_git_template(url, folder=folder, ssh_key=settings.git.ssh_key)
        run_generation(source, name, yes=yes, verbose=verbose)
    except GenerationCancelled:
        raise typer.Abort() from None
    except HatchError as e:
        raise _fail(e) from None


@app.command()
def local(
    path: Annotated[Path, typer.Argument(help="Directory containing the template")],
    name: NameArgument = None,
    yes: YesOption = False,
    verbose: VerboseOption = False,
) -> None:
    """Create a new project from a template on the local file system."""
    setup_logging(verbose)
    try:
        source = resolve_local_template(path)
        run_generation(source, name, yes=yes, verbose=verbose)
    except GenerationCancelled:
        raise typer.Abort() from None
    except HatchError as e:
        raise _fail(e) from None


# =============================================================================
# Other Commands
# =============================================================================

@app.command("list")
def list_bookmarks() -> None:
    """List all configured bookmarks."""
    setup_logging()
    try:
        settings = load_global_settings()
    except HatchError as e:
        raise _fail(e) from None

    if not settings.bookmarks:
        console.print(f"[dim]No bookmarks configured in {config_dir() / GLOBAL_SETTINGS_FILE}[/]")
        return

    width = max(len(bookmark) for bookmark in settings.bookmarks)
    for bookmark, info in settings.bookmarks.items():
        console.print(
            f"{bookmark:{width}} - {info.description or ''}",
            markup=False,
            highlight=False,
        )


@app.command()
def completions(
    shell: Annotated[Shell, typer.Argument(help="Shell to generate the script for")],
) -> None:
    """
    Print a shell completion script to stdout.

    [bold]Example:[/]

        cratehatch completions bash >> ~/.bashrc
    """
    script = get_completion_script(
        prog_name=APP_NAME,
        complete_var=COMPLETE_VAR,
        shell=shell.value,
    )
    typer.echo(script)


@app.command()
def init(
    name: Annotated[
        str | None,
        typer.Argument(help="Directory to turn into a template"),
    ] = None,
) -> None:
    """Initialize a new template (not implemented yet)."""
    target = target_directory(name)
    rprint(f"[yellow]init is not implemented yet[/] (target: {target})")
    raise typer.Exit(1)
