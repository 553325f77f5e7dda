"""
cratehatch.generator - Project Generation Pipeline
==================================================

This module sequences a full generation run for a template that is already
available on the local disk (see ``cratehatch.fetch`` for getting it there).

Architecture
------------
The generator follows a strict pipeline; every step needs the full result
of the previous one:

    1. Load and validate ``.hatch.toml`` and ``.hatchignore``
    2. Validate bookmark defaults against the argument schema
    3. Derive the project name and read the git identity
    4. Resolve the crate type and all arguments (the only interactive step)
    5. Freeze the render context
    6. Render the template tree into the destination

Configuration problems surface in steps 1-3, before the first prompt.
Cancelling a prompt in step 4 happens before anything is written. Errors in
step 6 abort immediately and leave already written files in place.

Usage Example
-------------
>>> from cratehatch.generator import generate_project
>>> from cratehatch.resolver import DefaultsPrompter
>>> result = generate_project(
...     Path("templates/axum"),
...     Path("my-service"),
...     prompter=DefaultsPrompter(),
... )
>>> result.files_created[0]
PosixPath('my-service/Cargo.toml')
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from rich.console import Console
from rich.panel import Panel

from cratehatch.context import (
    RenderContext,
    build_context,
    derive_project_name,
    fixed_variables,
    read_git_identity,
    resolve_crate_type,
)
from cratehatch.engine import JinjaEngine, TemplateEngine
from cratehatch.errors import ConfigurationError
from cratehatch.ignore import IgnoreEvaluator
from cratehatch.models import DefaultSetting
from cratehatch.prompts import QuestionaryPrompter
from cratehatch.renderer import TreeRenderer
from cratehatch.resolver import ArgumentResolver, PromptProvider
from cratehatch.settings import load_ignore_patterns, load_template_config


logger = logging.getLogger(__name__)

# Console for rich output
console = Console()


# =============================================================================
# Result Data Classes
# =============================================================================

@dataclass
class GenerationResult:
    """
    Outcome of a successful generation run.

    Attributes
    ----------
    project_name : str
        Name the project was generated with.

    project_path : Path
        Destination directory.

    context : RenderContext
        The context every template was rendered with.

    files_created : list[Path]
        Files written to the destination (rendered and copied).

    skipped : list[str]
        Template paths that were left out.

    warnings : list[str]
        Non-fatal issues, e.g. an unset git identity.
    """

    project_name: str
    project_path: Path
    context: RenderContext
    files_created: list[Path] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


# =============================================================================
# Pipeline
# =============================================================================

def generate_project(
    source: Path,
    destination: Path,
    *,
    name: str | None = None,
    prompter: PromptProvider | None = None,
    defaults: Mapping[str, DefaultSetting] | None = None,
    engine: TemplateEngine | None = None,
    verbose: bool = False,
) -> GenerationResult:
    """
    Generate a project from a local template directory.

    Parameters
    ----------
    source : Path
        Root of the template tree (contains ``.hatch.toml``).

    destination : Path
        Output directory. Created if absent; colliding files are
        overwritten.

    name : str | None
        Project name; defaults to the final segment of ``destination``.

    prompter : PromptProvider | None
        Source of argument values. Defaults to interactive prompts.

    defaults : Mapping[str, DefaultSetting] | None
        Bookmark defaults for template arguments.

    engine : TemplateEngine | None
        Template engine. Defaults to Jinja2 with includes resolved from
        ``source``.

    verbose : bool, default=False
        If True, display progress information to the console.

    Returns
    -------
    GenerationResult
        Summary of the run.

    Raises
    ------
    ConfigurationError
        If the template, the defaults or the destination are unusable.
    GenerationCancelled
        If the user aborts a prompt.
    TemplateError
        If a condition, path or content fails to render.
    FilesystemError
        If reading the template or writing the output fails.
    """
    config = load_template_config(source)
    static_patterns = load_ignore_patterns(source)
    resolver = ArgumentResolver(config.arguments, defaults)

    if destination.exists() and not destination.is_dir():
        msg = f"target `{destination}` exists and is not a directory"
        raise ConfigurationError(msg)

    project_name = derive_project_name(destination, name)
    engine = engine or JinjaEngine(source)
    prompter = prompter or QuestionaryPrompter()
    warnings: list[str] = []

    identity = read_git_identity()
    if not identity.name and not identity.email:
        warnings.append("git user.name and user.email are not set; git_author is empty")

    if verbose:
        console.print()
        console.print(
            Panel(
                f"[bold blue]Creating project:[/] [green]{project_name}[/]\n"
                f"[dim]Template: {source}[/]",
                title="[bold]cratehatch[/]",
                border_style="blue",
            )
        )
        console.print()

    # Step 1: Resolve all values; nothing is written before this completes
    crate_type = resolve_crate_type(config, prompter)
    fixed = fixed_variables(project_name, crate_type, identity)
    values = resolver.resolve(prompter, engine, fixed)
    context = build_context(fixed, values)
    logger.debug("Render context: %r", context)

    # Step 2: Render the tree
    if verbose:
        console.print()
        console.print("[bold]Rendering templates...[/]")

    evaluator = IgnoreEvaluator(context, config.ignore, engine, static_patterns)
    report = TreeRenderer(source, destination, context, evaluator, engine).render()

    if verbose:
        for path in report.files_written:
            console.print(f"  Created {path.relative_to(destination)}")
        console.print()
        console.print(
            Panel(
                f"[bold green]Project created successfully![/]\n\n"
                f"[dim]Location:[/] {destination}",
                title="[bold green]Success[/]",
                border_style="green",
            )
        )

    logger.info(
        "Generated %s: %d file(s) written, %d path(s) skipped",
        project_name, len(report.files_written), len(report.skipped),
    )

    return GenerationResult(
        project_name=project_name,
        project_path=destination,
        context=context,
        files_created=report.files_written,
        skipped=report.skipped,
        warnings=warnings,
    )
