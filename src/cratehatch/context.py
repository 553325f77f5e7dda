"""
cratehatch.context - Render Context Construction
================================================

The render context is the complete set of variables a template sees. It is
assembled once per run, after every argument has been resolved, and is
read-only from then on. Besides the template's own arguments it always
contains:

    project_name   name of the generated project
    crate_type     "bin" or "lib"
    crate_bin      crate_type == "bin"
    crate_lib      crate_type == "lib"
    git_name       user.name from the git configuration (may be empty)
    git_email      user.email from the git configuration (may be empty)
    git_author     "git_name <git_email>"
"""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType

from cratehatch.errors import ConfigurationError
from cratehatch.models import (
    FIXED_VARIABLES,
    CrateType,
    ListArgument,
    ResolvedValue,
    TemplateConfig,
)
from cratehatch.resolver import PromptProvider


logger = logging.getLogger(__name__)

CRATE_TYPE_PROMPT = "what crate type would you like to create?"


# =============================================================================
# Render Context
# =============================================================================

class RenderContext(Mapping[str, ResolvedValue]):
    """
    Immutable, ordered mapping of template variables.

    Examples
    --------
    >>> ctx = RenderContext({"project_name": "demo"})
    >>> ctx["project_name"]
    'demo'
    >>> ctx["project_name"] = "other"
    Traceback (most recent call last):
    TypeError: 'RenderContext' object does not support item assignment
    """

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[str, ResolvedValue]) -> None:
        self._values = MappingProxyType(dict(values))

    def __getitem__(self, key: str) -> ResolvedValue:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"RenderContext({dict(self._values)!r})"


# =============================================================================
# Fixed Variables
# =============================================================================

@dataclass(frozen=True)
class GitIdentity:
    """Name and email from the user's git configuration."""

    name: str = ""
    email: str = ""

    @property
    def author(self) -> str:
        return f"{self.name} <{self.email}>"


def _git_config(key: str) -> str:
    result = subprocess.run(
        ["git", "config", "--get", key],
        check=False,
        capture_output=True,
        text=True,
    )
    if result.returncode == 0:
        return result.stdout.strip()
    return ""


def read_git_identity() -> GitIdentity:
    """
    Read ``user.name`` and ``user.email`` from git.

    Missing values, or git not being installed at all, are tolerated and
    yield empty strings.
    """
    try:
        identity = GitIdentity(name=_git_config("user.name"), email=_git_config("user.email"))
    except OSError:
        logger.debug("git is not available, using an empty identity")
        return GitIdentity()

    if not identity.name or not identity.email:
        logger.debug("git identity is incomplete: %r", identity)
    return identity


def derive_project_name(destination: Path, name: str | None = None) -> str:
    """
    Determine the project name.

    Parameters
    ----------
    destination : Path
        Directory the project is generated into.

    name : str | None
        Explicit name; takes precedence when not empty.

    Returns
    -------
    str
        The explicit name, else the final segment of ``destination``.

    Raises
    ------
    ConfigurationError
        If neither yields a non-empty name (e.g. the destination is ``/``).
    """
    project_name = (name or destination.resolve().name).strip()
    if not project_name:
        msg = f"can't derive a project name from `{destination}`"
        raise ConfigurationError(msg)
    return project_name


def resolve_crate_type(config: TemplateConfig, prompter: PromptProvider) -> CrateType:
    """Use the template's fixed crate type or ask for one."""
    if config.crate_type is not None:
        return config.crate_type

    spec = ListArgument(
        name="crate_type",
        type="list",
        description=CRATE_TYPE_PROMPT,
        values=(CrateType.BIN.value, CrateType.LIB.value),
    )
    return CrateType(spec.check(prompter.prompt(spec)))


def fixed_variables(
    project_name: str,
    crate_type: CrateType,
    identity: GitIdentity,
) -> dict[str, ResolvedValue]:
    """Build the built-in variables, in their canonical order."""
    return {
        "project_name": project_name,
        "crate_type": crate_type.value,
        "crate_bin": crate_type is CrateType.BIN,
        "crate_lib": crate_type is CrateType.LIB,
        "git_author": identity.author,
        "git_name": identity.name,
        "git_email": identity.email,
    }


def build_context(
    fixed: Mapping[str, ResolvedValue],
    arguments: Mapping[str, ResolvedValue],
) -> RenderContext:
    """
    Merge fixed variables and resolved arguments into the final context.

    Raises
    ------
    ConfigurationError
        If an argument shadows a fixed variable.
    """
    for name in arguments:
        if name in FIXED_VARIABLES:
            msg = "name collides with a built-in template variable"
            raise ConfigurationError(msg, argument=name)
    return RenderContext({**fixed, **arguments})
