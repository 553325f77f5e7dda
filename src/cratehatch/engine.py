"""
cratehatch.engine - Template Engine
===================================

The generation pipeline only ever needs one capability from a template
language: render a template string against the context and either return
text or fail with a message naming the faulting expression. That capability
is the ``TemplateEngine`` protocol; ``JinjaEngine`` implements it with
Jinja2, and tests are free to pass simpler stand-ins.

Jinja2 Setup
------------
- ``StrictUndefined``: referencing an unknown variable is an error instead
  of silently rendering an empty string
- Booleans render as ``true``/``false`` so conditions and generated TOML or
  Rust code read naturally
- Includes and imports are resolved relative to the template root, which
  lets templates share partials
- Extra filters: ``file_name`` (last path segment) and ``snake_case``
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path, PurePosixPath
from typing import Any, Protocol

import jinja2
from jinja2 import Environment, FileSystemLoader, StrictUndefined

from cratehatch.errors import TemplateError


class TemplateEngine(Protocol):
    """Anything that can render a template string against a context."""

    def render(self, source: str, context: Mapping[str, Any], *, name: str) -> str:
        """
        Render ``source`` and return the text.

        ``name`` identifies what is being rendered in error messages.
        Implementations raise ``TemplateError`` on failure.
        """
        ...


def _finalize(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


def _file_name(value: str) -> str:
    return PurePosixPath(value).name


def create_jinja_env(template_root: Path | None = None) -> Environment:
    """
    Create and configure the Jinja2 environment used for rendering.

    Parameters
    ----------
    template_root : Path | None
        Root of the template tree. When given, ``{% include %}`` and
        ``{% import %}`` look up files relative to it.

    Returns
    -------
    Environment
        Configured Jinja2 environment.

    Notes
    -----
    Autoescaping is disabled because the output is source code and
    configuration files, not HTML.
    """
    env = Environment(
        loader=FileSystemLoader(str(template_root)) if template_root else None,
        undefined=StrictUndefined,
        autoescape=False,
        trim_blocks=True,  # Remove first newline after block tags
        lstrip_blocks=True,  # Strip leading whitespace before block tags
        keep_trailing_newline=True,  # Preserve trailing newlines in templates
        finalize=_finalize,
    )

    env.filters["file_name"] = _file_name
    env.filters["snake_case"] = lambda s: s.replace("-", "_").lower()

    return env


def describe_jinja_error(error: jinja2.TemplateError) -> str:
    """Turn a Jinja2 exception into a short human readable cause."""
    if isinstance(error, jinja2.TemplateSyntaxError):
        return f"{error.message} (line {error.lineno})"
    if isinstance(error, jinja2.TemplateNotFound):
        return f"included template `{error.name}` not found"
    return error.message or type(error).__name__


class JinjaEngine:
    """
    ``TemplateEngine`` backed by Jinja2.

    Examples
    --------
    >>> engine = JinjaEngine()
    >>> engine.render("{{ crate_lib }}", {"crate_lib": True}, name="example")
    'true'
    """

    def __init__(self, template_root: Path | None = None) -> None:
        self.env = create_jinja_env(template_root)
        # Jinja2 normalizes line endings to ``newline_sequence``
        self.crlf_env = self.env.overlay(newline_sequence="\r\n")

    def render(self, source: str, context: Mapping[str, Any], *, name: str) -> str:
        env = self.crlf_env if "\r\n" in source else self.env
        try:
            return env.from_string(source).render(dict(context))
        except jinja2.TemplateError as e:
            raise TemplateError(name, describe_jinja_error(e)) from e
        except Exception as e:
            raise TemplateError(name, f"{type(e).__name__}: {e}") from e


def evaluate_condition(
    engine: TemplateEngine,
    condition: str,
    context: Mapping[str, Any],
    *,
    name: str,
) -> bool:
    """
    Render a condition and interpret the result as a boolean.

    Parameters
    ----------
    engine : TemplateEngine
        Engine used for rendering.

    condition : str
        Template string, e.g. ``{{ crate_lib }}``.

    context : Mapping[str, Any]
        Variables available to the condition.

    name : str
        Identifies the condition in error messages.

    Returns
    -------
    bool
        The literal ``true``/``false`` the condition rendered to.

    Raises
    ------
    TemplateError
        If rendering fails or the output (ignoring surrounding whitespace)
        is anything but ``true`` or ``false``.
    """
    result = engine.render(condition, context, name=name).strip()
    if result == "true":
        return True
    if result == "false":
        return False
    msg = f"condition must render to `true` or `false`, got `{result}`"
    raise TemplateError(name, msg)
