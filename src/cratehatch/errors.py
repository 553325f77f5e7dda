"""
cratehatch.errors - Exception Hierarchy
=======================================

Every failure that can abort a generation run derives from ``HatchError``,
so callers (the CLI most of all) can report it with a single ``except``
clause. The subclasses mirror the stages of the pipeline:

    HatchError
    ├── ConfigurationError   - bad .hatch.toml, settings.toml or defaults
    ├── FetchError           - template source unreachable or invalid
    ├── TemplateError        - a path, content or condition failed to render
    ├── FilesystemError      - reading the template or writing the output
    ├── ValueValidationError - a user supplied value was rejected
    └── GenerationCancelled  - the user aborted a prompt

``ConfigurationError`` and ``FetchError`` are always raised before anything
is written to the destination directory.
"""

from __future__ import annotations

from pathlib import Path


class HatchError(Exception):
    """Base class for all errors raised by cratehatch."""


class ConfigurationError(HatchError):
    """
    The template or global configuration is malformed or inconsistent.

    Parameters
    ----------
    message : str
        Description of the problem.

    argument : str | None
        Name of the offending argument, if the problem belongs to one.
    """

    def __init__(self, message: str, *, argument: str | None = None) -> None:
        self.argument = argument
        if argument is not None:
            message = f"invalid argument `{argument}`: {message}"
        super().__init__(message)


class FetchError(HatchError):
    """The template source could not be fetched or located."""


class TemplateError(HatchError):
    """
    Rendering a template string failed.

    Parameters
    ----------
    target : str
        What was being rendered: a relative path, or a description such as
        ``condition of ignore rule #2``.

    cause : str
        Human readable reason, usually the message of the engine error.
    """

    def __init__(self, target: str, cause: str) -> None:
        self.target = target
        self.cause = cause
        super().__init__(f"failed to render `{target}`: {cause}")


class FilesystemError(HatchError):
    """
    Reading from the template tree or writing to the destination failed.

    Parameters
    ----------
    path : Path
        The file or directory the operation failed on.

    action : str
        Short verb phrase, e.g. ``read`` or ``write``.

    cause : OSError
        The underlying OS error.
    """

    def __init__(self, path: Path, action: str, cause: OSError) -> None:
        self.path = path
        self.action = action
        self.cause = cause
        reason = cause.strerror or str(cause)
        super().__init__(f"failed to {action} `{path}`: {reason}")


class ValueValidationError(HatchError, ValueError):
    """A value does not satisfy the constraints of its argument."""


class GenerationCancelled(HatchError):
    """The user cancelled an interactive prompt."""
