"""
cratehatch.settings - Loading Configuration Files
=================================================

Two TOML files drive cratehatch:

``.hatch.toml`` (inside every template)
    Declares the template arguments, the dynamic ignore rules and an
    optional fixed crate type::

        crate_type = "lib"

        [[ignore]]
        paths = ["src/main.rs"]
        condition = "{{ crate_lib }}"

        [license]
        type = "list"
        description = "License of the crate"
        values = ["MIT", "Apache-2.0"]
        default = "MIT"

    Every top-level table other than ``ignore`` is an argument, in the order
    the tables appear in the file.

``settings.toml`` (in the user configuration directory)
    Holds bookmarks and git options, see ``GlobalSettings``.

Both loaders turn every parsing or validation problem into a
``ConfigurationError`` so nothing is prompted or written for a broken
template.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import tomli
import typer
from pydantic import ValidationError

from cratehatch.errors import ConfigurationError
from cratehatch.models import (
    ARGUMENT_ADAPTER,
    FIXED_VARIABLES,
    ArgumentSpec,
    Bookmark,
    GlobalSettings,
    TemplateConfig,
)


logger = logging.getLogger(__name__)


# =============================================================================
# Well-Known Names
# =============================================================================

APP_NAME = "cratehatch"

# Marker file that turns a directory into a template.
MARKER_FILE = ".hatch.toml"

# Static gitignore-style patterns of a template.
IGNORE_FILE = ".hatchignore"

GLOBAL_SETTINGS_FILE = "settings.toml"

# Top-level keys of .hatch.toml that are not arguments.
RESERVED_KEYS = ("crate_type", "ignore")


# =============================================================================
# Directories
# =============================================================================

def config_dir() -> Path:
    """
    Directory holding ``settings.toml``.

    ``CRATEHATCH_CONFIG_DIR`` takes precedence over the platform default
    returned by ``typer.get_app_dir``.
    """
    override = os.environ.get("CRATEHATCH_CONFIG_DIR")
    if override:
        return Path(override)
    return Path(typer.get_app_dir(APP_NAME))


def cache_dir() -> Path:
    """Directory where remote templates are cloned."""
    override = os.environ.get("CRATEHATCH_CACHE_DIR")
    if override:
        return Path(override)
    base = os.environ.get("XDG_CACHE_HOME") or Path.home() / ".cache"
    return Path(base) / APP_NAME


# =============================================================================
# Helpers
# =============================================================================

def describe_validation_error(error: ValidationError) -> str:
    """
    Flatten a pydantic error into one line.

    Parameters
    ----------
    error : ValidationError
        The error raised while validating a model.

    Returns
    -------
    str
        ``location: message`` pairs joined with ``; ``.
    """
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"])
        message = item["msg"].removeprefix("Value error, ")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts)


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        with open(path, "rb") as f:
            return tomli.load(f)
    except FileNotFoundError:
        raise
    except OSError as e:
        msg = f"failed reading `{path}`: {e.strerror or e}"
        raise ConfigurationError(msg) from e
    except tomli.TOMLDecodeError as e:
        msg = f"`{path}` is not valid TOML: {e}"
        raise ConfigurationError(msg) from e


# =============================================================================
# Template Configuration
# =============================================================================

def parse_template_config(data: dict[str, Any]) -> TemplateConfig:
    """
    Build a ``TemplateConfig`` from the raw ``.hatch.toml`` table.

    Parameters
    ----------
    data : dict[str, Any]
        Parsed TOML document.

    Returns
    -------
    TemplateConfig
        Validated template configuration.

    Raises
    ------
    ConfigurationError
        If any argument, rule or the crate type is invalid, or an argument
        reuses the name of a fixed context variable.
    """
    arguments: list[ArgumentSpec] = []
    for name, table in data.items():
        if name in RESERVED_KEYS:
            continue
        if name in FIXED_VARIABLES:
            msg = "name collides with a built-in template variable"
            raise ConfigurationError(msg, argument=name)
        if not isinstance(table, dict):
            msg = "expected a table with at least `type` and `description`"
            raise ConfigurationError(msg, argument=name)
        try:
            arguments.append(ARGUMENT_ADAPTER.validate_python({**table, "name": name}))
        except ValidationError as e:
            raise ConfigurationError(describe_validation_error(e), argument=name) from None

    if "crate_type" in data and not isinstance(data["crate_type"], str):
        msg = "`crate_type` must be \"bin\" or \"lib\"; it cannot be used as an argument name"
        raise ConfigurationError(msg)

    try:
        return TemplateConfig(
            crate_type=data.get("crate_type"),
            ignore=data.get("ignore", ()),
            arguments=tuple(arguments),
        )
    except ValidationError as e:
        msg = f"invalid template configuration: {describe_validation_error(e)}"
        raise ConfigurationError(msg) from None


def load_template_config(template_root: Path) -> TemplateConfig:
    """
    Load and validate the marker file of a template.

    Parameters
    ----------
    template_root : Path
        Root directory of the template tree.

    Returns
    -------
    TemplateConfig
        The validated configuration.

    Raises
    ------
    ConfigurationError
        If the marker file is missing, unreadable or invalid.
    """
    path = template_root / MARKER_FILE
    try:
        data = _read_toml(path)
    except FileNotFoundError:
        msg = f"`{template_root}` is not a template: missing {MARKER_FILE}"
        raise ConfigurationError(msg) from None

    config = parse_template_config(data)
    logger.debug(
        "Loaded %s with %d argument(s) and %d ignore rule(s)",
        path, len(config.arguments), len(config.ignore),
    )
    return config


def load_ignore_patterns(template_root: Path) -> list[str]:
    """Read the lines of the template's ``.hatchignore``, if there is one."""
    path = template_root / IGNORE_FILE
    try:
        return path.read_text(encoding="utf-8").splitlines()
    except FileNotFoundError:
        return []
    except (OSError, UnicodeDecodeError) as e:
        msg = f"failed reading `{path}`: {e}"
        raise ConfigurationError(msg) from e


# =============================================================================
# Global Settings
# =============================================================================

def load_global_settings(path: Path | None = None) -> GlobalSettings:
    """
    Load the user's ``settings.toml``.

    A missing file is not an error; it simply means no bookmarks are
    configured yet.

    Parameters
    ----------
    path : Path | None
        Explicit location, defaults to ``config_dir() / "settings.toml"``.

    Returns
    -------
    GlobalSettings
        Validated settings.
    """
    path = path or config_dir() / GLOBAL_SETTINGS_FILE
    try:
        data = _read_toml(path)
    except FileNotFoundError:
        logger.debug("No global settings at %s", path)
        return GlobalSettings()

    try:
        return GlobalSettings.model_validate(data)
    except ValidationError as e:
        msg = f"invalid settings in `{path}`: {describe_validation_error(e)}"
        raise ConfigurationError(msg) from None


def find_bookmark(settings: GlobalSettings, name: str) -> Bookmark:
    """Return the bookmark called ``name`` or raise ``ConfigurationError``."""
    try:
        return settings.bookmarks[name]
    except KeyError:
        msg = f"bookmark with name `{name}` unknown"
        raise ConfigurationError(msg) from None
