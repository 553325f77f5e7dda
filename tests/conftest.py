"""
pytest configuration and shared fixtures for cratehatch tests.

This module provides fixtures and configuration used across all test modules.
Fixtures defined here are automatically available to all tests.

Fixtures
--------
make_template : Callable
    Factory writing a template tree (``.hatch.toml``, optional
    ``.hatchignore`` and arbitrary files) into a temporary directory.

destination : Path
    A not yet existing output directory named ``demo``.

git_identity : GitIdentity
    Fixed git identity used by every generation run (autouse).
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

import pytest

from cratehatch.context import GitIdentity
from cratehatch.errors import GenerationCancelled
from cratehatch.models import ArgumentSpec, ResolvedValue


TemplateFactory = Callable[..., Path]


# =============================================================================
# Helpers
# =============================================================================

def write_tree(root: Path, files: Mapping[str, str | bytes]) -> None:
    """Write ``{relative path: content}`` below ``root``."""
    for rel_path, content in files.items():
        path = root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")


def read_tree(root: Path) -> dict[str, bytes]:
    """Read every file below ``root`` as ``{relative posix path: bytes}``."""
    return {
        path.relative_to(root).as_posix(): path.read_bytes()
        for path in sorted(root.rglob("*"))
        if path.is_file()
    }


class ScriptedPrompter:
    """
    Prompt provider answering from a fixed mapping.

    Every asked argument is recorded in ``asked``; the argument definition is kept
    in ``specs`` so tests can inspect suggested defaults. Answering with the
    ``CANCEL`` sentinel simulates the user pressing Ctrl-C.
    """

    CANCEL = object()

    def __init__(self, answers: Mapping[str, Any] | None = None) -> None:
        self.answers = dict(answers or {})
        self.asked: list[str] = []
        self.specs: dict[str, ArgumentSpec] = {}

    def prompt(self, spec: ArgumentSpec) -> ResolvedValue:
        self.asked.append(spec.name)
        self.specs[spec.name] = spec
        answer = self.answers[spec.name]
        if answer is self.CANCEL:
            raise GenerationCancelled(f"prompt for `{spec.name}` was cancelled")
        return answer


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def make_template(tmp_path: Path) -> TemplateFactory:
    """
    Provide a factory that writes a template tree.

    Returns
    -------
    Callable
        ``make_template(config, files=None, ignore=None, name="template")``
        returning the template root.
    """

    def factory(
        config: str = "",
        files: Mapping[str, str | bytes] | None = None,
        ignore: str | None = None,
        name: str = "template",
    ) -> Path:
        root = tmp_path / name
        root.mkdir(parents=True, exist_ok=True)
        (root / ".hatch.toml").write_text(config, encoding="utf-8")
        if ignore is not None:
            (root / ".hatchignore").write_text(ignore, encoding="utf-8")
        write_tree(root, files or {})
        return root

    return factory


@pytest.fixture
def destination(tmp_path: Path) -> Path:
    """Output directory for generated projects; not created yet."""
    return tmp_path / "out" / "demo"


@pytest.fixture(autouse=True)
def git_identity(monkeypatch: pytest.MonkeyPatch) -> GitIdentity:
    """Keep generation runs independent of the machine's git configuration."""
    identity = GitIdentity(name="Jane Doe", email="jane@example.com")
    monkeypatch.setattr("cratehatch.generator.read_git_identity", lambda: identity)
    return identity


@pytest.fixture(autouse=True)
def isolated_dirs(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Point the configuration and cache directories into the test's tmp_path."""
    monkeypatch.setenv("CRATEHATCH_CONFIG_DIR", str(tmp_path / "config"))
    monkeypatch.setenv("CRATEHATCH_CACHE_DIR", str(tmp_path / "cache"))


# =============================================================================
# pytest Configuration
# =============================================================================

def pytest_configure(config: pytest.Config) -> None:
    """
    Configure pytest with custom markers.

    This function is called by pytest during startup to register
    custom markers used in our test suite.
    """
    config.addinivalue_line(
        "markers", "integration: marks tests requiring a git executable"
    )
