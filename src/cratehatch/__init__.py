"""
cratehatch - Project Generator for Rust Crates
==============================================

A CLI tool that creates new Rust projects from template directories. A
template is any directory (local or in a git repository) with a
``.hatch.toml`` file declaring the questions to ask; every file in it is
rendered with Jinja2 against the answers.

Features
--------
- **Typed Arguments**: bool, string, number, float, list and multi-list
  questions with bounds and validators (crate names, identifiers, semver)
- **Conditional Content**: arguments and ignore rules that depend on
  earlier answers
- **Bookmarks**: named template sources with preset answers
- **Git Sources**: templates are cloned and kept up to date in a cache

Quick Start
-----------
```bash
# Generate from a template repository
cratehatch git https://github.com/owner/templates my-crate --folder lib

# Or from a local directory, without prompts
cratehatch local ../templates/lib my-crate --yes
```

Example
-------
>>> from cratehatch import DefaultsPrompter, generate_project
>>> result = generate_project(Path("templates/lib"), Path("my-crate"),
...                           prompter=DefaultsPrompter())
>>> result.project_name
'my-crate'

Architecture
------------
The package is organized into these main modules:

- ``cli``: Typer-based command line interface
- ``generator``: The generation pipeline
- ``fetch``: Cloning and locating template sources
- ``settings``: Loading ``.hatch.toml`` and ``settings.toml``
- ``models``: Pydantic models for arguments, ignore rules and settings
- ``resolver`` / ``prompts``: Answering the template's arguments
- ``context``: The variables templates are rendered with
- ``ignore`` / ``renderer``: Deciding on and writing the output tree
"""

# =============================================================================
# Package Metadata
# =============================================================================
__version__ = "0.1.0"
__license__ = "MIT"

# =============================================================================
# Public API Exports
# =============================================================================
# These are the main functions/classes users should interact with when using
# cratehatch as a library (as opposed to the CLI)

from cratehatch.errors import HatchError
from cratehatch.generator import GenerationResult, generate_project
from cratehatch.models import TemplateConfig
from cratehatch.resolver import DefaultsPrompter
from cratehatch.settings import load_template_config


__all__ = [
    "DefaultsPrompter",
    "GenerationResult",
    "HatchError",
    "TemplateConfig",
    # Version info
    "__version__",
    # Core functions
    "generate_project",
    "load_template_config",
]
