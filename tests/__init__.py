"""
cratehatch test suite
=====================

This package contains the tests for cratehatch.

Test Modules
------------
- test_validators.py: Tests for crate names, identifiers and versions
- test_models.py: Tests for Pydantic configuration models
- test_settings.py: Tests for loading .hatch.toml and settings.toml
- test_engine.py: Tests for the Jinja2 rendering engine
- test_resolver.py: Tests for resolving argument values
- test_context.py: Tests for the rendering context
- test_ignore.py: Tests for ignore rules and .hatchignore
- test_renderer.py: Tests for writing the template tree
- test_generator.py: Tests for the whole generation pipeline
- test_fetch.py: Tests for git and local template sources
- test_cli.py: Tests for command-line interface

Running Tests
-------------
    # Run all tests
    pytest

    # Skip tests that need a git executable
    pytest -m "not integration"

    # Run specific module
    pytest tests/test_ignore.py

    # Run specific test class
    pytest tests/test_ignore.py::TestDynamicRules
"""
