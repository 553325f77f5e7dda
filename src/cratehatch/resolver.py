"""
cratehatch.resolver - Argument Value Resolution
===============================================

Turns the argument schema of a template into concrete values, strictly in
declaration order. For every argument the resolver:

    1. Renders its ``condition`` (if any) against the fixed variables and
       the values resolved so far; ``false`` skips the argument
    2. Uses a fixed bookmark default (``skip_prompt = true``) as is
    3. Otherwise asks the prompt provider, offering the bookmark default or
       the template default as the suggested answer

Prompt providers are pluggable. ``cratehatch.prompts.QuestionaryPrompter``
asks in the terminal; ``DefaultsPrompter`` below answers without any
interaction and backs the ``--yes`` flag.
"""

from __future__ import annotations

import logging
from collections import ChainMap
from collections.abc import Mapping, Sequence
from typing import Any, Protocol

from cratehatch.engine import TemplateEngine, evaluate_condition
from cratehatch.errors import ConfigurationError, ValueValidationError
from cratehatch.models import (
    ArgumentSpec,
    BoolArgument,
    DefaultSetting,
    ListArgument,
    MultiListArgument,
    ResolvedValue,
)


logger = logging.getLogger(__name__)


# =============================================================================
# Prompt Providers
# =============================================================================

class PromptProvider(Protocol):
    """
    Source of values for arguments that are not fixed.

    Implementations must return a value that satisfies the argument's
    constraints, and raise ``GenerationCancelled`` if the user aborts.
    """

    def prompt(self, spec: ArgumentSpec) -> ResolvedValue:
        ...


class DefaultsPrompter:
    """
    Non-interactive provider that accepts whatever a prompt would preselect.

    Arguments with a default get it. Without one, a list answers its first
    value, a multi-list the empty selection and a bool ``false``; strings
    and numbers cannot be answered and raise ``ConfigurationError``.
    """

    def prompt(self, spec: ArgumentSpec) -> ResolvedValue:
        if spec.default is not None:
            return spec.check(spec.default)
        if isinstance(spec, ListArgument):
            return spec.values[0]
        if isinstance(spec, MultiListArgument):
            return ()
        if isinstance(spec, BoolArgument):
            return False
        msg = "no default value available and prompting is disabled"
        raise ConfigurationError(msg, argument=spec.name)


# =============================================================================
# Resolver
# =============================================================================

class ArgumentResolver:
    """
    Resolves a sequence of arguments into values.

    Bookmark defaults are validated against their arguments when the
    resolver is created, so a mistyped default fails before the first
    prompt is shown.

    Parameters
    ----------
    arguments : Sequence[ArgumentSpec]
        Arguments in declaration order.

    defaults : Mapping[str, DefaultSetting] | None
        Bookmark defaults keyed by argument name.

    Raises
    ------
    ConfigurationError
        If a default does not satisfy its argument's constraints.

    Examples
    --------
    >>> resolver = ArgumentResolver(config.arguments)
    >>> values = resolver.resolve(DefaultsPrompter(), JinjaEngine(), base={})
    """

    def __init__(
        self,
        arguments: Sequence[ArgumentSpec],
        defaults: Mapping[str, DefaultSetting] | None = None,
    ) -> None:
        self.arguments = tuple(arguments)
        self.fixed: dict[str, ResolvedValue] = {}
        self.suggested: dict[str, ResolvedValue] = {}

        by_name = {arg.name: arg for arg in self.arguments}
        for name, setting in (defaults or {}).items():
            spec = by_name.get(name)
            if spec is None:
                logger.warning("Ignoring default for unknown argument `%s`", name)
                continue
            try:
                value = spec.check(setting.value)
            except ValueValidationError as e:
                raise ConfigurationError(f"invalid default value: {e}", argument=name) from None
            if setting.skip_prompt:
                self.fixed[name] = value
            else:
                self.suggested[name] = value

    def resolve_one(self, spec: ArgumentSpec, prompter: PromptProvider) -> ResolvedValue:
        """Resolve a single argument, ignoring its condition."""
        if spec.name in self.fixed:
            logger.debug("Using fixed default for `%s`", spec.name)
            return self.fixed[spec.name]
        if spec.name in self.suggested:
            spec = spec.with_default(self.suggested[spec.name])
        return spec.check(prompter.prompt(spec))

    def resolve(
        self,
        prompter: PromptProvider,
        engine: TemplateEngine,
        base: Mapping[str, Any],
    ) -> dict[str, ResolvedValue]:
        """
        Resolve all arguments in declaration order.

        Parameters
        ----------
        prompter : PromptProvider
            Provider asked for every non-fixed argument.

        engine : TemplateEngine
            Engine used to render argument conditions.

        base : Mapping[str, Any]
            Fixed context variables, visible to conditions.

        Returns
        -------
        dict[str, ResolvedValue]
            Values of the active arguments, in declaration order.

        Raises
        ------
        TemplateError
            If a condition fails to render or is not a boolean.
        GenerationCancelled
            If the user aborts a prompt.
        """
        values: dict[str, ResolvedValue] = {}
        scope = ChainMap(values, dict(base))

        for spec in self.arguments:
            if spec.condition is not None and not evaluate_condition(
                engine, spec.condition, scope, name=f"condition of argument `{spec.name}`",
            ):
                logger.debug("Skipping argument `%s`, condition is false", spec.name)
                continue

            values[spec.name] = self.resolve_one(spec, prompter)
            logger.debug("Resolved `%s` = %r", spec.name, values[spec.name])

        return values
