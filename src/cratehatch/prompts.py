"""
cratehatch.prompts - Interactive Prompts
========================================

Terminal prompt provider built on questionary. Each argument kind maps to
one prompt style:

    bool        confirm (y/n)
    string      text, checked by the argument's validator
    number      text, parsed as an integer within the bounds
    float       text, parsed as a float within the bounds
    list        select
    multi_list  checkbox

Invalid input never leaves the prompt: questionary shows the validation
message and asks again. Pressing Ctrl-C makes questionary return ``None``,
which we turn into ``GenerationCancelled``.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import questionary

from cratehatch.errors import GenerationCancelled, ValueValidationError
from cratehatch.models import (
    ArgumentSpec,
    BoolArgument,
    FloatArgument,
    ListArgument,
    MultiListArgument,
    NumberArgument,
    ResolvedValue,
    StringArgument,
)
from cratehatch.validators import validate_required


def _parse_int(text: str) -> int:
    try:
        return int(text.strip())
    except ValueError:
        raise ValueValidationError("please type a valid whole number") from None


def _parse_float(text: str) -> float:
    try:
        return float(text.strip())
    except ValueError:
        raise ValueValidationError("please type a valid number") from None


def _validator(check: Callable[[str], Any]) -> Callable[[str], bool | str]:
    """Adapt a raising check into questionary's ``True``-or-message style."""

    def validate(text: str) -> bool | str:
        try:
            check(text)
        except ValueValidationError as e:
            return str(e)
        return True

    return validate


def _range_hint(spec: NumberArgument | FloatArgument) -> str:
    if spec.min is None and spec.max is None:
        return ""
    low = "" if spec.min is None else spec.min
    high = "" if spec.max is None else spec.max
    return f" ({low}..={high})"


def _answer(result: Any, spec: ArgumentSpec) -> Any:
    if result is None:
        msg = f"prompt for `{spec.name}` was cancelled"
        raise GenerationCancelled(msg)
    return result


class QuestionaryPrompter:
    """
    Prompt provider that asks the user in the terminal.

    Examples
    --------
    >>> prompter = QuestionaryPrompter()
    >>> prompter.prompt(spec)  # doctest: +SKIP
    """

    def prompt(self, spec: ArgumentSpec) -> ResolvedValue:
        if isinstance(spec, BoolArgument):
            return self.prompt_bool(spec)
        if isinstance(spec, StringArgument):
            return self.prompt_string(spec)
        if isinstance(spec, NumberArgument):
            return self.prompt_number(spec)
        if isinstance(spec, FloatArgument):
            return self.prompt_float(spec)
        if isinstance(spec, ListArgument):
            return self.prompt_list(spec)
        return self.prompt_multi_list(spec)

    def prompt_bool(self, spec: BoolArgument) -> bool:
        default = spec.default if spec.default is not None else False
        result = questionary.confirm(spec.description, default=default).ask()
        return _answer(result, spec)

    def prompt_string(self, spec: StringArgument) -> str:
        if spec.validator is not None:
            check: Callable[[str], Any] = spec.check
        else:
            check = validate_required

        result = questionary.text(
            spec.description,
            default=spec.default or "",
            validate=_validator(check),
        ).ask()
        return _answer(result, spec)

    def prompt_number(self, spec: NumberArgument) -> int:
        result = questionary.text(
            f"{spec.description}{_range_hint(spec)}",
            default="" if spec.default is None else str(spec.default),
            validate=_validator(lambda text: spec.check(_parse_int(text))),
        ).ask()
        return _parse_int(_answer(result, spec))

    def prompt_float(self, spec: FloatArgument) -> float:
        result = questionary.text(
            f"{spec.description}{_range_hint(spec)}",
            default="" if spec.default is None else str(spec.default),
            validate=_validator(lambda text: spec.check(_parse_float(text))),
        ).ask()
        return _parse_float(_answer(result, spec))

    def prompt_list(self, spec: ListArgument) -> str:
        result = questionary.select(
            spec.description,
            choices=list(spec.values),
            default=spec.default,
        ).ask()
        return _answer(result, spec)

    def prompt_multi_list(self, spec: MultiListArgument) -> tuple[str, ...]:
        selected = spec.default or ()
        result = questionary.checkbox(
            spec.description,
            choices=[
                questionary.Choice(value, checked=value in selected)
                for value in spec.values
            ],
        ).ask()
        return tuple(_answer(result, spec))
