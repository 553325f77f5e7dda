"""
cratehatch.models - Pydantic Models for Templates and Settings
==============================================================

This module defines the data models behind both configuration files that
cratehatch reads. We use Pydantic for them because it gives us:

1. **Validation**: Every argument is checked when the template is loaded,
   long before the first prompt is shown
2. **Closed variants**: The argument kinds form a discriminated union on the
   ``type`` key, so a ``min`` on a string argument is rejected outright
3. **Immutability**: All models are frozen; a loaded template never changes

Architecture Notes
------------------
The models are organized in two groups:

    TemplateConfig (.hatch.toml inside a template)
    ├── crate_type: CrateType | None
    ├── ignore: IgnoreRule...
    └── arguments: ArgumentSpec...
        ├── BoolArgument
        ├── StringArgument (+ StringValidator)
        ├── NumberArgument
        ├── FloatArgument
        ├── ListArgument
        └── MultiListArgument

    GlobalSettings (settings.toml in the user config dir)
    ├── git: GitSettings
    └── bookmarks: Bookmark...
        └── defaults: DefaultSetting...

Usage Example
-------------
>>> from cratehatch.models import NumberArgument
>>> arg = NumberArgument(name="port", type="number", description="Port",
...                      min=1, max=65535, default=8080)
>>> arg.check(65535)
65535
"""

from __future__ import annotations

import functools
import math
import re
from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Literal, Union

import pathspec
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    TypeAdapter,
    field_validator,
    model_validator,
)

from cratehatch import validators
from cratehatch.errors import ValueValidationError


# =============================================================================
# Constants
# =============================================================================

I64_MIN = -(2**63)
I64_MAX = 2**63 - 1

# Variables every render context provides; arguments may not reuse them.
FIXED_VARIABLES = (
    "project_name",
    "crate_type",
    "crate_bin",
    "crate_lib",
    "git_author",
    "git_name",
    "git_email",
)

ResolvedValue = Union[bool, str, int, float, tuple[str, ...]]

Int64 = Annotated[StrictInt, Field(ge=I64_MIN, le=I64_MAX)]


# =============================================================================
# Enumerations
# =============================================================================

class CrateType(str, Enum):
    """
    Kind of Rust crate being generated.

    Exposed to templates as ``crate_type`` together with the derived
    ``crate_bin`` and ``crate_lib`` booleans.
    """

    BIN = "bin"
    LIB = "lib"


class IgnoreMode(str, Enum):
    """
    What an active ignore rule does with the paths it matches.

    Attributes
    ----------
    ALL : str
        Leave the path out of the output entirely.

    TEMPLATE : str
        Do not treat the file as a template; copy it verbatim.

    RENDER : str
        Do not write the file, but keep it available to ``{% include %}``
        and ``{% import %}`` as a partial.
    """

    ALL = "all"
    TEMPLATE = "template"
    RENDER = "render"


class ValidatorKind(str, Enum):
    """Names of the validators a string argument can use."""

    CRATE = "crate"
    IDENT = "ident"
    SEMVER = "semver"
    SEMVER_REQ = "semver_req"
    REGEX = "regex"


# =============================================================================
# String Validators
# =============================================================================

class StringValidator(BaseModel):
    """
    Validator attached to a string argument.

    Accepts the short form ``validator = "crate"`` as well as the table form
    ``validator = { regex = "^[a-z]+$" }`` used for regular expressions.

    Examples
    --------
    >>> StringValidator.model_validate("ident")("_private")
    '_private'
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: ValidatorKind
    pattern: str | None = None

    @model_validator(mode="before")
    @classmethod
    def parse_short_form(cls, data: Any) -> Any:
        """Expand ``"name"`` and ``{name = pattern}`` into model fields."""
        if isinstance(data, str):
            return {"kind": data}
        if isinstance(data, dict) and "kind" not in data and len(data) == 1:
            ((kind, pattern),) = data.items()
            return {"kind": kind, "pattern": pattern}
        return data

    @model_validator(mode="after")
    def check_pattern(self) -> StringValidator:
        if self.kind is ValidatorKind.REGEX:
            if self.pattern is None:
                msg = "the regex validator requires a pattern"
                raise ValueError(msg)
            try:
                re.compile(self.pattern)
            except re.error as e:
                msg = f"invalid regex pattern `{self.pattern}`: {e}"
                raise ValueError(msg) from None
        elif self.pattern is not None:
            msg = f"validator `{self.kind.value}` does not take a pattern"
            raise ValueError(msg)
        return self

    def __call__(self, value: str) -> str:
        if self.kind is ValidatorKind.CRATE:
            return validators.validate_crate_name(value)
        if self.kind is ValidatorKind.IDENT:
            return validators.validate_identifier(value)
        if self.kind is ValidatorKind.SEMVER:
            return validators.validate_semver(value)
        if self.kind is ValidatorKind.SEMVER_REQ:
            return validators.validate_semver_requirement(value)
        return validators.validate_pattern(value, re.compile(self.pattern or ""))


# =============================================================================
# Argument Specifications
# =============================================================================

class _Argument(BaseModel):
    """
    Fields and behaviour shared by every argument kind.

    Subclasses implement ``check`` (validate and normalize a candidate value)
    and may extend ``_check_schema`` for constraints between their own
    fields. A declared default is passed through ``check`` when the model is
    built, so an argument whose default violates its own constraints never
    loads.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(min_length=1)
    description: str
    condition: str | None = None

    def check(self, value: Any) -> ResolvedValue:
        raise NotImplementedError

    def with_default(self, default: Any) -> _Argument:
        """Return a copy whose default is replaced by ``default``."""
        return self.model_copy(update={"default": self.check(default)})

    def _check_schema(self) -> None:
        pass

    @model_validator(mode="after")
    def validate_argument(self) -> _Argument:
        self._check_schema()
        default = getattr(self, "default", None)
        if default is not None:
            try:
                self.check(default)
            except ValueValidationError as e:
                msg = f"default value is invalid: {e}"
                raise ValueError(msg) from None
        return self


def _check_bounds(value: float, minimum: float | None, maximum: float | None) -> None:
    if minimum is not None and value < minimum:
        msg = f"value {value} is below the minimum of {minimum}"
        raise ValueValidationError(msg)
    if maximum is not None and value > maximum:
        msg = f"value {value} is above the maximum of {maximum}"
        raise ValueValidationError(msg)


def _unique(values: tuple[str, ...]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(values))


class BoolArgument(_Argument):
    """A yes/no question."""

    type: Literal["bool"]
    default: StrictBool | None = None

    def check(self, value: Any) -> bool:
        if not isinstance(value, bool):
            msg = f"expected a boolean, got {value!r}"
            raise ValueValidationError(msg)
        return value


class StringArgument(_Argument):
    """Free text, optionally restricted by a validator."""

    type: Literal["string"]
    default: StrictStr | None = None
    validator: StringValidator | None = None

    def check(self, value: Any) -> str:
        if not isinstance(value, str):
            msg = f"expected a string, got {value!r}"
            raise ValueValidationError(msg)
        if self.validator is not None:
            return self.validator(value)
        return value


class NumberArgument(_Argument):
    """
    A 64-bit signed integer.

    ``min`` and ``max`` are optional and inclusive.
    """

    type: Literal["number"]
    default: Int64 | None = None
    min: Int64 | None = None
    max: Int64 | None = None

    def _check_schema(self) -> None:
        if self.min is not None and self.max is not None and self.min > self.max:
            msg = "minimum is greater than the maximum value"
            raise ValueError(msg)

    def check(self, value: Any) -> int:
        if isinstance(value, bool) or not isinstance(value, int):
            msg = f"expected an integer, got {value!r}"
            raise ValueValidationError(msg)
        if not I64_MIN <= value <= I64_MAX:
            msg = f"value {value} does not fit into a 64-bit integer"
            raise ValueValidationError(msg)
        _check_bounds(value, self.min, self.max)
        return value


class FloatArgument(_Argument):
    """A finite 64-bit floating point number with optional inclusive bounds."""

    type: Literal["float"]
    default: StrictFloat | None = Field(default=None, allow_inf_nan=False)
    min: StrictFloat | None = Field(default=None, allow_inf_nan=False)
    max: StrictFloat | None = Field(default=None, allow_inf_nan=False)

    @field_validator("default", "min", "max", mode="before")
    @classmethod
    def reject_booleans(cls, v: Any) -> Any:
        if isinstance(v, bool):
            msg = "expected a number, not a boolean"
            raise ValueError(msg)
        return v

    def _check_schema(self) -> None:
        if self.min is not None and self.max is not None and self.min > self.max:
            msg = "minimum is greater than the maximum value"
            raise ValueError(msg)

    def check(self, value: Any) -> float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            msg = f"expected a number, got {value!r}"
            raise ValueValidationError(msg)
        value = float(value)
        if not math.isfinite(value):
            msg = "value must be a finite number"
            raise ValueValidationError(msg)
        _check_bounds(value, self.min, self.max)
        return value


class ListArgument(_Argument):
    """A single choice out of the declared ``values``."""

    type: Literal["list"]
    values: tuple[StrictStr, ...] = Field(min_length=1)
    default: StrictStr | None = None

    @field_validator("values")
    @classmethod
    def dedupe_values(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        return _unique(v)

    def check(self, value: Any) -> str:
        if not isinstance(value, str) or value not in self.values:
            options = ", ".join(self.values)
            msg = f"{value!r} is not one of the possible values ({options})"
            raise ValueValidationError(msg)
        return value


class MultiListArgument(_Argument):
    """
    Any subset of the declared ``values``.

    The resolved value is a tuple ordered like ``values``, independent of
    the order in which the items were selected.
    """

    type: Literal["multi_list"]
    values: tuple[StrictStr, ...] = Field(min_length=1)
    default: tuple[StrictStr, ...] | None = None

    @field_validator("values")
    @classmethod
    def dedupe_values(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        return _unique(v)

    def check(self, value: Any) -> tuple[str, ...]:
        if isinstance(value, str) or not isinstance(value, (list, tuple, set, frozenset)):
            msg = f"expected a list of values, got {value!r}"
            raise ValueValidationError(msg)
        unknown = [item for item in value if item not in self.values]
        if unknown:
            options = ", ".join(self.values)
            msg = f"{unknown[0]!r} is not one of the possible values ({options})"
            raise ValueValidationError(msg)
        return tuple(item for item in self.values if item in value)


ArgumentSpec = Annotated[
    Union[
        BoolArgument,
        StringArgument,
        NumberArgument,
        FloatArgument,
        ListArgument,
        MultiListArgument,
    ],
    Field(discriminator="type"),
]

ARGUMENT_ADAPTER: TypeAdapter[ArgumentSpec] = TypeAdapter(ArgumentSpec)


# =============================================================================
# Ignore Rules
# =============================================================================

@functools.lru_cache(maxsize=None)
def compile_globs(paths: tuple[str, ...]) -> pathspec.PathSpec:
    """Compile glob patterns with gitignore wildcard semantics."""
    return pathspec.PathSpec.from_lines("gitignore", paths)


class IgnoreRule(BaseModel):
    """
    A conditional, context-aware exclusion rule.

    Attributes
    ----------
    paths : tuple[str, ...]
        Glob patterns (gitignore wildcard dialect) relative to the template
        root.

    condition : str | None
        Template string that must render to ``true`` or ``false``. A rule
        without condition is always active.

    ignore_from : IgnoreMode
        What happens to matching paths when the rule is active.

    Examples
    --------
    >>> rule = IgnoreRule(paths=["src/main.rs"], condition="{{ crate_lib }}")
    >>> rule.matches("src/main.rs")
    True
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    paths: tuple[str, ...] = Field(min_length=1)
    condition: str | None = None
    ignore_from: IgnoreMode = IgnoreMode.ALL

    @field_validator("paths")
    @classmethod
    def validate_globs(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        try:
            compile_globs(v)
        except ValueError as e:
            msg = f"invalid glob pattern: {e}"
            raise ValueError(msg) from None
        return v

    def matches(self, path: str) -> bool:
        """Whether the relative ``path`` matches any of the rule's globs."""
        return compile_globs(self.paths).match_file(path)


# =============================================================================
# Template Configuration
# =============================================================================

class TemplateConfig(BaseModel):
    """
    Parsed ``.hatch.toml`` of a template.

    Attributes
    ----------
    crate_type : CrateType | None
        Crate type pinned by the template; ``None`` means the user is asked.

    ignore : tuple[IgnoreRule, ...]
        Dynamic ignore rules in declaration order.

    arguments : tuple[ArgumentSpec, ...]
        Arguments in declaration order.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    crate_type: CrateType | None = None
    ignore: tuple[IgnoreRule, ...] = ()
    arguments: tuple[ArgumentSpec, ...] = ()


# =============================================================================
# Global Settings
# =============================================================================

class DefaultSetting(BaseModel):
    """
    A bookmark level default for one template argument.

    With ``skip_prompt`` the value is used as is and the user is never asked;
    otherwise it only replaces the default offered by the prompt.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    value: StrictBool | StrictInt | StrictFloat | StrictStr | list[StrictStr]
    skip_prompt: bool = False


class Bookmark(BaseModel):
    """
    A named, pre-configured template source.

    Examples
    --------
    >>> Bookmark(repository="https://github.com/owner/templates",
    ...          folder="axum").folder
    'axum'
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    repository: str
    description: str | None = None
    folder: str | None = None
    defaults: dict[str, DefaultSetting] = Field(default_factory=dict)


class GitSettings(BaseModel):
    """Options for fetching templates over git."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    ssh_key: Path | None = Field(
        default=None,
        description="Private key used for SSH remotes",
    )


class GlobalSettings(BaseModel):
    """Parsed ``settings.toml`` from the user configuration directory."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    git: GitSettings = Field(default_factory=GitSettings)
    bookmarks: dict[str, Bookmark] = Field(default_factory=dict)
