"""
cratehatch.validators - String Argument Validators
==================================================

Validators restrict the values a ``string`` argument accepts. Each one takes
the candidate value and either returns it unchanged or raises
``ValueValidationError`` with a message suitable for showing next to the
prompt. The same functions check template defaults at load time and user
input at prompt time.

Available validators (``validator = "..."`` in ``.hatch.toml``):

    crate       crates.io package name
    ident       Rust identifier, keywords excluded
    semver      strict semantic version, e.g. ``1.2.3-beta.1+build``
    semver_req  Cargo version requirement, e.g. ``^1.2, <1.5``
    regex       ``validator = { regex = "^[a-z]+$" }``
"""

from __future__ import annotations

import re

import semver

from cratehatch.errors import ValueValidationError


MAX_CRATE_NAME_LENGTH = 64

# Strict, reserved and edition 2018 keywords of Rust.
RUST_KEYWORDS = frozenset({
    "as", "break", "const", "continue", "crate", "else", "enum", "extern",
    "false", "fn", "for", "if", "impl", "in", "let", "loop", "match", "mod",
    "move", "mut", "pub", "ref", "return", "self", "Self", "static",
    "struct", "super", "trait", "true", "type", "unsafe", "use", "where",
    "while", "async", "await", "dyn", "abstract", "become", "box", "do",
    "final", "macro", "override", "priv", "typeof", "unsized", "virtual",
    "yield", "try",
})

_NUMBER = r"(?:0|[1-9]\d*)"
_WILDCARD = r"(?:\*|[xX])"
_IDENTS = r"[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*"
# Once a part is a wildcard, every following part must be one too; pre-release
# and build metadata need all three numeric parts.
_VERSION = (
    rf"(?:{_WILDCARD}(?:\.{_WILDCARD}){{0,2}}"
    rf"|{_NUMBER}(?:\.{_WILDCARD}(?:\.{_WILDCARD})?"
    rf"|\.{_NUMBER}(?:\.{_WILDCARD}"
    rf"|\.{_NUMBER}(?:-{_IDENTS})?(?:\+{_IDENTS})?)?)?)"
)
_COMPARATOR = re.compile(rf"(?:=|>=|<=|>|<|~|\^)?\s*{_VERSION}")


def validate_required(value: str) -> str:
    """Reject the empty string."""
    if not value:
        raise ValueValidationError("a response is required")
    return value


def validate_crate_name(value: str) -> str:
    """
    Check that the value can be published as a crate on crates.io.

    The name must start with a letter, contain only ASCII letters, digits,
    ``_`` and ``-``, and be at most 64 characters long.

    Examples
    --------
    >>> validate_crate_name("my_crate-1")
    'my_crate-1'
    """
    if (
        len(value) <= MAX_CRATE_NAME_LENGTH
        and value[:1].isalpha()
        and all(c.isascii() and (c.isalnum() or c in "_-") for c in value)
    ):
        return value
    raise ValueValidationError("value must be a valid crate name")


def validate_identifier(value: str) -> str:
    """
    Check that the value is a valid, non-keyword Rust identifier.

    A lone underscore is not an identifier; a leading underscore followed
    by at least one more identifier character is.
    """
    if value.isidentifier() and value != "_" and value not in RUST_KEYWORDS:
        return value
    raise ValueValidationError("value must be a valid Rust identifier")


def validate_semver(value: str) -> str:
    """Check that the value is a full ``MAJOR.MINOR.PATCH`` version."""
    try:
        semver.Version.parse(value)
    except ValueError as e:
        msg = f"value is not a valid semantic version: {e}"
        raise ValueValidationError(msg) from None
    return value


def validate_semver_requirement(value: str) -> str:
    """
    Check that the value is a Cargo version requirement.

    Requirements are comma separated comparators. Each comparator has an
    optional operator (``=``, ``>``, ``>=``, ``<``, ``<=``, ``~``, ``^``)
    followed by a possibly partial version, where missing or wildcard parts
    (``*``, ``x``) are allowed.

    Examples
    --------
    >>> validate_semver_requirement(">=1.2, <1.5")
    '>=1.2, <1.5'
    """
    comparators = value.split(",")
    if value.strip() and all(
        _COMPARATOR.fullmatch(part.strip()) for part in comparators
    ):
        return value
    raise ValueValidationError("value is not a valid semantic version requirement")


def validate_pattern(value: str, pattern: re.Pattern[str]) -> str:
    """
    Check the value against a template supplied regular expression.

    The pattern is searched anywhere in the value; authors anchor it with
    ``^``/``$`` when the whole value has to match.
    """
    if pattern.search(value):
        return value
    msg = f"value must match regex pattern `{pattern.pattern}`"
    raise ValueValidationError(msg)
