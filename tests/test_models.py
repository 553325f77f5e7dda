"""
Tests for cratehatch.models
===========================

This module contains tests for the Pydantic models behind ``.hatch.toml``
and ``settings.toml``. Tests cover schema validation, value checks and the
ignore rule glob matching.

Test Organization
-----------------
- TestStringValidator: Tests for validator parsing and dispatch
- TestNumberArguments: Tests for number and float bounds
- TestChoiceArguments: Tests for list and multi-list arguments
- TestArgumentSchema: Tests for the discriminated union
- TestIgnoreRule: Tests for glob matching
- TestSettingsModels: Tests for bookmarks and global settings
"""

import pytest
from pydantic import ValidationError

from cratehatch.errors import ValueValidationError
from cratehatch.models import (
    ARGUMENT_ADAPTER,
    I64_MAX,
    I64_MIN,
    BoolArgument,
    FloatArgument,
    GlobalSettings,
    IgnoreMode,
    IgnoreRule,
    ListArgument,
    MultiListArgument,
    NumberArgument,
    StringArgument,
    StringValidator,
    TemplateConfig,
    ValidatorKind,
)


# =============================================================================
# StringValidator Tests
# =============================================================================

class TestStringValidator:
    """Tests for StringValidator."""

    def test_short_form(self) -> None:
        """Test ``validator = "ident"``."""
        validator = StringValidator.model_validate("ident")

        assert validator.kind is ValidatorKind.IDENT
        assert validator.pattern is None
        assert validator("_private") == "_private"

    def test_regex_table_form(self) -> None:
        """Test ``validator = { regex = "..." }``."""
        validator = StringValidator.model_validate({"regex": "^[a-z]+$"})

        assert validator.kind is ValidatorKind.REGEX
        assert validator("test") == "test"
        with pytest.raises(ValueValidationError):
            validator("test1")

    def test_regex_requires_pattern(self) -> None:
        with pytest.raises(ValidationError, match="requires a pattern"):
            StringValidator.model_validate("regex")

    def test_invalid_regex(self) -> None:
        with pytest.raises(ValidationError, match="invalid regex pattern"):
            StringValidator.model_validate({"regex": "(unclosed"})

    def test_pattern_on_other_validator(self) -> None:
        with pytest.raises(ValidationError, match="does not take a pattern"):
            StringValidator.model_validate({"crate": "x"})

    def test_unknown_validator(self) -> None:
        with pytest.raises(ValidationError):
            StringValidator.model_validate("email")

    def test_string_argument_uses_validator(self) -> None:
        arg = StringArgument(name="crate", type="string", description="Crate", validator="crate")

        assert arg.check("serde") == "serde"
        with pytest.raises(ValueValidationError):
            arg.check("?")

    def test_default_checked_by_validator(self) -> None:
        """Test that a default violating the validator is rejected at load time."""
        with pytest.raises(ValidationError, match="default value is invalid"):
            StringArgument(name="v", type="string", description="V", validator="semver", default="1.0")


# =============================================================================
# Number Argument Tests
# =============================================================================

class TestNumberArguments:
    """Tests for NumberArgument and FloatArgument."""

    @pytest.fixture
    def port(self) -> NumberArgument:
        return NumberArgument(name="port", type="number", description="Port", min=1, max=65535, default=8080)

    def test_bounds_are_inclusive(self, port: NumberArgument) -> None:
        """Test that exactly min and exactly max are accepted."""
        assert port.check(1) == 1
        assert port.check(65535) == 65535

    @pytest.mark.parametrize("value", [0, 65536, -1])
    def test_out_of_bounds(self, port: NumberArgument, value: int) -> None:
        with pytest.raises(ValueValidationError):
            port.check(value)

    @pytest.mark.parametrize("value", [True, "80", 80.0])
    def test_rejects_non_integers(self, port: NumberArgument, value: object) -> None:
        with pytest.raises(ValueValidationError, match="expected an integer"):
            port.check(value)

    def test_bounds_are_optional(self) -> None:
        arg = NumberArgument(name="n", type="number", description="N")

        assert arg.check(I64_MIN) == I64_MIN
        assert arg.check(I64_MAX) == I64_MAX
        with pytest.raises(ValueValidationError, match="64-bit"):
            arg.check(I64_MAX + 1)

    def test_min_greater_than_max(self) -> None:
        with pytest.raises(ValidationError, match="minimum is greater"):
            NumberArgument(name="n", type="number", description="N", min=10, max=1)

    def test_default_out_of_bounds(self) -> None:
        with pytest.raises(ValidationError, match="default value is invalid"):
            NumberArgument(name="n", type="number", description="N", min=1, max=10, default=11)

    def test_float_bounds(self) -> None:
        arg = FloatArgument(name="ratio", type="float", description="Ratio", min=0.0, max=1.0)

        assert arg.check(0.0) == 0.0
        assert arg.check(1) == 1.0
        with pytest.raises(ValueValidationError, match="above the maximum"):
            arg.check(1.5)

    def test_float_rejects_non_finite(self) -> None:
        arg = FloatArgument(name="ratio", type="float", description="Ratio")

        with pytest.raises(ValueValidationError, match="finite"):
            arg.check(float("nan"))
        with pytest.raises(ValidationError):
            FloatArgument(name="ratio", type="float", description="Ratio", default=float("inf"))

    def test_float_rejects_bool_default(self) -> None:
        with pytest.raises(ValidationError, match="boolean"):
            FloatArgument(name="ratio", type="float", description="Ratio", default=True)

    @pytest.mark.parametrize("field", ["default", "min", "max"])
    def test_float_rejects_string(self, field: str) -> None:
        """Test that a quoted number in TOML is not coerced into a float."""
        with pytest.raises(ValidationError):
            FloatArgument(name="ratio", type="float", description="Ratio", **{field: "0.5"})

    def test_float_accepts_integers(self) -> None:
        arg = FloatArgument(name="ratio", type="float", description="Ratio", min=0, max=2, default=1)

        assert arg.default == 1.0
        assert isinstance(arg.default, float)
        assert arg.max == 2.0


# =============================================================================
# Choice Argument Tests
# =============================================================================

class TestChoiceArguments:
    """Tests for ListArgument and MultiListArgument."""

    def test_list_membership(self) -> None:
        arg = ListArgument(name="license", type="list", description="License", values=["MIT", "Apache-2.0"])

        assert arg.check("MIT") == "MIT"
        with pytest.raises(ValueValidationError, match="not one of the possible values"):
            arg.check("GPL-3.0")

    def test_list_default_must_be_a_value(self) -> None:
        with pytest.raises(ValidationError, match="default value is invalid"):
            ListArgument(name="l", type="list", description="L", values=["a"], default="b")

    def test_values_are_deduplicated(self) -> None:
        arg = ListArgument(name="l", type="list", description="L", values=["a", "b", "a"])
        assert arg.values == ("a", "b")

    def test_values_required(self) -> None:
        with pytest.raises(ValidationError):
            ListArgument(name="l", type="list", description="L", values=[])

    def test_multi_list_keeps_declared_order(self) -> None:
        """Test that the selection is ordered like ``values``, not like the input."""
        arg = MultiListArgument(
            name="features", type="multi_list", description="Features", values=["serde", "tokio", "tracing"],
        )

        assert arg.check(["tracing", "serde"]) == ("serde", "tracing")
        assert arg.check([]) == ()

    def test_multi_list_rejects_unknown(self) -> None:
        arg = MultiListArgument(name="f", type="multi_list", description="F", values=["a", "b"])

        with pytest.raises(ValueValidationError, match="'c'"):
            arg.check(["a", "c"])
        with pytest.raises(ValueValidationError, match="list of values"):
            arg.check("a")

    def test_with_default(self) -> None:
        arg = ListArgument(name="l", type="list", description="L", values=["a", "b"], default="a")

        updated = arg.with_default("b")

        assert updated.default == "b"
        assert arg.default == "a"
        with pytest.raises(ValueValidationError):
            arg.with_default("c")


# =============================================================================
# Argument Schema Tests
# =============================================================================

class TestArgumentSchema:
    """Tests for the ArgumentSpec discriminated union."""

    @pytest.mark.parametrize(
        ("table", "cls"),
        [
            ({"type": "bool", "description": "B"}, BoolArgument),
            ({"type": "string", "description": "S"}, StringArgument),
            ({"type": "number", "description": "N"}, NumberArgument),
            ({"type": "float", "description": "F"}, FloatArgument),
            ({"type": "list", "description": "L", "values": ["a"]}, ListArgument),
            ({"type": "multi_list", "description": "M", "values": ["a"]}, MultiListArgument),
        ],
    )
    def test_dispatch_on_type(self, table: dict, cls: type) -> None:
        spec = ARGUMENT_ADAPTER.validate_python({**table, "name": "arg"})
        assert isinstance(spec, cls)

    def test_unknown_type(self) -> None:
        with pytest.raises(ValidationError):
            ARGUMENT_ADAPTER.validate_python({"name": "a", "type": "date", "description": "D"})

    def test_fields_of_other_kinds_rejected(self) -> None:
        """Test that ``min`` is not accepted on a string argument."""
        with pytest.raises(ValidationError):
            ARGUMENT_ADAPTER.validate_python({"name": "a", "type": "string", "description": "S", "min": 1})

    def test_default_type_must_match(self) -> None:
        with pytest.raises(ValidationError):
            ARGUMENT_ADAPTER.validate_python({"name": "a", "type": "bool", "description": "B", "default": "yes"})

    def test_bool_check(self) -> None:
        arg = BoolArgument(name="b", type="bool", description="B")

        assert arg.check(True) is True
        with pytest.raises(ValueValidationError):
            arg.check(1)

    def test_models_are_frozen(self) -> None:
        arg = BoolArgument(name="b", type="bool", description="B")
        with pytest.raises(ValidationError):
            arg.default = True


# =============================================================================
# IgnoreRule Tests
# =============================================================================

class TestIgnoreRule:
    """Tests for IgnoreRule."""

    def test_defaults(self) -> None:
        rule = IgnoreRule(paths=["src/main.rs"])

        assert rule.condition is None
        assert rule.ignore_from is IgnoreMode.ALL

    def test_exact_path(self) -> None:
        rule = IgnoreRule(paths=["src/main.rs"], condition="{{ crate_lib }}")

        assert rule.matches("src/main.rs")
        assert not rule.matches("src/lib.rs")

    def test_wildcards(self) -> None:
        rule = IgnoreRule(paths=["*.png", "assets/**/*.svg"])

        assert rule.matches("logo.png")
        assert rule.matches("docs/img/logo.png")
        assert rule.matches("assets/icons/small/a.svg")
        assert not rule.matches("src/logo.svg")

    def test_directory_pattern(self) -> None:
        """Test that ``name/`` only matches directories (trailing slash)."""
        rule = IgnoreRule(paths=["ci/"])

        assert rule.matches("ci/")
        assert not rule.matches("ci")

    def test_invalid_mode(self) -> None:
        with pytest.raises(ValidationError):
            IgnoreRule(paths=["a"], ignore_from="sometimes")

    def test_paths_required(self) -> None:
        with pytest.raises(ValidationError):
            IgnoreRule(paths=[])


# =============================================================================
# Settings Model Tests
# =============================================================================

class TestSettingsModels:
    """Tests for TemplateConfig and GlobalSettings."""

    def test_template_config_defaults(self) -> None:
        arg = BoolArgument(name="ci", type="bool", description="CI")
        config = TemplateConfig(arguments=(arg,))

        assert config.arguments == (arg,)
        assert config.ignore == ()
        assert config.crate_type is None

    def test_global_settings(self) -> None:
        settings = GlobalSettings.model_validate({
            "git": {"ssh_key": "~/.ssh/id_ed25519"},
            "bookmarks": {
                "axum": {
                    "repository": "git@github.com:owner/templates.git",
                    "folder": "axum",
                    "defaults": {"license": {"value": "MIT", "skip_prompt": True}},
                },
            },
        })

        bookmark = settings.bookmarks["axum"]
        assert bookmark.folder == "axum"
        assert bookmark.description is None
        assert bookmark.defaults["license"].value == "MIT"
        assert bookmark.defaults["license"].skip_prompt is True
        assert settings.git.ssh_key is not None

    def test_empty_global_settings(self) -> None:
        settings = GlobalSettings()

        assert settings.bookmarks == {}
        assert settings.git.ssh_key is None

    def test_unknown_bookmark_key(self) -> None:
        with pytest.raises(ValidationError):
            GlobalSettings.model_validate({"bookmarks": {"a": {"repository": "x", "branch": "main"}}})
