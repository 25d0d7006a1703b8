"""Tests for environment validation."""

import dataclasses
from dataclasses import dataclass
from typing import Optional

import pytest

from src.config.schema import ENV_SCHEMA, Environment, FieldKind, FieldSpec
from src.config.settings import EnvironmentConfig
from src.config.validator import (
    BANNER,
    REPORT_GUIDANCE,
    REPORT_TITLE,
    ConfigValidationError,
    ConfigValidator,
    ValidationIssue,
    format_validation_report,
    validate_environment,
)

REQUIRED_FIELDS = [spec.name for spec in ENV_SCHEMA if spec.required]


@pytest.fixture
def validator():
    return ConfigValidator()


class TestValidEnvironment:
    """Tests for environments that satisfy every constraint."""

    def test_minimal_environment_uses_defaults(self, validator, valid_env):
        """Test that absent optional variables take their defaults."""
        result = validator.validate(valid_env)

        assert result.valid
        assert result.issues == []
        config = result.config
        assert config.db_query_timeout == 300000
        assert config.db_pool_min == 2
        assert config.db_pool_max == 10
        assert config.rate_limit_ttl == 60
        assert config.rate_limit_max == 100
        assert config.auth_required_cod_section is None
        assert config.auth_required_area_acting is None

    def test_values_are_coerced(self, validator, valid_env):
        """Test that fields equal the coerced input values."""
        config = validator.validate(valid_env).config

        assert config.node_env is Environment.PRODUCTION
        assert config.port == 3000
        assert config.db_host == "db"
        assert config.db_port == 1521
        assert config.db_username == "u"
        assert config.db_password == "secret1"
        assert config.db_service_name == "svc"
        assert config.jwt_secret == "x" * 32
        assert config.jwt_expiration_time == "1h"

    def test_explicit_optional_values(self, validator, valid_env):
        """Test that explicitly set optional values override defaults."""
        valid_env.update({
            "DB_QUERY_TIMEOUT": "1000",
            "DB_POOL_MIN": "5",
            "DB_POOL_MAX": "50",
            "RATE_LIMIT_TTL": "3600",
            "RATE_LIMIT_MAX": "1",
            "AUTH_REQUIRED_COD_SECTION": "12",
            "AUTH_REQUIRED_AREA_ACTING": "sales",
        })

        config = validator.validate(valid_env).config

        assert config.db_query_timeout == 1000
        assert config.db_pool_min == 5
        assert config.db_pool_max == 50
        assert config.rate_limit_ttl == 3600
        assert config.rate_limit_max == 1
        assert config.auth_required_cod_section == 12
        assert config.auth_required_area_acting == "sales"

    @pytest.mark.parametrize("port", ["1024", "65535"])
    def test_range_bounds_are_inclusive(self, validator, valid_env, port):
        valid_env["PORT"] = port
        assert validator.validate(valid_env).valid

    def test_integer_whitespace_and_sign(self, validator, valid_env):
        """Test that surrounding whitespace and a plus sign are accepted."""
        valid_env["PORT"] = " 3000 "
        valid_env["DB_PORT"] = "+1521"

        config = validator.validate(valid_env).config

        assert config.port == 3000
        assert config.db_port == 1521

    def test_unknown_variables_ignored(self, validator, valid_env):
        valid_env["PATH"] = "/usr/bin"
        valid_env["SOMETHING_ELSE"] = "not-an-int"

        assert validator.validate(valid_env).valid

    def test_config_is_immutable(self, validator, valid_env):
        config = validator.validate(valid_env).config

        with pytest.raises(dataclasses.FrozenInstanceError):
            config.port = 4000

    def test_result_is_truthy(self, validator, valid_env):
        assert bool(validator.validate(valid_env)) is True


class TestMissingValues:
    """Tests for absent variables."""

    @pytest.mark.parametrize("name", REQUIRED_FIELDS)
    def test_missing_required_field(self, validator, valid_env, name):
        """Test that each required field reports exactly one issue when absent."""
        del valid_env[name]

        result = validator.validate(valid_env)

        assert not result.valid
        assert result.config is None
        assert len(result.issues) == 1
        assert result.issues[0].field == name
        assert "required" in result.issues[0].message

    def test_required_message_default(self, validator, valid_env):
        """Test the generated message for a field with no declared one."""
        del valid_env["NODE_ENV"]

        result = validator.validate(valid_env)

        assert result.errors == ["NODE_ENV: NODE_ENV is required."]

    def test_empty_environment_reports_every_required_field(self, validator):
        result = validator.validate({})

        assert [issue.field for issue in result.issues] == REQUIRED_FIELDS

    def test_blank_optional_integer_is_a_type_error(self, validator, valid_env):
        """Test that `DB_POOL_MIN=` is reported instead of falling back to the default."""
        valid_env["DB_POOL_MIN"] = ""

        result = validator.validate(valid_env)

        assert [issue.field for issue in result.issues] == ["DB_POOL_MIN"]
        assert "must be an integer" in result.issues[0].message
        assert result.config is None

    def test_blank_required_string_is_present_but_empty(self, validator, valid_env):
        valid_env["DB_HOST"] = ""

        result = validator.validate(valid_env)

        assert result.errors == ["DB_HOST: DB_HOST must not be empty."]

    def test_blank_password_fails_length_check(self, validator, valid_env):
        valid_env["DB_PASSWORD"] = ""

        result = validator.validate(valid_env)

        assert result.errors == [
            "DB_PASSWORD: DB_PASSWORD must be at least 6 characters for security."
        ]

    def test_blank_nullable_string_is_kept(self, validator, valid_env):
        valid_env["AUTH_REQUIRED_AREA_ACTING"] = ""

        result = validator.validate(valid_env)

        assert result.valid
        assert result.config.auth_required_area_acting == ""


class TestConstraintViolations:
    """Tests for present but invalid values."""

    @pytest.mark.parametrize("name,value", [
        ("DB_QUERY_TIMEOUT", "999"),
        ("DB_QUERY_TIMEOUT", "300001"),
        ("DB_POOL_MIN", "0"),
        ("DB_POOL_MIN", "51"),
        ("DB_POOL_MAX", "101"),
        ("RATE_LIMIT_TTL", "0"),
        ("RATE_LIMIT_MAX", "1001"),
    ])
    def test_out_of_range_optional_not_defaulted(self, validator, valid_env, name, value):
        """Test that a bad explicit optional value is reported, not replaced by the default."""
        valid_env[name] = value

        result = validator.validate(valid_env)

        assert not result.valid
        assert result.config is None
        assert [issue.field for issue in result.issues] == [name]

    def test_multiple_violations_in_one_pass(self, validator, valid_env):
        valid_env["PORT"] = "80"
        valid_env["DB_PASSWORD"] = "abc"

        result = validator.validate(valid_env)

        assert len(result.issues) >= 2
        assert {issue.field for issue in result.issues} == {"PORT", "DB_PASSWORD"}

    def test_invalid_enum(self, validator, valid_env):
        valid_env["NODE_ENV"] = "test"

        result = validator.validate(valid_env)

        assert len(result.issues) == 1
        message = result.issues[0].message
        for value in ("development", "production", "staging"):
            assert value in message

    def test_enum_is_case_sensitive(self, validator, valid_env):
        valid_env["NODE_ENV"] = "Production"
        assert not validator.validate(valid_env).valid

    def test_short_jwt_secret(self, validator, valid_env):
        valid_env["JWT_SECRET"] = "short"

        result = validator.validate(valid_env)

        assert len(result.issues) == 1
        line = result.errors[0]
        assert line.startswith("JWT_SECRET: ")
        assert "at least 32 characters" in line
        assert result.config is None

    @pytest.mark.parametrize("value", ["abc", "80.5", "   ", "1e3", "0x50"])
    def test_parse_failure_skips_range_check(self, validator, valid_env, value):
        """Test that only the type issue is reported for an unparseable integer."""
        valid_env["PORT"] = value

        result = validator.validate(valid_env)

        assert len(result.issues) == 1
        assert result.issues[0].field == "PORT"
        assert "must be an integer" in result.issues[0].message

    def test_oversized_integer_is_a_type_error(self, validator, valid_env):
        """Test that a digit string too long for int() is reported, not raised."""
        valid_env["PORT"] = "9" * 5000

        result = validator.validate(valid_env)

        assert [issue.field for issue in result.issues] == ["PORT"]
        assert "must be an integer" in result.issues[0].message
        assert "(5000 chars)" in result.issues[0].message

    def test_optional_integer_without_default_is_checked(self, validator, valid_env):
        valid_env["AUTH_REQUIRED_COD_SECTION"] = "abc"

        result = validator.validate(valid_env)

        assert [issue.field for issue in result.issues] == ["AUTH_REQUIRED_COD_SECTION"]

    def test_issues_in_schema_order(self, validator, valid_env):
        valid_env["RATE_LIMIT_MAX"] = "0"
        valid_env["NODE_ENV"] = "qa"
        valid_env["DB_PORT"] = "0"

        result = validator.validate(valid_env)

        assert [issue.field for issue in result.issues] == ["NODE_ENV", "DB_PORT", "RATE_LIMIT_MAX"]


class TestWarnings:
    """Tests for non-fatal cross-field checks."""

    def test_pool_min_above_max_warns(self, validator, valid_env):
        valid_env["DB_POOL_MIN"] = "20"
        valid_env["DB_POOL_MAX"] = "5"

        result = validator.validate(valid_env)

        assert result.valid
        assert len(result.warnings) == 1
        assert "DB_POOL_MIN" in result.warnings[0]

    def test_no_warnings_for_defaults(self, validator, valid_env):
        assert validator.validate(valid_env).warnings == []


class TestValidateEnvironment:
    """Tests for the raising entry point."""

    def test_returns_config(self, valid_env):
        config = validate_environment(valid_env)

        assert isinstance(config, EnvironmentConfig)
        assert config.port == 3000

    def test_raises_with_all_issues(self, valid_env):
        valid_env["PORT"] = "80"
        valid_env["JWT_SECRET"] = "short"
        del valid_env["DB_HOST"]

        with pytest.raises(ConfigValidationError) as exc_info:
            validate_environment(valid_env)

        error = exc_info.value
        assert error.fields == ["PORT", "DB_HOST", "JWT_SECRET"]
        assert len(error.issues) == 3

    def test_error_message_is_report(self, valid_env):
        valid_env["PORT"] = "80"

        with pytest.raises(ConfigValidationError) as exc_info:
            validate_environment(valid_env)

        message = str(exc_info.value)
        assert REPORT_TITLE in message
        assert REPORT_GUIDANCE in message
        assert "PORT: PORT must be at least 1024." in message

    def test_warnings_logged(self, valid_env, caplog):
        valid_env["DB_POOL_MIN"] = "20"
        valid_env["DB_POOL_MAX"] = "5"

        with caplog.at_level("WARNING", logger="src.config.validator"):
            validate_environment(valid_env)

        assert "DB_POOL_MIN" in caplog.text


class TestReportFormatting:
    """Tests for the banner report."""

    def test_report_layout(self):
        issues = [
            ValidationIssue("PORT", "PORT must be at least 1024."),
            ValidationIssue("DB_PASSWORD", "DB_PASSWORD must be at least 6 characters for security."),
        ]

        lines = format_validation_report(issues).splitlines()

        assert lines == [
            "",
            BANNER,
            REPORT_TITLE,
            BANNER,
            "PORT: PORT must be at least 1024.",
            "DB_PASSWORD: DB_PASSWORD must be at least 6 characters for security.",
            BANNER,
            REPORT_GUIDANCE,
            BANNER,
        ]

    def test_banner_width(self):
        assert BANNER == "=" * 60

    def test_issue_str(self):
        assert str(ValidationIssue("PORT", "bad")) == "PORT: bad"


@dataclass(frozen=True)
class _TinyConfig:
    mode: str
    retries: int
    label: Optional[str] = None


TINY_SCHEMA = (
    FieldSpec("MODE", FieldKind.ENUM, choices=("fast", "slow")),
    FieldSpec("RETRIES", FieldKind.INTEGER, required=False, default=3, min=0, max=5),
    FieldSpec("LABEL", FieldKind.STRING, required=False, nullable=True, min_length=3),
)


class TestCustomSchema:
    """Tests for validators built on other schemas."""

    def test_custom_schema_and_config_class(self):
        validator = ConfigValidator(TINY_SCHEMA, config_class=_TinyConfig)

        result = validator.validate({"MODE": "fast"})

        assert result.config == _TinyConfig(mode="fast", retries=3, label=None)

    def test_default_messages(self):
        validator = ConfigValidator(TINY_SCHEMA, config_class=_TinyConfig)

        result = validator.validate({"MODE": "medium", "RETRIES": "9", "LABEL": "ab"})

        assert result.errors == [
            "MODE: MODE must be one of: fast, slow.",
            "RETRIES: RETRIES must not exceed 5.",
            "LABEL: LABEL must be at least 3 characters.",
        ]

    def test_validate_environment_with_custom_config_class(self):
        config = validate_environment(
            {"MODE": "slow", "RETRIES": "1"},
            schema=TINY_SCHEMA,
            config_class=_TinyConfig,
        )

        assert config == _TinyConfig(mode="slow", retries=1, label=None)

    def test_validate_environment_custom_schema_errors(self):
        with pytest.raises(ConfigValidationError) as exc_info:
            validate_environment({}, schema=TINY_SCHEMA, config_class=_TinyConfig)

        assert exc_info.value.fields == ["MODE"]

    def test_duplicate_names_rejected(self):
        schema = (
            FieldSpec("A", FieldKind.STRING),
            FieldSpec("A", FieldKind.INTEGER),
        )
        with pytest.raises(ValueError, match="Duplicate"):
            ConfigValidator(schema)

    def test_optional_without_default_rejected(self):
        schema = (FieldSpec("A", FieldKind.INTEGER, required=False),)
        with pytest.raises(ValueError, match="default"):
            ConfigValidator(schema)

    def test_enum_without_choices_rejected(self):
        schema = (FieldSpec("A", FieldKind.ENUM),)
        with pytest.raises(ValueError, match="choices"):
            ConfigValidator(schema)
