"""Environment variable validation for application startup."""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from .schema import ENV_SCHEMA, FieldKind, FieldSpec, check_schema
from .settings import EnvironmentConfig

logger = logging.getLogger(__name__)

BANNER = "=" * 60
REPORT_TITLE = "CONFIGURATION VALIDATION FAILED"
REPORT_GUIDANCE = "Check your .env file and compare with .env.example"

_INTEGER_RE = re.compile(r"[+-]?[0-9]+")

# Sentinel for a field whose coercion failed
_INVALID = object()

_PREVIEW_CHARS = 40


def _preview(raw_value: Any) -> str:
    """Shorten a raw value for use inside a message."""
    text = str(raw_value)
    if len(text) <= _PREVIEW_CHARS:
        return text
    return f"{text[:_PREVIEW_CHARS]}... ({len(text)} chars)"


@dataclass(frozen=True)
class ValidationIssue:
    """A single violated constraint."""
    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


def format_validation_report(issues: list[ValidationIssue]) -> str:
    """Render issues as the banner-delimited startup report."""
    lines = [
        "",
        BANNER,
        REPORT_TITLE,
        BANNER,
        *(str(issue) for issue in issues),
        BANNER,
        REPORT_GUIDANCE,
        BANNER,
    ]
    return "\n".join(lines) + "\n"


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    def __init__(self, issues: list[ValidationIssue]):
        self.issues = list(issues)
        super().__init__(format_validation_report(self.issues))

    @property
    def fields(self) -> list[str]:
        """Names of the offending variables, in report order, without repeats."""
        return list(dict.fromkeys(issue.field for issue in self.issues))


@dataclass
class ValidationResult:
    """Result of configuration validation."""
    valid: bool
    issues: list[ValidationIssue] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    config: Optional[EnvironmentConfig] = None

    def __bool__(self) -> bool:
        return self.valid

    @property
    def errors(self) -> list[str]:
        """Issues rendered as ``"<field>: <message>"`` lines."""
        return [str(issue) for issue in self.issues]


class ConfigValidator:
    """Validates raw environment variables against a schema."""

    def __init__(
        self,
        schema: Optional[tuple[FieldSpec, ...]] = None,
        config_class: type = EnvironmentConfig,
    ):
        self.schema = schema if schema is not None else ENV_SCHEMA
        self.config_class = config_class
        check_schema(self.schema)

    def validate(self, raw: Mapping[str, Any]) -> ValidationResult:
        """
        Validate raw environment values against the schema.

        Every field is checked and every issue is collected before the
        result is returned; a config is only built when there are none.

        Args:
            raw: Mapping of variable name to raw string value

        Returns:
            ValidationResult with issues, warnings and (on success) config
        """
        issues: list[ValidationIssue] = []
        warnings: list[str] = []
        resolved: dict[str, Any] = {}

        for spec in self.schema:
            value = self._validate_field(spec, raw.get(spec.name), issues)
            if value is not _INVALID:
                resolved[spec.name] = value

        if issues:
            return ValidationResult(valid=False, issues=issues)

        self._validate_cross_fields(resolved, warnings)

        config = self.config_class(
            **{spec.attr: resolved[spec.name] for spec in self.schema}
        )
        return ValidationResult(valid=True, warnings=warnings, config=config)

    def _validate_field(
        self,
        spec: FieldSpec,
        raw_value: Any,
        issues: list[ValidationIssue],
    ) -> Any:
        """Resolve a single field, appending any issues. Returns _INVALID on failure."""
        # Only a missing variable is absent; `VAR=` is present and blank
        if raw_value is None:
            if spec.required:
                issues.append(ValidationIssue(
                    spec.name,
                    spec.required_message or f"{spec.name} is required.",
                ))
                return _INVALID
            # Defaults are trusted and not re-validated
            return spec.default

        value = self._coerce(spec, raw_value, issues)
        if value is _INVALID:
            return _INVALID

        count = len(issues)
        self._check_constraints(spec, value, issues)
        return value if len(issues) == count else _INVALID

    def _coerce(
        self,
        spec: FieldSpec,
        raw_value: Any,
        issues: list[ValidationIssue],
    ) -> Any:
        """Convert a raw value to the field's declared kind."""
        if spec.kind == FieldKind.INTEGER:
            if isinstance(raw_value, int) and not isinstance(raw_value, bool):
                return raw_value
            text = str(raw_value).strip()
            if _INTEGER_RE.fullmatch(text):
                try:
                    return int(text, 10)
                except ValueError:
                    pass  # more digits than int() accepts
            issues.append(ValidationIssue(
                spec.name,
                spec.type_message or f"{spec.name} must be an integer, got '{_preview(raw_value)}'.",
            ))
            return _INVALID

        if spec.kind == FieldKind.ENUM:
            allowed = spec.allowed_values
            if raw_value not in allowed:
                issues.append(ValidationIssue(
                    spec.name,
                    spec.choices_message
                    or f"{spec.name} must be one of: {', '.join(allowed)}.",
                ))
                return _INVALID
            return spec.enum_type(raw_value) if spec.enum_type else raw_value

        if not isinstance(raw_value, str):
            issues.append(ValidationIssue(
                spec.name,
                spec.type_message or f"{spec.name} must be a string.",
            ))
            return _INVALID
        return raw_value

    def _check_constraints(
        self,
        spec: FieldSpec,
        value: Any,
        issues: list[ValidationIssue],
    ) -> None:
        """Apply range and length constraints to a coerced value."""
        if spec.kind == FieldKind.INTEGER:
            if spec.min is not None and value < spec.min:
                issues.append(ValidationIssue(
                    spec.name,
                    spec.min_message or f"{spec.name} must be at least {spec.min}.",
                ))
            if spec.max is not None and value > spec.max:
                issues.append(ValidationIssue(
                    spec.name,
                    spec.max_message or f"{spec.name} must not exceed {spec.max}.",
                ))

        if spec.kind == FieldKind.STRING and spec.min_length is not None:
            if len(value) < spec.min_length:
                if spec.min_length_message:
                    message = spec.min_length_message
                elif spec.min_length == 1:
                    message = f"{spec.name} must not be empty."
                else:
                    message = f"{spec.name} must be at least {spec.min_length} characters."
                issues.append(ValidationIssue(spec.name, message))

    def _validate_cross_fields(self, resolved: dict[str, Any], warnings: list[str]) -> None:
        """Check relationships between fields. Never produces issues."""
        pool_min = resolved.get("DB_POOL_MIN")
        pool_max = resolved.get("DB_POOL_MAX")
        if pool_min is not None and pool_max is not None and pool_min > pool_max:
            warnings.append(
                f"DB_POOL_MIN ({pool_min}) is greater than DB_POOL_MAX ({pool_max}), "
                f"the pool will be capped at {pool_min} connections"
            )


def validate_environment(
    raw: Mapping[str, Any],
    schema: Optional[tuple[FieldSpec, ...]] = None,
    config_class: type = EnvironmentConfig,
) -> Any:
    """
    Validate raw environment values, raising on errors.

    Args:
        raw: Mapping of variable name to raw string value
        schema: Schema to validate against (defaults to ENV_SCHEMA)
        config_class: Dataclass built from the validated values, one
            lowercase keyword per schema field

    Returns:
        Validated configuration

    Raises:
        ConfigValidationError: If any variable fails validation
    """
    validator = ConfigValidator(schema, config_class=config_class)
    result = validator.validate(raw)

    if not result.valid:
        logger.error(f"Configuration validation failed with {len(result.issues)} issue(s)")
        raise ConfigValidationError(result.issues)

    for warning in result.warnings:
        logger.warning(f"Config warning: {warning}")

    return result.config
