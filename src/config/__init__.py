"""Configuration management and validation."""

from .loader import get_config, load_raw_environment, reset_config_cache
from .schema import ENV_SCHEMA, Environment, FieldKind, FieldSpec
from .settings import EnvironmentConfig
from .validator import (
    ConfigValidationError,
    ConfigValidator,
    ValidationIssue,
    ValidationResult,
    format_validation_report,
    validate_environment,
)

__all__ = [
    "ENV_SCHEMA",
    "Environment",
    "FieldKind",
    "FieldSpec",
    "EnvironmentConfig",
    "ConfigValidator",
    "ConfigValidationError",
    "ValidationIssue",
    "ValidationResult",
    "format_validation_report",
    "validate_environment",
    "get_config",
    "load_raw_environment",
    "reset_config_cache",
]
