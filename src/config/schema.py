"""Environment variable schema for application startup."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class FieldKind(str, Enum):
    """Kind of value a variable is coerced to."""
    STRING = "string"
    INTEGER = "integer"
    ENUM = "enum"


class Environment(str, Enum):
    """Deployment environment enumeration."""
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    STAGING = "staging"


@dataclass(frozen=True)
class FieldSpec:
    """Validation rules for a single environment variable."""
    name: str
    kind: FieldKind
    required: bool = True
    default: Any = None
    nullable: bool = False  # optional with no default resolves to None

    # Constraints
    min: Optional[int] = None
    max: Optional[int] = None
    min_length: Optional[int] = None
    choices: Optional[tuple[str, ...]] = None
    enum_type: Optional[type[Enum]] = None

    # Human-readable messages, one per constraint
    required_message: Optional[str] = None
    type_message: Optional[str] = None
    min_message: Optional[str] = None
    max_message: Optional[str] = None
    min_length_message: Optional[str] = None
    choices_message: Optional[str] = None

    secret: bool = False  # masked in log output

    @property
    def attr(self) -> str:
        """Attribute name on the validated config."""
        return self.name.lower()

    @property
    def allowed_values(self) -> tuple[str, ...]:
        """Permitted raw values for an enum field."""
        if self.choices:
            return self.choices
        if self.enum_type is not None:
            return tuple(member.value for member in self.enum_type)
        return ()


ENV_SCHEMA: tuple[FieldSpec, ...] = (
    FieldSpec(
        "NODE_ENV",
        FieldKind.ENUM,
        enum_type=Environment,
        choices_message="NODE_ENV must be one of: development, production, staging.",
    ),
    FieldSpec(
        "PORT",
        FieldKind.INTEGER,
        min=1024,
        max=65535,
        min_message="PORT must be at least 1024.",
        max_message="PORT must not exceed 65535.",
    ),
    FieldSpec(
        "DB_HOST",
        FieldKind.STRING,
        min_length=1,
        required_message="DB_HOST is required.",
    ),
    FieldSpec(
        "DB_PORT",
        FieldKind.INTEGER,
        min=1,
        max=65535,
        min_message="DB_PORT must be a valid port number.",
        max_message="DB_PORT must not exceed 65535.",
    ),
    FieldSpec(
        "DB_USERNAME",
        FieldKind.STRING,
        min_length=1,
        required_message="DB_USERNAME is required.",
    ),
    FieldSpec(
        "DB_PASSWORD",
        FieldKind.STRING,
        min_length=6,
        required_message="DB_PASSWORD is required.",
        min_length_message="DB_PASSWORD must be at least 6 characters for security.",
        secret=True,
    ),
    FieldSpec(
        "DB_SERVICE_NAME",
        FieldKind.STRING,
        min_length=1,
        required_message="DB_SERVICE_NAME is required.",
    ),
    FieldSpec(
        "DB_QUERY_TIMEOUT",
        FieldKind.INTEGER,
        required=False,
        default=300000,
        min=1000,
        max=300000,
        min_message="DB_QUERY_TIMEOUT must be at least 1000ms (1 second).",
        max_message="DB_QUERY_TIMEOUT should not exceed 300000ms (5 minutes).",
    ),
    FieldSpec(
        "DB_POOL_MIN",
        FieldKind.INTEGER,
        required=False,
        default=2,
        min=1,
        max=50,
        min_message="DB_POOL_MIN must be at least 1.",
        max_message="DB_POOL_MIN should not exceed 50.",
    ),
    FieldSpec(
        "DB_POOL_MAX",
        FieldKind.INTEGER,
        required=False,
        default=10,
        min=1,
        max=100,
        min_message="DB_POOL_MAX must be at least 1.",
        max_message="DB_POOL_MAX should not exceed 100.",
    ),
    FieldSpec(
        "JWT_SECRET",
        FieldKind.STRING,
        min_length=32,
        required_message="JWT_SECRET is required.",
        min_length_message=(
            "JWT_SECRET must be at least 32 characters for security. "
            "Current length is too short."
        ),
        secret=True,
    ),
    FieldSpec(
        "JWT_EXPIRATION_TIME",
        FieldKind.STRING,
        min_length=1,
        required_message="JWT_EXPIRATION_TIME is required.",
    ),
    FieldSpec(
        "RATE_LIMIT_TTL",
        FieldKind.INTEGER,
        required=False,
        default=60,
        min=1,
        max=3600,
        min_message="RATE_LIMIT_TTL must be at least 1 second.",
        max_message="RATE_LIMIT_TTL should not exceed 3600 seconds (1 hour).",
    ),
    FieldSpec(
        "RATE_LIMIT_MAX",
        FieldKind.INTEGER,
        required=False,
        default=100,
        min=1,
        max=1000,
        min_message="RATE_LIMIT_MAX must be at least 1.",
        max_message="RATE_LIMIT_MAX should not exceed 1000.",
    ),
    FieldSpec(
        "AUTH_REQUIRED_COD_SECTION",
        FieldKind.INTEGER,
        required=False,
        nullable=True,
    ),
    FieldSpec(
        "AUTH_REQUIRED_AREA_ACTING",
        FieldKind.STRING,
        required=False,
        nullable=True,
    ),
)


def check_schema(schema: tuple[FieldSpec, ...]) -> None:
    """
    Reject malformed schemas.

    Raises:
        ValueError: On duplicate names, an optional field with neither a
            default nor ``nullable``, or an enum field without choices.
    """
    seen: set[str] = set()
    for spec in schema:
        if spec.name in seen:
            raise ValueError(f"Duplicate schema field: {spec.name}")
        seen.add(spec.name)

        if not spec.required and spec.default is None and not spec.nullable:
            raise ValueError(f"Optional field {spec.name} needs a default or nullable=True")

        if spec.kind == FieldKind.ENUM and not spec.allowed_values:
            raise ValueError(f"Enum field {spec.name} has no choices")
