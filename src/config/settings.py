"""Validated, typed application configuration."""

from dataclasses import dataclass, fields
from typing import Any, Optional

from .schema import ENV_SCHEMA, Environment

MASK = "***"

_SECRET_ATTRS = frozenset(spec.attr for spec in ENV_SCHEMA if spec.secret)


@dataclass(frozen=True)
class EnvironmentConfig:
    """
    Startup configuration, one attribute per environment variable.

    Only produced by a successful validation pass and read-only afterwards.
    """
    node_env: Environment
    port: int
    db_host: str
    db_port: int
    db_username: str
    db_password: str
    db_service_name: str
    db_query_timeout: int
    db_pool_min: int
    db_pool_max: int
    jwt_secret: str
    jwt_expiration_time: str
    rate_limit_ttl: int
    rate_limit_max: int
    auth_required_cod_section: Optional[int] = None
    auth_required_area_acting: Optional[str] = None

    @property
    def is_development(self) -> bool:
        return self.node_env == Environment.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        return self.node_env == Environment.PRODUCTION

    @property
    def rate_limit_ttl_ms(self) -> int:
        """Rate limit window in milliseconds."""
        return self.rate_limit_ttl * 1000

    def as_dict(self, mask_secrets: bool = True) -> dict[str, Any]:
        """Return the config as a plain dict, keyed by variable name."""
        result: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, Environment):
                value = value.value
            if mask_secrets and f.name in _SECRET_ATTRS and value is not None:
                value = MASK
            result[f.name.upper()] = value
        return result
