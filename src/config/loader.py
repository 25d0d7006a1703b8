"""Load raw environment variables from a .env file and the process environment."""

import functools
import logging
import os
from pathlib import Path
from typing import Mapping, Optional

from dotenv import dotenv_values

from .settings import EnvironmentConfig
from .validator import validate_environment

logger = logging.getLogger(__name__)

DEFAULT_ENV_FILE = ".env"


def load_raw_environment(
    env_file: Optional[str] = DEFAULT_ENV_FILE,
    environ: Optional[Mapping[str, str]] = None,
) -> dict[str, str]:
    """
    Build the raw environment mapping.

    Values from ``env_file`` are read first; the process environment is laid
    over them, so variables exported in the shell win over the file.

    Args:
        env_file: Path to a .env file, or None to skip file loading
        environ: Process environment (defaults to os.environ)

    Returns:
        Mapping of variable name to raw string value
    """
    raw: dict[str, str] = {}

    if env_file:
        path = Path(env_file)
        if path.is_file():
            file_values = dotenv_values(path)
            # Bare keys without '=' come back as None
            raw.update({k: v for k, v in file_values.items() if v is not None})
            logger.info(f"Loaded {len(raw)} variable(s) from {path}")
        else:
            logger.debug(f"Env file not found: {path}, using process environment only")

    raw.update(os.environ if environ is None else environ)
    return raw


@functools.lru_cache(maxsize=1)
def get_config(env_file: Optional[str] = DEFAULT_ENV_FILE) -> EnvironmentConfig:
    """
    Load and validate configuration once per process.

    Raises:
        ConfigValidationError: If validation fails (nothing is cached)
    """
    return validate_environment(load_raw_environment(env_file))


def reset_config_cache() -> None:
    """Forget the cached configuration."""
    get_config.cache_clear()
