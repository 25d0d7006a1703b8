"""
Application startup sequence.

Loads and validates the environment, then wires logging, the database
engine and the request throttler. Runs once, before any listener exists;
a configuration error aborts startup.
"""

import argparse
import json
import logging
import sys
from typing import Mapping, Optional

from sqlalchemy.engine import Engine

from .config.loader import DEFAULT_ENV_FILE, load_raw_environment
from .config.settings import EnvironmentConfig
from .config.validator import ConfigValidationError, validate_environment
from .database.connection import dispose_db, init_db
from .throttling.limiter import Throttler
from .utils.logging import (
    LogContext,
    get_logger,
    log_config_summary,
    setup_logging,
)

logger = get_logger("bootstrap")


class Application:
    """Validated configuration plus the collaborators built from it."""

    def __init__(
        self,
        config: EnvironmentConfig,
        engine: Optional[Engine] = None,
        throttler: Optional[Throttler] = None,
    ):
        self.config = config
        self.engine = engine
        self.throttler = throttler or Throttler.from_config(config)

    def __repr__(self) -> str:
        return (
            f"<Application(env={self.config.node_env.value}, port={self.config.port}, "
            f"db={'up' if self.engine is not None else 'off'})>"
        )

    def shutdown(self) -> None:
        """Release the database pool."""
        if self.engine is not None:
            dispose_db()
            self.engine = None
        logger.info("Application shut down")


def configure_logging(
    config: EnvironmentConfig,
    level: Optional[str] = None,
    json_format: Optional[bool] = None,
) -> logging.Logger:
    """Text logs in development, JSON elsewhere, unless overridden."""
    if level is None:
        level = "DEBUG" if config.is_development else "INFO"
    if json_format is None:
        json_format = not config.is_development
    return setup_logging(level=level, json_format=json_format)


def create_application(
    env_file: Optional[str] = DEFAULT_ENV_FILE,
    environ: Optional[Mapping[str, str]] = None,
    connect_db: bool = True,
    log_level: Optional[str] = None,
    json_logs: Optional[bool] = None,
) -> Application:
    """
    Run the startup sequence.

    Args:
        env_file: Path to a .env file (None to skip)
        environ: Process environment override (defaults to os.environ)
        connect_db: Build the database engine
        log_level: Override the environment's default log level
        json_logs: Override the environment's default log format

    Returns:
        Application ready to serve

    Raises:
        ConfigValidationError: If the environment is invalid
    """
    raw = load_raw_environment(env_file, environ)
    config = validate_environment(raw)

    configure_logging(config, level=log_level, json_format=json_logs)

    with LogContext(phase="startup", node_env=config.node_env.value):
        log_config_summary(logger, config.as_dict(mask_secrets=True))

        engine = init_db(config) if connect_db else None
        throttler = Throttler.from_config(config)
        logger.info(
            f"Throttling {throttler.options.limit} requests per {throttler.options.ttl_ms}ms"
        )

    return Application(config, engine=engine, throttler=throttler)


def main(argv: Optional[list[str]] = None) -> int:
    """Entry point: validate the environment and report."""
    parser = argparse.ArgumentParser(description="Validate startup configuration")
    parser.add_argument(
        "--env-file",
        default=DEFAULT_ENV_FILE,
        help="Path to .env file",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Only validate the environment and print the masked config",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        default=None,
        help="Force JSON log output",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level",
    )

    args = parser.parse_args(argv)

    try:
        if args.check:
            config = validate_environment(load_raw_environment(args.env_file))
            print(json.dumps(config.as_dict(mask_secrets=True), indent=2))
            return 0

        app = create_application(
            env_file=args.env_file,
            log_level=args.log_level,
            json_logs=args.json_logs,
        )
    except ConfigValidationError as e:
        # Logging is not configured yet; the report is the only output
        print(str(e), file=sys.stderr)
        return 1

    print(f"Startup complete: {app!r}")
    app.shutdown()
    return 0


if __name__ == "__main__":
    sys.exit(main())
