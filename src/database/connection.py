"""Database connection factory built from validated configuration."""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import URL, Engine
from sqlalchemy.orm import Session, sessionmaker

from ..config.settings import EnvironmentConfig

logger = logging.getLogger(__name__)

CONNECTION_NAME = "winthor_conn"
DRIVER = "oracle+oracledb"


@dataclass(frozen=True)
class DatabaseOptions:
    """Connection and pool options for the application database."""
    host: str
    port: int
    username: str
    password: str
    service_name: str
    name: str = CONNECTION_NAME
    pool_min: int = 2
    pool_max: int = 10
    pool_increment: int = 1
    pool_timeout: int = 60  # seconds
    query_timeout_ms: int = 300000
    log_queries: bool = False

    def __repr__(self) -> str:
        return (
            f"<DatabaseOptions(name={self.name}, host={self.host}, port={self.port}, "
            f"service={self.service_name}, pool={self.pool_min}-{self.pool_max})>"
        )

    @classmethod
    def from_config(cls, config: EnvironmentConfig) -> "DatabaseOptions":
        """Create options from validated configuration."""
        return cls(
            host=config.db_host,
            port=config.db_port,
            username=config.db_username,
            password=config.db_password,
            service_name=config.db_service_name,
            pool_min=config.db_pool_min,
            pool_max=config.db_pool_max,
            query_timeout_ms=config.db_query_timeout,
            # Development logs queries, errors and warnings; elsewhere errors only
            log_queries=config.is_development,
        )


def build_database_url(options: DatabaseOptions) -> URL:
    """Build the SQLAlchemy URL for an Oracle service name."""
    return URL.create(
        DRIVER,
        username=options.username,
        password=options.password,
        host=options.host,
        port=options.port,
        query={"service_name": options.service_name},
    )


def engine_kwargs(options: DatabaseOptions) -> dict[str, Any]:
    """Map pool options onto create_engine keyword arguments."""
    return {
        "pool_size": options.pool_min,
        "max_overflow": max(0, options.pool_max - options.pool_min),
        "pool_timeout": options.pool_timeout,
        "pool_pre_ping": True,
        "echo": options.log_queries,
        "logging_name": options.name,
    }


def _install_query_timeout(engine: Engine, timeout_ms: int) -> Callable:
    """Set the driver call timeout (ms) on every new connection."""

    def set_call_timeout(dbapi_connection, connection_record):
        dbapi_connection.call_timeout = timeout_ms

    event.listen(engine, "connect", set_call_timeout)
    return set_call_timeout


def create_db_engine(config: EnvironmentConfig) -> Engine:
    """Create an engine for the configured database."""
    options = DatabaseOptions.from_config(config)
    engine = create_engine(build_database_url(options), **engine_kwargs(options))
    _install_query_timeout(engine, options.query_timeout_ms)

    if not options.log_queries:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.ERROR)

    logger.info(f"Database engine created: {options!r}")
    return engine


# Database initialization
_engine: Optional[Engine] = None
_SessionLocal: Optional[sessionmaker] = None


def init_db(config: EnvironmentConfig) -> Engine:
    """Initialize the database engine and session factory."""
    global _engine, _SessionLocal

    if _engine is not None:
        _engine.dispose()

    _engine = create_db_engine(config)
    _SessionLocal = sessionmaker(bind=_engine)

    return _engine


def get_engine() -> Engine:
    """Get the initialized engine."""
    if _engine is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return _engine


def get_session() -> Session:
    """Get a database session."""
    if _SessionLocal is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return _SessionLocal()


def dispose_db() -> None:
    """Close pooled connections and forget the engine."""
    global _engine, _SessionLocal

    if _engine is not None:
        _engine.dispose()
        logger.info("Database engine disposed")
    _engine = None
    _SessionLocal = None
