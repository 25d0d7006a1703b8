"""Database connection factory."""

from .connection import (
    DatabaseOptions,
    build_database_url,
    create_db_engine,
    dispose_db,
    engine_kwargs,
    get_engine,
    get_session,
    init_db,
)

__all__ = [
    "DatabaseOptions",
    "build_database_url",
    "create_db_engine",
    "dispose_db",
    "engine_kwargs",
    "get_engine",
    "get_session",
    "init_db",
]
