"""Shared fixtures."""

import logging

import pytest

from src.config.schema import ENV_SCHEMA
from src.utils.logging import ROOT_LOGGER


@pytest.fixture
def valid_env():
    """A complete environment with every required variable and no optional ones."""
    return {
        "NODE_ENV": "production",
        "PORT": "3000",
        "DB_HOST": "db",
        "DB_PORT": "1521",
        "DB_USERNAME": "u",
        "DB_PASSWORD": "secret1",
        "DB_SERVICE_NAME": "svc",
        "JWT_SECRET": "x" * 32,
        "JWT_EXPIRATION_TIME": "1h",
    }


@pytest.fixture
def clean_environ(monkeypatch):
    """Remove every schema variable from the process environment."""
    for spec in ENV_SCHEMA:
        monkeypatch.delenv(spec.name, raising=False)
    return monkeypatch


@pytest.fixture(autouse=True)
def _reset_app_logger():
    """Undo any setup_logging() call made during a test."""
    yield
    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
