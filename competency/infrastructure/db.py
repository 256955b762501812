"""
Database connection and session management.

Builds the SQLAlchemy engine and session factory from ``DatabaseConfig``.
SQLite connections get foreign-key enforcement switched on so binding and
question cascades behave as they do on MySQL.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from .config import DatabaseConfig, get_settings
from .exceptions import ConnectionError
from .logging import get_logger

logger = get_logger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_database_engine(config: DatabaseConfig | None = None) -> Engine:
    """
    Create SQLAlchemy engine with proper configuration.

    Args:
        config: Database configuration (uses settings if None)

    Raises:
        ConnectionError: If the engine cannot be created

    Example:
        >>> engine = create_database_engine(DatabaseConfig(sqlite_path=":memory:"))
    """
    if config is None:
        config = get_settings().database

    connection_url = config.get_connection_url()
    engine_options = config.get_engine_options()
    if config.backend == "sqlite" and config.sqlite_path == ":memory:":
        # One shared connection, otherwise every session sees an empty database
        engine_options.update(
            poolclass=StaticPool, connect_args={"check_same_thread": False}
        )

    logger.info(f"Creating database engine for {config.backend} backend")
    logger.debug(f"Connection URL: {connection_url.split('@')[0]}@***")  # Hide credentials in logs

    try:
        engine = create_engine(connection_url, **engine_options)
    except Exception as e:
        logger.error(f"Failed to create database engine: {str(e)}")
        raise ConnectionError(str(e), details={"backend": config.backend}) from e

    if config.backend == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def create_session_factory(engine: Engine | None = None) -> sessionmaker:
    """
    Create SQLAlchemy session factory.

    Example:
        >>> SessionLocal = create_session_factory(engine)
        >>> with SessionLocal() as session:
        ...     pass
    """
    if engine is None:
        engine = create_database_engine()

    logger.debug("Creating session factory")
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
