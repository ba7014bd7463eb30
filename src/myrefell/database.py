"""Database connection and session management.

This module provides database connection management, session factories,
and utility functions for database operations.
"""

from collections.abc import Generator
from contextlib import suppress
from typing import Any

from sqlalchemy import create_engine, event, func, inspect, select, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from myrefell.config import get_settings
from myrefell.models import Base


def _configure_sqlite(
    dbapi_connection: Any, connection_record: Any  # noqa: ARG001
) -> None:
    """Enable WAL journaling and foreign key enforcement on SQLite connections.

    Args:
        dbapi_connection: The DBAPI connection
        connection_record: Connection record (required by SQLAlchemy event API)
    """
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(url: str | None = None) -> Engine:
    """Create and configure the database engine.

    Args:
        url: Optional database URL overriding the configured one

    Returns:
        Engine: Configured SQLAlchemy engine
    """
    settings = get_settings()
    database_url = url or settings.database_url

    if database_url.startswith("sqlite"):
        engine = create_engine(
            database_url,
            echo=settings.database_echo,
            pool_pre_ping=True,
            connect_args={"check_same_thread": False},
        )
        event.listen(engine, "connect", _configure_sqlite)
    else:
        engine = create_engine(
            database_url,
            echo=settings.database_echo,
            pool_pre_ping=True,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_recycle=settings.database_pool_recycle,
            pool_timeout=settings.database_pool_timeout,
        )

    return engine


# Global engine and session factory
_engine: Engine | None = None
_SessionLocal: sessionmaker[Session] | None = None


def get_engine() -> Engine:
    """Get or create the global database engine."""
    global _engine  # noqa: PLW0603
    if _engine is None:
        _engine = create_db_engine()
    return _engine


def get_session_factory() -> sessionmaker[Session]:
    """Get or create the global session factory."""
    global _SessionLocal  # noqa: PLW0603
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=get_engine(),
        )
    return _SessionLocal


def get_db() -> Generator[Session]:
    """FastAPI dependency yielding a request-scoped database session.

    Yields:
        Database session

    Example:
        ```python
        @router.get("/inventory")
        def inventory(db: Session = Depends(get_db)):
            ...
        ```
    """
    SessionLocal = get_session_factory()  # noqa: N806
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Create all tables directly from the model metadata.

    Note:
        Production deployments should run ``alembic upgrade head`` instead.
    """
    Base.metadata.create_all(bind=get_engine())


def dispose_engine() -> None:
    """Dispose the global engine and forget the cached session factory."""
    global _engine, _SessionLocal  # noqa: PLW0603
    if _engine is not None:
        with suppress(SQLAlchemyError):
            _engine.dispose()
    _engine = None
    _SessionLocal = None


def check_database_health() -> bool:
    """Check if the database is accessible.

    Returns:
        bool: True if a trivial query succeeds, False otherwise
    """
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError:
        return False


def get_table_names() -> list[str]:
    """Get list of all table names in the database."""
    return inspect(get_engine()).get_table_names()


def count_rows(session: Session, table_name: str) -> int:
    """Count rows in a specific table.

    Args:
        session: Database session
        table_name: Name of a table defined in the model metadata

    Returns:
        int: Number of rows in the table

    Raises:
        ValueError: If table_name is not a valid table in the schema
    """
    if table_name not in Base.metadata.tables:
        valid_tables = sorted(Base.metadata.tables.keys())
        raise ValueError(
            f"Invalid table name: {table_name}. Valid tables: {', '.join(valid_tables)}"
        )

    table = Base.metadata.tables[table_name]
    result = session.execute(select(func.count()).select_from(table)).scalar()
    return result or 0
