"""Database session management."""

from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import Engine, create_engine, event, text
from sqlalchemy.orm import Session, sessionmaker

from channel_sync.config import settings
from channel_sync.db.models import Base


def _configure_sqlite_connection(dbapi_connection: Any, connection_record: Any) -> None:
    # SQLite leaves foreign key enforcement off on every new connection.
    # BEGIN is emitted by SQLAlchemy instead of the driver.
    dbapi_connection.isolation_level = None
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _begin_immediate(conn: Any) -> None:
    # Take the write lock up front so concurrent writers wait on the busy timeout
    conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_db_engine(database_url: str | None = None) -> Engine:
    """Create an engine for the configured (or given) database URL."""
    url = database_url or settings.database_url
    options: dict[str, Any] = {"pool_pre_ping": True}
    if not url.startswith("sqlite"):
        options.update(pool_size=5, max_overflow=10)

    engine = create_engine(url, **options)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _configure_sqlite_connection)
        event.listen(engine, "begin", _begin_immediate)
    return engine


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Create a session factory bound to an engine."""
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
    )


@contextmanager
def get_session_context(session_factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    """Get a database session as a context manager, committing on success."""
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db(engine: Engine, create_tables: bool = False) -> None:
    """Verify connectivity and optionally create missing tables."""
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))

    if create_tables:
        Base.metadata.create_all(engine)
