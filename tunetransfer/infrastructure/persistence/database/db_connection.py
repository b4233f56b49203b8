"""SQLAlchemy engine and session management.

This module is responsible for:
- Engine creation and SQLite tuning for concurrent writers
- Session factory creation

Engines are created from explicit settings rather than a process-wide
singleton, so tests and the CLI each own their database.
"""

from pathlib import Path

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from tunetransfer.config import Settings, get_logger

logger = get_logger(__name__)


def _ensure_sqlite_directory(db_url: str) -> None:
    """Create the parent directory of a file-based SQLite database."""
    url = make_url(db_url)
    if url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)


def create_db_engine(settings: Settings) -> AsyncEngine:
    """Create an async engine configured for the settings' database URL.

    SQLite connections get WAL journaling and a busy timeout so concurrent
    playlist workers queue for the write lock instead of failing.
    """
    db_url = settings.database.url
    is_sqlite = db_url.startswith("sqlite")

    connect_args = {}
    if is_sqlite:
        _ensure_sqlite_directory(db_url)
        connect_args = {
            "check_same_thread": False,
            "timeout": settings.database.busy_timeout_ms / 1000,
        }

    engine = create_async_engine(
        db_url,
        connect_args=connect_args,
        pool_pre_ping=True,
        echo=settings.database.echo,
    )

    if is_sqlite:
        busy_timeout_ms = settings.database.busy_timeout_ms

        @event.listens_for(engine.sync_engine, "connect")  # type: ignore
        def _set_sqlite_pragma(dbapi_connection, _):  # type: ignore # pragma: no cover
            """Set SQLite PRAGMAs on connection creation."""
            cursor = dbapi_connection.cursor()
            cursor.execute(f"PRAGMA busy_timeout = {int(busy_timeout_ms)}")
            cursor.execute("PRAGMA journal_mode = WAL")
            cursor.execute("PRAGMA synchronous = NORMAL")
            cursor.execute("PRAGMA foreign_keys = ON")
            cursor.close()

    logger.debug("Created database engine", dialect=engine.dialect.name)
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create an async session factory bound to ``engine``."""
    return async_sessionmaker(
        bind=engine,
        expire_on_commit=False,  # Domain mapping happens after commit
        autoflush=True,
    )

