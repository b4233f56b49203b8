"""SQLAlchemy database models for tunetransfer.

Each table stores one entity kind with an explicit provider-keyed identity:
the ``(provider, provider-local id)`` pair is enforced by a unique constraint,
which is what the repositories' ``ON CONFLICT`` upserts target. Provider
payloads are kept as JSON documents.
"""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Index, MetaData, String, UniqueConstraint, inspect
from sqlalchemy.ext.asyncio import AsyncAttrs, AsyncEngine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from tunetransfer.config import get_logger

logger = get_logger(__name__)

# Naming convention for constraints
convention = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_N_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention)


class TuneTransferDBBase(AsyncAttrs, DeclarativeBase):
    """Base class for all database models with audit timestamps."""

    metadata = metadata

    id: Mapped[int] = mapped_column(primary_key=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )


class DBUser(TuneTransferDBBase):
    """Provider account with its latest profile payload."""

    __tablename__ = "users"

    provider: Mapped[str] = mapped_column(String(32))
    provider_user_id: Mapped[str] = mapped_column(String(128))
    profile: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)

    __table_args__ = (UniqueConstraint("provider", "provider_user_id"),)


class DBTrack(TuneTransferDBBase):
    """Provider track, global across users and playlists."""

    __tablename__ = "tracks"

    provider: Mapped[str] = mapped_column(String(32))
    provider_track_id: Mapped[str] = mapped_column(String(128))
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)

    __table_args__ = (UniqueConstraint("provider", "provider_track_id"),)


class DBPlaylist(TuneTransferDBBase):
    """A user's playlist with its ordered track references."""

    __tablename__ = "playlists"

    provider: Mapped[str] = mapped_column(String(32))
    provider_user_id: Mapped[str] = mapped_column(String(128))
    provider_playlist_id: Mapped[str] = mapped_column(String(128))
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    # Ordered [{track_id, provider_track_id, added_at}] references into tracks
    items: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)

    __table_args__ = (
        UniqueConstraint("provider", "provider_user_id", "provider_playlist_id"),
        Index(None, "provider", "provider_user_id"),
    )


async def init_db(engine: AsyncEngine) -> None:
    """Create all tables that do not exist yet.

    Safe to call repeatedly; existing data is left untouched.
    """
    try:
        async with engine.connect() as conn:
            existing_tables = await conn.run_sync(
                lambda sync_conn: inspect(sync_conn).get_table_names()
            )
            if existing_tables:
                logger.debug(f"Found existing tables: {existing_tables}")

        async with engine.begin() as conn:
            await conn.run_sync(TuneTransferDBBase.metadata.create_all)

    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise
    else:
        logger.info("Database schema initialization complete")
