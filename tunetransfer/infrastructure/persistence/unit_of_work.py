"""Database Unit of Work implementation for transaction boundary management.

This module provides the concrete implementation of the UnitOfWork pattern,
handling transaction management and repository creation using a shared database session.
"""

from typing import Self

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tunetransfer.config import get_logger
from tunetransfer.domain.errors import PersistenceError
from tunetransfer.domain.repositories.interfaces import (
    PlaylistRepositoryProtocol,
    TrackRepositoryProtocol,
    UnitOfWorkFactory,
    UserRepositoryProtocol,
)
from tunetransfer.infrastructure.persistence.repositories import (
    PlaylistRepository,
    TrackRepository,
    UserRepository,
)

logger = get_logger(__name__)


class DatabaseUnitOfWork:
    """Database implementation of the Unit of Work pattern.

    Owns one session for its lifetime; every repository handed out shares
    that session's transaction. Commits on clean exit unless already
    committed, rolls back when the block raises, and always closes the
    session. Commit and rollback failures surface as ``PersistenceError``.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._committed = False

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        try:
            if exc_type is not None:
                try:
                    await self.rollback()
                except PersistenceError as e:
                    # The block's own exception keeps propagating
                    logger.warning(
                        "Rollback failed while handling an error",
                        error=str(e),
                        original=repr(exc_val),
                    )
            elif not self._committed:
                await self.commit()
        finally:
            await self._session.close()

    async def commit(self) -> None:
        """Explicitly commit the current transaction."""
        try:
            await self._session.commit()
        except SQLAlchemyError as e:
            logger.error("Commit failed", error=str(e))
            raise PersistenceError(f"Commit failed: {e}") from e
        self._committed = True

    async def rollback(self) -> None:
        """Explicitly rollback the current transaction."""
        try:
            await self._session.rollback()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Rollback failed: {e}") from e

    def get_user_repository(self) -> UserRepositoryProtocol:
        """Get user repository using this unit of work's transaction."""
        return UserRepository(self._session)

    def get_track_repository(self) -> TrackRepositoryProtocol:
        """Get track repository using this unit of work's transaction."""
        return TrackRepository(self._session)

    def get_playlist_repository(self) -> PlaylistRepositoryProtocol:
        """Get playlist repository using this unit of work's transaction."""
        return PlaylistRepository(self._session)


def make_uow_factory(
    session_factory: async_sessionmaker[AsyncSession],
) -> UnitOfWorkFactory:
    """Create a factory producing an independent unit of work per call."""

    def factory() -> DatabaseUnitOfWork:
        return DatabaseUnitOfWork(session_factory())

    return factory
