"""Tests for unit of work commit and rollback failure handling."""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from tunetransfer.domain.errors import PersistenceError
from tunetransfer.infrastructure.persistence import DatabaseUnitOfWork


def disk_error(statement: str) -> OperationalError:
    return OperationalError(statement, {}, Exception("disk I/O error"))


class TestUnitOfWorkFailures:
    """Test that transaction failures stay inside the error taxonomy."""

    @pytest.mark.asyncio
    async def test_commit_failure_becomes_persistence_error(self):
        session = AsyncMock()
        session.commit.side_effect = disk_error("COMMIT")

        with pytest.raises(PersistenceError, match="Commit failed"):
            async with DatabaseUnitOfWork(session):
                pass

        session.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_explicit_rollback_failure_becomes_persistence_error(self):
        session = AsyncMock()
        session.rollback.side_effect = disk_error("ROLLBACK")

        with pytest.raises(PersistenceError, match="Rollback failed"):
            await DatabaseUnitOfWork(session).rollback()

    @pytest.mark.asyncio
    async def test_rollback_failure_keeps_original_error(self):
        session = AsyncMock()
        session.rollback.side_effect = disk_error("ROLLBACK")

        with pytest.raises(ValueError, match="bad payload"):
            async with DatabaseUnitOfWork(session):
                raise ValueError("bad payload")

        session.close.assert_awaited_once()
