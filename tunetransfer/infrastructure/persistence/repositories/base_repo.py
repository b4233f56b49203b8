"""Repository layer base classes with SQLAlchemy 2.0 upserts.

Every write goes through a single ``INSERT ... ON CONFLICT DO UPDATE ...
RETURNING`` statement targeting the model's identity constraint, so
concurrent writers with the same key converge on one row without a
read-then-write race.
"""

from collections.abc import Iterable, Sequence
from datetime import UTC, datetime
import math
from typing import Any, Generic, Protocol, TypeVar

from attrs import define
from sqlalchemy import Select, func, select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from tunetransfer.config import get_logger
from tunetransfer.domain.errors import PersistenceError
from tunetransfer.infrastructure.persistence.database.db_models import (
    TuneTransferDBBase,
)

logger = get_logger(__name__)

TDBModel = TypeVar("TDBModel", bound=TuneTransferDBBase)
TDomainModel = TypeVar("TDomainModel")

# Rows per statement, well under SQLite's bound parameter limit
UPSERT_CHUNK_SIZE = 150

_DIALECT_INSERTS = {
    "sqlite": sqlite_insert,
    "postgresql": postgresql_insert,
}


class ModelMapper(Protocol[TDBModel, TDomainModel]):
    """Protocol for mapping database rows to domain entities."""

    @staticmethod
    def to_domain(db_model: TDBModel) -> TDomainModel:
        """Convert database model to domain model."""
        ...


@define(frozen=True, slots=True)
class BaseModelMapper(Generic[TDBModel, TDomainModel]):
    """Base mapper with collection support.

    Usage:
        @define(frozen=True, slots=True)
        class UserMapper(BaseModelMapper[DBUser, User]):
            @staticmethod
            def to_domain(db_model: DBUser) -> User:
                return User(...)
    """

    @staticmethod
    def to_domain(db_model: TDBModel) -> TDomainModel:
        raise NotImplementedError("Subclasses must implement to_domain")

    @classmethod
    def map_collection(cls, db_models: Iterable[TDBModel]) -> list[TDomainModel]:
        return [cls.to_domain(db_model) for db_model in db_models]


class BaseRepository(Generic[TDBModel, TDomainModel]):
    """Base repository keyed by a composite identity constraint.

    Args:
        session: Session shared with the enclosing unit of work
        model_class: Mapped table class
        mapper: Row to entity mapper
        identity_columns: Columns of the table's unique identity constraint
    """

    def __init__(
        self,
        session: AsyncSession,
        model_class: type[TDBModel],
        mapper: ModelMapper[TDBModel, TDomainModel],
        identity_columns: Sequence[str],
    ) -> None:
        self.session = session
        self.model_class = model_class
        self.mapper = mapper
        self.identity_columns = tuple(identity_columns)
        logger.trace(
            f"Initialized {self.__class__.__name__} for {model_class.__name__}",
        )

    # -------------------------------------------------------------------------
    # SELECT STATEMENT BUILDERS
    # -------------------------------------------------------------------------

    def select(self, *conditions: ColumnElement[bool]) -> Select[tuple[TDBModel]]:
        """Create select statement filtered by ``conditions``."""
        return select(self.model_class).where(*conditions)

    def identity_conditions(self, **identity: Any) -> list[ColumnElement[bool]]:
        """Build equality conditions for every identity column."""
        missing = set(self.identity_columns) - set(identity)
        if missing:
            raise ValueError(f"Missing identity values: {sorted(missing)}")
        return [
            getattr(self.model_class, column) == identity[column]
            for column in self.identity_columns
        ]

    # -------------------------------------------------------------------------
    # READS
    # -------------------------------------------------------------------------

    async def find_one_by_identity(self, **identity: Any) -> TDBModel | None:
        stmt = self.select(*self.identity_conditions(**identity))
        result = await self.session.scalars(stmt)
        return result.first()

    async def exists_by_identity(self, **identity: Any) -> bool:
        stmt = (
            select(self.model_class.id)
            .where(*self.identity_conditions(**identity))
            .limit(1)
        )
        return (await self.session.scalar(stmt)) is not None

    async def count_where(self, *conditions: ColumnElement[bool]) -> int:
        stmt = select(func.count(self.model_class.id)).where(*conditions)
        return int(await self.session.scalar(stmt) or 0)

    # -------------------------------------------------------------------------
    # UPSERTS
    # -------------------------------------------------------------------------

    def _dialect_insert(self) -> Any:
        dialect = self.session.get_bind().dialect.name
        insert = _DIALECT_INSERTS.get(dialect)
        if insert is None:
            raise PersistenceError(f"Atomic upsert is not supported on {dialect}")
        return insert

    async def upsert_rows(self, rows: Sequence[dict[str, Any]]) -> list[TDBModel]:
        """Insert rows or update the payload columns of existing ones.

        Each row must carry every identity column; when several rows share an
        identity the last one wins. Non-identity columns of an existing row
        are replaced and ``updated_at`` is bumped; ``id`` and ``created_at``
        keep their original values.

        Returns:
            Stored rows in no particular order
        """
        if not rows:
            return []

        # One row per identity; a statement may not touch the same row twice
        unique_rows: dict[tuple[Any, ...], dict[str, Any]] = {}
        for row in rows:
            unique_rows[tuple(row[column] for column in self.identity_columns)] = row
        rows = list(unique_rows.values())

        insert = self._dialect_insert()
        now = datetime.now(UTC)
        update_keys = (
            {key for row in rows for key in row}
            - set(self.identity_columns)
            - {"id", "created_at", "updated_at"}
        )

        stored: list[TDBModel] = []
        for start in range(0, len(rows), UPSERT_CHUNK_SIZE):
            chunk = [
                {**row, "created_at": now, "updated_at": now}
                for row in rows[start : start + UPSERT_CHUNK_SIZE]
            ]
            stmt = insert(self.model_class).values(chunk)
            update_dict = {key: getattr(stmt.excluded, key) for key in update_keys}
            update_dict["updated_at"] = now
            stmt = stmt.on_conflict_do_update(
                index_elements=[
                    getattr(self.model_class, column)
                    for column in self.identity_columns
                ],
                set_=update_dict,
            ).returning(self.model_class)

            result = await self.session.scalars(
                stmt, execution_options={"populate_existing": True}
            )
            stored.extend(result.all())

        logger.trace(
            f"Upserted {len(rows)} {self.model_class.__tablename__} rows",
            chunks=math.ceil(len(rows) / UPSERT_CHUNK_SIZE),
        )
        return stored

    async def upsert_row(self, row: dict[str, Any]) -> TDBModel:
        """Upsert a single row and return the stored version."""
        stored = await self.upsert_rows([row])
        if len(stored) != 1:
            raise PersistenceError(
                f"Upsert into {self.model_class.__tablename__} returned {len(stored)} rows"
            )
        return stored[0]
