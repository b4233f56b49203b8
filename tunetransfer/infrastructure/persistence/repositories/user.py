"""User repository and mapper."""

from typing import Any

from attrs import define
from sqlalchemy.ext.asyncio import AsyncSession

from tunetransfer.config import get_logger
from tunetransfer.domain.entities import User
from tunetransfer.infrastructure.persistence.database.db_models import DBUser
from tunetransfer.infrastructure.persistence.repositories.base_repo import (
    BaseModelMapper,
    BaseRepository,
)
from tunetransfer.infrastructure.persistence.repositories.repo_decorator import (
    db_operation,
)

logger = get_logger(__name__)


@define(frozen=True, slots=True)
class UserMapper(BaseModelMapper[DBUser, User]):
    @staticmethod
    def to_domain(db_model: DBUser) -> User:
        return User(
            id=db_model.id,
            provider=db_model.provider,
            provider_user_id=db_model.provider_user_id,
            profile=dict(db_model.profile or {}),
        )


class UserRepository(BaseRepository[DBUser, User]):
    """Users keyed by ``(provider, provider_user_id)``."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(
            session=session,
            model_class=DBUser,
            mapper=UserMapper(),
            identity_columns=("provider", "provider_user_id"),
        )

    @db_operation("upsert_user")
    async def upsert_user(
        self, provider: str, provider_user_id: str, profile: dict[str, Any]
    ) -> User:
        db_user = await self.upsert_row({
            "provider": provider,
            "provider_user_id": provider_user_id,
            "profile": profile,
        })
        logger.debug(
            "Upserted user", provider=provider, provider_user_id=provider_user_id
        )
        return self.mapper.to_domain(db_user)

    @db_operation("get_user")
    async def get_user(self, provider: str, provider_user_id: str) -> User | None:
        db_user = await self.find_one_by_identity(
            provider=provider, provider_user_id=provider_user_id
        )
        return self.mapper.to_domain(db_user) if db_user else None
