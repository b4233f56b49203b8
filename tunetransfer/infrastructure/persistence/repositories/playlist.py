"""Playlist repository and mapper.

A playlist row belongs to one user; its ordered track list is stored as a
JSON array of references into the tracks table and is replaced wholesale on
every upsert.
"""

from attrs import define
from sqlalchemy.ext.asyncio import AsyncSession

from tunetransfer.config import get_logger
from tunetransfer.domain.entities import Playlist, TrackRef
from tunetransfer.infrastructure.persistence.database.db_models import DBPlaylist
from tunetransfer.infrastructure.persistence.repositories.base_repo import (
    BaseModelMapper,
    BaseRepository,
)
from tunetransfer.infrastructure.persistence.repositories.repo_decorator import (
    db_operation,
)

logger = get_logger(__name__)


@define(frozen=True, slots=True)
class PlaylistMapper(BaseModelMapper[DBPlaylist, Playlist]):
    @staticmethod
    def to_domain(db_model: DBPlaylist) -> Playlist:
        return Playlist(
            id=db_model.id,
            provider=db_model.provider,
            provider_user_id=db_model.provider_user_id,
            provider_playlist_id=db_model.provider_playlist_id,
            payload=dict(db_model.payload or {}),
            tracks=[TrackRef.from_dict(item) for item in db_model.items or []],
        )


class PlaylistRepository(BaseRepository[DBPlaylist, Playlist]):
    """Playlists keyed by ``(provider, provider_user_id, provider_playlist_id)``."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(
            session=session,
            model_class=DBPlaylist,
            mapper=PlaylistMapper(),
            identity_columns=("provider", "provider_user_id", "provider_playlist_id"),
        )

    @db_operation("upsert_playlist")
    async def upsert_playlist(self, playlist: Playlist) -> Playlist:
        db_playlist = await self.upsert_row({
            "provider": playlist.provider,
            "provider_user_id": playlist.provider_user_id,
            "provider_playlist_id": playlist.provider_playlist_id,
            "payload": playlist.payload,
            "items": [ref.to_dict() for ref in playlist.tracks],
        })
        logger.debug(
            f"Upserted playlist '{playlist.name}' with {len(playlist.tracks)} tracks",
            provider_playlist_id=playlist.provider_playlist_id,
        )
        return self.mapper.to_domain(db_playlist)

    @db_operation("exists")
    async def exists(
        self, provider: str, provider_user_id: str, provider_playlist_id: str
    ) -> bool:
        return await self.exists_by_identity(
            provider=provider,
            provider_user_id=provider_user_id,
            provider_playlist_id=provider_playlist_id,
        )

    @db_operation("list_by_owner")
    async def list_by_owner(
        self, provider: str, provider_user_id: str
    ) -> list[Playlist]:
        stmt = self.select(
            self.model_class.provider == provider,
            self.model_class.provider_user_id == provider_user_id,
        ).order_by(self.model_class.id)
        result = await self.session.scalars(stmt)
        return self.mapper.map_collection(result.all())
