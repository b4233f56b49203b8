"""Track repository and mapper.

Tracks are global per provider: a track appearing in many playlists, or in
the libraries of many users, is stored exactly once.
"""

from typing import Any

from attrs import define
from sqlalchemy.ext.asyncio import AsyncSession

from tunetransfer.config import get_logger
from tunetransfer.domain.entities import Track
from tunetransfer.infrastructure.persistence.database.db_models import DBTrack
from tunetransfer.infrastructure.persistence.repositories.base_repo import (
    BaseModelMapper,
    BaseRepository,
)
from tunetransfer.infrastructure.persistence.repositories.repo_decorator import (
    db_operation,
)

logger = get_logger(__name__)


@define(frozen=True, slots=True)
class TrackMapper(BaseModelMapper[DBTrack, Track]):
    @staticmethod
    def to_domain(db_model: DBTrack) -> Track:
        return Track(
            id=db_model.id,
            provider=db_model.provider,
            provider_track_id=db_model.provider_track_id,
            payload=dict(db_model.payload or {}),
        )


class TrackRepository(BaseRepository[DBTrack, Track]):
    """Tracks keyed by ``(provider, provider_track_id)``."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(
            session=session,
            model_class=DBTrack,
            mapper=TrackMapper(),
            identity_columns=("provider", "provider_track_id"),
        )

    @db_operation("upsert_track")
    async def upsert_track(
        self, provider: str, provider_track_id: str, payload: dict[str, Any]
    ) -> Track:
        db_track = await self.upsert_row({
            "provider": provider,
            "provider_track_id": provider_track_id,
            "payload": payload,
        })
        return self.mapper.to_domain(db_track)

    @db_operation("upsert_tracks")
    async def upsert_tracks(
        self, provider: str, payloads: dict[str, dict[str, Any]]
    ) -> dict[str, Track]:
        """Upsert a batch of tracks in as few statements as possible.

        Args:
            provider: Provider shared by every track in the batch
            payloads: Track payloads keyed by provider track id; keys are
                unique, so no row is written twice by one statement

        Returns:
            Stored tracks keyed by provider track id
        """
        if not payloads:
            return {}

        db_tracks = await self.upsert_rows([
            {"provider": provider, "provider_track_id": track_id, "payload": payload}
            for track_id, payload in payloads.items()
        ])
        tracks = {
            track.provider_track_id: track
            for track in self.mapper.map_collection(db_tracks)
        }
        logger.debug(f"Upserted {len(tracks)} tracks", provider=provider)
        return tracks

    @db_operation("get_track")
    async def get_track(self, provider: str, provider_track_id: str) -> Track | None:
        db_track = await self.find_one_by_identity(
            provider=provider, provider_track_id=provider_track_id
        )
        return self.mapper.to_domain(db_track) if db_track else None

    @db_operation("count_tracks")
    async def count_tracks(self, provider: str) -> int:
        return await self.count_where(self.model_class.provider == provider)
