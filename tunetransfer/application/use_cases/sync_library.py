"""Library sync use case: mirror a provider user's playlists into the store.

A pass upserts the user, lists their playlists, and for every playlist not
yet stored (or every playlist, when forced) fetches its tracks, upserts them
and writes the playlist with an ordered list of references to the stored
tracks. Each playlist is written in its own unit of work, so work finished
before a failure stays committed and the next pass picks up the rest.
"""

import asyncio
import functools
import time
from typing import TYPE_CHECKING, Any

from attrs import define

from tunetransfer.application.utilities import fetch_all_pages
from tunetransfer.config import Settings, get_logger
from tunetransfer.domain.entities import (
    Playlist,
    ProviderSession,
    SyncResult,
    SyncStats,
    TrackRef,
    User,
    is_system_owned,
)
from tunetransfer.domain.errors import (
    INTERNAL_ERROR_PAYLOAD,
    PersistenceError,
    SyncError,
    UpstreamAPIError,
)
from tunetransfer.domain.repositories import UnitOfWorkFactory

if TYPE_CHECKING:
    from tunetransfer.infrastructure.connectors.protocols import ReadAPIClient

logger = get_logger(__name__)


@define(frozen=True, slots=True)
class SyncLibraryCommand:
    """Command for running one sync pass for the session's user."""

    session: ProviderSession
    force_refresh: bool = False
    required_scopes: tuple[str, ...] = ()


def _first_error(group: BaseExceptionGroup) -> BaseException:
    """Pick the exception a failed fan-out reports, preferring sync errors."""
    leaves: list[BaseException] = []

    def collect(exc: BaseException) -> None:
        if isinstance(exc, BaseExceptionGroup):
            for inner in exc.exceptions:
                collect(inner)
        else:
            leaves.append(exc)

    collect(group)
    for exc in leaves:
        if isinstance(exc, SyncError):
            return exc
    return leaves[0]


@define(slots=True)
class SyncLibraryUseCase:
    """Use case for synchronizing one user's library from a provider.

    The read client and unit of work factory are passed to ``execute`` so
    the same use case runs against Spotify in production and against fakes
    in tests.
    """

    settings: Settings

    async def execute(
        self,
        command: SyncLibraryCommand,
        connector: "ReadAPIClient",
        uow_factory: UnitOfWorkFactory,
    ) -> SyncResult:
        """Run one pass.

        Raises:
            AuthenticationRequired: If the session is unusable
            UpstreamAPIError: On provider failures or when the pass times out
            PersistenceError: If the store rejects a write
        """
        command.session.ensure_valid(command.required_scopes)

        start_time = time.perf_counter()
        stats = SyncStats()
        pass_timeout = self.settings.sync.pass_timeout

        try:
            async with asyncio.timeout(pass_timeout):
                user = await self._sync_user(command.session, connector, uow_factory)
                listing_order = await self._sync_playlists(
                    user, connector, uow_factory, command.force_refresh, stats
                )
                async with uow_factory() as uow:
                    stored = await uow.get_playlist_repository().list_by_owner(
                        user.provider, user.provider_user_id
                    )
        except TimeoutError as e:
            raise UpstreamAPIError(
                f"Sync pass did not finish within {pass_timeout:g}s"
            ) from e

        # Provider listing order first, then anything no longer listed by store id
        position = {playlist_id: i for i, playlist_id in enumerate(listing_order)}
        playlists = sorted(
            stored,
            key=lambda p: position.get(p.provider_playlist_id, len(position)),
        )

        stats.execution_time = time.perf_counter() - start_time
        logger.info(
            f"Synced {len(playlists)} playlists for {user.display_name}",
            **stats.to_dict(),
        )
        return SyncResult(user=user, playlists=playlists, stats=stats)

    async def _sync_user(
        self,
        session: ProviderSession,
        connector: "ReadAPIClient",
        uow_factory: UnitOfWorkFactory,
    ) -> User:
        profile = session.profile or await connector.get_profile()
        provider_user_id = profile.get("id")
        if not provider_user_id:
            raise UpstreamAPIError(f"{session.provider} profile has no user id")

        async with uow_factory() as uow:
            return await uow.get_user_repository().upsert_user(
                session.provider, str(provider_user_id), profile
            )

    async def _sync_playlists(
        self,
        user: User,
        connector: "ReadAPIClient",
        uow_factory: UnitOfWorkFactory,
        force_refresh: bool,
        stats: SyncStats,
    ) -> list[str]:
        """Sync every eligible playlist and return their ids in listing order."""
        raw_playlists = await fetch_all_pages(
            connector.list_playlists,
            label="playlists",
            page_timeout=self.settings.sync.page_timeout,
        )
        stats.playlists_seen = len(raw_playlists)

        candidates: dict[str, dict[str, Any]] = {}
        for raw in raw_playlists:
            if is_system_owned(user.provider, raw):
                stats.playlists_filtered += 1
                continue
            playlist_id = raw.get("id")
            if not playlist_id:
                raise UpstreamAPIError("Playlist listing contains an entry without id")
            candidates.setdefault(str(playlist_id), raw)

        logger.debug(
            f"Syncing {len(candidates)} playlists",
            filtered=stats.playlists_filtered,
            force_refresh=force_refresh,
        )

        semaphore = asyncio.Semaphore(self.settings.sync.concurrency)

        async def sync_one(playlist_id: str, raw: dict[str, Any]) -> None:
            async with semaphore:
                await self._sync_playlist(
                    user, playlist_id, raw, connector, uow_factory, force_refresh, stats
                )

        try:
            async with asyncio.TaskGroup() as tg:
                for playlist_id, raw in candidates.items():
                    tg.create_task(sync_one(playlist_id, raw))
        except BaseExceptionGroup as eg:
            raise _first_error(eg)

        return list(candidates)

    async def _sync_playlist(
        self,
        user: User,
        playlist_id: str,
        raw: dict[str, Any],
        connector: "ReadAPIClient",
        uow_factory: UnitOfWorkFactory,
        force_refresh: bool,
        stats: SyncStats,
    ) -> None:
        if not force_refresh:
            async with uow_factory() as uow:
                if await uow.get_playlist_repository().exists(
                    user.provider, user.provider_user_id, playlist_id
                ):
                    stats.playlists_skipped += 1
                    logger.trace(f"Playlist {playlist_id} already stored, skipping")
                    return

        items = await fetch_all_pages(
            functools.partial(connector.list_playlist_tracks, playlist_id),
            label=f"playlist {playlist_id} tracks",
            page_timeout=self.settings.sync.page_timeout,
        )

        # One write per distinct track; order and repeats live in the refs
        payloads: dict[str, dict[str, Any]] = {}
        entries: list[tuple[str, str | None]] = []
        for item in items:
            track = (item or {}).get("track") or {}
            track_id = track.get("id")
            if not track_id:
                stats.track_entries_dropped += 1
                continue
            payloads[str(track_id)] = track
            entries.append((str(track_id), item.get("added_at")))

        async with uow_factory() as uow:
            tracks = await uow.get_track_repository().upsert_tracks(
                user.provider, payloads
            )
            missing = payloads.keys() - tracks.keys()
            if missing:
                raise PersistenceError(
                    f"Track upsert did not return {len(missing)} of {len(payloads)} tracks"
                )

            playlist = Playlist(
                provider=user.provider,
                provider_user_id=user.provider_user_id,
                provider_playlist_id=playlist_id,
                payload=raw,
                tracks=[
                    TrackRef.for_track(tracks[track_id], added_at)
                    for track_id, added_at in entries
                ],
            )
            await uow.get_playlist_repository().upsert_playlist(playlist)

        stats.playlists_fetched += 1
        stats.record_tracks(tracks)
        logger.debug(
            f"Stored playlist '{playlist.name}'",
            tracks=len(playlist.tracks),
            dropped=len(items) - len(entries),
        )


async def sync_library(
    settings: Settings,
    session: ProviderSession,
    force_refresh: bool = False,
    connector: "ReadAPIClient | None" = None,
    uow_factory: UnitOfWorkFactory | None = None,
) -> dict[str, Any]:
    """Run one sync pass and return a serializable outcome.

    Builds the Spotify connector and a database-backed unit of work factory
    when they are not supplied.

    Returns:
        ``{"user", "playlists", "stats"}`` on success, or
        ``{"error": {"kind", "message"}}`` on any failure
    """
    from tunetransfer.infrastructure.connectors.spotify import (
        SPOTIFY_PROVIDER,
        SPOTIFY_SCOPES,
        SpotifyConnector,
    )

    engine = None
    try:
        if connector is None:
            connector = SpotifyConnector.from_session(session, settings)
        if uow_factory is None:
            from sqlalchemy.exc import SQLAlchemyError

            from tunetransfer.infrastructure.persistence import make_uow_factory
            from tunetransfer.infrastructure.persistence.database import (
                create_db_engine,
                create_session_factory,
                init_db,
            )

            try:
                engine = create_db_engine(settings)
                await init_db(engine)
            except (SQLAlchemyError, OSError) as e:
                raise PersistenceError(f"Could not open the database: {e}") from e
            uow_factory = make_uow_factory(create_session_factory(engine))

        command = SyncLibraryCommand(
            session=session,
            force_refresh=force_refresh,
            required_scopes=SPOTIFY_SCOPES if session.provider == SPOTIFY_PROVIDER else (),
        )
        result = await SyncLibraryUseCase(settings).execute(
            command, connector, uow_factory
        )
        return result.to_dict()

    except SyncError as e:
        logger.warning(f"Sync pass failed: {e.message}", kind=e.kind)
        return {"error": e.to_payload()}
    except Exception:
        logger.exception("Unexpected error during sync pass")
        return {"error": dict(INTERNAL_ERROR_PAYLOAD)}
    finally:
        if engine is not None:
            await engine.dispose()
