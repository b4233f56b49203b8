"""Domain repository interfaces.

These interfaces define the identity-keyed store contracts without depending
on infrastructure implementations. Every write is an upsert keyed by the
entity's composite provider identity, idempotent under repetition and safe
under concurrent invocation with the same key.
"""

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, Protocol, Self, TypeAlias

if TYPE_CHECKING:
    from tunetransfer.domain.entities import Playlist, Track, User


class UserRepositoryProtocol(Protocol):
    """Repository interface for user persistence operations."""

    def upsert_user(
        self, provider: str, provider_user_id: str, profile: dict[str, Any]
    ) -> Awaitable["User"]:
        """Insert the user or replace its stored profile."""
        ...

    def get_user(
        self, provider: str, provider_user_id: str
    ) -> Awaitable["User | None"]:
        """Get a user by provider identity."""
        ...


class TrackRepositoryProtocol(Protocol):
    """Repository interface for track persistence operations."""

    def upsert_track(
        self, provider: str, provider_track_id: str, payload: dict[str, Any]
    ) -> Awaitable["Track"]:
        """Insert the track or replace its stored payload."""
        ...

    def upsert_tracks(
        self, provider: str, payloads: dict[str, dict[str, Any]]
    ) -> Awaitable[dict[str, "Track"]]:
        """Upsert many tracks keyed by provider track id.

        Returns:
            Stored tracks keyed by provider track id
        """
        ...

    def get_track(
        self, provider: str, provider_track_id: str
    ) -> Awaitable["Track | None"]:
        """Get a track by provider identity."""
        ...

    def count_tracks(self, provider: str) -> Awaitable[int]:
        """Count stored tracks for a provider."""
        ...


class PlaylistRepositoryProtocol(Protocol):
    """Repository interface for playlist persistence operations."""

    def upsert_playlist(self, playlist: "Playlist") -> Awaitable["Playlist"]:
        """Insert the playlist or replace its payload and track list."""
        ...

    def exists(
        self, provider: str, provider_user_id: str, provider_playlist_id: str
    ) -> Awaitable[bool]:
        """Check whether the user's playlist is already stored."""
        ...

    def list_by_owner(
        self, provider: str, provider_user_id: str
    ) -> Awaitable[list["Playlist"]]:
        """List every stored playlist of a user in insertion order."""
        ...


class UnitOfWorkProtocol(Protocol):
    """Transaction boundary giving access to repositories sharing a session.

    Commits on clean exit and rolls back when the block raises.
    """

    async def __aenter__(self) -> Self:
        """Enter async context manager."""
        ...

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Exit async context manager with automatic commit/rollback."""
        ...

    async def commit(self) -> None:
        """Explicitly commit the current transaction."""
        ...

    async def rollback(self) -> None:
        """Explicitly rollback the current transaction."""
        ...

    def get_user_repository(self) -> UserRepositoryProtocol:
        """Get user repository."""
        ...

    def get_track_repository(self) -> TrackRepositoryProtocol:
        """Get track repository."""
        ...

    def get_playlist_repository(self) -> PlaylistRepositoryProtocol:
        """Get playlist repository."""
        ...


# Each call opens an independent transaction
UnitOfWorkFactory: TypeAlias = Callable[[], UnitOfWorkProtocol]
