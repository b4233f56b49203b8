"""Operation-level value objects: API pages and sync pass results."""

from collections.abc import Iterable
from typing import Any, Generic, TypeVar

from attrs import define, field

from .library import Playlist, User

T = TypeVar("T")


@define(frozen=True, slots=True)
class Page(Generic[T]):
    """One page of an offset-paginated provider listing."""

    items: list[T] = field(factory=list)
    total: int = 0


@define(slots=True)
class SyncStats:
    """Counters collected during one sync pass."""

    playlists_seen: int = 0
    playlists_filtered: int = 0
    playlists_skipped: int = 0
    playlists_fetched: int = 0
    track_entries_dropped: int = 0
    execution_time: float = 0.0
    _track_ids: set[str] = field(factory=set, init=False, repr=False)

    @property
    def tracks_upserted(self) -> int:
        """Distinct tracks written during the pass."""
        return len(self._track_ids)

    def record_tracks(self, provider_track_ids: Iterable[str]) -> None:
        self._track_ids.update(provider_track_ids)

    def to_dict(self) -> dict[str, Any]:
        return {
            "playlists_seen": self.playlists_seen,
            "playlists_filtered": self.playlists_filtered,
            "playlists_skipped": self.playlists_skipped,
            "playlists_fetched": self.playlists_fetched,
            "tracks_upserted": self.tracks_upserted,
            "track_entries_dropped": self.track_entries_dropped,
            "execution_time": round(self.execution_time, 3),
        }


@define(frozen=True, slots=True)
class SyncResult:
    """Outcome of a successful pass: the user and every playlist they own."""

    user: User
    playlists: list[Playlist] = field(factory=list)
    stats: SyncStats = field(factory=SyncStats)

    def to_dict(self) -> dict[str, Any]:
        return {
            "user": self.user.to_dict(),
            "playlists": [playlist.to_dict() for playlist in self.playlists],
            "stats": self.stats.to_dict(),
        }
