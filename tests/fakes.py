"""In-memory stand-ins for provider read APIs."""

from collections import Counter
from typing import Any

from tunetransfer.domain.entities import Page
from tunetransfer.domain.errors import UpstreamAPIError


def make_playlist(
    playlist_id: str, owner_id: str = "alice", name: str | None = None
) -> dict[str, Any]:
    """Build a Spotify-shaped playlist listing entry."""
    return {
        "id": playlist_id,
        "name": name or f"Playlist {playlist_id}",
        "owner": {"id": owner_id, "display_name": owner_id.title()},
        "snapshot_id": f"snap-{playlist_id}",
    }


def make_item(
    track_id: str | None,
    added_at: str = "2024-01-01T00:00:00Z",
    name: str | None = None,
) -> dict[str, Any]:
    """Build a Spotify-shaped playlist item; ``None`` id mimics a local file."""
    return {
        "added_at": added_at,
        "is_local": track_id is None,
        "track": {
            "id": track_id,
            "name": name or f"Track {track_id}",
            "artists": [{"name": "Artist"}],
        },
    }


class FakeReadAPI:
    """Paginates fixed playlists and tracks like the Spotify read endpoints."""

    def __init__(
        self,
        profile: dict[str, Any] | None = None,
        playlists: list[dict[str, Any]] | None = None,
        tracks: dict[str, list[dict[str, Any]]] | None = None,
        page_size: int = 50,
    ) -> None:
        self.profile = profile or {"id": "alice", "display_name": "Alice"}
        self.playlists = playlists or []
        self.tracks = tracks or {}
        self.page_size = page_size
        self.fail_tracks_for: set[str] = set()
        self.profile_calls = 0
        self.playlist_calls = 0
        self.track_calls: Counter[str] = Counter()

    async def get_profile(self) -> dict[str, Any]:
        self.profile_calls += 1
        return self.profile

    async def list_playlists(self, offset: int) -> Page[dict[str, Any]]:
        self.playlist_calls += 1
        return Page(
            items=self.playlists[offset : offset + self.page_size],
            total=len(self.playlists),
        )

    async def list_playlist_tracks(
        self, playlist_id: str, offset: int
    ) -> Page[dict[str, Any]]:
        self.track_calls[playlist_id] += 1
        if playlist_id in self.fail_tracks_for:
            raise UpstreamAPIError(f"tracks of {playlist_id} unavailable", status=500)
        items = self.tracks.get(playlist_id, [])
        return Page(items=items[offset : offset + self.page_size], total=len(items))
