"""Read API connector protocol.

The sync orchestrator only needs three read operations from a provider. Any
object offering them, whether a real HTTP connector or an in-memory fake,
can drive a sync pass.
"""

from typing import Any, Protocol, runtime_checkable

from tunetransfer.domain.entities import Page


@runtime_checkable
class ReadAPIClient(Protocol):
    """Protocol for provider connectors able to read a user's library.

    Listing methods return one page starting at a zero-based ``offset``;
    ``Page.total`` is the provider's count of the whole listing.
    """

    async def get_profile(self) -> dict[str, Any]:
        """Fetch the authenticated user's profile (must contain ``id``)."""
        ...

    async def list_playlists(self, offset: int) -> Page[dict[str, Any]]:
        """Fetch one page of the user's playlists."""
        ...

    async def list_playlist_tracks(
        self, playlist_id: str, offset: int
    ) -> Page[dict[str, Any]]:
        """Fetch one page of a playlist's track items."""
        ...
