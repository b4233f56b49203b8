"""Spotify read connector built on spotipy.

This module provides a connector for the Spotify Web API using the spotipy
library (https://spotipy.readthedocs.io/). It exposes the three read calls a
sync pass needs and normalizes every failure into the domain error taxonomy.

Key components:
- SpotifyConnector: token-authenticated client returning offset pages
- SPOTIFY_SCOPES: OAuth scopes a session must carry to be usable

Blocking spotipy calls run in worker threads via ``asyncio.to_thread``.
Transient failures (rate limits, 5xx responses, connection errors) are
retried with exponential backoff; everything else fails immediately.
"""

import asyncio
from collections.abc import Callable
from typing import Any

from attrs import define, field
import backoff
import requests
import spotipy

from tunetransfer.config import Settings, get_logger, resilient_operation
from tunetransfer.domain.entities import Page, ProviderSession
from tunetransfer.domain.errors import AuthenticationRequired, UpstreamAPIError

logger = get_logger(__name__).bind(service="spotify")

SPOTIFY_PROVIDER = "spotify"

SPOTIFY_SCOPES: tuple[str, ...] = (
    "user-read-private",
    "user-read-email",
    "playlist-read-private",
    "playlist-read-collaborative",
)

# Spotify rejects larger page sizes on playlist endpoints
MAX_PAGE_SIZE = 50


def _is_transient(exc: Exception) -> bool:
    """Check whether a failed request is worth retrying."""
    if isinstance(exc, spotipy.SpotifyException):
        status = exc.http_status or 0
        return status == 429 or status >= 500
    return isinstance(
        exc, requests.exceptions.ConnectionError | requests.exceptions.Timeout
    )


def _translate_error(operation: str, exc: Exception) -> Exception:
    """Map a spotipy or transport failure onto a domain error."""
    if isinstance(exc, spotipy.SpotifyException):
        if exc.http_status == 401:
            return AuthenticationRequired(
                f"Spotify rejected the access token during {operation}"
            )
        return UpstreamAPIError(
            f"Spotify {operation} failed: {exc.msg}", status=exc.http_status
        )
    return UpstreamAPIError(f"Spotify {operation} failed: {exc}")


def _to_page(operation: str, response: Any) -> Page[dict[str, Any]]:
    if not isinstance(response, dict):
        raise UpstreamAPIError(f"Spotify {operation} returned a malformed response")
    items = response.get("items")
    total = response.get("total")
    if not isinstance(items, list) or not isinstance(total, int):
        raise UpstreamAPIError(
            f"Spotify {operation} response is missing items or total"
        )
    return Page(items=items, total=total)


@define(slots=True)
class SpotifyConnector:
    """Thin async wrapper around spotipy's read endpoints.

    Attributes:
        access_token: Bearer token of the authenticated user
        page_size: Items requested per page (capped at 50)
        retry_count: Retries after the first attempt for transient failures
        retry_base_delay: Base delay of the exponential backoff (seconds)
        retry_max_delay: Upper bound of a single backoff wait (seconds)
        request_timeout: Per-request HTTP timeout (seconds)
        client: Underlying spotipy client, built from the token when omitted
    """

    access_token: str = field(repr=False)
    page_size: int = MAX_PAGE_SIZE
    retry_count: int = 3
    retry_base_delay: float = 0.5
    retry_max_delay: float = 30.0
    request_timeout: float = 15.0
    client: spotipy.Spotify | None = field(default=None, repr=False)

    def __attrs_post_init__(self) -> None:
        self.page_size = max(1, min(self.page_size, MAX_PAGE_SIZE))
        if self.client is None:
            logger.debug("Initializing Spotify connector")
            # Retries are handled here with backoff, not by spotipy's urllib3 adapter
            self.client = spotipy.Spotify(
                auth=self.access_token,
                requests_timeout=self.request_timeout,
                retries=0,
                status_retries=0,
            )

    @classmethod
    def from_session(
        cls, session: ProviderSession, settings: Settings
    ) -> "SpotifyConnector":
        """Create a connector for an authenticated session."""
        return cls(
            access_token=session.access_token,
            page_size=settings.api.spotify_page_size,
            retry_count=settings.api.spotify_retry_count,
            retry_base_delay=settings.api.spotify_retry_base_delay,
            retry_max_delay=settings.api.spotify_retry_max_delay,
            request_timeout=settings.api.spotify_request_timeout,
        )

    def _on_backoff(self, details: dict[str, Any]) -> None:
        logger.warning(
            f"Backing off Spotify request (attempt {details['tries']})",
            retry_delay=f"{details['wait']:.2f}s",
            error=str(details.get("exception")),
        )

    def _on_giveup(self, details: dict[str, Any]) -> None:
        exception = details.get("exception")
        logger.debug(
            f"Giving up Spotify request after {details['tries']} attempt(s)",
            elapsed_time=f"{details['elapsed']:.2f}s",
            error_type=type(exception).__name__ if exception else "Unknown",
        )

    async def _call(
        self, operation: str, method: Callable[..., Any], *args: Any, **kwargs: Any
    ) -> Any:
        """Run a blocking spotipy call with retries and error translation."""

        @backoff.on_exception(
            backoff.expo,
            (spotipy.SpotifyException, requests.exceptions.RequestException),
            max_tries=self.retry_count + 1,  # +1 because first attempt counts
            factor=self.retry_base_delay,
            max_value=self.retry_max_delay,
            jitter=backoff.full_jitter,
            giveup=lambda e: not _is_transient(e),
            on_backoff=self._on_backoff,
            on_giveup=self._on_giveup,
        )
        async def call_with_backoff() -> Any:
            return await asyncio.to_thread(method, *args, **kwargs)

        try:
            return await call_with_backoff()
        except (spotipy.SpotifyException, requests.exceptions.RequestException) as e:
            raise _translate_error(operation, e) from e

    @resilient_operation("spotify_get_profile")
    async def get_profile(self) -> dict[str, Any]:
        """Fetch the current user's profile."""
        profile = await self._call("get_profile", self.client.current_user)
        if not isinstance(profile, dict) or not profile.get("id"):
            raise UpstreamAPIError("Spotify profile response has no user id")
        return profile

    @resilient_operation("spotify_list_playlists")
    async def list_playlists(self, offset: int) -> Page[dict[str, Any]]:
        """Fetch one page of the current user's playlists."""
        response = await self._call(
            "list_playlists",
            self.client.current_user_playlists,
            limit=self.page_size,
            offset=offset,
        )
        return _to_page("list_playlists", response)

    @resilient_operation("spotify_list_playlist_tracks")
    async def list_playlist_tracks(
        self, playlist_id: str, offset: int
    ) -> Page[dict[str, Any]]:
        """Fetch one page of a playlist's items, tracks only."""
        response = await self._call(
            "list_playlist_tracks",
            self.client.playlist_items,
            playlist_id,
            limit=self.page_size,
            offset=offset,
            additional_types=("track",),
        )
        return _to_page("list_playlist_tracks", response)
