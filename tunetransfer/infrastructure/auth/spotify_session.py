"""Spotify OAuth session management.

Tokens obtained through the authorization code flow are cached on disk by
spotipy's ``CacheFileHandler``. A sync pass reads the cached token, refreshes
it when it has expired, and rejects it when it was issued for an older scope
set, so the user is asked to log in again.
"""

import asyncio
from collections.abc import Iterable
from pathlib import Path
import time

from attrs import define, field
import requests
import spotipy
from spotipy.oauth2 import SpotifyOAuth, SpotifyOauthError

from tunetransfer.config import Settings, get_logger
from tunetransfer.domain.entities import ProviderSession
from tunetransfer.domain.errors import AuthenticationRequired, UpstreamAPIError
from tunetransfer.infrastructure.connectors.spotify import (
    SPOTIFY_PROVIDER,
    SPOTIFY_SCOPES,
)

logger = get_logger(__name__).bind(service="spotify")


def build_oauth(settings: Settings, scopes: Iterable[str] = SPOTIFY_SCOPES) -> SpotifyOAuth:
    """Create the spotipy OAuth manager for the configured application."""
    cache_path = Path(settings.credentials.spotify_cache_path)
    cache_path.parent.mkdir(parents=True, exist_ok=True)
    return SpotifyOAuth(
        client_id=settings.credentials.spotify_client_id,
        client_secret=settings.credentials.spotify_client_secret,
        redirect_uri=settings.credentials.spotify_redirect_uri,
        scope=" ".join(scopes),
        cache_handler=spotipy.CacheFileHandler(cache_path=str(cache_path)),
        open_browser=True,
    )


@define(slots=True)
class SpotifySessionProvider:
    """Loads, refreshes and creates Spotify sessions.

    Attributes:
        settings: Application settings with Spotify credentials
        scopes: Scopes every usable session must have been granted
        oauth: spotipy OAuth manager, built from settings when omitted
    """

    settings: Settings
    scopes: tuple[str, ...] = SPOTIFY_SCOPES
    oauth: SpotifyOAuth | None = field(default=None, repr=False)

    def __attrs_post_init__(self) -> None:
        if self.oauth is None:
            self.oauth = build_oauth(self.settings, self.scopes)

    async def current_session(self, now: float | None = None) -> ProviderSession:
        """Return a valid session from the token cache.

        Expired tokens are refreshed and written back to the cache.

        Raises:
            AuthenticationRequired: If no token is cached, the cached token
                lacks a required scope, or it cannot be refreshed.
        """
        token_info = await asyncio.to_thread(self.oauth.cache_handler.get_cached_token)
        if not token_info:
            raise AuthenticationRequired(f"Not authenticated with {SPOTIFY_PROVIDER}")

        session = ProviderSession.from_token_info(SPOTIFY_PROVIDER, token_info)
        current = time.time() if now is None else now

        if session.access_token and not session.missing_scopes(self.scopes):
            if session.is_expired(current) and session.refresh_token:
                session = await self._refresh(session)
                current = time.time() if now is None else now

        session.ensure_valid(self.scopes, current)
        return session

    async def _refresh(self, session: ProviderSession) -> ProviderSession:
        logger.info("Refreshing expired Spotify access token")
        try:
            token_info = await asyncio.to_thread(
                self.oauth.refresh_access_token, session.refresh_token
            )
        except SpotifyOauthError as e:
            raise AuthenticationRequired(
                f"Could not refresh {SPOTIFY_PROVIDER} session: {e.error_description or e}"
            ) from e
        except requests.exceptions.RequestException as e:
            raise UpstreamAPIError(f"Spotify token refresh failed: {e}") from e

        if not token_info.get("refresh_token"):
            token_info = {**token_info, "refresh_token": session.refresh_token}
        return ProviderSession.from_token_info(SPOTIFY_PROVIDER, token_info)

    async def login(self) -> ProviderSession:
        """Run the interactive authorization code flow and cache the token.

        Opens the browser on Spotify's consent page and waits for the
        redirect to the configured callback URI.
        """
        try:
            code = await asyncio.to_thread(self.oauth.get_auth_response)
            token_info = await asyncio.to_thread(
                self.oauth.get_access_token, code, as_dict=True, check_cache=False
            )
        except SpotifyOauthError as e:
            raise AuthenticationRequired(
                f"{SPOTIFY_PROVIDER} login failed: {e.error_description or e}"
            ) from e

        session = ProviderSession.from_token_info(SPOTIFY_PROVIDER, token_info)
        session.ensure_valid(self.scopes)
        logger.info("Spotify login complete", scopes=sorted(session.scope))
        return session

    def logout(self) -> bool:
        """Forget the cached token. Returns True if a token was removed."""
        cache_path = Path(self.settings.credentials.spotify_cache_path)
        if cache_path.exists():
            cache_path.unlink()
            logger.info("Removed cached Spotify token", cache_path=str(cache_path))
            return True
        return False
