"""Tests for cached Spotify session loading and refresh."""

import time
from unittest.mock import MagicMock

import pytest
from spotipy.oauth2 import SpotifyOauthError

from tunetransfer.domain.errors import AuthenticationRequired
from tunetransfer.infrastructure.auth import SpotifySessionProvider
from tunetransfer.infrastructure.connectors.spotify import SPOTIFY_SCOPES

ALL_SCOPES = " ".join(SPOTIFY_SCOPES)


def make_provider(settings, cached_token):
    oauth = MagicMock()
    oauth.cache_handler.get_cached_token.return_value = cached_token
    return SpotifySessionProvider(settings, oauth=oauth), oauth


class TestCurrentSession:
    """Test validation of the cached token."""

    @pytest.mark.asyncio
    async def test_valid_cached_token(self, settings):
        provider, oauth = make_provider(
            settings,
            {
                "access_token": "tok",
                "refresh_token": "ref",
                "expires_at": time.time() + 3600,
                "scope": ALL_SCOPES,
            },
        )

        session = await provider.current_session()

        assert session.provider == "spotify"
        assert session.access_token == "tok"
        oauth.refresh_access_token.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_cached_token(self, settings):
        provider, _ = make_provider(settings, None)

        with pytest.raises(AuthenticationRequired, match="Not authenticated"):
            await provider.current_session()

    @pytest.mark.asyncio
    async def test_outdated_scopes_rejected_without_refresh(self, settings):
        provider, oauth = make_provider(
            settings,
            {
                "access_token": "tok",
                "refresh_token": "ref",
                "expires_at": time.time() - 10,
                "scope": "playlist-read-private",
            },
        )

        with pytest.raises(AuthenticationRequired, match="most recent spotify scopes"):
            await provider.current_session()

        oauth.refresh_access_token.assert_not_called()

    @pytest.mark.asyncio
    async def test_expired_token_refreshed(self, settings):
        provider, oauth = make_provider(
            settings,
            {
                "access_token": "old",
                "refresh_token": "ref",
                "expires_at": time.time() - 10,
                "scope": ALL_SCOPES,
            },
        )
        oauth.refresh_access_token.return_value = {
            "access_token": "new",
            "expires_at": time.time() + 3600,
            "scope": ALL_SCOPES,
        }

        session = await provider.current_session()

        oauth.refresh_access_token.assert_called_once_with("ref")
        assert session.access_token == "new"
        assert session.refresh_token == "ref"

    @pytest.mark.asyncio
    async def test_refresh_failure_requires_login(self, settings):
        provider, oauth = make_provider(
            settings,
            {
                "access_token": "old",
                "refresh_token": "revoked",
                "expires_at": time.time() - 10,
                "scope": ALL_SCOPES,
            },
        )
        oauth.refresh_access_token.side_effect = SpotifyOauthError(
            "invalid_grant", error="invalid_grant", error_description="Refresh token revoked"
        )

        with pytest.raises(AuthenticationRequired, match="Refresh token revoked"):
            await provider.current_session()

    @pytest.mark.asyncio
    async def test_expired_without_refresh_token(self, settings):
        provider, _ = make_provider(
            settings,
            {"access_token": "old", "expires_at": time.time() - 10, "scope": ALL_SCOPES},
        )

        with pytest.raises(AuthenticationRequired, match="expired"):
            await provider.current_session()


class TestLogout:
    def test_removes_cached_token(self, settings):
        cache_path = settings.credentials.spotify_cache_path
        cache_path.write_text("{}")
        provider, _ = make_provider(settings, None)

        assert provider.logout() is True
        assert not cache_path.exists()
        assert provider.logout() is False
