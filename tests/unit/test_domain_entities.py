"""Tests for domain layer entities and the error taxonomy."""

import pytest

from tunetransfer.domain.entities import (
    Playlist,
    ProviderSession,
    Track,
    TrackRef,
    User,
    is_system_owned,
    normalize_scope,
)
from tunetransfer.domain.errors import (
    INTERNAL_ERROR_PAYLOAD,
    AuthenticationRequired,
    ConfigurationError,
    PersistenceError,
    UpstreamAPIError,
)

SCOPES = ("playlist-read-private", "user-read-private")


class TestLibraryEntities:
    """Test user, track and playlist entities."""

    def test_identity_fields_must_not_be_empty(self):
        with pytest.raises(ValueError):
            User(provider="spotify", provider_user_id="")
        with pytest.raises(ValueError):
            Track(provider="", provider_track_id="t1")

    def test_user_display_name_falls_back_to_id(self):
        assert User("spotify", "alice").display_name == "alice"
        assert User("spotify", "alice", {"display_name": "Alice"}).display_name == "Alice"

    def test_track_ref_requires_saved_track(self):
        with pytest.raises(ValueError, match="unsaved"):
            TrackRef.for_track(Track("spotify", "t1"))

        ref = TrackRef.for_track(Track("spotify", "t1", id=7), "2024-01-01T00:00:00Z")
        assert ref == TrackRef(7, "t1", "2024-01-01T00:00:00Z")
        assert TrackRef.from_dict(ref.to_dict()) == ref

    def test_playlist_to_dict(self):
        playlist = Playlist(
            "spotify",
            "alice",
            "p1",
            payload={"name": "Road trip", "owner": {"id": "alice"}},
            tracks=[TrackRef(1, "t1", None)],
            id=3,
        )

        data = playlist.to_dict()

        assert data["id"] == 3
        assert data["tracks"] == [
            {"track_id": 1, "provider_track_id": "t1", "added_at": None}
        ]
        assert playlist.name == "Road trip"

    def test_system_owned_playlists(self):
        assert is_system_owned("spotify", {"owner": {"id": "spotify"}})
        assert not is_system_owned("spotify", {"owner": {"id": "alice"}})
        assert not is_system_owned("spotify", {})
        assert not is_system_owned("napster", {"owner": {"id": "spotify"}})


class TestProviderSession:
    """Test session validation rules."""

    def test_normalize_scope(self):
        assert normalize_scope("a b  c") == frozenset({"a", "b", "c"})
        assert normalize_scope(["a", "", "b"]) == frozenset({"a", "b"})
        assert normalize_scope(None) == frozenset()

    def test_from_token_info_with_expires_in(self):
        session = ProviderSession.from_token_info(
            "spotify",
            {"access_token": "tok", "expires_in": 3600, "scope": " ".join(SCOPES)},
        )

        assert session.access_token == "tok"
        assert session.scope == frozenset(SCOPES)
        assert not session.is_expired()

    def test_valid_session_passes(self):
        session = ProviderSession("spotify", "tok", scope=SCOPES, expires_at=2000.0)
        session.ensure_valid(SCOPES, now=1000.0)

    def test_extra_granted_scopes_are_accepted(self):
        session = ProviderSession("spotify", "tok", scope=(*SCOPES, "user-library-read"))
        session.ensure_valid(SCOPES)

    def test_missing_token_rejected(self):
        with pytest.raises(AuthenticationRequired, match="Not authenticated with spotify"):
            ProviderSession("spotify", "").ensure_valid(SCOPES)

    def test_missing_scope_rejected(self):
        session = ProviderSession("spotify", "tok", scope=SCOPES[:1])

        with pytest.raises(AuthenticationRequired, match="most recent spotify scopes"):
            session.ensure_valid(SCOPES)

    def test_expired_session_rejected(self):
        session = ProviderSession("spotify", "tok", scope=SCOPES, expires_at=1000.0)

        with pytest.raises(AuthenticationRequired, match="expired"):
            session.ensure_valid(SCOPES, now=990.0)

    def test_token_not_in_repr(self):
        assert "secret-token" not in repr(ProviderSession("spotify", "secret-token"))


class TestErrors:
    """Test structured error payloads."""

    @pytest.mark.parametrize(
        ("error", "kind"),
        [
            (AuthenticationRequired("no session"), "authentication_required"),
            (UpstreamAPIError("bad gateway"), "upstream_api_error"),
            (PersistenceError("locked"), "persistence_error"),
            (ConfigurationError("missing"), "configuration_error"),
        ],
    )
    def test_payload_kind(self, error, kind):
        payload = error.to_payload()

        assert payload == {"kind": kind, "message": error.message}
        assert str(error) == error.message

    def test_upstream_payload_includes_status(self):
        assert UpstreamAPIError("rate limited", status=429).to_payload() == {
            "kind": "upstream_api_error",
            "message": "rate limited",
            "status": 429,
        }

    def test_internal_payload(self):
        assert INTERNAL_ERROR_PAYLOAD == {
            "kind": "internal",
            "message": "Internal server error",
        }
