"""Library entities synchronized from a streaming provider.

Pure representations of users, tracks and playlists with zero infrastructure
dependencies. Provider payloads are kept verbatim; identity is always the
``(provider, provider-local id)`` pair plus, for playlists, the owning user.
"""

from typing import Any

import attrs
from attrs import define, field, validators

# Provider accounts whose playlists are generated content, not user libraries
SYSTEM_OWNER_IDS: dict[str, str] = {
    "spotify": "spotify",
}


def _non_empty(_instance: Any, attribute: attrs.Attribute, value: str) -> None:
    if not value:
        raise ValueError(f"{attribute.name} must not be empty")


@define(frozen=True, slots=True)
class User:
    """A provider account whose library is being transferred."""

    provider: str = field(validator=[validators.instance_of(str), _non_empty])
    provider_user_id: str = field(validator=[validators.instance_of(str), _non_empty])
    profile: dict[str, Any] = field(factory=dict)
    id: int | None = field(default=None)

    @property
    def display_name(self) -> str:
        return self.profile.get("display_name") or self.provider_user_id

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "provider": self.provider,
            "provider_user_id": self.provider_user_id,
            "profile": self.profile,
        }


@define(frozen=True, slots=True)
class Track:
    """A provider track, shared by every playlist and user referencing it."""

    provider: str = field(validator=[validators.instance_of(str), _non_empty])
    provider_track_id: str = field(validator=[validators.instance_of(str), _non_empty])
    payload: dict[str, Any] = field(factory=dict)
    id: int | None = field(default=None)

    @property
    def name(self) -> str | None:
        return self.payload.get("name")

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "provider": self.provider,
            "provider_track_id": self.provider_track_id,
            "payload": self.payload,
        }


@define(frozen=True, slots=True)
class TrackRef:
    """Position of a track inside a playlist, pointing at the stored Track."""

    track_id: int
    provider_track_id: str
    added_at: str | None = None

    @classmethod
    def for_track(cls, track: Track, added_at: str | None = None) -> "TrackRef":
        """Reference a stored track.

        Raises:
            ValueError: If the track has not been persisted yet
        """
        if track.id is None:
            raise ValueError(
                f"Cannot reference unsaved track {track.provider_track_id}"
            )
        return cls(
            track_id=track.id,
            provider_track_id=track.provider_track_id,
            added_at=added_at,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "track_id": self.track_id,
            "provider_track_id": self.provider_track_id,
            "added_at": self.added_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TrackRef":
        return cls(
            track_id=int(data["track_id"]),
            provider_track_id=str(data["provider_track_id"]),
            added_at=data.get("added_at"),
        )


@define(frozen=True, slots=True)
class Playlist:
    """A user's playlist with its ordered track references.

    Identity is ``(provider, provider_user_id, provider_playlist_id)``; the
    same provider playlist followed by two users yields two records.
    """

    provider: str = field(validator=[validators.instance_of(str), _non_empty])
    provider_user_id: str = field(validator=[validators.instance_of(str), _non_empty])
    provider_playlist_id: str = field(
        validator=[validators.instance_of(str), _non_empty]
    )
    payload: dict[str, Any] = field(factory=dict)
    tracks: list[TrackRef] = field(factory=list)
    id: int | None = field(default=None)

    @property
    def name(self) -> str:
        return self.payload.get("name") or self.provider_playlist_id

    @property
    def track_ids(self) -> list[str]:
        """Provider track ids in playlist order."""
        return [ref.provider_track_id for ref in self.tracks]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "provider": self.provider,
            "provider_user_id": self.provider_user_id,
            "provider_playlist_id": self.provider_playlist_id,
            "payload": self.payload,
            "tracks": [ref.to_dict() for ref in self.tracks],
        }


def is_system_owned(provider: str, playlist_payload: dict[str, Any]) -> bool:
    """Check whether a raw provider playlist belongs to the platform itself."""
    sentinel = SYSTEM_OWNER_IDS.get(provider)
    if sentinel is None:
        return False
    return (playlist_payload.get("owner") or {}).get("id") == sentinel
