"""Core domain entities representing a provider music library."""

from .library import (
    SYSTEM_OWNER_IDS,
    Playlist,
    Track,
    TrackRef,
    User,
    is_system_owned,
)
from .operations import Page, SyncResult, SyncStats
from .session import ProviderSession, normalize_scope

__all__ = [
    # Library entities
    "Playlist",
    "SYSTEM_OWNER_IDS",
    "Track",
    "TrackRef",
    "User",
    "is_system_owned",
    # Operation entities
    "Page",
    "SyncResult",
    "SyncStats",
    # Session
    "ProviderSession",
    "normalize_scope",
]
