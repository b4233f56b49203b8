"""tunetransfer domain layer - pure business logic with no infrastructure dependencies."""

from . import entities, errors
from .entities import Page, Playlist, ProviderSession, SyncResult, Track, TrackRef, User
from .errors import (
    AuthenticationRequired,
    ConfigurationError,
    PersistenceError,
    SyncError,
    UpstreamAPIError,
)

__all__ = [
    # Modules
    "entities",
    "errors",
    # Key domain types
    "Page",
    "Playlist",
    "ProviderSession",
    "SyncResult",
    "Track",
    "TrackRef",
    "User",
    # Errors
    "AuthenticationRequired",
    "ConfigurationError",
    "PersistenceError",
    "SyncError",
    "UpstreamAPIError",
]
