"""Domain repository interfaces following the dependency inversion principle."""

from .interfaces import (
    PlaylistRepositoryProtocol,
    TrackRepositoryProtocol,
    UnitOfWorkFactory,
    UnitOfWorkProtocol,
    UserRepositoryProtocol,
)

__all__ = [
    "PlaylistRepositoryProtocol",
    "TrackRepositoryProtocol",
    "UnitOfWorkFactory",
    "UnitOfWorkProtocol",
    "UserRepositoryProtocol",
]
