"""Repository layer for database operations with SQLAlchemy 2.0."""

from tunetransfer.infrastructure.persistence.repositories.base_repo import (
    BaseModelMapper,
    BaseRepository,
    ModelMapper,
)
from tunetransfer.infrastructure.persistence.repositories.playlist import (
    PlaylistMapper,
    PlaylistRepository,
)
from tunetransfer.infrastructure.persistence.repositories.repo_decorator import (
    db_operation,
)
from tunetransfer.infrastructure.persistence.repositories.track import (
    TrackMapper,
    TrackRepository,
)
from tunetransfer.infrastructure.persistence.repositories.user import (
    UserMapper,
    UserRepository,
)

__all__ = [
    "BaseModelMapper",
    "BaseRepository",
    "ModelMapper",
    "PlaylistMapper",
    "PlaylistRepository",
    "TrackMapper",
    "TrackRepository",
    "UserMapper",
    "UserRepository",
    "db_operation",
]
