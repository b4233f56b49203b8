"""Database models and connection management."""

from .db_connection import create_db_engine, create_session_factory
from .db_models import DBPlaylist, DBTrack, DBUser, TuneTransferDBBase, init_db

__all__ = [
    "DBPlaylist",
    "DBTrack",
    "DBUser",
    "TuneTransferDBBase",
    "create_db_engine",
    "create_session_factory",
    "init_db",
]
