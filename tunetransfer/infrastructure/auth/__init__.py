"""Provider authentication."""

from tunetransfer.infrastructure.auth.spotify_session import (
    SpotifySessionProvider,
    build_oauth,
)

__all__ = ["SpotifySessionProvider", "build_oauth"]
