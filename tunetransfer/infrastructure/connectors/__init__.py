"""Provider read connectors."""

from tunetransfer.infrastructure.connectors.protocols import ReadAPIClient
from tunetransfer.infrastructure.connectors.spotify import (
    SPOTIFY_PROVIDER,
    SPOTIFY_SCOPES,
    SpotifyConnector,
)

__all__ = ["SPOTIFY_PROVIDER", "SPOTIFY_SCOPES", "ReadAPIClient", "SpotifyConnector"]
