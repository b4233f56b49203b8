from pathlib import Path

from loguru import logger
import pytest

from tunetransfer.config import Settings
from tunetransfer.domain.entities import ProviderSession
from tunetransfer.infrastructure.connectors.spotify import SPOTIFY_SCOPES
from tunetransfer.infrastructure.persistence import make_uow_factory
from tunetransfer.infrastructure.persistence.database import (
    create_db_engine,
    create_session_factory,
    init_db,
)

REDIRECT_URI = "http://127.0.0.1:8888/api/v0/spotify/oauth_callback"


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings isolated from the environment, backed by a temp SQLite file."""
    return Settings(
        _env_file=None,
        database={"url": f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"},
        logging={"log_file": tmp_path / "logs" / "test.log"},
        credentials={
            "spotify_client_id": "client-id",
            "spotify_client_secret": "client-secret",
            "spotify_redirect_uri": REDIRECT_URI,
            "spotify_cache_path": tmp_path / ".spotify_cache",
        },
        api={"spotify_retry_count": 0},
        sync={"concurrency": 4, "pass_timeout": 30, "page_timeout": 5},
    )


@pytest.fixture
async def engine(settings):
    """Create the schema in a fresh database file."""
    engine = create_db_engine(settings)
    try:
        await init_db(engine)
    except Exception as e:
        pytest.fail(f"Database initialization failed: {e}")
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def uow_factory(session_factory):
    """Factory handing out an independent unit of work per call."""
    return make_uow_factory(session_factory)


@pytest.fixture
def spotify_session() -> ProviderSession:
    """A valid Spotify session without an embedded profile."""
    return ProviderSession(
        provider="spotify",
        access_token="access-token",
        refresh_token="refresh-token",
        scope=" ".join(SPOTIFY_SCOPES),
    )


@pytest.fixture(autouse=True)
def reset_loguru():
    """Drop sinks added by code under test so they don't outlive the test."""
    yield
    logger.remove()
