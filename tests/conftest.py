"""Pytest configuration and fixtures."""

import os
from collections.abc import Generator
from datetime import date

import pytest

# Set test environment before importing app modules
os.environ["DATABASE_URL"] = "sqlite:///./channel_sync_test.db"
os.environ["CATALOG_PROVIDER"] = "stub"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ.pop("YOUTUBE_API_KEY", None)


@pytest.fixture
def engine(tmp_path) -> Generator:
    """SQLite engine with all tables created."""
    from channel_sync.db import create_db_engine, init_db

    engine = create_db_engine(f"sqlite:///{tmp_path / 'store.db'}")
    init_db(engine, create_tables=True)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    from channel_sync.db import create_session_factory

    return create_session_factory(engine)


@pytest.fixture
def gateway(session_factory):
    """Persistence gateway over a fresh SQLite store."""
    from channel_sync.services.persistence import PersistenceGateway

    return PersistenceGateway(session_factory)


@pytest.fixture
def make_media_item():
    """Factory for mapped media items with valid ids and watch URLs."""
    from channel_sync.domain.models import MediaItem

    def _make(video_id: str, channel_slug: str, **overrides) -> MediaItem:
        fields = {
            "id": video_id,
            "title": f"Episode {video_id}",
            "date": date(2024, 3, 1),
            "channel_slug": channel_slug,
            "duration": "45:00",
            "remote_id": video_id,
            "image": f"https://i.ytimg.com/vi/{video_id}/hqdefault.jpg",
            "remote_url": f"https://www.youtube.com/watch?v={video_id}",
            "views": 100,
            "likes": 10,
            "comments": 1,
        }
        fields.update(overrides)
        return MediaItem(**fields)

    return _make
