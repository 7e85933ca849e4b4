"""Remote catalog adapters."""

from channel_sync.adapters.catalog.base import (
    CatalogAdapter,
    RemoteChannelStatistics,
    RemoteFetchError,
    RemoteVideo,
)
from channel_sync.adapters.catalog.stub import StubCatalogAdapter
from channel_sync.adapters.catalog.youtube import YouTubeCatalogAdapter

__all__ = [
    "CatalogAdapter",
    "RemoteChannelStatistics",
    "RemoteFetchError",
    "RemoteVideo",
    "StubCatalogAdapter",
    "YouTubeCatalogAdapter",
]
