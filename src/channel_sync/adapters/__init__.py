"""Adapters for external services."""

from channel_sync.adapters.catalog.base import CatalogAdapter

__all__ = [
    "CatalogAdapter",
]
