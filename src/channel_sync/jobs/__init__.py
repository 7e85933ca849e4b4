"""Batch job definitions."""

from channel_sync.jobs.channel_sync import (
    ChannelSyncOutcome,
    SyncRunSummary,
    get_catalog_adapter,
    run_channel_sync,
    sync_channel,
)

__all__ = [
    "ChannelSyncOutcome",
    "SyncRunSummary",
    "get_catalog_adapter",
    "run_channel_sync",
    "sync_channel",
]
