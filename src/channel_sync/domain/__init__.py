"""Domain layer - pure business logic without infrastructure dependencies."""

from channel_sync.domain.enums import ChannelSyncStatus, Visibility
from channel_sync.domain.models import (
    ChannelData,
    ChannelRecord,
    ChannelStatistics,
    MediaItem,
    MediaSyncReport,
    StatisticsSnapshot,
)

__all__ = [
    # Enums
    "ChannelSyncStatus",
    "Visibility",
    # Models
    "ChannelData",
    "ChannelRecord",
    "ChannelStatistics",
    "MediaItem",
    "MediaSyncReport",
    "StatisticsSnapshot",
]
