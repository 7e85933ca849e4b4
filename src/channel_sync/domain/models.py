"""Domain models - pure Python classes independent of database."""

from dataclasses import dataclass, field
from datetime import date, datetime


@dataclass
class ChannelData:
    """Channel fields written by an upsert."""

    slug: str
    name: str
    remote_id: str | None = None
    visible: bool | None = None


@dataclass
class ChannelRecord:
    """A stored channel row."""

    slug: str
    name: str
    remote_id: str | None = None
    visible: bool | None = None
    created_at: datetime | None = None


@dataclass
class MediaItem:
    """A long-form video, either freshly mapped or read back from the store.

    Field names match the ``media_items`` columns and the video export.
    """

    id: str
    title: str
    date: date | None
    channel_slug: str
    content_type: str = "podcast"
    duration: str | None = None
    description: str | None = None
    remote_id: str | None = None
    image: str | None = None
    remote_url: str | None = None
    views: int = 0
    likes: int = 0
    comments: int = 0
    external_platform_url: str | None = None
    created_at: datetime | None = None


@dataclass
class ChannelStatistics:
    """Channel-level counters as reported by the remote catalog."""

    subscriber_count: int = 0
    total_channel_views: int = 0
    total_videos: int = 0


@dataclass
class StatisticsSnapshot:
    """A stored daily statistics row."""

    id: int | None
    channel_slug: str
    date: date
    subscriber_count: int = 0
    total_channel_views: int = 0
    total_videos: int = 0
    calculated_total_likes: int = 0
    calculated_total_comments: int = 0
    created_at: datetime | None = None


@dataclass
class MediaSyncReport:
    """Result of syncing one batch of media items for a channel."""

    channel_slug: str
    inserted_ids: list[str] = field(default_factory=list)
    updated_ids: list[str] = field(default_factory=list)
    failed_updates: dict[str, str] = field(default_factory=dict)

    @property
    def inserted(self) -> int:
        return len(self.inserted_ids)

    @property
    def updated(self) -> int:
        return len(self.updated_ids)

    @property
    def has_failures(self) -> bool:
        return bool(self.failed_updates)
