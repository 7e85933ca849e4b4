"""Stub catalog adapter for testing and offline dry runs."""

import hashlib
from collections.abc import AsyncIterator
from datetime import UTC, datetime, timedelta

from channel_sync.adapters.catalog.base import (
    CatalogAdapter,
    RemoteChannelStatistics,
    RemoteFetchError,
    RemoteVideo,
)
from channel_sync.config import ChannelConfig
from channel_sync.logging import get_logger
from channel_sync.utils.durations import MIN_LONG_FORM_SECONDS, is_long_form, parse_duration_seconds

logger = get_logger(__name__)

SYNTHETIC_VIDEOS_PER_CHANNEL = 5


def _synthetic_videos(remote_id: str, count: int) -> list[RemoteVideo]:
    """Deterministic long-form uploads for an unseeded channel."""
    videos = []
    published = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)
    for index in range(count):
        digest = hashlib.sha1(f"{remote_id}:{index}".encode()).hexdigest()
        videos.append(
            RemoteVideo(
                id=digest[:11],
                title=f"Episode {count - index}",
                description=f"Synthetic upload {index} of {remote_id}",
                published_at=(published - timedelta(days=7 * index)).isoformat(),
                duration=f"PT{30 + index}M{index}S",
                thumbnails={"high": f"https://i.ytimg.com/vi/{digest[:11]}/hqdefault.jpg"},
                view_count=1000 * (index + 1),
                like_count=50 * (index + 1),
                comment_count=5 * (index + 1),
            )
        )
    return videos


class StubCatalogAdapter(CatalogAdapter):
    """Serves a seeded in-memory catalog.

    Channels that were not seeded get deterministic synthetic uploads, so a
    dry run against an empty stub still exercises the whole pipeline.
    """

    def __init__(
        self,
        uploads: dict[str, list[RemoteVideo]] | None = None,
        statistics: dict[str, RemoteChannelStatistics] | None = None,
        usernames: dict[str, str] | None = None,
        names: dict[str, str] | None = None,
        failing_channels: set[str] | None = None,
        min_duration_seconds: int = MIN_LONG_FORM_SECONDS,
    ) -> None:
        """Initialize the stub.

        Args:
            uploads: Remote channel id -> uploads, newest first.
            statistics: Remote channel id -> channel counters.
            usernames: Legacy username -> remote channel id.
            names: Display name -> remote channel id.
            failing_channels: Remote ids whose listing raises RemoteFetchError.
            min_duration_seconds: Shorter videos are skipped.
        """
        self._seeded = uploads is not None
        self.uploads = uploads or {}
        self.statistics = statistics or {}
        self.usernames = usernames or {}
        self.names = names or {}
        self.failing_channels = failing_channels or set()
        self.min_duration_seconds = min_duration_seconds
        self.closed = False

    @property
    def name(self) -> str:
        return "stub"

    async def resolve_channel_id(self, channel: ChannelConfig) -> str | None:
        logger.info("stub_resolve_channel_id", slug=channel.slug)
        if channel.remote_id:
            return channel.remote_id
        if channel.username and channel.username in self.usernames:
            return self.usernames[channel.username]
        if channel.name in self.names:
            return self.names[channel.name]
        if not self._seeded:
            return f"UC{hashlib.sha1(channel.slug.encode()).hexdigest()[:22]}"
        return None

    async def list_uploads(
        self, remote_id: str, limit: int | None = None
    ) -> AsyncIterator[RemoteVideo]:
        logger.info("stub_list_uploads", remote_id=remote_id, limit=limit)
        if remote_id in self.failing_channels:
            raise RemoteFetchError("playlistItems", f"stub failure for {remote_id}")

        if self._seeded:
            videos = self.uploads.get(remote_id, [])
        else:
            videos = _synthetic_videos(remote_id, SYNTHETIC_VIDEOS_PER_CHANNEL)

        yielded = 0
        for video in videos:
            if not is_long_form(parse_duration_seconds(video.duration), self.min_duration_seconds):
                continue
            yield video
            yielded += 1
            if limit is not None and yielded >= limit:
                return

    async def fetch_channel_statistics(self, remote_id: str) -> RemoteChannelStatistics | None:
        logger.info("stub_fetch_channel_statistics", remote_id=remote_id)
        if remote_id in self.statistics:
            return self.statistics[remote_id]
        if not self._seeded:
            return RemoteChannelStatistics(
                subscriber_count=10_000,
                view_count=250_000,
                video_count=SYNTHETIC_VIDEOS_PER_CHANNEL,
            )
        return None

    async def close(self) -> None:
        self.closed = True
