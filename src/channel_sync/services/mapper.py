"""Record mapper: remote catalog payloads to internal rows.

All defaults for missing remote fields are applied here and nowhere deeper
in the pipeline.
"""

from collections.abc import Mapping
from datetime import date, datetime

from channel_sync.adapters.catalog.base import RemoteChannelStatistics, RemoteVideo
from channel_sync.domain.models import ChannelStatistics, MediaItem
from channel_sync.utils.durations import format_duration, parse_duration_seconds

WATCH_URL_TEMPLATE = "https://www.youtube.com/watch?v={video_id}"

THUMBNAIL_PREFERENCE = ("high", "default")


def select_thumbnail(thumbnails: Mapping[str, str] | None) -> str | None:
    """Prefer the high resolution thumbnail, then default."""
    if not thumbnails:
        return None
    for size in THUMBNAIL_PREFERENCE:
        url = thumbnails.get(size)
        if url:
            return url
    return None


def normalize_publish_date(published_at: str | None) -> date | None:
    """Truncate a publish timestamp to its calendar date."""
    if not published_at:
        return None
    try:
        return datetime.fromisoformat(published_at).date()
    except ValueError:
        pass
    try:
        return date.fromisoformat(published_at[:10])
    except ValueError:
        return None


def build_watch_url(video_id: str) -> str:
    return WATCH_URL_TEMPLATE.format(video_id=video_id)


def to_media_item(
    video: RemoteVideo,
    channel_slug: str,
    content_type: str = "podcast",
) -> MediaItem:
    """Map a remote video to a new media item row.

    Args:
        video: Remote video detail record.
        channel_slug: Owning channel.
        content_type: Content type stored on the row.

    Returns:
        MediaItem ready for insert (``created_at`` is left to the store).

    Raises:
        ValueError: If the record has no id.
    """
    if not video.id:
        raise ValueError("Remote video record has no id")

    return MediaItem(
        id=video.id,
        title=video.title or "",
        date=normalize_publish_date(video.published_at),
        channel_slug=channel_slug,
        content_type=content_type,
        duration=format_duration(parse_duration_seconds(video.duration)),
        description=video.description or None,
        remote_id=video.id,
        image=select_thumbnail(video.thumbnails),
        remote_url=build_watch_url(video.id),
        views=video.view_count or 0,
        likes=video.like_count or 0,
        comments=video.comment_count or 0,
    )


def to_channel_statistics(remote: RemoteChannelStatistics) -> ChannelStatistics:
    """Map remote channel counters, defaulting missing values to 0."""
    return ChannelStatistics(
        subscriber_count=remote.subscriber_count or 0,
        total_channel_views=remote.view_count or 0,
        total_videos=remote.video_count or 0,
    )
