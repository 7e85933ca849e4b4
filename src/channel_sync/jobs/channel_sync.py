"""Channel sync job: pull uploads and statistics for every configured channel.

Channels are processed one after another. A failure while processing one
channel is logged and recorded, and the loop moves on to the next channel.
"""

from dataclasses import dataclass, field

from channel_sync.adapters.catalog import (
    CatalogAdapter,
    StubCatalogAdapter,
    YouTubeCatalogAdapter,
)
from channel_sync.config import ChannelConfig, Settings, get_settings
from channel_sync.domain.enums import ChannelSyncStatus
from channel_sync.domain.models import ChannelData
from channel_sync.logging import get_logger
from channel_sync.services.mapper import to_channel_statistics, to_media_item
from channel_sync.services.persistence import PersistenceGateway

logger = get_logger(__name__)


def get_catalog_adapter(config: Settings | None = None) -> CatalogAdapter:
    """Get the catalog adapter for the configured provider.

    Raises:
        ConfigurationError: If the YouTube provider is selected without an API key.
        ValueError: If the provider is not supported.
    """
    config = config or get_settings()
    if config.catalog_provider == "youtube":
        return YouTubeCatalogAdapter(
            api_key=config.require_youtube_api_key(),
            page_size=config.youtube_page_size,
            min_duration_seconds=config.min_video_duration_seconds,
            timeout=config.http_timeout_seconds,
        )
    elif config.catalog_provider == "stub":
        return StubCatalogAdapter(min_duration_seconds=config.min_video_duration_seconds)
    else:
        raise ValueError(f"Unsupported catalog provider: {config.catalog_provider}")


@dataclass
class ChannelSyncOutcome:
    """What happened to one configured channel."""

    slug: str
    status: ChannelSyncStatus
    remote_id: str | None = None
    fetched: int = 0
    inserted: int = 0
    updated: int = 0
    failed_updates: int = 0
    statistics_stored: bool = False
    error: str | None = None


@dataclass
class SyncRunSummary:
    outcomes: list[ChannelSyncOutcome] = field(default_factory=list)

    @property
    def failed(self) -> list[ChannelSyncOutcome]:
        return [
            outcome
            for outcome in self.outcomes
            if outcome.status in (ChannelSyncStatus.NOT_FOUND, ChannelSyncStatus.FAILED)
        ]

    @property
    def has_failures(self) -> bool:
        return bool(self.failed)


async def _sync_statistics(
    channel: ChannelConfig,
    remote_id: str,
    catalog: CatalogAdapter,
    gateway: PersistenceGateway,
) -> bool:
    """Fetch and store the daily snapshot. Failures never fail the channel."""
    try:
        remote = await catalog.fetch_channel_statistics(remote_id)
        if remote is None:
            logger.warning("channel_statistics_unavailable", slug=channel.slug, remote_id=remote_id)
            return False
        gateway.upsert_channel_statistics(channel.slug, to_channel_statistics(remote))
        return True
    except Exception as e:
        logger.error("channel_statistics_failed", slug=channel.slug, error=str(e))
        return False


async def sync_channel(
    channel: ChannelConfig,
    catalog: CatalogAdapter,
    gateway: PersistenceGateway,
    limit_videos: int | None = None,
    content_type: str = "podcast",
) -> ChannelSyncOutcome:
    """Sync one channel.

    Steps:
    1. Upsert the channel row from its configuration
    2. Resolve the remote channel id
    3. List long-form uploads and sync them as media items
    4. Store today's statistics snapshot

    Raises:
        RemoteFetchError: If listing uploads fails.
        PersistenceError: If a store write for the channel or its items fails.
    """
    gateway.upsert_channel(
        ChannelData(
            slug=channel.slug,
            name=channel.name,
            remote_id=channel.remote_id,
            visible=channel.visible,
        )
    )

    remote_id = await catalog.resolve_channel_id(channel)
    if not remote_id:
        logger.error("channel_not_found", slug=channel.slug, name=channel.name)
        return ChannelSyncOutcome(slug=channel.slug, status=ChannelSyncStatus.NOT_FOUND)

    if remote_id != channel.remote_id:
        gateway.upsert_channel(ChannelData(slug=channel.slug, name=channel.name, remote_id=remote_id))

    logger.info(
        "channel_resolved",
        slug=channel.slug,
        remote_id=remote_id,
        latest_media_date=str(gateway.fetch_latest_media_date(channel.slug)),
    )

    videos = [video async for video in catalog.list_uploads(remote_id, limit=limit_videos)]
    if not videos:
        logger.info("channel_has_no_videos", slug=channel.slug)
        return ChannelSyncOutcome(slug=channel.slug, status=ChannelSyncStatus.EMPTY, remote_id=remote_id)

    items = []
    for video in videos:
        try:
            items.append(to_media_item(video, channel.slug, content_type=content_type))
        except ValueError as e:
            logger.warning("video_skipped", slug=channel.slug, error=str(e))

    report = gateway.sync_media_items(channel.slug, items)
    statistics_stored = await _sync_statistics(channel, remote_id, catalog, gateway)

    return ChannelSyncOutcome(
        slug=channel.slug,
        status=ChannelSyncStatus.SYNCED,
        remote_id=remote_id,
        fetched=len(videos),
        inserted=report.inserted,
        updated=report.updated,
        failed_updates=len(report.failed_updates),
        statistics_stored=statistics_stored,
    )


async def run_channel_sync(
    channels: list[ChannelConfig],
    catalog: CatalogAdapter,
    gateway: PersistenceGateway,
    limit_videos: int | None = None,
    content_type: str = "podcast",
) -> SyncRunSummary:
    """Sync every configured channel in order.

    Args:
        channels: Configured channels.
        catalog: Remote catalog adapter.
        gateway: Store gateway.
        limit_videos: Maximum long-form uploads fetched per channel.
        content_type: Content type stored on new media items.

    Returns:
        SyncRunSummary with one outcome per channel.
    """
    logger.info(
        "channel_sync_started",
        channels=len(channels),
        provider=catalog.name,
        limit_videos=limit_videos,
    )
    summary = SyncRunSummary()

    for channel in channels:
        try:
            outcome = await sync_channel(
                channel,
                catalog,
                gateway,
                limit_videos=limit_videos,
                content_type=content_type,
            )
        except Exception as e:
            logger.error("channel_sync_failed", slug=channel.slug, error=str(e))
            outcome = ChannelSyncOutcome(
                slug=channel.slug, status=ChannelSyncStatus.FAILED, error=str(e)
            )
        else:
            logger.info(
                "channel_synced",
                slug=channel.slug,
                status=outcome.status.value,
                inserted=outcome.inserted,
                updated=outcome.updated,
            )
        summary.outcomes.append(outcome)

    logger.info(
        "channel_sync_completed",
        channels=len(summary.outcomes),
        failed=len(summary.failed),
    )
    return summary
