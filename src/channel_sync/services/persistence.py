"""Persistence gateway for channels, media items and statistics snapshots.

The gateway is the only writer of the three tables. Every operation runs in
its own session obtained from the injected session factory, and every store
failure surfaces as a PersistenceError. Nothing is retried here.
"""

from collections.abc import Generator, Iterable
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from datetime import UTC, date, datetime
from typing import Any

from sqlalchemy import func, insert, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from channel_sync.db.models import ChannelModel, ChannelStatisticsModel, MediaItemModel
from channel_sync.db.session import get_session_context
from channel_sync.domain.models import (
    ChannelData,
    ChannelRecord,
    ChannelStatistics,
    MediaItem,
    MediaSyncReport,
    StatisticsSnapshot,
)
from channel_sync.logging import get_logger

logger = get_logger(__name__)

DEFAULT_UPDATE_WORKERS = 4


class PersistenceError(Exception):
    """Raised when a store read or write fails."""

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(f"Failed to {operation}: {message}")
        self.operation = operation
        self.underlying_message = message


def partition_media_items(
    existing_ids: set[str],
    items: Iterable[MediaItem],
) -> tuple[list[MediaItem], list[MediaItem]]:
    """Split an incoming batch into new rows and rows to refresh.

    Every incoming id lands in exactly one list. Repeated ids within the
    batch collapse to their last occurrence.

    Args:
        existing_ids: Ids already stored for the channel.
        items: Incoming batch.

    Returns:
        (to_insert, to_update)
    """
    latest: dict[str, MediaItem] = {}
    for item in items:
        latest[item.id] = item

    to_insert = [item for item_id, item in latest.items() if item_id not in existing_ids]
    to_update = [item for item_id, item in latest.items() if item_id in existing_ids]
    return to_insert, to_update


def _upsert_insert(session: Session, model: type) -> Any:
    """Dialect-specific INSERT supporting ON CONFLICT DO UPDATE."""
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return pg_insert(model)
    if dialect == "sqlite":
        return sqlite_insert(model)
    raise PersistenceError("build upsert", f"unsupported database dialect: {dialect}")


def _channel_record(model: ChannelModel) -> ChannelRecord:
    return ChannelRecord(
        slug=model.slug,
        name=model.name,
        remote_id=model.remote_id,
        visible=model.visible,
        created_at=model.created_at,
    )


def _media_item(model: MediaItemModel) -> MediaItem:
    return MediaItem(
        id=model.id,
        title=model.title,
        date=model.date,
        channel_slug=model.channel_slug,
        content_type=model.content_type,
        duration=model.duration,
        description=model.description,
        remote_id=model.remote_id,
        image=model.image,
        remote_url=model.remote_url,
        views=model.views,
        likes=model.likes,
        comments=model.comments,
        external_platform_url=model.external_platform_url,
        created_at=model.created_at,
    )


def _statistics_snapshot(model: ChannelStatisticsModel) -> StatisticsSnapshot:
    return StatisticsSnapshot(
        id=model.id,
        channel_slug=model.channel_slug,
        date=model.date,
        subscriber_count=model.subscriber_count,
        total_channel_views=model.total_channel_views,
        total_videos=model.total_videos,
        calculated_total_likes=model.calculated_total_likes,
        calculated_total_comments=model.calculated_total_comments,
        created_at=model.created_at,
    )


def _media_item_row(item: MediaItem, channel_slug: str) -> dict[str, Any]:
    """Full column set for a new media item (created_at is server-side)."""
    return {
        "id": item.id,
        "title": item.title,
        "date": item.date,
        "content_type": item.content_type,
        "duration": item.duration,
        "description": item.description,
        "remote_id": item.remote_id,
        "image": item.image,
        "channel_slug": channel_slug,
        "remote_url": item.remote_url,
        "views": item.views or 0,
        "likes": item.likes or 0,
        "comments": item.comments or 0,
        "external_platform_url": item.external_platform_url,
    }


class PersistenceGateway:
    """Reads and writes channels, media items and statistics snapshots."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        update_workers: int = DEFAULT_UPDATE_WORKERS,
    ) -> None:
        """Initialize the gateway.

        Args:
            session_factory: Factory for sessions against the target store.
            update_workers: Threads used to fan out counter updates.
        """
        self._session_factory = session_factory
        self.update_workers = max(1, update_workers)

    @contextmanager
    def _session(self, operation: str) -> Generator[Session, None, None]:
        """Session scope that converts store failures into PersistenceError."""
        try:
            with get_session_context(self._session_factory) as session:
                yield session
        except SQLAlchemyError as e:
            logger.error("persistence_error", operation=operation, error=str(e))
            raise PersistenceError(operation, str(e)) from e

    # -------------------------------------------------------------------------
    # Channels
    # -------------------------------------------------------------------------

    def upsert_channel(self, data: ChannelData) -> None:
        """Insert or update a channel keyed by slug.

        A missing remote id or visibility flag keeps the stored value.
        """
        with self._session("upsert channel") as session:
            stmt = _upsert_insert(session, ChannelModel).values(
                slug=data.slug,
                name=data.name,
                remote_id=data.remote_id,
                visible=data.visible,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=["slug"],
                set_={
                    "name": stmt.excluded.name,
                    "remote_id": func.coalesce(stmt.excluded.remote_id, ChannelModel.remote_id),
                    "visible": func.coalesce(stmt.excluded.visible, ChannelModel.visible),
                },
            )
            session.execute(stmt)

        logger.debug("channel_upserted", slug=data.slug, remote_id=data.remote_id)

    def fetch_all_channels(self) -> list[ChannelRecord]:
        with self._session("get all channels") as session:
            models = session.execute(select(ChannelModel).order_by(ChannelModel.slug)).scalars().all()
            return [_channel_record(model) for model in models]

    # -------------------------------------------------------------------------
    # Media items
    # -------------------------------------------------------------------------

    def _fetch_media_item_ids(self, channel_slug: str) -> set[str]:
        with self._session("fetch existing media items") as session:
            ids = session.execute(
                select(MediaItemModel.id).where(MediaItemModel.channel_slug == channel_slug)
            ).scalars()
            return set(ids)

    def _update_counters(self, item: MediaItem) -> None:
        with self._session(f"update media item {item.id}") as session:
            session.execute(
                update(MediaItemModel)
                .where(MediaItemModel.id == item.id)
                .values(
                    views=item.views or 0,
                    likes=item.likes or 0,
                    comments=item.comments or 0,
                )
            )

    def sync_media_items(self, channel_slug: str, items: Iterable[MediaItem]) -> MediaSyncReport:
        """Insert unseen media items and refresh counters on known ones.

        Known items only get views/likes/comments overwritten. Counter
        updates run concurrently on a thread pool, each in its own
        transaction, and every outcome is recorded in the report in batch
        order. Unseen items are written in one bulk insert afterwards; the
        operation as a whole is not atomic.

        Args:
            channel_slug: Owning channel.
            items: Mapped media items from the catalog.

        Returns:
            MediaSyncReport with inserted, updated and failed-update ids.

        Raises:
            PersistenceError: If the existing-id read or the bulk insert fails.
        """
        existing_ids = self._fetch_media_item_ids(channel_slug)
        to_insert, to_update = partition_media_items(existing_ids, items)
        report = MediaSyncReport(channel_slug=channel_slug)

        if to_update:
            with ThreadPoolExecutor(max_workers=min(self.update_workers, len(to_update))) as executor:
                futures = [(item, executor.submit(self._update_counters, item)) for item in to_update]

                for item, future in futures:
                    try:
                        future.result()
                    except PersistenceError as e:
                        report.failed_updates[item.id] = e.underlying_message
                    else:
                        report.updated_ids.append(item.id)

        if report.has_failures:
            logger.warning(
                "media_item_updates_failed",
                channel_slug=channel_slug,
                failed=len(report.failed_updates),
                attempted=len(to_update),
            )

        if to_insert:
            with self._session("insert new media items") as session:
                session.execute(
                    insert(MediaItemModel),
                    [_media_item_row(item, channel_slug) for item in to_insert],
                )
            report.inserted_ids = [item.id for item in to_insert]

        logger.info(
            "media_items_synced",
            channel_slug=channel_slug,
            inserted=report.inserted,
            updated=report.updated,
        )
        return report

    def fetch_media_items(self, channel_slug: str) -> list[MediaItem]:
        with self._session("get channel media items") as session:
            models = (
                session.execute(
                    select(MediaItemModel)
                    .where(MediaItemModel.channel_slug == channel_slug)
                    .order_by(MediaItemModel.date.desc(), MediaItemModel.id)
                )
                .scalars()
                .all()
            )
            return [_media_item(model) for model in models]

    def fetch_latest_media_date(self, channel_slug: str) -> date | None:
        """Most recent stored publish date for the channel, if any."""
        with self._session("get latest media item date") as session:
            return (
                session.execute(
                    select(MediaItemModel.date)
                    .where(
                        MediaItemModel.channel_slug == channel_slug,
                        MediaItemModel.date.isnot(None),
                    )
                    .order_by(MediaItemModel.date.desc())
                    .limit(1)
                )
                .scalars()
                .first()
            )

    # -------------------------------------------------------------------------
    # Channel statistics
    # -------------------------------------------------------------------------

    def upsert_channel_statistics(
        self,
        channel_slug: str,
        statistics: ChannelStatistics,
        snapshot_date: date | None = None,
    ) -> StatisticsSnapshot:
        """Write the channel's snapshot for one day.

        Likes and comments are summed over every media item currently stored
        for the channel, not incrementally.

        Args:
            channel_slug: Channel to snapshot.
            statistics: Remote channel counters.
            snapshot_date: Snapshot day, defaults to today (UTC).

        Returns:
            The stored snapshot.
        """
        snapshot_date = snapshot_date or datetime.now(UTC).date()

        with self._session("upsert channel statistics") as session:
            total_likes, total_comments = session.execute(
                select(
                    func.coalesce(func.sum(MediaItemModel.likes), 0),
                    func.coalesce(func.sum(MediaItemModel.comments), 0),
                ).where(MediaItemModel.channel_slug == channel_slug)
            ).one()

            stmt = _upsert_insert(session, ChannelStatisticsModel).values(
                channel_slug=channel_slug,
                date=snapshot_date,
                subscriber_count=statistics.subscriber_count,
                total_channel_views=statistics.total_channel_views,
                total_videos=statistics.total_videos,
                calculated_total_likes=int(total_likes),
                calculated_total_comments=int(total_comments),
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=["channel_slug", "date"],
                set_={
                    "subscriber_count": stmt.excluded.subscriber_count,
                    "total_channel_views": stmt.excluded.total_channel_views,
                    "total_videos": stmt.excluded.total_videos,
                    "calculated_total_likes": stmt.excluded.calculated_total_likes,
                    "calculated_total_comments": stmt.excluded.calculated_total_comments,
                },
            )
            session.execute(stmt)

            stored = session.execute(
                select(ChannelStatisticsModel).where(
                    ChannelStatisticsModel.channel_slug == channel_slug,
                    ChannelStatisticsModel.date == snapshot_date,
                )
            ).scalar_one()
            snapshot = _statistics_snapshot(stored)

        logger.info(
            "channel_statistics_upserted",
            channel_slug=channel_slug,
            date=snapshot_date.isoformat(),
            subscribers=snapshot.subscriber_count,
            total_views=snapshot.total_channel_views,
        )
        return snapshot

    def fetch_statistics_history(
        self, channel_slug: str, limit_days: int = 30
    ) -> list[StatisticsSnapshot]:
        """Snapshots for the channel, most recent first, at most limit_days rows."""
        with self._session("get channel statistics history") as session:
            models = (
                session.execute(
                    select(ChannelStatisticsModel)
                    .where(ChannelStatisticsModel.channel_slug == channel_slug)
                    .order_by(ChannelStatisticsModel.date.desc())
                    .limit(limit_days)
                )
                .scalars()
                .all()
            )
            return [_statistics_snapshot(model) for model in models]
