"""Tests for the persistence gateway against a SQLite store."""

import threading
from datetime import date

import pytest
from sqlalchemy import text

from channel_sync.domain.models import ChannelData, ChannelStatistics
from channel_sync.services.persistence import (
    PersistenceError,
    PersistenceGateway,
    partition_media_items,
)


class TestPartitionMediaItems:
    def test_splits_by_existing_ids(self, make_media_item):
        items = [make_media_item(f"vid00000000{i}", "show") for i in range(4)]
        to_insert, to_update = partition_media_items({"vid000000001", "vid000000003"}, items)

        assert [i.id for i in to_insert] == ["vid000000000", "vid000000002"]
        assert [i.id for i in to_update] == ["vid000000001", "vid000000003"]

    def test_every_id_lands_in_exactly_one_list(self, make_media_item):
        items = [make_media_item(f"vid00000000{i}", "show") for i in range(5)]
        to_insert, to_update = partition_media_items({"vid000000002", "unrelated"}, items)

        inserted = {i.id for i in to_insert}
        updated = {i.id for i in to_update}
        assert inserted.isdisjoint(updated)
        assert inserted | updated == {i.id for i in items}

    def test_duplicate_ids_collapse_to_last(self, make_media_item):
        first = make_media_item("dupdupdupdu", "show", views=1)
        last = make_media_item("dupdupdupdu", "show", views=2)

        to_insert, to_update = partition_media_items(set(), [first, last])

        assert to_insert == [last]
        assert to_update == []


class TestChannels:
    """Tests for channel upserts."""

    def test_upsert_twice_keeps_one_row(self, gateway):
        gateway.upsert_channel(ChannelData(slug="show", name="Old Name", remote_id="UC1"))
        gateway.upsert_channel(ChannelData(slug="show", name="New Name", remote_id="UC1", visible=True))

        channels = gateway.fetch_all_channels()
        assert len(channels) == 1
        assert channels[0].name == "New Name"
        assert channels[0].visible is True
        assert channels[0].created_at is not None

    def test_missing_remote_id_keeps_stored_value(self, gateway):
        gateway.upsert_channel(ChannelData(slug="show", name="Show", remote_id="UC1", visible=False))
        gateway.upsert_channel(ChannelData(slug="show", name="Show"))

        (channel,) = gateway.fetch_all_channels()
        assert channel.remote_id == "UC1"
        assert channel.visible is False

    def test_fetch_all_ordered_by_slug(self, gateway):
        for slug in ("zeta", "alpha", "mid"):
            gateway.upsert_channel(ChannelData(slug=slug, name=slug.title()))

        assert [c.slug for c in gateway.fetch_all_channels()] == ["alpha", "mid", "zeta"]


class TestMediaItems:
    """Tests for media item sync."""

    @pytest.fixture(autouse=True)
    def _channel(self, gateway):
        gateway.upsert_channel(ChannelData(slug="show", name="Show", remote_id="UC1"))

    def test_first_sync_inserts_everything(self, gateway, make_media_item):
        items = [make_media_item(f"vid00000000{i}", "show") for i in range(3)]

        report = gateway.sync_media_items("show", items)

        assert report.inserted == 3
        assert report.updated == 0
        assert not report.has_failures
        assert len(gateway.fetch_media_items("show")) == 3

    def test_resync_only_updates_counters(self, gateway, make_media_item):
        gateway.sync_media_items("show", [make_media_item("vid000000001", "show", title="Original")])

        report = gateway.sync_media_items(
            "show",
            [
                make_media_item(
                    "vid000000001", "show", title="Renamed", views=999, likes=77, comments=5
                ),
                make_media_item("vid000000002", "show"),
            ],
        )

        assert report.updated_ids == ["vid000000001"]
        assert report.inserted_ids == ["vid000000002"]

        stored = {item.id: item for item in gateway.fetch_media_items("show")}
        assert stored["vid000000001"].title == "Original"
        assert (stored["vid000000001"].views, stored["vid000000001"].likes) == (999, 77)
        assert stored["vid000000001"].comments == 5

    def test_fetch_ordered_by_date_desc(self, gateway, make_media_item):
        gateway.sync_media_items(
            "show",
            [
                make_media_item("vidolder0001", "show", date=date(2023, 1, 1)),
                make_media_item("vidnewer0001", "show", date=date(2024, 6, 1)),
            ],
        )

        assert [i.id for i in gateway.fetch_media_items("show")] == ["vidnewer0001", "vidolder0001"]

    def test_latest_media_date(self, gateway, make_media_item):
        assert gateway.fetch_latest_media_date("show") is None

        gateway.sync_media_items(
            "show",
            [
                make_media_item("vidolder0001", "show", date=date(2023, 1, 1)),
                make_media_item("vidnewer0001", "show", date=date(2024, 6, 1)),
                make_media_item("vidundated01", "show", date=None),
            ],
        )

        assert gateway.fetch_latest_media_date("show") == date(2024, 6, 1)

    def test_empty_batch_is_a_no_op(self, gateway):
        report = gateway.sync_media_items("show", [])
        assert (report.inserted, report.updated) == (0, 0)

    def test_counter_updates_run_concurrently(self, session_factory, make_media_item):
        items = [make_media_item(f"vid00000000{i}", "show") for i in range(3)]
        barrier = threading.Barrier(len(items), timeout=5)

        class BarrierGateway(PersistenceGateway):
            def _update_counters(self, item):
                barrier.wait()
                super()._update_counters(item)

        gateway = BarrierGateway(session_factory, update_workers=3)
        gateway.sync_media_items("show", items)

        report = gateway.sync_media_items("show", [make_media_item(i.id, "show", views=5) for i in items])

        assert report.updated_ids == [i.id for i in items]
        assert not report.has_failures
        assert {item.views for item in gateway.fetch_media_items("show")} == {5}


class TestChannelStatistics:
    """Tests for daily statistics snapshots."""

    @pytest.fixture(autouse=True)
    def _channel(self, gateway, make_media_item):
        gateway.upsert_channel(ChannelData(slug="show", name="Show", remote_id="UC1"))
        gateway.sync_media_items(
            "show",
            [
                make_media_item("vid000000001", "show", likes=10, comments=3),
                make_media_item("vid000000002", "show", likes=5, comments=2),
            ],
        )

    def test_aggregates_likes_and_comments(self, gateway):
        snapshot = gateway.upsert_channel_statistics(
            "show",
            ChannelStatistics(subscriber_count=100, total_channel_views=5000, total_videos=2),
            snapshot_date=date(2024, 7, 1),
        )

        assert snapshot.id is not None
        assert snapshot.calculated_total_likes == 15
        assert snapshot.calculated_total_comments == 5
        assert snapshot.subscriber_count == 100

    def test_same_day_overwrites(self, gateway):
        day = date(2024, 7, 1)
        gateway.upsert_channel_statistics("show", ChannelStatistics(subscriber_count=100), day)
        gateway.upsert_channel_statistics("show", ChannelStatistics(subscriber_count=150), day)

        history = gateway.fetch_statistics_history("show")
        assert len(history) == 1
        assert history[0].subscriber_count == 150

    def test_defaults_to_today(self, gateway):
        snapshot = gateway.upsert_channel_statistics("show", ChannelStatistics())
        assert snapshot.date is not None
        assert gateway.fetch_statistics_history("show")[0].date == snapshot.date

    def test_history_newest_first_and_capped(self, gateway):
        for day in (1, 2, 3, 4):
            gateway.upsert_channel_statistics(
                "show", ChannelStatistics(subscriber_count=day), date(2024, 7, day)
            )

        history = gateway.fetch_statistics_history("show", limit_days=3)

        assert [s.date for s in history] == [date(2024, 7, 4), date(2024, 7, 3), date(2024, 7, 2)]

    def test_no_media_items_aggregates_to_zero(self, gateway):
        gateway.upsert_channel(ChannelData(slug="quiet", name="Quiet"))
        snapshot = gateway.upsert_channel_statistics("quiet", ChannelStatistics(), date(2024, 7, 1))

        assert snapshot.calculated_total_likes == 0
        assert snapshot.calculated_total_comments == 0


class TestPersistenceErrors:
    def test_store_failure_wrapped(self, engine, gateway):
        with engine.begin() as conn:
            conn.execute(text("DROP TABLE channel_statistics"))

        with pytest.raises(PersistenceError) as exc_info:
            gateway.fetch_statistics_history("show")

        assert exc_info.value.operation == "get channel statistics history"
        assert str(exc_info.value).startswith("Failed to get channel statistics history:")

    def test_media_items_require_existing_channel(self, gateway, make_media_item):
        with pytest.raises(PersistenceError) as exc_info:
            gateway.sync_media_items("no-such-channel", [make_media_item("orphan00001", "no-such-channel")])

        assert exc_info.value.operation == "insert new media items"
        assert gateway.fetch_all_channels() == []
        assert gateway.fetch_media_items("no-such-channel") == []

    def test_statistics_require_existing_channel(self, gateway):
        with pytest.raises(PersistenceError):
            gateway.upsert_channel_statistics("no-such-channel", ChannelStatistics(), date(2024, 7, 1))

        assert gateway.fetch_statistics_history("no-such-channel") == []

    def test_failed_counter_updates_are_reported(self, session_factory, make_media_item):
        class FlakyGateway(PersistenceGateway):
            def _update_counters(self, item):
                if item.id == "vid000000002":
                    raise PersistenceError(f"update media item {item.id}", "deadlock detected")
                super()._update_counters(item)

        gateway = FlakyGateway(session_factory)
        gateway.upsert_channel(ChannelData(slug="show", name="Show"))
        items = [make_media_item(f"vid00000000{i}", "show") for i in (1, 2, 3)]
        gateway.sync_media_items("show", items)

        report = gateway.sync_media_items("show", items)

        assert report.updated_ids == ["vid000000001", "vid000000003"]
        assert report.failed_updates == {"vid000000002": "deadlock detected"}
        assert report.has_failures


def test_likes_summed_over_stored_items(gateway, make_media_item):
    gateway.upsert_channel(ChannelData(slug="show", name="Show"))
    gateway.sync_media_items(
        "show",
        [make_media_item(f"sum00000000{i}", "show", likes=likes) for i, likes in enumerate([3, 7, 0])],
    )

    snapshot = gateway.upsert_channel_statistics("show", ChannelStatistics(), date(2024, 8, 1))

    assert snapshot.calculated_total_likes == 10
