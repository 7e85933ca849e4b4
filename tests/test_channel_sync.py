"""Tests for the channel sync job."""

import pytest

from channel_sync.adapters.catalog import (
    RemoteChannelStatistics,
    RemoteVideo,
    StubCatalogAdapter,
    YouTubeCatalogAdapter,
)
from channel_sync.config import ChannelConfig, ConfigurationError, Settings
from channel_sync.domain.enums import ChannelSyncStatus
from channel_sync.jobs.channel_sync import get_catalog_adapter, run_channel_sync, sync_channel
from channel_sync.services.persistence import PersistenceError, PersistenceGateway


def _remote(video_id: str, duration: str = "PT40M", views: int = 100) -> RemoteVideo:
    return RemoteVideo(
        id=video_id,
        title=f"Video {video_id}",
        published_at="2024-05-01T08:00:00Z",
        duration=duration,
        thumbnails={"high": f"https://i.ytimg.com/vi/{video_id}/hqdefault.jpg"},
        view_count=views,
        like_count=4,
        comment_count=2,
    )


@pytest.fixture
def catalog() -> StubCatalogAdapter:
    return StubCatalogAdapter(
        uploads={
            "UCalpha": [_remote("alpha000001"), _remote("alphashort1", "PT45S"), _remote("alpha000002")],
            "UCbeta": [_remote("beta0000001")],
            "UCquiet": [],
        },
        statistics={
            "UCalpha": RemoteChannelStatistics(subscriber_count=500, view_count=9000, video_count=3),
        },
        usernames={"betalegacy": "UCbeta"},
        names={"Quiet": "UCquiet"},
    )


class TestSyncChannel:
    """Tests for syncing a single channel."""

    @pytest.mark.asyncio
    async def test_syncs_long_form_videos_and_statistics(self, catalog, gateway):
        channel = ChannelConfig(slug="alpha", name="Alpha", youtubeId="UCalpha", visible=True)

        outcome = await sync_channel(channel, catalog, gateway)

        assert outcome.status == ChannelSyncStatus.SYNCED
        assert outcome.fetched == 2
        assert outcome.inserted == 2
        assert outcome.statistics_stored is True

        items = gateway.fetch_media_items("alpha")
        assert {item.id for item in items} == {"alpha000001", "alpha000002"}
        assert items[0].duration == "40:00"

        (snapshot,) = gateway.fetch_statistics_history("alpha")
        assert snapshot.subscriber_count == 500
        assert snapshot.calculated_total_likes == 8

    @pytest.mark.asyncio
    async def test_resolved_id_is_stored(self, catalog, gateway):
        channel = ChannelConfig(slug="beta", name="Beta", youtubeUsername="betalegacy")

        outcome = await sync_channel(channel, catalog, gateway)

        assert outcome.remote_id == "UCbeta"
        (stored,) = gateway.fetch_all_channels()
        assert stored.remote_id == "UCbeta"

    @pytest.mark.asyncio
    async def test_missing_statistics_do_not_fail_channel(self, catalog, gateway):
        channel = ChannelConfig(slug="beta", name="Beta", youtubeId="UCbeta")

        outcome = await sync_channel(channel, catalog, gateway)

        assert outcome.status == ChannelSyncStatus.SYNCED
        assert outcome.statistics_stored is False
        assert gateway.fetch_statistics_history("beta") == []

    @pytest.mark.asyncio
    async def test_statistics_store_failure_is_isolated(self, catalog, session_factory):
        class BrokenStatsGateway(PersistenceGateway):
            def upsert_channel_statistics(self, *args, **kwargs):
                raise PersistenceError("upsert channel statistics", "disk full")

        gateway = BrokenStatsGateway(session_factory)
        channel = ChannelConfig(slug="alpha", name="Alpha", youtubeId="UCalpha")

        outcome = await sync_channel(channel, catalog, gateway)

        assert outcome.status == ChannelSyncStatus.SYNCED
        assert outcome.statistics_stored is False
        assert len(gateway.fetch_media_items("alpha")) == 2

    @pytest.mark.asyncio
    async def test_resync_updates_counters(self, catalog, gateway):
        channel = ChannelConfig(slug="alpha", name="Alpha", youtubeId="UCalpha")
        await sync_channel(channel, catalog, gateway)

        catalog.uploads["UCalpha"] = [_remote("alpha000001", views=777), _remote("alpha000003")]
        outcome = await sync_channel(channel, catalog, gateway)

        assert (outcome.inserted, outcome.updated) == (1, 1)
        stored = {item.id: item for item in gateway.fetch_media_items("alpha")}
        assert stored["alpha000001"].views == 777
        assert len(stored) == 3

    @pytest.mark.asyncio
    async def test_limit_videos(self, catalog, gateway):
        channel = ChannelConfig(slug="alpha", name="Alpha", youtubeId="UCalpha")

        outcome = await sync_channel(channel, catalog, gateway, limit_videos=1)

        assert outcome.fetched == 1
        assert [i.id for i in gateway.fetch_media_items("alpha")] == ["alpha000001"]


class TestRunChannelSync:
    """Tests for the per-channel loop."""

    @pytest.mark.asyncio
    async def test_failures_are_isolated(self, catalog, gateway):
        catalog.failing_channels.add("UCbeta")
        channels = [
            ChannelConfig(slug="ghost", name="Ghost"),
            ChannelConfig(slug="beta", name="Beta", youtubeId="UCbeta"),
            ChannelConfig(slug="quiet", name="Quiet"),
            ChannelConfig(slug="alpha", name="Alpha", youtubeId="UCalpha"),
        ]

        summary = await run_channel_sync(channels, catalog, gateway)

        statuses = {outcome.slug: outcome.status for outcome in summary.outcomes}
        assert statuses == {
            "ghost": ChannelSyncStatus.NOT_FOUND,
            "beta": ChannelSyncStatus.FAILED,
            "quiet": ChannelSyncStatus.EMPTY,
            "alpha": ChannelSyncStatus.SYNCED,
        }
        assert summary.has_failures
        assert [o.slug for o in summary.failed] == ["ghost", "beta"]
        assert "stub failure" in summary.outcomes[1].error
        # Every configured channel is stored, even the ones that failed
        assert len(gateway.fetch_all_channels()) == 4
        assert len(gateway.fetch_media_items("alpha")) == 2

    @pytest.mark.asyncio
    async def test_empty_channel_is_not_a_failure(self, catalog, gateway):
        summary = await run_channel_sync(
            [ChannelConfig(slug="quiet", name="Quiet")], catalog, gateway
        )

        assert not summary.has_failures
        assert summary.outcomes[0].remote_id == "UCquiet"

    @pytest.mark.asyncio
    async def test_unseeded_stub_dry_run(self, gateway):
        summary = await run_channel_sync(
            [ChannelConfig(slug="demo", name="Demo")], StubCatalogAdapter(), gateway
        )

        (outcome,) = summary.outcomes
        assert outcome.status == ChannelSyncStatus.SYNCED
        assert outcome.inserted == 5
        assert outcome.statistics_stored is True


class TestGetCatalogAdapter:
    def test_stub_provider(self):
        adapter = get_catalog_adapter(Settings(catalog_provider="stub"))
        assert isinstance(adapter, StubCatalogAdapter)

    def test_youtube_provider(self):
        adapter = get_catalog_adapter(
            Settings(catalog_provider="youtube", youtube_api_key="key", youtube_page_size=500)
        )
        assert isinstance(adapter, YouTubeCatalogAdapter)
        assert adapter.page_size == 50

    def test_youtube_provider_requires_key(self):
        with pytest.raises(ConfigurationError):
            get_catalog_adapter(Settings(catalog_provider="youtube", youtube_api_key=None))
