"""YouTube catalog adapter using the Data API v3."""

from collections.abc import AsyncIterator, Mapping
from typing import Any

import httpx

from channel_sync.adapters.catalog.base import (
    CatalogAdapter,
    RemoteChannelStatistics,
    RemoteFetchError,
    RemoteVideo,
    section,
)
from channel_sync.config import ChannelConfig
from channel_sync.logging import get_logger
from channel_sync.utils.durations import (
    MIN_LONG_FORM_SECONDS,
    format_duration,
    is_long_form,
    parse_duration_seconds,
)

logger = get_logger(__name__)

YOUTUBE_API_BASE_URL = "https://www.googleapis.com/youtube/v3"
MAX_PAGE_SIZE = 50


def _items(data: Mapping[str, Any], resource: str) -> list[Mapping[str, Any]]:
    """The ``items`` list of a response, rejecting entries that are not objects."""
    items = data.get("items") or []
    if not isinstance(items, list) or not all(isinstance(item, Mapping) for item in items):
        raise RemoteFetchError(resource, "unexpected items shape")
    return items


class YouTubeCatalogAdapter(CatalogAdapter):
    """Reads channel uploads and statistics from the YouTube Data API.

    Uses:
    - channels.list (forUsername, contentDetails, statistics)
    - search.list for display-name fallback
    - playlistItems.list to page the uploads playlist
    - videos.list to batch-fetch details for one page of ids
    """

    def __init__(
        self,
        api_key: str,
        page_size: int = MAX_PAGE_SIZE,
        min_duration_seconds: int = MIN_LONG_FORM_SECONDS,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            api_key: YouTube Data API key.
            page_size: Playlist items per page (capped at the API maximum).
            min_duration_seconds: Shorter videos are skipped.
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport (tests).
        """
        self.api_key = api_key
        self.page_size = max(1, min(page_size, MAX_PAGE_SIZE))
        self.min_duration_seconds = min_duration_seconds
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def name(self) -> str:
        return "youtube"

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=YOUTUBE_API_BASE_URL,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def _get(self, resource: str, params: dict[str, Any]) -> dict[str, Any]:
        """GET a Data API resource and return the decoded JSON body.

        Raises:
            RemoteFetchError: On transport errors, non-200 responses or bad JSON.
        """
        client = await self._get_client()
        try:
            response = await client.get(f"/{resource}", params={**params, "key": self.api_key})
        except httpx.HTTPError as e:
            logger.error("youtube_request_failed", resource=resource, error=str(e))
            raise RemoteFetchError(resource, str(e)) from e

        if response.status_code != 200:
            logger.error(
                "youtube_data_api_error",
                resource=resource,
                status=response.status_code,
                body=response.text[:500],
            )
            raise RemoteFetchError(resource, f"HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise RemoteFetchError(resource, f"invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise RemoteFetchError(resource, "unexpected response shape")
        return data

    async def _lookup_by_username(self, username: str) -> str | None:
        logger.info("channel_lookup_by_username", username=username)
        data = await self._get("channels", {"part": "id", "forUsername": username})
        items = _items(data, "channels")
        return items[0].get("id") if items else None

    async def _search_by_name(self, channel_name: str) -> str | None:
        logger.info("channel_search_by_name", channel_name=channel_name)
        data = await self._get(
            "search",
            {"part": "snippet", "q": channel_name, "type": "channel", "maxResults": 1},
        )
        items = _items(data, "search")
        if not items:
            return None
        return section(items[0], "snippet").get("channelId")

    async def resolve_channel_id(self, channel: ChannelConfig) -> str | None:
        if channel.remote_id:
            logger.info("channel_id_configured", slug=channel.slug, remote_id=channel.remote_id)
            return channel.remote_id

        if channel.username:
            try:
                remote_id = await self._lookup_by_username(channel.username)
            except RemoteFetchError as e:
                logger.warning("channel_lookup_by_username_failed", slug=channel.slug, error=str(e))
                remote_id = None
            if remote_id:
                return remote_id

        try:
            remote_id = await self._search_by_name(channel.name)
        except RemoteFetchError as e:
            logger.warning("channel_search_failed", slug=channel.slug, error=str(e))
            return None

        if not remote_id:
            logger.warning("channel_not_found", slug=channel.slug, channel_name=channel.name)
        return remote_id

    async def get_uploads_playlist_id(self, remote_id: str) -> str:
        """Get the id of the channel's uploads playlist.

        Raises:
            RemoteFetchError: If the channel or its uploads playlist is missing.
        """
        data = await self._get("channels", {"part": "contentDetails", "id": remote_id})
        items = _items(data, "channels")
        if not items:
            raise RemoteFetchError("channels", f"channel {remote_id} not found")

        related = section(section(items[0], "contentDetails"), "relatedPlaylists")
        uploads = related.get("uploads")
        if not uploads:
            raise RemoteFetchError("channels", f"channel {remote_id} has no uploads playlist")
        return uploads

    async def list_uploads(
        self, remote_id: str, limit: int | None = None
    ) -> AsyncIterator[RemoteVideo]:
        playlist_id = await self.get_uploads_playlist_id(remote_id)
        yielded = 0
        page_token: str | None = None

        while True:
            params: dict[str, Any] = {
                "part": "snippet",
                "maxResults": self.page_size,
                "playlistId": playlist_id,
            }
            if page_token:
                params["pageToken"] = page_token

            page = await self._get("playlistItems", params)
            items = _items(page, "playlistItems")
            video_ids = [
                video_id
                for item in items
                if (video_id := section(section(item, "snippet"), "resourceId").get("videoId"))
            ]
            if not video_ids:
                logger.info("uploads_page_empty", playlist_id=playlist_id)
                break

            details = await self._get(
                "videos",
                {"part": "snippet,contentDetails,statistics", "id": ",".join(video_ids)},
            )

            for raw in _items(details, "videos"):
                video = RemoteVideo.from_api(raw)

                seconds = parse_duration_seconds(video.duration)
                if not is_long_form(seconds, self.min_duration_seconds):
                    logger.debug(
                        "short_video_skipped",
                        video_id=video.id,
                        duration=format_duration(seconds),
                        title=video.title,
                    )
                    continue

                yield video
                yielded += 1
                if limit is not None and yielded >= limit:
                    logger.info("video_limit_reached", remote_id=remote_id, limit=limit)
                    return

            page_token = page.get("nextPageToken")
            if not page_token:
                break

    async def fetch_channel_statistics(self, remote_id: str) -> RemoteChannelStatistics | None:
        try:
            data = await self._get("channels", {"part": "statistics", "id": remote_id})
        except RemoteFetchError as e:
            logger.warning("channel_statistics_fetch_failed", remote_id=remote_id, error=str(e))
            return None

        try:
            items = _items(data, "channels")
        except RemoteFetchError as e:
            logger.warning("channel_statistics_fetch_failed", remote_id=remote_id, error=str(e))
            return None

        statistics = section(items[0], "statistics") if items else {}
        if not statistics:
            return None
        return RemoteChannelStatistics.from_api(statistics)

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
