"""Base interface for remote catalog adapters."""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass, field
from typing import Any

from channel_sync.config import ChannelConfig


class RemoteFetchError(Exception):
    """Raised when a catalog request fails or returns an unusable payload."""

    def __init__(self, resource: str, message: str) -> None:
        super().__init__(f"{resource}: {message}")
        self.resource = resource
        self.message = message


def section(value: Any, key: str) -> Mapping[str, Any]:
    """Nested object ``value[key]``, or an empty mapping when either is not an object."""
    if not isinstance(value, Mapping):
        return {}
    nested = value.get(key)
    return nested if isinstance(nested, Mapping) else {}


def _to_int(value: Any) -> int | None:
    """Parse an API counter (sent as a numeric string) or return None."""
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass
class RemoteVideo:
    """A video detail record as returned by the catalog.

    Every field is optional; defaults are applied by the record mapper.
    """

    id: str | None = None
    title: str | None = None
    description: str | None = None
    published_at: str | None = None
    duration: str | None = None
    thumbnails: dict[str, str] = field(default_factory=dict)
    view_count: int | None = None
    like_count: int | None = None
    comment_count: int | None = None

    @classmethod
    def from_api(cls, item: Mapping[str, Any]) -> "RemoteVideo":
        """Build from a ``videos.list`` item (snippet, contentDetails, statistics)."""
        snippet = section(item, "snippet")
        content_details = section(item, "contentDetails")
        statistics = section(item, "statistics")

        thumbnails = {}
        for size, thumbnail in section(snippet, "thumbnails").items():
            if isinstance(thumbnail, Mapping) and thumbnail.get("url"):
                thumbnails[size] = thumbnail["url"]

        return cls(
            id=item.get("id"),
            title=snippet.get("title"),
            description=snippet.get("description"),
            published_at=snippet.get("publishedAt"),
            duration=content_details.get("duration"),
            thumbnails=thumbnails,
            view_count=_to_int(statistics.get("viewCount")),
            like_count=_to_int(statistics.get("likeCount")),
            comment_count=_to_int(statistics.get("commentCount")),
        )


@dataclass
class RemoteChannelStatistics:
    """Channel counters as returned by the catalog."""

    subscriber_count: int | None = None
    view_count: int | None = None
    video_count: int | None = None

    @classmethod
    def from_api(cls, statistics: Mapping[str, Any]) -> "RemoteChannelStatistics":
        return cls(
            subscriber_count=_to_int(statistics.get("subscriberCount")),
            view_count=_to_int(statistics.get("viewCount")),
            video_count=_to_int(statistics.get("videoCount")),
        )


class CatalogAdapter(ABC):
    """Abstract base class for remote catalog adapters.

    Implementations:
    - YouTubeCatalogAdapter: YouTube Data API v3
    - StubCatalogAdapter: In-memory catalog for tests and dry runs
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name."""
        ...

    @abstractmethod
    async def resolve_channel_id(self, channel: ChannelConfig) -> str | None:
        """Resolve a configured channel to its remote id.

        Tries the configured id, then the legacy username, then a search by
        display name. Never raises.

        Args:
            channel: The configured channel entry.

        Returns:
            The first remote id found, or None.
        """
        ...

    @abstractmethod
    def list_uploads(self, remote_id: str, limit: int | None = None) -> AsyncIterator[RemoteVideo]:
        """Lazily list the channel's long-form uploads, newest first.

        Args:
            remote_id: Remote channel id.
            limit: Stop after yielding this many videos.

        Yields:
            RemoteVideo records at or above the minimum duration.

        Raises:
            RemoteFetchError: If any page or detail request fails.
        """
        ...

    @abstractmethod
    async def fetch_channel_statistics(self, remote_id: str) -> RemoteChannelStatistics | None:
        """Fetch channel counters, or None on any failure."""
        ...

    async def close(self) -> None:
        """Release any held resources."""
        return None
