"""Export stored channels, media items and statistics to CSV and JSON."""

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import asdict, dataclass, field
from datetime import UTC, date, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from channel_sync.domain.enums import Visibility
from channel_sync.logging import get_logger
from channel_sync.services.persistence import PersistenceGateway

logger = get_logger(__name__)

CHANNELS_FILE = "export_channels.csv"
VIDEOS_FILE = "export_videos.csv"
STATISTICS_FILE = "export_channel_statistics.csv"
SUMMARY_FILE = "export_summary.json"

CHANNEL_COLUMNS = ["slug", "name", "remote_id", "visible", "created_at"]
VIDEO_COLUMNS = [
    "id",
    "title",
    "date",
    "content_type",
    "duration",
    "description",
    "remote_id",
    "image",
    "channel_slug",
    "remote_url",
    "views",
    "likes",
    "comments",
    "external_platform_url",
    "created_at",
]
STATISTICS_COLUMNS = [
    "id",
    "channel_slug",
    "date",
    "subscriber_count",
    "total_channel_views",
    "total_videos",
    "calculated_total_likes",
    "calculated_total_comments",
    "created_at",
]


def _format_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def escape_csv_value(value: Any) -> str:
    """Quote a field only if it contains a comma, a quote or a newline."""
    text = _format_value(value)
    if "," in text or '"' in text or "\n" in text:
        return '"' + text.replace('"', '""') + '"'
    return text


def rows_to_csv(rows: Iterable[Mapping[str, Any]], columns: Sequence[str]) -> str:
    """Render rows as CSV text with a header line and fixed column order."""
    lines = [",".join(columns)]
    for row in rows:
        lines.append(",".join(escape_csv_value(row.get(column)) for column in columns))
    return "\n".join(lines) + "\n"


class ExportSummary(BaseModel):
    """Aggregated counts written next to the CSV exports."""

    total_channels: int
    channels_by_visibility: dict[str, int]
    channels_with_remote_id: int
    total_videos: int
    videos_per_channel: dict[str, int]
    export_timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


@dataclass
class ExportResult:
    """Files written by a full export and their record counts."""

    output_dir: Path
    counts: dict[str, int] = field(default_factory=dict)
    summary: ExportSummary | None = None

    @property
    def files(self) -> list[Path]:
        return [self.output_dir / name for name in self.counts] + [self.output_dir / SUMMARY_FILE]


class ExportWriter:
    """Serializes the store to delimited text and a JSON summary."""

    def __init__(
        self,
        gateway: PersistenceGateway,
        output_dir: Path,
        statistics_days: int = 365,
    ) -> None:
        """Initialize the writer.

        Args:
            gateway: Store to read from.
            output_dir: Directory for the export files (created if missing).
            statistics_days: Snapshots exported per channel, newest first.
        """
        self.gateway = gateway
        self.output_dir = Path(output_dir)
        self.statistics_days = statistics_days

    def _write(self, filename: str, content: str) -> Path:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self.output_dir / filename
        path.write_text(content, encoding="utf-8")
        return path

    def export_channels(self) -> int:
        channels = self.gateway.fetch_all_channels()
        path = self._write(CHANNELS_FILE, rows_to_csv((asdict(c) for c in channels), CHANNEL_COLUMNS))
        logger.info("channels_exported", count=len(channels), path=str(path))
        return len(channels)

    def export_media_items(self) -> int:
        items = []
        for channel in self.gateway.fetch_all_channels():
            items.extend(self.gateway.fetch_media_items(channel.slug))

        path = self._write(VIDEOS_FILE, rows_to_csv((asdict(item) for item in items), VIDEO_COLUMNS))
        logger.info("videos_exported", count=len(items), path=str(path))
        return len(items)

    def export_channel_statistics(self) -> int:
        snapshots = []
        for channel in self.gateway.fetch_all_channels():
            snapshots.extend(
                self.gateway.fetch_statistics_history(channel.slug, limit_days=self.statistics_days)
            )

        path = self._write(
            STATISTICS_FILE, rows_to_csv((asdict(s) for s in snapshots), STATISTICS_COLUMNS)
        )
        logger.info("channel_statistics_exported", count=len(snapshots), path=str(path))
        return len(snapshots)

    def build_summary(self) -> ExportSummary:
        channels = self.gateway.fetch_all_channels()

        by_visibility = {visibility.value: 0 for visibility in Visibility}
        for channel in channels:
            by_visibility[Visibility.from_flag(channel.visible).value] += 1

        videos_per_channel = {
            channel.slug: len(self.gateway.fetch_media_items(channel.slug)) for channel in channels
        }

        return ExportSummary(
            total_channels=len(channels),
            channels_by_visibility=by_visibility,
            channels_with_remote_id=sum(1 for channel in channels if channel.remote_id),
            total_videos=sum(videos_per_channel.values()),
            videos_per_channel=videos_per_channel,
        )

    def write_summary(self) -> ExportSummary:
        summary = self.build_summary()
        path = self._write(SUMMARY_FILE, summary.model_dump_json(indent=2) + "\n")
        logger.info(
            "summary_exported",
            path=str(path),
            total_channels=summary.total_channels,
            total_videos=summary.total_videos,
        )
        return summary

    def export_all(self) -> ExportResult:
        """Write every export artifact.

        Raises:
            PersistenceError: If reading the store fails.
        """
        result = ExportResult(output_dir=self.output_dir)
        result.counts[CHANNELS_FILE] = self.export_channels()
        result.counts[VIDEOS_FILE] = self.export_media_items()
        result.counts[STATISTICS_FILE] = self.export_channel_statistics()
        result.summary = self.write_summary()
        return result
