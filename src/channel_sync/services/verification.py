"""Reconciliation of the store against the export artifacts."""

import json
import re
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from channel_sync.logging import get_logger
from channel_sync.services.export import (
    CHANNELS_FILE,
    STATISTICS_FILE,
    SUMMARY_FILE,
    VIDEOS_FILE,
    ExportSummary,
)
from channel_sync.services.persistence import PersistenceGateway

logger = get_logger(__name__)

REPORT_FILE = "verification_report.json"
REQUIRED_FILES = [CHANNELS_FILE, VIDEOS_FILE, STATISTICS_FILE, SUMMARY_FILE]

# A video row starts with an 11-character id followed by a comma.
ROW_START_PATTERN = re.compile(r"^[A-Za-z0-9_-]{11},")
WATCH_URL_MARKER = "youtube.com/watch?v="
MAX_REPORTED_ISSUES = 20


class VerificationFailure(Exception):
    """Raised inside a check when the condition it verifies does not hold."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class CheckResult(BaseModel):
    """Outcome of one reconciliation check."""

    name: str
    passed: bool
    message: str
    details: dict[str, Any] | None = None


class VerificationReport(BaseModel):
    """All check outcomes from one verification run."""

    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    passed_tests: int
    total_tests: int
    all_passed: bool
    results: list[CheckResult]

    @classmethod
    def from_results(cls, results: list[CheckResult]) -> "VerificationReport":
        passed = sum(1 for result in results if result.passed)
        return cls(
            passed_tests=passed,
            total_tests=len(results),
            all_passed=passed == len(results),
            results=results,
        )


def count_csv_lines(content: str) -> int:
    """Non-empty lines after the header."""
    lines = [line for line in content.split("\n") if line.strip()]
    return max(len(lines) - 1, 0)


def count_csv_records(content: str) -> int:
    """Count video rows in an export, tolerating newlines inside quoted fields.

    A row is counted when a line outside a quoted field opens with an
    id-like token followed by a comma. The header line is skipped.
    """
    count = 0
    in_quotes = False
    for raw_line in content.split("\n")[1:]:
        line = raw_line.strip()
        if not line:
            continue
        if not in_quotes and ROW_START_PATTERN.match(line):
            count += 1
        if line.count('"') % 2 == 1:
            in_quotes = not in_quotes
    return count


class ReconciliationChecker:
    """Recomputes counts from the store and the export files and compares them.

    Checks:
    - Channel count: store vs summary
    - Video counts: store total and per channel vs summary
    - Data integrity: required fields, watch URL format, non-negative counters
    - Export files: presence, and CSV record counts vs summary and store
    """

    def __init__(self, gateway: PersistenceGateway, export_dir: Path) -> None:
        self.gateway = gateway
        self.export_dir = Path(export_dir)

    def _load_summary(self) -> ExportSummary:
        path = self.export_dir / SUMMARY_FILE
        try:
            return ExportSummary.model_validate_json(path.read_text(encoding="utf-8"))
        except FileNotFoundError as e:
            raise VerificationFailure(f"Summary file not found: {path}") from e
        except ValidationError as e:
            raise VerificationFailure(
                f"Summary file is invalid: {path}", {"errors": json.loads(e.json())}
            ) from e

    def _run_check(self, name: str, verify: Callable[[], str]) -> CheckResult:
        """Run one check; failures and errors become a failed result."""
        try:
            message = verify()
        except VerificationFailure as e:
            result = CheckResult(name=name, passed=False, message=e.message, details=e.details)
        except Exception as e:
            logger.error("verification_check_error", check=name, error=str(e))
            result = CheckResult(
                name=name,
                passed=False,
                message=f"Check failed with error: {e}",
                details={"error": str(e)},
            )
        else:
            result = CheckResult(name=name, passed=True, message=message)

        logger.info("verification_check_completed", check=name, passed=result.passed)
        return result

    # -------------------------------------------------------------------------
    # Checks
    # -------------------------------------------------------------------------

    def _verify_channel_count(self) -> str:
        stored = len(self.gateway.fetch_all_channels())
        summary = self._load_summary()
        if stored != summary.total_channels:
            raise VerificationFailure(
                f"Channel count mismatch: store has {stored}, summary shows {summary.total_channels}"
            )
        return f"Channel count verified: {stored} channels"

    def _verify_video_counts(self) -> str:
        summary = self._load_summary()
        stored_counts = {
            channel.slug: len(self.gateway.fetch_media_items(channel.slug))
            for channel in self.gateway.fetch_all_channels()
        }
        stored_total = sum(stored_counts.values())

        mismatches = {}
        for slug in sorted(set(stored_counts) | set(summary.videos_per_channel)):
            stored = stored_counts.get(slug, 0)
            reported = summary.videos_per_channel.get(slug, 0)
            if stored != reported:
                mismatches[slug] = {"stored": stored, "summary": reported}

        if stored_total != summary.total_videos:
            raise VerificationFailure(
                f"Total video count mismatch: store has {stored_total}, "
                f"summary shows {summary.total_videos}",
                {"channel_mismatches": mismatches},
            )
        if mismatches:
            raise VerificationFailure(
                "Channel video count mismatches found",
                {"channel_mismatches": mismatches},
            )
        return f"Video count verified: {stored_total} videos across all channels"

    def _verify_data_integrity(self) -> str:
        channels = self.gateway.fetch_all_channels()
        issues: list[str] = []

        for channel in channels:
            if not channel.remote_id:
                issues.append(f"Channel {channel.slug} missing remote_id")

            for item in self.gateway.fetch_media_items(channel.slug):
                where = f"in channel {channel.slug}"
                if not item.id:
                    issues.append(f"Video missing id {where}")
                if not item.title:
                    issues.append(f"Video {item.id} missing title {where}")
                if not item.date:
                    issues.append(f"Video {item.id} missing date {where}")
                if item.remote_url and WATCH_URL_MARKER not in item.remote_url:
                    issues.append(f"Video {item.id} has invalid watch URL format {where}")
                for counter in ("views", "likes", "comments"):
                    value = getattr(item, counter)
                    if value is not None and value < 0:
                        issues.append(f"Video {item.id} has negative {counter} {where}")

        if issues:
            raise VerificationFailure(
                f"Data integrity issues found: {len(issues)} problems",
                {"issue_count": len(issues), "issues": issues[:MAX_REPORTED_ISSUES]},
            )
        return f"Data integrity verified: no issues found across {len(channels)} channels"

    def _verify_export_files(self) -> str:
        missing = [name for name in REQUIRED_FILES if not (self.export_dir / name).exists()]
        if missing:
            raise VerificationFailure("Export files missing", {"missing": missing})

        summary = self._load_summary()
        channel_rows = count_csv_lines((self.export_dir / CHANNELS_FILE).read_text(encoding="utf-8"))
        video_rows = count_csv_records((self.export_dir / VIDEOS_FILE).read_text(encoding="utf-8"))

        channels = self.gateway.fetch_all_channels()
        stored_videos = sum(len(self.gateway.fetch_media_items(c.slug)) for c in channels)
        summary_videos = sum(summary.videos_per_channel.values())

        issues = []
        if channel_rows != summary.total_channels:
            issues.append(
                f"Channels CSV record count ({channel_rows}) doesn't match summary "
                f"({summary.total_channels})"
            )
        if channel_rows != len(channels):
            issues.append(
                f"Channels CSV record count ({channel_rows}) doesn't match store ({len(channels)})"
            )
        if video_rows != summary_videos:
            issues.append(
                f"Videos CSV record count ({video_rows}) doesn't match summary ({summary_videos})"
            )
        if video_rows != stored_videos:
            issues.append(
                f"Videos CSV record count ({video_rows}) doesn't match store ({stored_videos})"
            )

        if issues:
            raise VerificationFailure("Export file verification failed", {"issues": issues})
        return (
            f"Export files verified: all files present and record counts match "
            f"({channel_rows} channels, {video_rows} videos)"
        )

    def check_channel_count(self) -> CheckResult:
        return self._run_check("channel_count", self._verify_channel_count)

    def check_video_counts(self) -> CheckResult:
        return self._run_check("video_counts", self._verify_video_counts)

    def check_data_integrity(self) -> CheckResult:
        return self._run_check("data_integrity", self._verify_data_integrity)

    def check_export_files(self) -> CheckResult:
        return self._run_check("export_files", self._verify_export_files)

    def run(self) -> VerificationReport:
        """Run every check to completion and aggregate the outcomes."""
        results = [
            self.check_channel_count(),
            self.check_video_counts(),
            self.check_data_integrity(),
            self.check_export_files(),
        ]
        report = VerificationReport.from_results(results)
        logger.info(
            "verification_completed",
            passed=report.passed_tests,
            total=report.total_tests,
            all_passed=report.all_passed,
        )
        return report

    def write_report(self, report: VerificationReport) -> Path:
        self.export_dir.mkdir(parents=True, exist_ok=True)
        path = self.export_dir / REPORT_FILE
        path.write_text(report.model_dump_json(indent=2) + "\n", encoding="utf-8")
        return path
