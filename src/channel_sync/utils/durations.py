"""Video duration parsing and display."""

import re

# YouTube durations look like PT1H2M3S; every component is optional.
DURATION_PATTERN = re.compile(r"PT(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?")

MIN_LONG_FORM_SECONDS = 120


def parse_duration_seconds(duration: str | None) -> int:
    """Convert an ISO-8601 duration token to total seconds (0 if unparseable)."""
    if not duration:
        return 0
    match = DURATION_PATTERN.search(duration)
    if not match:
        return 0

    hours, minutes, seconds = (int(group or 0) for group in match.groups())
    return hours * 3600 + minutes * 60 + seconds


def format_duration(total_seconds: int) -> str:
    """Render seconds as ``H:MM:SS`` when there are hours, else ``M:SS``."""
    hours, remainder = divmod(max(total_seconds, 0), 3600)
    minutes, seconds = divmod(remainder, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"


def is_long_form(total_seconds: int, min_seconds: int = MIN_LONG_FORM_SECONDS) -> bool:
    """Whether a video is long enough to count as an episode."""
    return total_seconds >= min_seconds
