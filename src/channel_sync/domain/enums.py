"""Domain enumerations."""

from enum import StrEnum


class ChannelSyncStatus(StrEnum):
    """Outcome of syncing one configured channel."""

    SYNCED = "synced"
    EMPTY = "empty"  # Resolved, but no long-form uploads
    NOT_FOUND = "not_found"
    FAILED = "failed"


class Visibility(StrEnum):
    """Tri-state channel visibility as classified in the export summary."""

    VISIBLE = "visible"
    HIDDEN = "hidden"
    UNKNOWN = "null_visibility"

    @classmethod
    def from_flag(cls, visible: bool | None) -> "Visibility":
        if visible is None:
            return cls.UNKNOWN
        return cls.VISIBLE if visible else cls.HIDDEN
