"""Business logic services."""

from channel_sync.services.export import ExportResult, ExportSummary, ExportWriter
from channel_sync.services.persistence import PersistenceError, PersistenceGateway
from channel_sync.services.verification import (
    CheckResult,
    ReconciliationChecker,
    VerificationFailure,
    VerificationReport,
)

__all__ = [
    "CheckResult",
    "ExportResult",
    "ExportSummary",
    "ExportWriter",
    "PersistenceError",
    "PersistenceGateway",
    "ReconciliationChecker",
    "VerificationFailure",
    "VerificationReport",
]
