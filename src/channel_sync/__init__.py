"""channel-sync - YouTube channel sync, export and reconciliation job."""

__version__ = "0.1.0"
