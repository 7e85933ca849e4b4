"""Shared utilities."""

from channel_sync.utils.async_utils import run_async

__all__ = ["run_async"]
