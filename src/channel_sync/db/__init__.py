"""Database layer."""

from channel_sync.db.models import (
    Base,
    ChannelModel,
    ChannelStatisticsModel,
    MediaItemModel,
)
from channel_sync.db.session import (
    create_db_engine,
    create_session_factory,
    get_session_context,
    init_db,
)

__all__ = [
    "Base",
    "create_db_engine",
    "create_session_factory",
    "get_session_context",
    "init_db",
    # Models
    "ChannelModel",
    "ChannelStatisticsModel",
    "MediaItemModel",
]
