"""SQLAlchemy ORM models."""

import datetime as dt

from sqlalchemy import (
    BigInteger,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class ChannelModel(Base):
    """Configured channel, keyed by operator-chosen slug."""

    __tablename__ = "channels"

    slug: Mapped[str] = mapped_column(String(255), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    remote_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    visible: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    # Relationships
    media_items: Mapped[list["MediaItemModel"]] = relationship(
        "MediaItemModel", back_populates="channel"
    )
    statistics: Mapped[list["ChannelStatisticsModel"]] = relationship(
        "ChannelStatisticsModel", back_populates="channel"
    )


class MediaItemModel(Base):
    """Long-form video. Descriptive columns are immutable after insert."""

    __tablename__ = "media_items"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    date: Mapped[dt.date | None] = mapped_column(Date, nullable=True, index=True)
    content_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    duration: Mapped[str | None] = mapped_column(String(20), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    remote_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    image: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    channel_slug: Mapped[str] = mapped_column(
        String(255), ForeignKey("channels.slug"), nullable=False, index=True
    )
    remote_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    # Engagement counters, refreshed on every sync
    views: Mapped[int] = mapped_column(BigInteger, server_default="0")
    likes: Mapped[int] = mapped_column(BigInteger, server_default="0")
    comments: Mapped[int] = mapped_column(BigInteger, server_default="0")
    external_platform_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    # Relationships
    channel: Mapped["ChannelModel"] = relationship("ChannelModel", back_populates="media_items")


class ChannelStatisticsModel(Base):
    """Daily channel statistics snapshot."""

    __tablename__ = "channel_statistics"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    channel_slug: Mapped[str] = mapped_column(
        String(255), ForeignKey("channels.slug"), nullable=False, index=True
    )
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    subscriber_count: Mapped[int] = mapped_column(BigInteger, server_default="0")
    total_channel_views: Mapped[int] = mapped_column(BigInteger, server_default="0")
    total_videos: Mapped[int] = mapped_column(BigInteger, server_default="0")
    calculated_total_likes: Mapped[int] = mapped_column(BigInteger, server_default="0")
    calculated_total_comments: Mapped[int] = mapped_column(BigInteger, server_default="0")
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    # Relationships
    channel: Mapped["ChannelModel"] = relationship("ChannelModel", back_populates="statistics")

    __table_args__ = (
        UniqueConstraint("channel_slug", "date", name="uq_channel_statistics_day"),
    )
