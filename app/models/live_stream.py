"""ORM model for live broadcasts and scheduled events."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text, false

from app.models.base import Base, TimestampMixin


class LiveStream(TimestampMixin, Base):
    """
    One broadcast. A row with scheduled_at in the future is an upcoming event;
    is_live marks the stream currently on air (at most one at a time).
    """

    __tablename__ = "live_streams"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    stream_url = Column(Text, nullable=False)
    thumbnail_url = Column(Text, nullable=True)
    scheduled_at = Column(DateTime(timezone=True), nullable=True, index=True)
    started_at = Column(DateTime(timezone=True), nullable=True)
    ended_at = Column(DateTime(timezone=True), nullable=True)
    is_live = Column(Boolean, nullable=False, default=False, server_default=false(), index=True)
    viewer_count = Column(Integer, nullable=False, default=0, server_default="0")
