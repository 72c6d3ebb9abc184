"""ORM model for archived sermon videos."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text, false

from app.models.base import Base, TimestampMixin


class Sermon(TimestampMixin, Base):
    """
    A recorded service in the archive. Only rows with is_published=True are
    visible to members; video_url points at storage managed elsewhere.
    """

    __tablename__ = "sermons"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    speaker = Column(String(255), nullable=True)
    series = Column(String(255), nullable=True)
    video_url = Column(Text, nullable=True)
    thumbnail_url = Column(Text, nullable=True)
    duration = Column(Integer, nullable=True)
    category = Column(String(100), nullable=True)
    view_count = Column(Integer, nullable=False, default=0, server_default="0")
    is_published = Column(Boolean, nullable=False, default=False, server_default=false(), index=True)
    published_at = Column(DateTime(timezone=True), nullable=True)
