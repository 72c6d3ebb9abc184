"""ORM model for stream chat history."""

from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String, Text, func, true

from app.models.base import Base


class ChatMessage(Base):
    """One chat line posted during a stream; stream_id is the chat room key."""

    __tablename__ = "chat_messages"
    __table_args__ = (Index("ix_chat_messages_stream_id_created_at", "stream_id", "created_at"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    stream_id = Column(String(100), nullable=False)
    username = Column(String(100), nullable=False)
    message = Column(Text, nullable=False)
    is_live_comment = Column(Boolean, nullable=False, default=True, server_default=true())
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
