"""SQLAlchemy ORM models."""

from app.models.base import Base
from app.models.chat_message import ChatMessage
from app.models.live_stream import LiveStream
from app.models.sermon import Sermon
from app.models.user import User

__all__ = ["Base", "ChatMessage", "LiveStream", "Sermon", "User"]
