"""Read access to stream chat history."""

from sqlalchemy.orm import Session

from app.models import ChatMessage

DEFAULT_HISTORY_LIMIT = 50
MAX_HISTORY_LIMIT = 200


def recent_messages(
    db: Session, stream_id: str, limit: int = DEFAULT_HISTORY_LIMIT
) -> list[ChatMessage]:
    """The last `limit` messages of a stream's chat, oldest first."""
    newest_first = (
        db.query(ChatMessage)
        .filter(ChatMessage.stream_id == stream_id)
        .order_by(ChatMessage.created_at.desc(), ChatMessage.id.desc())
        .limit(limit)
        .all()
    )
    return list(reversed(newest_first))
