"""Chat history for a stream's room."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.schemas.archive import ChatMessageOut
from app.services import chat

router = APIRouter()


@router.get("/{stream_id}", response_model=list[ChatMessageOut])
def chat_history(
    stream_id: str,
    db: Annotated[Session, Depends(get_db)],
    limit: Annotated[int, Query(ge=1, le=chat.MAX_HISTORY_LIMIT)] = chat.DEFAULT_HISTORY_LIMIT,
) -> list[ChatMessageOut]:
    """Latest messages, oldest first."""
    return [ChatMessageOut.from_message(m) for m in chat.recent_messages(db, stream_id, limit)]
