"""Public live-stream info: what is on air, viewer count, upcoming events."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.schemas.stream import (
    CurrentStreamResponse,
    UpcomingEvent,
    UpcomingEventsResponse,
    ViewerCountResponse,
    ViewerCountUpdateRequest,
)
from app.services import streams

router = APIRouter()

DbSession = Annotated[Session, Depends(get_db)]


@router.get("/current-stream", response_model=CurrentStreamResponse)
def current_stream(db: DbSession) -> CurrentStreamResponse:
    stream = streams.get_live_stream(db)
    if stream is None:
        return CurrentStreamResponse(
            is_live=False,
            title="No Live Stream",
            description="Check back later for upcoming services",
            start_time=None,
            viewer_count=0,
        )
    return CurrentStreamResponse(
        is_live=True,
        title=stream.title or streams.PUBLIC_DEFAULT_TITLE,
        description=stream.description or streams.PUBLIC_DEFAULT_DESCRIPTION,
        start_time=stream.started_at,
        viewer_count=stream.viewer_count or 0,
    )


@router.get("/viewer-count", response_model=ViewerCountResponse)
def get_viewer_count(db: DbSession) -> ViewerCountResponse:
    """Viewer count of the live stream; 0 when nothing is on air."""
    stream = streams.get_live_stream(db)
    if stream is None:
        return ViewerCountResponse(viewer_count=0, is_live=False)
    return ViewerCountResponse(viewer_count=stream.viewer_count or 0, is_live=True)


@router.post("/viewer-count", response_model=ViewerCountResponse)
def update_viewer_count(body: ViewerCountUpdateRequest, db: DbSession) -> ViewerCountResponse:
    stream = streams.adjust_viewer_count(db, body.action)
    return ViewerCountResponse(viewer_count=stream.viewer_count, is_live=True)


@router.get("/upcoming-events", response_model=UpcomingEventsResponse)
def upcoming_events(db: DbSession) -> UpcomingEventsResponse:
    events = [
        UpcomingEvent(
            id=str(e.id),
            title=e.title,
            date=streams.format_event_date(e.scheduled_at),
            time=streams.format_event_time(e.scheduled_at),
        )
        for e in streams.list_upcoming(db)
    ]
    return UpcomingEventsResponse(events=events)
