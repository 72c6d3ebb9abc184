"""Live stream control and the event schedule."""

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from app.core.errors import NotFound
from app.models import LiveStream

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Live Stream"
DEFAULT_DESCRIPTION = "Live broadcast"
PUBLIC_DEFAULT_TITLE = "Church Live Stream"
PUBLIC_DEFAULT_DESCRIPTION = "Live broadcast from our sanctuary"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Normalize to aware UTC; naive values (e.g. from SQLite) are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_duration(seconds: int) -> str:
    """H:MM:SS when at least an hour, else M:SS."""
    seconds = max(0, int(seconds))
    hours, rem = divmod(seconds, 3600)
    minutes, secs = divmod(rem, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def get_live_stream(db: Session) -> LiveStream | None:
    return db.query(LiveStream).filter(LiveStream.is_live.is_(True)).first()


def start_stream(
    db: Session,
    settings: "Settings",
    title: str | None = None,
    description: str | None = None,
) -> LiveStream:
    """End whatever is on air and open a new live stream, in one transaction."""
    now = utcnow()
    db.query(LiveStream).filter(LiveStream.is_live.is_(True)).update(
        {LiveStream.is_live: False, LiveStream.ended_at: now},
        synchronize_session=False,
    )
    stream = LiveStream(
        title=title or DEFAULT_TITLE,
        description=description or DEFAULT_DESCRIPTION,
        stream_url=settings.RTMP_URL,
        is_live=True,
        started_at=now,
        viewer_count=0,
    )
    db.add(stream)
    db.commit()
    db.refresh(stream)
    logger.info("Stream started", extra={"stream_id": stream.id})
    return stream


def stop_stream(db: Session) -> LiveStream:
    stream = get_live_stream(db)
    if stream is None:
        raise NotFound("No active stream found")
    stream.is_live = False
    stream.ended_at = utcnow()
    db.commit()
    db.refresh(stream)
    logger.info("Stream stopped", extra={"stream_id": stream.id})
    return stream


def stream_duration(stream: LiveStream, now: datetime | None = None) -> str:
    if stream.started_at is None:
        return format_duration(0)
    now = now or utcnow()
    return format_duration(int((now - as_utc(stream.started_at)).total_seconds()))


def adjust_viewer_count(db: Session, action: str) -> LiveStream:
    """Increment or decrement the live stream's viewer count, never below zero."""
    stream = get_live_stream(db)
    if stream is None:
        raise NotFound("No active live stream")
    current = stream.viewer_count or 0
    if action == "increment":
        stream.viewer_count = current + 1
    elif action == "decrement":
        stream.viewer_count = max(0, current - 1)
    db.commit()
    db.refresh(stream)
    return stream


def list_upcoming(db: Session, now: datetime | None = None) -> list[LiveStream]:
    """Events scheduled after now, soonest first."""
    now = now or utcnow()
    return (
        db.query(LiveStream)
        .filter(LiveStream.scheduled_at.is_not(None))
        .filter(LiveStream.scheduled_at > now)
        .order_by(LiveStream.scheduled_at)
        .all()
    )


def schedule_event(
    db: Session,
    settings: "Settings",
    title: str,
    scheduled_at: datetime,
    description: str | None = None,
) -> LiveStream:
    event = LiveStream(
        title=title,
        description=description,
        scheduled_at=as_utc(scheduled_at),
        stream_url=settings.RTMP_URL,
        is_live=False,
        viewer_count=0,
    )
    db.add(event)
    db.commit()
    db.refresh(event)
    logger.info("Event scheduled", extra={"event_id": event.id})
    return event


def delete_event(db: Session, event_id: int) -> None:
    deleted = (
        db.query(LiveStream)
        .filter(LiveStream.id == event_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    if deleted == 0:
        raise NotFound("Event not found")
    logger.info("Event deleted", extra={"event_id": event_id})


def format_event_date(value: datetime) -> str:
    """e.g. 'Sunday, March 2, 2025'."""
    return f"{value:%A}, {value:%B} {value.day}, {value.year}"


def format_event_time(value: datetime) -> str:
    """e.g. '9:30 AM'."""
    hour = value.hour % 12 or 12
    return f"{hour}:{value:%M} {value:%p}"
