"""Admin dashboard figures: archive totals, live viewers, recent activity."""

from datetime import datetime

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models import LiveStream, Sermon, User
from app.services.streams import as_utc, get_live_stream, utcnow

RECENT_PER_KIND = 5
RECENT_TOTAL = 10


def relative_time(value: datetime, now: datetime | None = None) -> str:
    """'Just now', 'N minutes ago', 'N hours ago' or 'N days ago'."""
    now = now or utcnow()
    seconds = (now - as_utc(value)).total_seconds()
    minutes = int(seconds // 60)
    if minutes < 1:
        return "Just now"
    if minutes < 60:
        return f"{minutes} minutes ago"
    hours = minutes // 60
    if hours < 24:
        return f"{hours} hours ago"
    return f"{hours // 24} days ago"


def engagement_rate(total_views: int, total_streams: int) -> str:
    """Average views per archived stream, as a percentage with one decimal."""
    if total_streams <= 0:
        return "0%"
    return f"{total_views / total_streams * 100:.1f}%"


def collect_stats(db: Session) -> dict[str, str]:
    total_views = db.query(func.coalesce(func.sum(Sermon.view_count), 0)).scalar() or 0
    total_streams = db.query(func.count(Sermon.id)).scalar() or 0
    live = get_live_stream(db)
    active_viewers = (live.viewer_count or 0) if live is not None else 0
    return {
        "total_views": str(int(total_views)),
        "active_viewers": str(active_viewers),
        "total_streams": str(int(total_streams)),
        "engagement_rate": engagement_rate(int(total_views), int(total_streams)),
    }


def recent_activity(db: Session, now: datetime | None = None) -> list[dict]:
    """Latest stream starts/ends and registrations, newest first."""
    now = now or utcnow()
    items: list[tuple[datetime, dict]] = []

    streams = (
        db.query(LiveStream)
        .filter(LiveStream.started_at.is_not(None))
        .order_by(LiveStream.updated_at.desc())
        .limit(RECENT_PER_KIND)
        .all()
    )
    for s in streams:
        state = "started" if s.is_live else "ended"
        items.append(
            (as_utc(s.updated_at), {"id": s.id, "type": "stream", "message": f"Stream {state}: {s.title}"})
        )

    users = db.query(User).order_by(User.created_at.desc()).limit(RECENT_PER_KIND).all()
    for u in users:
        items.append(
            (as_utc(u.created_at), {"id": u.id, "type": "user", "message": f"New user registered: {u.username}"})
        )

    items.sort(key=lambda pair: pair[0], reverse=True)
    return [
        {**item, "timestamp": relative_time(when, now)}
        for when, item in items[:RECENT_TOTAL]
    ]
