"""Sermon archive: published listing, lookup, and admin publish/delete of metadata."""

import logging

from sqlalchemy.orm import Session

from app.core.errors import NotFound
from app.models import Sermon
from app.services.streams import utcnow

logger = logging.getLogger(__name__)

DEFAULT_SERMON_TITLE = "Untitled"
DEFAULT_CATEGORY = "Other"


def list_published(db: Session) -> list[Sermon]:
    """Published sermons, most recently published first."""
    return (
        db.query(Sermon)
        .filter(Sermon.is_published.is_(True))
        .order_by(Sermon.published_at.desc(), Sermon.id.desc())
        .all()
    )


def get_published(db: Session, sermon_id: int) -> Sermon:
    sermon = (
        db.query(Sermon)
        .filter(Sermon.id == sermon_id, Sermon.is_published.is_(True))
        .first()
    )
    if sermon is None:
        raise NotFound("Video not found")
    return sermon


def publish_sermon(
    db: Session,
    video_url: str,
    title: str | None = None,
    description: str | None = None,
    speaker: str | None = None,
    series: str | None = None,
    category: str | None = None,
    thumbnail_url: str | None = None,
    duration: int | None = None,
) -> Sermon:
    """Record an already-stored video in the archive, published immediately."""
    sermon = Sermon(
        title=title or DEFAULT_SERMON_TITLE,
        description=description or "",
        speaker=speaker or "",
        series=series or "",
        category=category or DEFAULT_CATEGORY,
        video_url=video_url,
        thumbnail_url=thumbnail_url,
        duration=duration,
        view_count=0,
        is_published=True,
        published_at=utcnow(),
    )
    db.add(sermon)
    db.commit()
    db.refresh(sermon)
    logger.info("Sermon published", extra={"sermon_id": sermon.id})
    return sermon


def delete_sermon(db: Session, sermon_id: int) -> None:
    deleted = (
        db.query(Sermon)
        .filter(Sermon.id == sermon_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    if deleted == 0:
        raise NotFound("Video not found")
    logger.info("Sermon deleted", extra={"sermon_id": sermon_id})
