"""Sermon archive for signed-in members."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.routes.auth import get_current_user
from app.core.database import get_db
from app.schemas.archive import SermonListResponse, SermonOut, SermonResponse
from app.services import archive

router = APIRouter(dependencies=[Depends(get_current_user)])

DbSession = Annotated[Session, Depends(get_db)]


@router.get("", response_model=SermonListResponse)
def list_videos(db: DbSession) -> SermonListResponse:
    return SermonListResponse(videos=[SermonOut.from_sermon(s) for s in archive.list_published(db)])


@router.get("/{sermon_id}", response_model=SermonResponse)
def get_video(sermon_id: int, db: DbSession) -> SermonResponse:
    """One published sermon; 404 when absent or unpublished."""
    return SermonResponse(video=SermonOut.from_sermon(archive.get_published(db, sermon_id)))
