"""Admin-only endpoints: account approval/roles, stream control, schedule."""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.routes.auth import require_admin
from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.schemas.archive import (
    ActivityItem,
    DashboardStats,
    SermonOut,
    SermonPublishRequest,
    SermonPublishResponse,
    StatsResponse,
)
from app.schemas.auth import (
    ApprovalUpdateRequest,
    MessageResponse,
    RoleUpdateRequest,
    UserMessageResponse,
    UserOut,
    UsersListResponse,
)
from app.schemas.stream import (
    ScheduleCreateRequest,
    ScheduleEventResponse,
    ScheduleListResponse,
    StreamOut,
    StreamStartRequest,
    StreamStartResponse,
    StreamStatusItem,
    StreamStatusResponse,
)
from app.services import accounts, archive, dashboard, streams

# Every route here sits behind the role gate.
router = APIRouter(dependencies=[Depends(require_admin)])

DbSession = Annotated[Session, Depends(get_db)]


@router.get("/stats", response_model=StatsResponse)
def stats(db: DbSession) -> StatsResponse:
    """Archive totals, live viewers and the latest stream and registration events."""
    return StatsResponse(
        stats=DashboardStats(**dashboard.collect_stats(db)),
        activities=[ActivityItem(**a) for a in dashboard.recent_activity(db)],
    )


@router.get("/users", response_model=UsersListResponse)
def list_users(db: DbSession) -> UsersListResponse:
    """List all accounts, newest first (never includes password hashes)."""
    return UsersListResponse(users=[UserOut.from_user(u) for u in accounts.list_accounts(db)])


@router.patch("/users/{user_id}/approve", response_model=UserMessageResponse)
def update_approval(
    user_id: int,
    body: ApprovalUpdateRequest,
    db: DbSession,
) -> UserMessageResponse:
    """Approve an account, or revert it to pending."""
    user = accounts.set_approval(db, user_id, body.is_approved)
    verb = "approved" if body.is_approved else "unapproved"
    return UserMessageResponse(message=f"User {verb} successfully", user=UserOut.from_user(user))


@router.patch("/users/{user_id}/role", response_model=UserMessageResponse)
def update_role(
    user_id: int,
    body: RoleUpdateRequest,
    db: DbSession,
) -> UserMessageResponse:
    user = accounts.set_role(db, user_id, body.role)
    return UserMessageResponse(
        message=f"User role updated to {body.role} successfully",
        user=UserOut.from_user(user),
    )


@router.post("/streams/start", response_model=StreamStartResponse)
def start_stream(
    db: DbSession,
    settings: Annotated[Settings, Depends(get_settings)],
    body: StreamStartRequest | None = None,
) -> StreamStartResponse:
    """End any live stream and open a new one; returns the RTMP ingest and HLS playback URLs."""
    body = body or StreamStartRequest()
    stream = streams.start_stream(db, settings, body.title, body.description)
    return StreamStartResponse(
        message="Stream started successfully",
        stream=StreamOut.from_stream(stream),
        rtmp_url=settings.RTMP_URL,
        hls_url=settings.HLS_URL,
    )


@router.post("/streams/stop", response_model=MessageResponse)
def stop_stream(db: DbSession) -> MessageResponse:
    streams.stop_stream(db)
    return MessageResponse(message="Stream stopped successfully")


@router.get("/streams/status", response_model=StreamStatusResponse)
def stream_status(db: DbSession) -> StreamStatusResponse:
    stream = streams.get_live_stream(db)
    if stream is None:
        return StreamStatusResponse(is_live=False, stream=None)
    return StreamStatusResponse(
        is_live=True,
        stream=StreamStatusItem(
            id=stream.id,
            title=stream.title,
            description=stream.description,
            started_at=stream.started_at,
            viewer_count=stream.viewer_count or 0,
            duration=streams.stream_duration(stream),
        ),
    )


@router.get("/schedule", response_model=ScheduleListResponse)
def list_schedule(db: DbSession) -> ScheduleListResponse:
    """Upcoming events ordered by start time."""
    return ScheduleListResponse(events=[StreamOut.from_stream(e) for e in streams.list_upcoming(db)])


@router.post("/schedule", response_model=ScheduleEventResponse, status_code=status.HTTP_201_CREATED)
def create_event(
    body: ScheduleCreateRequest,
    db: DbSession,
    settings: Annotated[Settings, Depends(get_settings)],
) -> ScheduleEventResponse:
    event = streams.schedule_event(
        db, settings, body.title, body.scheduled_at, body.description
    )
    return ScheduleEventResponse(message="Event scheduled successfully", event=StreamOut.from_stream(event))


@router.delete("/schedule/{event_id}", response_model=MessageResponse)
def delete_event(event_id: int, db: DbSession) -> MessageResponse:
    streams.delete_event(db, event_id)
    return MessageResponse(message="Event deleted successfully")


@router.post("/sermons", response_model=SermonPublishResponse, status_code=status.HTTP_201_CREATED)
def publish_sermon(body: SermonPublishRequest, db: DbSession) -> SermonPublishResponse:
    """Publish a sermon whose video is already in storage."""
    sermon = archive.publish_sermon(
        db,
        body.video_url,
        title=body.title,
        description=body.description,
        speaker=body.speaker,
        series=body.series,
        category=body.category,
        thumbnail_url=body.thumbnail_url,
        duration=body.duration,
    )
    return SermonPublishResponse(message="Video published successfully", sermon=SermonOut.from_sermon(sermon))


@router.delete("/sermons/{sermon_id}", response_model=MessageResponse)
def delete_sermon(sermon_id: int, db: DbSession) -> MessageResponse:
    archive.delete_sermon(db, sermon_id)
    return MessageResponse(message="Video deleted successfully")
