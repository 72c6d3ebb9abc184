"""Schemas for live stream control, schedule and public stream info."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from app.models import LiveStream


class StreamStartRequest(BaseModel):
    title: str | None = Field(default=None, max_length=255)
    description: str | None = None


class StreamOut(BaseModel):
    """Live stream / event row as returned to clients."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    title: str
    description: str | None = None
    stream_url: str = Field(alias="streamUrl")
    thumbnail_url: str | None = Field(default=None, alias="thumbnailUrl")
    scheduled_at: datetime | None = Field(default=None, alias="scheduledAt")
    started_at: datetime | None = Field(default=None, alias="startedAt")
    ended_at: datetime | None = Field(default=None, alias="endedAt")
    is_live: bool = Field(alias="isLive")
    viewer_count: int = Field(alias="viewerCount")

    @classmethod
    def from_stream(cls, stream: LiveStream) -> "StreamOut":
        return cls(
            id=stream.id,
            title=stream.title,
            description=stream.description,
            stream_url=stream.stream_url,
            thumbnail_url=stream.thumbnail_url,
            scheduled_at=stream.scheduled_at,
            started_at=stream.started_at,
            ended_at=stream.ended_at,
            is_live=bool(stream.is_live),
            viewer_count=stream.viewer_count or 0,
        )


class StreamStartResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    stream: StreamOut
    rtmp_url: str = Field(alias="rtmpUrl")
    hls_url: str = Field(alias="hlsUrl")


class StreamStatusItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    title: str
    description: str | None = None
    started_at: datetime | None = Field(default=None, alias="startedAt")
    viewer_count: int = Field(alias="viewerCount")
    duration: str


class StreamStatusResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    is_live: bool = Field(alias="isLive")
    stream: StreamStatusItem | None = None


class ScheduleCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    scheduled_at: datetime = Field(alias="scheduledAt")


class ScheduleListResponse(BaseModel):
    events: list[StreamOut]


class ScheduleEventResponse(BaseModel):
    message: str
    event: StreamOut


class CurrentStreamResponse(BaseModel):
    """Public view of what is on air (or a placeholder when nothing is)."""

    model_config = ConfigDict(populate_by_name=True)

    is_live: bool = Field(alias="isLive")
    title: str
    description: str
    start_time: datetime | None = Field(default=None, alias="startTime")
    viewer_count: int = Field(alias="viewerCount")


class ViewerCountResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    viewer_count: int = Field(alias="viewerCount")
    is_live: bool = Field(alias="isLive")


class ViewerCountUpdateRequest(BaseModel):
    action: Literal["increment", "decrement"]


class UpcomingEvent(BaseModel):
    id: str
    title: str
    date: str
    time: str
    type: Literal["service"] = "service"


class UpcomingEventsResponse(BaseModel):
    events: list[UpcomingEvent]
