"""Schemas for the sermon archive, admin dashboard stats and chat history."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from app.models import ChatMessage, Sermon


class SermonOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    title: str
    description: str | None = None
    speaker: str | None = None
    series: str | None = None
    video_url: str | None = Field(default=None, alias="videoUrl")
    thumbnail_url: str | None = Field(default=None, alias="thumbnailUrl")
    duration: int | None = None
    category: str | None = None
    view_count: int = Field(alias="viewCount")
    is_published: bool = Field(alias="isPublished")
    published_at: datetime | None = Field(default=None, alias="publishedAt")
    created_at: datetime | None = Field(default=None, alias="createdAt")

    @classmethod
    def from_sermon(cls, sermon: Sermon) -> "SermonOut":
        return cls(
            id=sermon.id,
            title=sermon.title,
            description=sermon.description,
            speaker=sermon.speaker,
            series=sermon.series,
            video_url=sermon.video_url,
            thumbnail_url=sermon.thumbnail_url,
            duration=sermon.duration,
            category=sermon.category,
            view_count=sermon.view_count or 0,
            is_published=bool(sermon.is_published),
            published_at=sermon.published_at,
            created_at=sermon.created_at,
        )


class SermonListResponse(BaseModel):
    videos: list[SermonOut]


class SermonResponse(BaseModel):
    video: SermonOut


class SermonPublishRequest(BaseModel):
    """Metadata for a video already in storage; no file is uploaded here."""

    model_config = ConfigDict(populate_by_name=True)

    video_url: str = Field(..., min_length=1, alias="videoUrl")
    title: str | None = Field(default=None, max_length=255)
    description: str | None = None
    speaker: str | None = Field(default=None, max_length=255)
    series: str | None = Field(default=None, max_length=255)
    category: str | None = Field(default=None, max_length=100)
    thumbnail_url: str | None = Field(default=None, alias="thumbnailUrl")
    duration: int | None = Field(default=None, ge=0)


class SermonPublishResponse(BaseModel):
    message: str
    sermon: SermonOut


class DashboardStats(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_views: str = Field(alias="totalViews")
    active_viewers: str = Field(alias="activeViewers")
    total_streams: str = Field(alias="totalStreams")
    engagement_rate: str = Field(alias="engagementRate")


class ActivityItem(BaseModel):
    id: int
    type: Literal["stream", "user"]
    message: str
    timestamp: str


class StatsResponse(BaseModel):
    stats: DashboardStats
    activities: list[ActivityItem]


class ChatMessageOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    user: str
    message: str
    timestamp: datetime
    is_live_comment: bool = Field(alias="isLiveComment")

    @classmethod
    def from_message(cls, msg: ChatMessage) -> "ChatMessageOut":
        return cls(
            id=msg.id,
            user=msg.username,
            message=msg.message,
            timestamp=msg.created_at,
            is_live_comment=bool(msg.is_live_comment),
        )
