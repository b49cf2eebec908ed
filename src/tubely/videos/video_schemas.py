"""Pydantic schemas for video responses."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from ..repositories.video_repository import VideoRecord


class VideoSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    title: str
    description: str
    thumbnail_url: str | None = None
    video_url: str | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_record(cls, record: VideoRecord) -> "VideoSchema":
        return cls.model_validate(record)


class VideoErrorSchema(BaseModel):
    status: str
    failure_reason: str
    details: str | None = None
