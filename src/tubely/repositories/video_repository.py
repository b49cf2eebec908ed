"""Persistence layer for video metadata."""

from __future__ import annotations

import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.orm import Session

from ..db.db_models import VideoModel
from ..videos.video_errors import NotFoundError


@dataclass(slots=True)
class VideoRecord:
    """Detached view of a video row."""

    id: str
    user_id: str
    title: str
    description: str
    thumbnail_url: str | None
    video_url: str | None
    created_at: datetime
    updated_at: datetime


class VideoRepository:
    """Read and write video metadata records."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def create_video(
        self,
        *,
        user_id: str,
        title: str,
        description: str = "",
        video_id: str | None = None,
    ) -> VideoRecord:
        now = datetime.utcnow()
        model = VideoModel(
            id=video_id or str(uuid.uuid4()),
            user_id=user_id,
            title=title,
            description=description,
            created_at=now,
            updated_at=now,
        )
        with self._session_factory() as session:
            session.add(model)
            session.commit()
            return self._to_record(model)

    def get_video(self, video_id: str) -> VideoRecord:
        with self._session_factory() as session:
            model = session.get(VideoModel, video_id)
            if model is None:
                raise NotFoundError(f"Video '{video_id}' not found")
            return self._to_record(model)

    def update_video(self, record: VideoRecord) -> VideoRecord:
        with self._session_factory() as session:
            model = session.get(VideoModel, record.id)
            if model is None:
                raise NotFoundError(f"Video '{record.id}' not found")
            model.title = record.title
            model.description = record.description
            model.thumbnail_url = record.thumbnail_url
            model.video_url = record.video_url
            model.updated_at = datetime.utcnow()
            session.commit()
            return self._to_record(model)

    @staticmethod
    def _to_record(model: VideoModel) -> VideoRecord:
        return VideoRecord(
            id=model.id,
            user_id=model.user_id,
            title=model.title,
            description=model.description,
            thumbnail_url=model.thumbnail_url,
            video_url=model.video_url,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )
