"""Domain service running the video upload pipeline."""

from __future__ import annotations

import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass, field

from fastapi import UploadFile

from ..media.classifier import classify_orientation
from ..media.media_tools import Prober, Remuxer
from ..media.temp_media_store import TempMediaStore
from ..repositories.video_repository import VideoRecord, VideoRepository
from ..storage.object_storage import ObjectStorage
from .validation import UploadValidator
from .video_errors import ForbiddenError, PipelineError, ValidationError
from .video_models import PipelineRun, PipelineStage, StorageLocation

logger = logging.getLogger(__name__)

EXTENSIONS = {"video/mp4": "mp4"}


def default_token_factory() -> str:
    """Return 32 random bytes encoded as url-safe base64."""
    return secrets.token_urlsafe(32)


@dataclass(slots=True)
class VideoUploadService:
    """Coordinates probe, classify, remux and upload for one video at a time."""

    videos: VideoRepository
    validator: UploadValidator
    temp_store: TempMediaStore
    prober: Prober
    remuxer: Remuxer
    storage: ObjectStorage
    token_factory: Callable[[], str] = field(
        default_factory=lambda: default_token_factory
    )
    on_finish: Callable[[PipelineRun], None] | None = None
    log: logging.Logger = field(default_factory=lambda: logger)

    def authorize(self, video_id: str, principal_id: str) -> VideoRecord:
        """Load the video and ensure ``principal_id`` owns it."""
        video = self.videos.get_video(video_id)
        if video.user_id != principal_id:
            self.log.warning(
                "video.upload.forbidden",
                extra={"video_id": video_id, "user_id": principal_id},
            )
            raise ForbiddenError("You are not the owner of this video")
        return video

    async def upload_video(
        self, video_id: str, principal_id: str, upload: UploadFile | None
    ) -> VideoRecord:
        """Authorize, run the pipeline and record the resulting URL.

        Ownership is checked before the upload is looked at, so a stranger
        gets 403/404 even when the file field is missing.
        """
        video = self.authorize(video_id, principal_id)
        if upload is None:
            raise ValidationError("Video file missing")
        self.log.info(
            "video.upload.start",
            extra={"video_id": video_id, "user_id": principal_id},
        )
        location = await self.run(
            upload, upload.content_type, principal_id, video_id=video_id
        )
        video.video_url = location.url
        recorded = self.videos.update_video(video)
        self.log.info(
            "video.upload.recorded",
            extra={"video_id": video_id, "video_url": recorded.video_url},
        )
        return recorded

    async def run(
        self,
        upload: UploadFile,
        content_type: str | None,
        owner_id: str,
        *,
        video_id: str | None = None,
    ) -> StorageLocation:
        """Execute the pipeline for one upload and return where it landed."""
        declared = self.validator.check_content_type(content_type)
        run = PipelineRun(
            run_id=self.token_factory(),
            content_type=declared,
            owner_id=owner_id,
            video_id=video_id,
        )
        run.upload = await self.validator.validate(upload, declared)
        extension = EXTENSIONS[declared]

        try:
            return await self._execute(run, upload, extension)
        finally:
            self.temp_store.cleanup(run.run_id, run.temp_paths)
            if self.on_finish is not None:
                self.on_finish(run)

    async def _execute(
        self, run: PipelineRun, upload: UploadFile, extension: str
    ) -> StorageLocation:
        with self._stage(run, "receive"):
            run.source_path = await self.temp_store.persist_upload(
                run.run_id, upload, f"{self.token_factory()}.{extension}"
            )
        run.temp_paths.append(run.source_path)

        with self._stage(run, "probe"):
            run.geometry = await self.prober.probe(run.source_path)
        run.advance(PipelineStage.PROBED)

        run.category = classify_orientation(run.geometry)
        run.advance(PipelineStage.CLASSIFIED)

        with self._stage(run, "remux"):
            run.processed_path = await self.remuxer.remux(run.source_path)
        run.temp_paths.append(run.processed_path)
        run.advance(PipelineStage.REMUXED)

        key = f"{run.category.value}/{self.token_factory()}.{extension}"
        with self._stage(run, "upload"):
            run.location = await self.storage.put_object(
                run.processed_path, key, run.content_type
            )
        run.advance(PipelineStage.UPLOADED)

        run.advance(PipelineStage.RECORDED)
        self.log.info(
            "video.pipeline.completed",
            extra={
                "run_id": run.run_id,
                "video_id": run.video_id,
                "category": run.category.value,
                "width": run.geometry.width,
                "height": run.geometry.height,
                "key": key,
                "size_bytes": run.upload.size_bytes,
                "sha256": run.upload.sha256,
            },
        )
        return run.location

    def _stage(self, run: PipelineRun, stage: str) -> "_StageGuard":
        return _StageGuard(run=run, stage=stage, log=self.log)


@dataclass(slots=True)
class _StageGuard:
    """Log a stage and mark the run failed when it raises."""

    run: PipelineRun
    stage: str
    log: logging.Logger

    def __enter__(self) -> None:
        self.log.info(
            f"video.pipeline.{self.stage}.start",
            extra={"run_id": self.run.run_id, "video_id": self.run.video_id},
        )

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc is None:
            self.log.info(
                f"video.pipeline.{self.stage}.done",
                extra={"run_id": self.run.run_id, "video_id": self.run.video_id},
            )
            return False
        self.run.fail(self.stage, exc)
        if isinstance(exc, PipelineError):
            self.log.error(
                f"video.pipeline.{self.stage}.failed",
                extra={
                    "run_id": self.run.run_id,
                    "video_id": self.run.video_id,
                    "error": str(exc),
                    "cause": repr(exc.__cause__) if exc.__cause__ else None,
                },
            )
        else:
            self.log.error(
                f"video.pipeline.{self.stage}.unexpected_error",
                extra={"run_id": self.run.run_id, "video_id": self.run.video_id},
                exc_info=exc,
            )
        return False
