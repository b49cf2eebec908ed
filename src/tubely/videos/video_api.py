"""HTTP routes for video uploads."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile, status

from ..auth.auth_dependencies import require_user
from .video_errors import (
    ForbiddenError,
    NotFoundError,
    PayloadTooLargeError,
    PipelineError,
    StageTimeoutError,
    UnsupportedMediaError,
    ValidationError,
)
from .video_models import FailureReason
from .video_schemas import VideoErrorSchema, VideoSchema
from .video_service import VideoUploadService

router = APIRouter(prefix="/api", tags=["videos"])
logger = logging.getLogger(__name__)

ERROR_RESPONSES = {
    code: {"model": VideoErrorSchema}
    for code in (400, 401, 403, 404, 413, 415, 500, 504)
}


def get_video_service(request: Request) -> VideoUploadService:
    """Fetch upload service from application state."""
    try:
        return request.app.state.video_service  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - defensive path
        raise RuntimeError("VideoUploadService is not configured") from exc


def _error(status_code: int, reason: FailureReason, details: str | None = None) -> HTTPException:
    detail: dict[str, str] = {"status": "error", "failure_reason": reason.value}
    if details:
        detail["details"] = details
    return HTTPException(status_code=status_code, detail=detail)


@router.get("/videos/{video_id}", response_model=VideoSchema, responses=ERROR_RESPONSES)
def get_video(
    video_id: str,
    service: VideoUploadService = Depends(get_video_service),
) -> VideoSchema:
    try:
        record = service.videos.get_video(video_id)
    except NotFoundError as exc:
        raise _error(status.HTTP_404_NOT_FOUND, FailureReason.VIDEO_NOT_FOUND) from exc
    return VideoSchema.from_record(record)


@router.post(
    "/video_upload/{video_id}",
    response_model=VideoSchema,
    responses=ERROR_RESPONSES,
)
async def upload_video(
    video_id: str,
    video: UploadFile | None = File(None),
    user_id: str = Depends(require_user),
    service: VideoUploadService = Depends(get_video_service),
) -> VideoSchema:
    """Process an mp4 upload and attach its public URL to the video."""
    if not video_id.strip():
        raise _error(status.HTTP_400_BAD_REQUEST, FailureReason.INVALID_REQUEST, "Invalid video ID")

    try:
        record = await service.upload_video(video_id, user_id, video)
    except NotFoundError as exc:
        logger.warning("video.upload.not_found", extra={"video_id": video_id})
        raise _error(status.HTTP_404_NOT_FOUND, FailureReason.VIDEO_NOT_FOUND) from exc
    except ForbiddenError as exc:
        raise _error(
            status.HTTP_403_FORBIDDEN,
            FailureReason.FORBIDDEN,
            "You are not the owner of this video",
        ) from exc
    except UnsupportedMediaError as exc:
        raise _error(
            status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            FailureReason.UNSUPPORTED_MEDIA_TYPE,
            "Only video/mp4 is accepted",
        ) from exc
    except PayloadTooLargeError as exc:
        raise _error(
            status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, FailureReason.PAYLOAD_TOO_LARGE
        ) from exc
    except ValidationError as exc:
        raise _error(status.HTTP_400_BAD_REQUEST, FailureReason.INVALID_REQUEST, str(exc)) from exc
    except StageTimeoutError as exc:
        logger.error(
            "video.upload.timeout",
            extra={"video_id": video_id, "stage": exc.stage, "timeout_seconds": exc.timeout_seconds},
        )
        raise _error(status.HTTP_504_GATEWAY_TIMEOUT, FailureReason.PROCESSING_TIMEOUT) from exc
    except PipelineError as exc:
        logger.error(
            "video.upload.pipeline_failed",
            extra={"video_id": video_id, "stage": exc.stage, "error": str(exc)},
        )
        raise _error(status.HTTP_500_INTERNAL_SERVER_ERROR, FailureReason.INTERNAL_ERROR) from exc
    finally:
        if video is not None:
            await video.close()

    return VideoSchema.from_record(record)
