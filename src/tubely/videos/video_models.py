"""Data structures for the video upload pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path


class OrientationCategory(StrEnum):
    """Aspect-ratio bucket used as the storage key prefix."""

    LANDSCAPE = "landscape"
    PORTRAIT = "portrait"
    OTHER = "other"


class PipelineStage(StrEnum):
    """States of a single pipeline run."""

    RECEIVED = "received"
    PROBED = "probed"
    CLASSIFIED = "classified"
    REMUXED = "remuxed"
    UPLOADED = "uploaded"
    RECORDED = "recorded"
    FAILED = "failed"


class FailureReason(StrEnum):
    """Failure reasons returned to HTTP clients."""

    INVALID_REQUEST = "invalid_request"
    UNSUPPORTED_MEDIA_TYPE = "unsupported_media_type"
    PAYLOAD_TOO_LARGE = "payload_too_large"
    VIDEO_NOT_FOUND = "video_not_found"
    FORBIDDEN = "forbidden"
    PROCESSING_TIMEOUT = "processing_timeout"
    INTERNAL_ERROR = "internal_error"


@dataclass(frozen=True, slots=True)
class StreamGeometry:
    """Width and height of the first video stream."""

    width: int
    height: int

    @property
    def ratio(self) -> float:
        return self.width / self.height


@dataclass(frozen=True, slots=True)
class StorageLocation:
    """Durable copy of a processed video in object storage."""

    bucket: str
    region: str
    key: str
    base_url: str | None = None

    @property
    def url(self) -> str:
        if self.base_url:
            return f"{self.base_url.rstrip('/')}/{self.key}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{self.key}"


@dataclass(slots=True)
class UploadValidationResult:
    """Outcome of validating an uploaded video."""

    content_type: str
    size_bytes: int
    sha256: str
    filename: str


@dataclass(slots=True)
class StageFailure:
    stage: str
    cause: BaseException


@dataclass(slots=True)
class PipelineRun:
    """Per-request execution context; never shared between requests."""

    run_id: str
    content_type: str
    owner_id: str
    video_id: str | None = None
    stage: PipelineStage = PipelineStage.RECEIVED
    upload: UploadValidationResult | None = None
    source_path: Path | None = None
    processed_path: Path | None = None
    temp_paths: list[Path] = field(default_factory=list)
    geometry: StreamGeometry | None = None
    category: OrientationCategory | None = None
    location: StorageLocation | None = None
    failure: StageFailure | None = None

    def advance(self, stage: PipelineStage) -> None:
        self.stage = stage

    def fail(self, stage: str, cause: BaseException) -> None:
        self.stage = PipelineStage.FAILED
        self.failure = StageFailure(stage=stage, cause=cause)
