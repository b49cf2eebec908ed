"""Domain-specific exceptions for the video upload pipeline."""

from __future__ import annotations


class VideoError(Exception):
    """Base class for video-related errors."""


class ValidationError(VideoError):
    """Raised when the request is rejected before any processing starts."""


class UnsupportedMediaError(ValidationError):
    """Raised when the declared Content-Type is not allowed."""


class PayloadTooLargeError(ValidationError):
    """Raised when the uploaded file exceeds the configured limit."""


class NotFoundError(VideoError):
    """Raised when the video id is unknown to the metadata store."""


class ForbiddenError(VideoError):
    """Raised when the authenticated principal does not own the video."""


class PipelineError(VideoError):
    """Terminal failure of one pipeline stage."""

    stage = "pipeline"

    def __init__(self, message: str, *, stage: str | None = None) -> None:
        super().__init__(message)
        if stage is not None:
            self.stage = stage

    def __str__(self) -> str:
        return f"[{self.stage}] {super().__str__()}"


class ProbeError(PipelineError):
    """Raised when stream inspection fails."""

    stage = "probe"


class RemuxError(PipelineError):
    """Raised when the fast-start remux fails or produces no output."""

    stage = "remux"


class UploadError(PipelineError):
    """Raised when the object storage write fails."""

    stage = "upload"


class StageTimeoutError(PipelineError):
    """Raised when a stage does not finish within its time budget."""

    def __init__(self, stage: str, timeout_seconds: float) -> None:
        super().__init__(
            f"did not finish within {timeout_seconds:g}s", stage=stage
        )
        self.timeout_seconds = timeout_seconds
