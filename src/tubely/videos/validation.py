"""Upload validation utilities."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from hashlib import sha256

from fastapi import UploadFile

from ..config import UploadLimits
from .video_errors import PayloadTooLargeError, UnsupportedMediaError, ValidationError
from .video_models import UploadValidationResult

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class UploadValidator:
    """Validate video uploads against configured limits."""

    limits: UploadLimits

    def check_content_type(self, content_type: str | None) -> str:
        allowed = set(self.limits.allowed_content_types)
        normalized = (content_type or "").split(";", 1)[0].strip().lower()
        if normalized not in allowed:
            logger.warning(
                "video.upload.unsupported_media",
                extra={"content_type": content_type},
            )
            raise UnsupportedMediaError(f"Unsupported content type: {content_type}")
        return normalized

    async def validate(
        self,
        upload: UploadFile,
        content_type: str | None = None,
    ) -> UploadValidationResult:
        declared = self.check_content_type(
            content_type if content_type is not None else upload.content_type
        )

        cap = self.limits.max_upload_bytes
        if upload.size is not None and upload.size > cap:
            logger.warning(
                "video.upload.payload_too_large",
                extra={"size_bytes": upload.size, "limit_bytes": cap},
            )
            raise PayloadTooLargeError(f"Video exceeds {cap} bytes")

        digest = sha256()
        size = 0
        try:
            while True:
                chunk = await upload.read(self.limits.chunk_size_bytes)
                if not chunk:
                    break
                size += len(chunk)
                if size > cap:
                    logger.warning(
                        "video.upload.payload_too_large",
                        extra={"size_bytes": size, "limit_bytes": cap},
                    )
                    raise PayloadTooLargeError(f"Video exceeds {cap} bytes")
                digest.update(chunk)
        finally:
            await upload.seek(0)

        if size == 0:
            raise ValidationError("Video file is empty")

        result = UploadValidationResult(
            content_type=declared,
            size_bytes=size,
            sha256=digest.hexdigest(),
            filename=upload.filename or "upload",
        )
        logger.info(
            "video.upload.validated",
            extra={
                "upload_filename": result.filename,
                "size_bytes": result.size_bytes,
                "content_type": result.content_type,
            },
        )
        return result
