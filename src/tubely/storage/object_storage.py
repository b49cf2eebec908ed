"""S3-compatible object storage for processed videos."""

from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from ..config import StorageSettings
from ..videos.video_errors import StageTimeoutError, UploadError
from ..videos.video_models import StorageLocation

logger = logging.getLogger(__name__)


class ObjectStorage(Protocol):
    async def put_object(
        self, local_path: Path, key: str, content_type: str
    ) -> StorageLocation: ...


def build_s3_client(settings: StorageSettings) -> Any:
    """Create a boto3 S3 client that makes a single attempt per call."""
    session = boto3.session.Session()
    return session.client(
        "s3",
        endpoint_url=settings.endpoint_url,
        region_name=settings.region,
        config=BotoConfig(
            signature_version="s3v4",
            retries={"max_attempts": 1, "mode": "standard"},
            connect_timeout=10,
            read_timeout=60,
        ),
    )


@dataclass(slots=True)
class S3ObjectStorage:
    """Upload local files with ``upload_file`` and report their public URL."""

    client: Any
    bucket: str
    region: str
    public_base_url: str | None = None
    timeout_seconds: float = 900.0

    @classmethod
    def from_settings(
        cls, settings: StorageSettings, client: Any | None = None
    ) -> "S3ObjectStorage":
        return cls(
            client=client or build_s3_client(settings),
            bucket=settings.bucket,
            region=settings.region,
            public_base_url=settings.public_base_url,
            timeout_seconds=settings.upload_timeout_seconds,
        )

    async def put_object(
        self, local_path: Path, key: str, content_type: str
    ) -> StorageLocation:
        logger.info(
            "storage.upload.start",
            extra={"path": str(local_path), "bucket": self.bucket, "key": key},
        )
        transfer = _Transfer(
            storage=self, local_path=local_path, key=key, content_type=content_type
        )
        try:
            await asyncio.wait_for(
                asyncio.to_thread(transfer), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError as exc:
            # the worker thread cannot be stopped; it deletes the object if it lands
            if transfer.abandon():
                logger.warning(
                    "storage.upload.timeout",
                    extra={"key": key, "timeout_seconds": self.timeout_seconds},
                )
                raise StageTimeoutError("upload", self.timeout_seconds) from exc
        except asyncio.CancelledError:
            if not transfer.abandon():
                await asyncio.to_thread(self.discard, key)
            raise
        except ClientError as exc:
            error = (exc.response or {}).get("Error", {})
            logger.error(
                "storage.upload.failed",
                extra={"bucket": self.bucket, "key": key, "code": error.get("Code")},
            )
            raise UploadError(f"S3 rejected upload: {error.get('Code', 'unknown')}") from exc
        except (BotoCoreError, OSError) as exc:
            logger.error(
                "storage.upload.failed",
                extra={"bucket": self.bucket, "key": key, "error": str(exc)},
            )
            raise UploadError(f"S3 upload failed: {exc.__class__.__name__}") from exc

        location = StorageLocation(
            bucket=self.bucket,
            region=self.region,
            key=key,
            base_url=self.public_base_url,
        )
        logger.info("storage.upload.done", extra={"key": key, "url": location.url})
        return location

    def discard(self, key: str) -> None:
        """Delete an object written by an abandoned upload."""
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as exc:
            logger.error(
                "storage.discard.failed",
                extra={"bucket": self.bucket, "key": key, "error": str(exc)},
            )
            return
        logger.info("storage.discard.done", extra={"bucket": self.bucket, "key": key})


@dataclass(slots=True)
class _Transfer:
    """One ``upload_file`` call that may outlive the coroutine awaiting it."""

    storage: S3ObjectStorage
    local_path: Path
    key: str
    content_type: str
    lock: threading.Lock = field(default_factory=threading.Lock)
    finished: bool = False
    abandoned: bool = False

    def __call__(self) -> None:
        try:
            self.storage.client.upload_file(
                str(self.local_path),
                self.storage.bucket,
                self.key,
                ExtraArgs={"ContentType": self.content_type},
            )
        except Exception as exc:
            with self.lock:
                abandoned = self.abandoned
            if not abandoned:
                raise
            logger.warning(
                "storage.upload.abandoned_failed",
                extra={"key": self.key, "error": repr(exc)},
            )
            return

        with self.lock:
            self.finished = True
            abandoned = self.abandoned
        if abandoned:
            self.storage.discard(self.key)

    def abandon(self) -> bool:
        """Mark the transfer as abandoned. Returns False if it already finished."""
        with self.lock:
            if self.finished:
                return False
            self.abandoned = True
            return True
