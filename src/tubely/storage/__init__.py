"""Object storage integration."""

from .object_storage import ObjectStorage, S3ObjectStorage, build_s3_client

__all__ = ["ObjectStorage", "S3ObjectStorage", "build_s3_client"]
