"""Application configuration builder."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .db.db_init import init_db


@dataclass(slots=True)
class UploadLimits:
    allowed_content_types: Sequence[str]
    max_upload_bytes: int
    chunk_size_bytes: int


@dataclass(slots=True)
class MediaPaths:
    root: Path
    temp: Path


@dataclass(slots=True)
class MediaToolSettings:
    ffprobe_binary: str = "ffprobe"
    ffmpeg_binary: str = "ffmpeg"
    probe_timeout_seconds: float = 30.0
    remux_timeout_seconds: float = 600.0
    processing_suffix: str = ".processing"


@dataclass(slots=True)
class StorageSettings:
    bucket: str
    region: str
    endpoint_url: str | None = None
    public_base_url: str | None = None
    upload_timeout_seconds: float = 900.0


@dataclass(slots=True)
class AppConfig:
    media_paths: MediaPaths
    upload_limits: UploadLimits
    media_tools: MediaToolSettings
    storage: StorageSettings
    database_url: str
    engine: Engine
    session_factory: sessionmaker[Session]
    jwt_signing_key: str
    jwt_ttl_hours: int = 24
    temp_ttl_seconds: int = 3600


def _ensure_media_paths(paths: MediaPaths) -> None:
    paths.root.mkdir(parents=True, exist_ok=True)
    paths.temp.mkdir(parents=True, exist_ok=True)


def _optional(name: str) -> str | None:
    value = os.getenv(name, "").strip()
    return value or None


def load_config() -> AppConfig:
    """Load configuration from environment (SQLite by default)."""
    load_dotenv(".env", override=False)

    root = Path(os.getenv("MEDIA_ROOT", "media"))
    media_paths = MediaPaths(root=root, temp=root / "temp")
    _ensure_media_paths(media_paths)

    upload_limits = UploadLimits(
        allowed_content_types=("video/mp4",),
        max_upload_bytes=int(os.getenv("MAX_UPLOAD_BYTES", 1 << 30)),
        chunk_size_bytes=int(os.getenv("UPLOAD_CHUNK_SIZE_BYTES", 1 * 1024 * 1024)),
    )

    media_tools = MediaToolSettings(
        ffprobe_binary=os.getenv("FFPROBE_BINARY", "ffprobe"),
        ffmpeg_binary=os.getenv("FFMPEG_BINARY", "ffmpeg"),
        probe_timeout_seconds=float(os.getenv("PROBE_TIMEOUT_SECONDS", 30)),
        remux_timeout_seconds=float(os.getenv("REMUX_TIMEOUT_SECONDS", 600)),
    )

    bucket = os.getenv("S3_BUCKET", "").strip()
    if not bucket:
        raise RuntimeError("S3_BUCKET is not configured")
    storage = StorageSettings(
        bucket=bucket,
        region=os.getenv("S3_REGION", "us-east-1"),
        endpoint_url=_optional("S3_ENDPOINT_URL"),
        public_base_url=_optional("S3_PUBLIC_BASE_URL"),
        upload_timeout_seconds=float(os.getenv("UPLOAD_TIMEOUT_SECONDS", 900)),
    )

    jwt_signing_key = os.getenv("JWT_SIGNING_KEY", "")
    if not jwt_signing_key:
        raise RuntimeError("JWT_SIGNING_KEY is not configured")

    database_url = os.getenv("DATABASE_URL", "sqlite:///tubely.db")
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    engine = create_engine(database_url, future=True, connect_args=connect_args)
    session_factory: sessionmaker[Session] = sessionmaker(bind=engine, expire_on_commit=False)

    init_db(engine)

    return AppConfig(
        media_paths=media_paths,
        upload_limits=upload_limits,
        media_tools=media_tools,
        storage=storage,
        database_url=database_url,
        engine=engine,
        session_factory=session_factory,
        jwt_signing_key=jwt_signing_key,
        jwt_ttl_hours=int(os.getenv("JWT_TTL_HOURS", 24)),
        temp_ttl_seconds=int(os.getenv("TEMP_TTL_SECONDS", 3600)),
    )
