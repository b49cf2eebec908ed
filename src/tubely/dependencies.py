"""Dependency wiring helpers."""

from datetime import timedelta

from fastapi import FastAPI

from .auth.auth_service import TokenService
from .config import AppConfig
from .media.media_tools import FFmpegRemuxTool, FFprobeTool
from .media.temp_media_store import TempMediaStore
from .repositories.video_repository import VideoRepository
from .storage.object_storage import ObjectStorage, S3ObjectStorage
from .videos.validation import UploadValidator
from .videos.video_api import router as video_router
from .videos.video_service import VideoUploadService


def include_routers(
    app: FastAPI,
    config: AppConfig,
    *,
    storage: ObjectStorage | None = None,
    prober: FFprobeTool | None = None,
    remuxer: FFmpegRemuxTool | None = None,
) -> None:
    """Mount module routers and attach services."""
    video_repo = VideoRepository(config.session_factory)
    temp_store = TempMediaStore(
        paths=config.media_paths,
        temp_ttl_seconds=config.temp_ttl_seconds,
    )
    video_service = VideoUploadService(
        videos=video_repo,
        validator=UploadValidator(config.upload_limits),
        temp_store=temp_store,
        prober=prober or FFprobeTool.from_settings(config.media_tools),
        remuxer=remuxer or FFmpegRemuxTool.from_settings(config.media_tools),
        storage=storage or S3ObjectStorage.from_settings(config.storage),
    )
    token_service = TokenService(
        signing_key=config.jwt_signing_key,
        token_ttl=timedelta(hours=config.jwt_ttl_hours),
    )

    app.state.config = config
    app.state.video_repo = video_repo
    app.state.temp_store = temp_store
    app.state.video_service = video_service
    app.state.token_service = token_service

    app.include_router(video_router)
