"""Persistence repositories."""

from .video_repository import VideoRecord, VideoRepository

__all__ = ["VideoRecord", "VideoRepository"]
