"""Tubely video ingest service.

Uploads are probed with ffprobe, bucketed by orientation, remuxed for fast
start with ffmpeg and stored in S3 under ``{orientation}/{token}.mp4``.
"""
