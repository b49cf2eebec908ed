"""Deterministic stand-ins for ffprobe, ffmpeg and S3 used across tests."""

from __future__ import annotations

import itertools
import json
from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path
from typing import Any, Callable

from fastapi import UploadFile
from starlette.datastructures import Headers

from src.tubely.media.process_runner import ProcessResult
from src.tubely.videos.video_models import StorageLocation, StreamGeometry

FAKE_MP4_BYTES = b"\x00\x00\x00\x18ftypmp42" + b"\x00" * 64 + b"mdat" + b"\x01" * 256


def make_upload(
    data: bytes = FAKE_MP4_BYTES,
    *,
    content_type: str = "video/mp4",
    filename: str = "clip.mp4",
) -> UploadFile:
    headers = Headers({"content-type": content_type})
    return UploadFile(filename=filename, file=BytesIO(data), headers=headers)


def ffprobe_stdout(*streams: tuple[int, int]) -> bytes:
    payload = {"programs": [], "streams": [{"width": w, "height": h} for w, h in streams]}
    return json.dumps(payload).encode("utf-8")


class SequentialTokens:
    """Predictable replacement for the random token generator."""

    def __init__(self, prefix: str = "tok") -> None:
        self._counter = itertools.count(1)
        self.prefix = prefix
        self.issued: list[str] = []

    def __call__(self) -> str:
        token = f"{self.prefix}{next(self._counter)}"
        self.issued.append(token)
        return token


@dataclass
class FakeRunner:
    """Process runner returning a canned result and recording each argv."""

    result: ProcessResult | None = None
    error: Exception | None = None
    on_run: Callable[[list[str]], None] | None = None
    calls: list[list[str]] = field(default_factory=list)
    timeouts: list[float] = field(default_factory=list)

    async def run(self, argv: list[str], *, timeout: float) -> ProcessResult:
        self.calls.append(list(argv))
        self.timeouts.append(timeout)
        if self.on_run is not None:
            self.on_run(list(argv))
        if self.error is not None:
            raise self.error
        assert self.result is not None
        return self.result


@dataclass
class FakeProber:
    geometry: StreamGeometry | None = None
    error: Exception | None = None
    seen: list[Path] = field(default_factory=list)

    async def probe(self, path: Path) -> StreamGeometry:
        self.seen.append(path)
        assert path.exists(), "probe must see the persisted upload"
        if self.error is not None:
            raise self.error
        assert self.geometry is not None
        return self.geometry


@dataclass
class FakeRemuxer:
    """Writes ``payload`` next to the input, like the real remuxer."""

    payload: bytes = b"remuxed-" + FAKE_MP4_BYTES
    error: Exception | None = None
    suffix: str = ".processing"
    seen: list[Path] = field(default_factory=list)

    def output_path(self, source: Path) -> Path:
        return source.with_name(source.name + self.suffix)

    async def remux(self, path: Path) -> Path:
        self.seen.append(path)
        target = self.output_path(path)
        # leave a partial file behind so cleanup is exercised on failure too
        target.write_bytes(self.payload)
        if self.error is not None:
            raise self.error
        return target


@dataclass
class FakeStorage:
    bucket: str = "tubely-test"
    region: str = "us-east-2"
    error: Exception | None = None
    calls: list[dict[str, Any]] = field(default_factory=list)

    async def put_object(self, local_path: Path, key: str, content_type: str) -> StorageLocation:
        self.calls.append(
            {
                "path": local_path,
                "key": key,
                "content_type": content_type,
                "exists": local_path.exists(),
                "body": local_path.read_bytes() if local_path.exists() else None,
            }
        )
        if self.error is not None:
            raise self.error
        return StorageLocation(bucket=self.bucket, region=self.region, key=key)
