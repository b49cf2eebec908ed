"""ffprobe/ffmpeg collaborators used by the upload pipeline.

Both tools hide process spawning behind a typed call: the orchestrator
receives a :class:`StreamGeometry` or a remuxed :class:`Path`, or one of
:class:`ProbeError`, :class:`RemuxError`, :class:`StageTimeoutError`.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from ..config import MediaToolSettings
from ..videos.video_errors import (
    PipelineError,
    ProbeError,
    RemuxError,
    StageTimeoutError,
)
from ..videos.video_models import StreamGeometry
from .process_runner import (
    ProcessResult,
    ProcessRunner,
    ProcessStartError,
    ProcessTimeoutError,
)

logger = logging.getLogger(__name__)


class Runner(Protocol):
    async def run(self, argv: list[str], *, timeout: float) -> ProcessResult: ...


class MediaTool(Protocol):
    """Common shape of the external media tools."""

    binary: str
    timeout_seconds: float
    runner: Runner

    def build_command(self, *args: Path) -> list[str]: ...


async def run_tool(
    tool: MediaTool,
    argv: list[str],
    *,
    stage: str,
    error: type[PipelineError],
    path: Path,
) -> ProcessResult:
    """Run ``argv`` with the tool's runner and map process failures to ``error``."""
    try:
        result = await tool.runner.run(argv, timeout=tool.timeout_seconds)
    except ProcessTimeoutError as exc:
        raise StageTimeoutError(stage, tool.timeout_seconds) from exc
    except ProcessStartError as exc:
        raise error(str(exc)) from exc

    if not result.ok:
        logger.error(
            f"media.{stage}.failed",
            extra={"path": str(path), "returncode": result.returncode, "stderr": result.stderr_tail()},
        )
        raise error(f"{Path(tool.binary).name} exited with status {result.returncode}")
    return result


class Prober(Protocol):
    async def probe(self, path: Path) -> StreamGeometry: ...


class Remuxer(Protocol):
    async def remux(self, path: Path) -> Path: ...


@dataclass(slots=True)
class FFprobeTool:
    """Read the geometry of the first video stream with ffprobe."""

    binary: str = "ffprobe"
    timeout_seconds: float = 30.0
    runner: Runner = field(default_factory=ProcessRunner)

    @classmethod
    def from_settings(
        cls, settings: MediaToolSettings, runner: Runner | None = None
    ) -> "FFprobeTool":
        return cls(
            binary=settings.ffprobe_binary,
            timeout_seconds=settings.probe_timeout_seconds,
            runner=runner or ProcessRunner(),
        )

    def build_command(self, *args: Path) -> list[str]:
        (source,) = args
        return [
            self.binary,
            "-v", "error",
            "-select_streams", "v:0",
            "-show_entries", "stream=width,height",
            "-of", "json",
            str(source),
        ]

    async def probe(self, path: Path) -> StreamGeometry:
        result = await run_tool(
            self, self.build_command(path), stage="probe", error=ProbeError, path=path
        )
        geometry = self._parse(result.stdout)
        logger.info(
            "media.probe.done",
            extra={"path": str(path), "width": geometry.width, "height": geometry.height},
        )
        return geometry

    @staticmethod
    def _parse(stdout: bytes) -> StreamGeometry:
        try:
            payload: Any = json.loads(stdout.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ProbeError("ffprobe output is not valid JSON") from exc

        streams = payload.get("streams") if isinstance(payload, dict) else None
        if not isinstance(streams, list) or len(streams) != 1:
            count = len(streams) if isinstance(streams, list) else 0
            raise ProbeError(f"expected exactly one video stream, got {count}")

        stream = streams[0]
        width = stream.get("width") if isinstance(stream, dict) else None
        height = stream.get("height") if isinstance(stream, dict) else None
        for name, value in (("width", width), ("height", height)):
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ProbeError(f"video stream has invalid {name}: {value!r}")
        return StreamGeometry(width=width, height=height)


@dataclass(slots=True)
class FFmpegRemuxTool:
    """Move the moov atom to the front of an mp4 without re-encoding."""

    binary: str = "ffmpeg"
    timeout_seconds: float = 600.0
    processing_suffix: str = ".processing"
    runner: Runner = field(default_factory=ProcessRunner)

    @classmethod
    def from_settings(
        cls, settings: MediaToolSettings, runner: Runner | None = None
    ) -> "FFmpegRemuxTool":
        return cls(
            binary=settings.ffmpeg_binary,
            timeout_seconds=settings.remux_timeout_seconds,
            processing_suffix=settings.processing_suffix,
            runner=runner or ProcessRunner(),
        )

    def output_path(self, source: Path) -> Path:
        return source.with_name(source.name + self.processing_suffix)

    def build_command(self, *args: Path) -> list[str]:
        source, target = args
        return [
            self.binary,
            "-nostdin",
            "-y",
            "-v", "error",
            "-i", str(source),
            "-movflags", "faststart",
            "-map_metadata", "0",
            "-codec", "copy",
            "-f", "mp4",
            str(target),
        ]

    async def remux(self, path: Path) -> Path:
        target = self.output_path(path)
        await run_tool(
            self, self.build_command(path, target), stage="remux", error=RemuxError, path=path
        )

        # exit status alone is not trusted
        if not target.is_file() or target.stat().st_size == 0:
            logger.error("media.remux.empty_output", extra={"path": str(target)})
            raise RemuxError("ffmpeg produced no output")

        logger.info(
            "media.remux.done",
            extra={"path": str(path), "output": str(target), "size_bytes": target.stat().st_size},
        )
        return target
