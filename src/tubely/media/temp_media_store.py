"""Temporary media storage for in-flight pipeline runs."""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path

from fastapi import UploadFile

from ..config import MediaPaths

CHUNK_SIZE = 1 * 1024 * 1024  # 1 MiB


@dataclass(slots=True)
class TempMediaStore:
    """Manages lifecycle of per-run temporary files."""

    paths: MediaPaths
    temp_ttl_seconds: int = 3600
    log: logging.Logger = field(default_factory=lambda: logging.getLogger(__name__))

    def run_dir(self, run_id: str) -> Path:
        return self.paths.temp / run_id

    def ensure_structure(self, run_id: str) -> Path:
        directory = self.run_dir(run_id)
        directory.mkdir(parents=True, exist_ok=True)
        return directory

    async def persist_upload(
        self,
        run_id: str,
        upload: UploadFile,
        filename: str,
    ) -> Path:
        """Copy upload contents into the run directory."""
        directory = self.ensure_structure(run_id)
        target = directory / filename

        with target.open("wb") as sink:
            while True:
                chunk = await upload.read(CHUNK_SIZE)
                if not chunk:
                    break
                sink.write(chunk)
        await upload.seek(0)

        self.log.info(
            "media.temp.persisted",
            extra={
                "run_id": run_id,
                "path": str(target),
                "size_bytes": target.stat().st_size,
            },
        )
        return target

    def cleanup(self, run_id: str, paths: list[Path] | None = None) -> None:
        """Remove every file of the run and its directory. Safe to repeat.

        Failures are logged, not raised: this runs in the pipeline's ``finally``
        and must not mask the stage error.
        """
        directory = self.run_dir(run_id)
        try:
            for path in paths or []:
                path.unlink(missing_ok=True)
            if directory.exists():
                shutil.rmtree(directory)
        except OSError as exc:
            self.log.error(
                "media.temp.cleanup_failed",
                extra={"run_id": run_id, "path": str(directory), "error": str(exc)},
            )
            return
        self.log.info("media.temp.cleaned", extra={"run_id": run_id})

    def cleanup_expired(self, reference_time: datetime | None = None) -> int:
        """Purge run directories older than the TTL (left behind by a crash)."""
        removed = 0
        for directory in self.list_expired(reference_time):
            shutil.rmtree(directory, ignore_errors=True)
            removed += 1
            self.log.info("media.temp.cleanup.removed", extra={"run_id": directory.name})
        return removed

    def list_expired(self, reference_time: datetime | None = None) -> list[Path]:
        now = reference_time or datetime.now(timezone.utc)
        threshold = now - timedelta(seconds=self.temp_ttl_seconds)
        if not self.paths.temp.exists():
            return []
        return [
            directory
            for directory in self.paths.temp.iterdir()
            if directory.is_dir()
            and datetime.fromtimestamp(directory.stat().st_mtime, tz=timezone.utc) < threshold
        ]
