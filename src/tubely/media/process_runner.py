"""Async wrapper around external command-line tools."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from typing import Sequence

logger = logging.getLogger(__name__)


class ProcessError(Exception):
    """Base class for process invocation failures."""


class ProcessStartError(ProcessError):
    """Raised when the executable cannot be started."""


class ProcessTimeoutError(ProcessError):
    """Raised when the process does not exit in time."""

    def __init__(self, argv: Sequence[str], timeout_seconds: float) -> None:
        super().__init__(f"{argv[0]} did not exit within {timeout_seconds:g}s")
        self.timeout_seconds = timeout_seconds


@dataclass(frozen=True, slots=True)
class ProcessResult:
    returncode: int
    stdout: bytes
    stderr: bytes

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def stderr_tail(self, limit: int = 500) -> str:
        return self.stderr.decode("utf-8", errors="replace")[-limit:]


class ProcessRunner:
    """Spawn a process, wait for it to exit and collect its output."""

    async def run(self, argv: Sequence[str], *, timeout: float) -> ProcessResult:
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise ProcessStartError(f"Cannot start {argv[0]}: {exc}") from exc

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
        except asyncio.TimeoutError as exc:
            await self._terminate(process)
            logger.warning(
                "process.timeout",
                extra={"executable": argv[0], "timeout_seconds": timeout},
            )
            raise ProcessTimeoutError(argv, timeout) from exc
        except asyncio.CancelledError:
            await self._terminate(process)
            logger.warning("process.cancelled", extra={"executable": argv[0]})
            raise

        return ProcessResult(
            returncode=process.returncode if process.returncode is not None else -1,
            stdout=stdout,
            stderr=stderr,
        )

    @staticmethod
    async def _terminate(process: asyncio.subprocess.Process) -> None:
        """Kill the child if it is still running and reap it."""
        if process.returncode is None:
            with contextlib.suppress(ProcessLookupError):
                process.kill()
        await process.wait()
