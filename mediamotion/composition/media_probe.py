"""
Media Probe

Adapters that report the natural duration of a media source (local path or
URL). The duration resolver only sees the ``MediaProbe`` interface.
"""

import asyncio
from abc import ABC, abstractmethod
from contextlib import suppress
from typing import Any, Awaitable, Optional

import httpx
from loguru import logger
from pydantic import BaseModel, Field

from config import settings
from mediamotion.errors import AssemblyAborted, ProbeError


class MediaDuration(BaseModel):
    """Natural duration of a media source."""
    duration_seconds: float = Field(alias="durationSeconds")

    class Config:
        populate_by_name = True


class MediaProbe(ABC):
    """Asynchronously resolves a media source to its natural duration."""

    @abstractmethod
    async def probe(self, src: str, signal: Optional[asyncio.Event] = None) -> MediaDuration:
        """
        Probe ``src``.

        Raises:
            ProbeError: the duration could not be determined
            AssemblyAborted: ``signal`` was set before the probe finished
        """


async def wait_or_abort(
    awaitable: Awaitable[Any],
    src: str,
    signal: Optional[asyncio.Event] = None,
    timeout: Optional[float] = None,
) -> Any:
    """Await ``awaitable`` unless the abort signal fires or the timeout passes first."""
    if signal is not None and signal.is_set():
        if asyncio.iscoroutine(awaitable):
            awaitable.close()
        raise AssemblyAborted(f"Aborted before probing {src}")

    task = asyncio.ensure_future(awaitable)
    abort = asyncio.ensure_future(signal.wait()) if signal is not None else None
    waiters = {task} if abort is None else {task, abort}

    try:
        done, _ = await asyncio.wait(waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
        if task in done:
            return task.result()
        if abort is not None and abort in done:
            raise AssemblyAborted(f"Aborted while probing {src}")
        raise ProbeError(src, f"timed out after {timeout:g}s")
    finally:
        for pending in (task, abort):
            if pending is not None and not pending.done():
                pending.cancel()


def parse_duration(src: str, raw: Any) -> float:
    """Coerce a probe's raw duration into positive seconds."""
    try:
        duration = float(raw)
    except (TypeError, ValueError) as e:
        raise ProbeError(src, f"unparsable duration {raw!r}") from e
    if duration <= 0:
        raise ProbeError(src, f"invalid duration {duration}")
    return duration


class FFprobeMediaProbe(MediaProbe):
    """Reads ``format=duration`` with ffprobe. Handles local paths and http(s) URLs."""

    def __init__(self, ffprobe_path: Optional[str] = None, timeout: Optional[float] = None):
        self.ffprobe_path = ffprobe_path or settings.FFPROBE_PATH
        self.timeout = timeout if timeout is not None else settings.PROBE_TIMEOUT_SECONDS

    async def probe(self, src: str, signal: Optional[asyncio.Event] = None) -> MediaDuration:
        cmd = [
            self.ffprobe_path,
            "-v", "error",
            "-show_entries", "format=duration",
            "-of", "default=noprint_wrappers=1:nokey=1",
            src,
        ]

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ProbeError(src, f"could not start ffprobe: {e}") from e

        try:
            stdout, stderr = await wait_or_abort(process.communicate(), src, signal, self.timeout)
        finally:
            if process.returncode is None:
                with suppress(ProcessLookupError):
                    process.kill()

        output = stdout.decode().strip()
        if not output:
            raise ProbeError(src, f"ffprobe returned nothing: {stderr.decode()[:200]}")

        duration = parse_duration(src, output)
        logger.debug(f"ffprobe {src}: {duration:.3f}s")
        return MediaDuration(duration_seconds=duration)


class HttpMediaInfoProbe(MediaProbe):
    """Asks a remote media-info service (``POST {"src": ...}``) for the duration."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = base_url or settings.MEDIA_INFO_URL
        self.timeout = timeout if timeout is not None else settings.PROBE_TIMEOUT_SECONDS
        self._transport = transport

    async def probe(self, src: str, signal: Optional[asyncio.Event] = None) -> MediaDuration:
        data = await wait_or_abort(self._fetch(src), src, signal)
        duration = parse_duration(src, data.get("duration"))
        logger.debug(f"media-info {src}: {duration:.3f}s")
        return MediaDuration(duration_seconds=duration)

    async def _fetch(self, src: str) -> dict:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.url, json={"src": src})
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            raise ProbeError(src, f"media-info request failed: {e}") from e
        except ValueError as e:
            raise ProbeError(src, f"media-info returned invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise ProbeError(src, "media-info returned a non-object body")
        return data


def create_media_probe(backend: Optional[str] = None) -> MediaProbe:
    """
    Create the configured media probe.

    Args:
        backend: "ffprobe" or "http" (default: MEDIA_PROBE_BACKEND)
    """
    backend = (backend or settings.MEDIA_PROBE_BACKEND).lower()
    if backend == "ffprobe":
        return FFprobeMediaProbe()
    elif backend == "http":
        return HttpMediaInfoProbe()
    else:
        raise ValueError(f"Unknown media probe backend: {backend}")
