"""
Duration backfill for timed content still showing the ``0:00`` placeholder.

The media URL is probed with ffprobe (reads only the container header),
the formatted duration is written back to the content row, and the caller
patches its local copy.
"""
from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Awaitable, Callable
from typing import Protocol

from app.gallery.constants import ZERO_DURATION
from app.gallery.exceptions import DurationProbeError

logger = logging.getLogger(__name__)

_PROBE_TIMEOUT_SECS = 30.0

Probe = Callable[[str], Awaitable[float]]


class DurationStore(Protocol):
    async def update_duration(self, content_id: str, duration: str) -> None: ...


def format_duration(seconds: float) -> str:
    """``m:ss`` below an hour, ``h:mm:ss`` above."""
    total = int(seconds)
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


async def probe_duration(url: str, timeout: float = _PROBE_TIMEOUT_SECS) -> float:
    """Return the media duration in seconds. Raises DurationProbeError."""
    cmd = [
        "ffprobe",
        "-v", "error",
        "-show_entries", "format=duration",
        "-of", "default=noprint_wrappers=1:nokey=1",
        url,
    ]
    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as exc:
        raise DurationProbeError("ffprobe not found; install FFmpeg to enable duration backfill") from exc

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout)
    except asyncio.TimeoutError as exc:
        proc.kill()
        await proc.wait()
        raise DurationProbeError(f"ffprobe timed out for {url}") from exc

    if proc.returncode != 0:
        raise DurationProbeError(stderr.decode(errors="replace").strip() or f"ffprobe exited {proc.returncode}")

    try:
        seconds = float(stdout.decode().strip())
    except ValueError as exc:
        raise DurationProbeError(f"ffprobe returned no duration for {url}") from exc
    if not math.isfinite(seconds) or seconds <= 0:
        raise DurationProbeError(f"ffprobe returned unusable duration {seconds!r} for {url}")
    return seconds


class DurationBackfill:
    def __init__(self, store: DurationStore, probe: Probe = probe_duration) -> None:
        self._store = store
        self._probe = probe

    async def refresh(self, content_id: str, content_url: str) -> str | None:
        """Probe, persist and return the new duration; None when nothing to write."""
        if not content_url:
            return None
        duration = format_duration(await self._probe(content_url))
        if duration == ZERO_DURATION:
            return None
        await self._store.update_duration(content_id, duration)
        logger.info("Backfilled duration %s for %s", duration, content_id)
        return duration
