from __future__ import annotations

import abc
import asyncio
import contextlib
import logging
import secrets
import shutil
import tempfile
from pathlib import Path
from typing import AsyncIterator, Optional

from ..errors import TranscodeError
from .types import AudioFormat, TranscodeOutcome

logger = logging.getLogger(__name__)

TARGET_SAMPLE_RATE = 16000
TARGET_CHANNELS = 1
_STDERR_LIMIT = 2000


class AudioNormalizer(abc.ABC):
    """Interface for converting uploads into provider-friendly audio."""

    name: str

    @abc.abstractmethod
    async def normalize(self, data: bytes, fmt: AudioFormat) -> TranscodeOutcome:
        """Return audio the upstream provider can consume."""
        raise NotImplementedError


@contextlib.asynccontextmanager
async def scratch_workspace(*, root: Optional[Path] = None, prefix: str = "audio-proxy") -> AsyncIterator[Path]:
    """Yield a uniquely named scratch directory, removed on every exit path."""

    token = secrets.token_hex(8)
    path = Path(await asyncio.to_thread(tempfile.mkdtemp, prefix=f"{prefix}-{token}-", dir=root))
    try:
        yield path
    finally:
        await asyncio.to_thread(shutil.rmtree, path, ignore_errors=True)


class FfmpegNormalizer(AudioNormalizer):
    """Transcodes non-WAV uploads to mono 16 kHz PCM WAV with ffmpeg."""

    name = "ffmpeg"

    def __init__(
        self,
        *,
        binary: str = "ffmpeg",
        timeout: Optional[float] = None,
        scratch_root: Optional[Path] = None,
    ) -> None:
        self._binary = binary
        self._timeout = timeout
        self._scratch_root = scratch_root

    async def normalize(self, data: bytes, fmt: AudioFormat) -> TranscodeOutcome:
        if fmt == AudioFormat.WAV:
            return TranscodeOutcome(data=data, format=AudioFormat.WAV)

        extension = fmt.value if isinstance(fmt, AudioFormat) else "bin"
        source_format = fmt.value if isinstance(fmt, AudioFormat) else str(fmt)
        async with scratch_workspace(root=self._scratch_root) as workspace:
            in_path = workspace / f"in.{extension}"
            out_path = workspace / "out.wav"
            await asyncio.to_thread(in_path.write_bytes, data)
            await self._run(in_path, out_path)
            try:
                wav = await asyncio.to_thread(out_path.read_bytes)
            except FileNotFoundError as exc:
                raise TranscodeError("ffmpeg produced no output") from exc

        logger.debug(
            "ffmpeg.transcoded",
            extra={"source_format": source_format, "in_bytes": len(data), "out_bytes": len(wav)},
        )
        return TranscodeOutcome(data=wav, format=AudioFormat.WAV)

    def _command(self, in_path: Path, out_path: Path) -> list[str]:
        return [
            self._binary,
            "-hide_banner",
            "-loglevel",
            "error",
            "-y",
            "-i",
            str(in_path),
            "-ac",
            str(TARGET_CHANNELS),
            "-ar",
            str(TARGET_SAMPLE_RATE),
            "-f",
            "wav",
            str(out_path),
        ]

    async def _run(self, in_path: Path, out_path: Path) -> None:
        try:
            process = await asyncio.create_subprocess_exec(
                *self._command(in_path, out_path),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            logger.error("ffmpeg.spawn_failed", extra={"binary": self._binary, "error": repr(exc)})
            raise TranscodeError(f"ffmpeg failed to start: {exc}") from exc

        try:
            _, stderr = await asyncio.wait_for(process.communicate(), timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            with contextlib.suppress(ProcessLookupError):
                process.kill()
            await process.wait()
            raise TranscodeError(f"ffmpeg timed out after {self._timeout:g}s") from exc

        if process.returncode != 0:
            reason = _tail(stderr.decode("utf-8", errors="replace").strip()) if stderr else ""
            logger.warning("ffmpeg.failed", extra={"returncode": process.returncode})
            raise TranscodeError(f"ffmpeg failed (code {process.returncode}): {reason or 'unknown'}")


def _tail(text: str) -> str:
    if len(text) <= _STDERR_LIMIT:
        return text
    return "..." + text[-_STDERR_LIMIT:]


__all__ = ["AudioNormalizer", "FfmpegNormalizer", "scratch_workspace", "TARGET_SAMPLE_RATE", "TARGET_CHANNELS"]
