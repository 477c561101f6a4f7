from __future__ import annotations

import base64
import logging
import time
from dataclasses import dataclass

from .audio import AudioFormat, AudioNormalizer, FfmpegNormalizer, UploadedAudio, infer_format
from .settings import Settings
from .upstream import OpenRouterClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TranscriptionResult:
    text: str


class TranscriptionPipeline:
    """Runs one upload through classification, normalization and the upstream call."""

    def __init__(self, *, normalizer: AudioNormalizer, upstream: OpenRouterClient) -> None:
        self._normalizer = normalizer
        self._upstream = upstream

    @classmethod
    def from_settings(cls, cfg: Settings) -> "TranscriptionPipeline":
        normalizer = FfmpegNormalizer(
            binary=cfg.transcode.ffmpeg_binary,
            timeout=cfg.transcode.timeout,
        )
        return cls(normalizer=normalizer, upstream=OpenRouterClient(cfg.upstream))

    @property
    def upstream(self) -> OpenRouterClient:
        return self._upstream

    async def run(self, upload: UploadedAudio) -> TranscriptionResult:
        started = time.perf_counter()
        detected = infer_format(upload.content_type, upload.filename)
        logger.info(
            "transcribe.format_detected",
            extra={"format": detected.value, "content_type": upload.content_type, "bytes": len(upload.data)},
        )

        outcome = await self._normalizer.normalize(upload.data, detected)
        event = "transcribe.passthrough" if detected == AudioFormat.WAV else "transcribe.transcoded"
        logger.info(
            event,
            extra={"source_format": detected.value, "bytes": len(outcome.data), "normalizer": self._normalizer.name},
        )

        audio_b64 = base64.b64encode(outcome.data).decode("ascii")
        transcript = await self._upstream.transcribe(
            audio_b64=audio_b64,
            fmt=outcome.format,
            prompt=upload.prompt,
        )

        logger.info(
            "transcribe.completed",
            extra={"latency_ms": round((time.perf_counter() - started) * 1000.0, 1), "chars": len(transcript)},
        )
        return TranscriptionResult(text=transcript)


__all__ = ["TranscriptionPipeline", "TranscriptionResult"]
