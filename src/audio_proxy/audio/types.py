from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class AudioFormat(str, Enum):
    """Audio encodings the provider accepts as inline payloads."""

    WAV = "wav"
    MP3 = "mp3"
    OGG = "ogg"
    FLAC = "flac"
    M4A = "m4a"
    AAC = "aac"
    OPUS = "opus"


@dataclass(frozen=True, slots=True)
class UploadedAudio:
    """Audio clip and form fields extracted from one multipart upload."""

    data: bytes
    content_type: str
    filename: str
    prompt: Optional[str] = None


@dataclass(frozen=True, slots=True)
class TranscodeOutcome:
    """Audio ready to forward upstream."""

    data: bytes
    format: AudioFormat
