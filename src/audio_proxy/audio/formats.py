from __future__ import annotations

from typing import Optional

from .types import AudioFormat

# Evaluated in order; the first tag whose MIME hint or filename suffix matches wins.
_FORMAT_RULES: tuple[tuple[AudioFormat, tuple[str, ...], tuple[str, ...]], ...] = (
    (AudioFormat.WAV, ("wav",), (".wav",)),
    (AudioFormat.MP3, ("mpeg", "mp3"), (".mp3",)),
    (AudioFormat.OGG, ("ogg",), (".ogg", ".oga")),
    (AudioFormat.FLAC, ("flac",), (".flac",)),
    (AudioFormat.M4A, ("m4a", "mp4"), (".m4a",)),
    (AudioFormat.AAC, ("aac",), (".aac",)),
    (AudioFormat.OPUS, ("opus",), (".opus",)),
)


def infer_format(mime: Optional[str], filename: Optional[str]) -> AudioFormat:
    """Classify an upload from its declared content type and filename.

    Both inputs are untrusted client hints, so matching is case-insensitive and
    falls back to WAV when nothing matches.
    """

    mime_lower = (mime or "").lower()
    name_lower = (filename or "").lower()
    for fmt, mime_hints, suffixes in _FORMAT_RULES:
        if any(hint in mime_lower for hint in mime_hints):
            return fmt
        if name_lower.endswith(suffixes):
            return fmt
    return AudioFormat.WAV


__all__ = ["infer_format"]
