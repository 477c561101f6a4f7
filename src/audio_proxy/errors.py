"""Failure taxonomy for the transcription pipeline."""

from __future__ import annotations

from typing import Optional


class TranscriptionError(Exception):
    """Base class for failures surfaced to the caller as an error payload."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class BadRequest(TranscriptionError):
    """Client input was malformed or missing."""

    status_code = 400


class TranscodeError(TranscriptionError):
    """The external transcoder failed to start or exited unsuccessfully."""


class UpstreamAuthError(TranscriptionError):
    """No provider credential is configured."""


class UpstreamHttpError(TranscriptionError):
    """The provider answered with a non-success status or could not be reached."""

    def __init__(self, message: str, *, upstream_status: Optional[int] = None, body: str = "") -> None:
        super().__init__(message)
        self.upstream_status = upstream_status
        self.body = body


class UpstreamSchemaError(TranscriptionError):
    """The provider response did not carry a usable transcript."""


__all__ = [
    "TranscriptionError",
    "BadRequest",
    "TranscodeError",
    "UpstreamAuthError",
    "UpstreamHttpError",
    "UpstreamSchemaError",
]
