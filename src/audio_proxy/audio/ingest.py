from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import AsyncGenerator, Optional

from python_multipart.multipart import parse_options_header
from starlette.datastructures import Headers, UploadFile
from starlette.formparsers import MultiPartException, MultiPartParser

from ..errors import BadRequest
from .types import UploadedAudio

logger = logging.getLogger(__name__)

FILE_FIELD = "file"
PROMPT_FIELD = "prompt"
DEFAULT_FILENAME = "audio"
DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass(slots=True)
class IngestLimits:
    max_bytes: Optional[int] = None


class MultipartIngestor:
    """Parses multipart uploads into UploadedAudio objects.

    Only the ``file`` and ``prompt`` fields are honoured. Anything else a client
    sends (``model`` in particular) is parsed and dropped so callers cannot
    redirect the configured upstream model.
    """

    def __init__(self, *, limits: Optional[IngestLimits] = None) -> None:
        self._limits = limits or IngestLimits()

    async def from_request(self, *, headers: Headers, stream: AsyncGenerator[bytes, None]) -> UploadedAudio:
        content_type = headers.get("content-type", "")
        if "multipart/form-data" not in content_type.lower():
            raise BadRequest("Expected multipart/form-data")

        watch = _ClosingBoundaryWatch(content_type)
        parser = MultiPartParser(headers, watch.wrap(stream), max_files=1)
        try:
            form = await parser.parse()
        except MultiPartException as exc:
            raise BadRequest(f"Bad multipart: {exc.message}") from exc
        except ValueError as exc:
            raise BadRequest(f"Bad multipart: {exc}") from exc

        if not watch.closed:
            await form.close()
            raise BadRequest("Bad multipart: Unexpected end of form")

        try:
            upload = form.get(FILE_FIELD)
            prompt_value = form.get(PROMPT_FIELD)
            ignored = sorted({key for key in form.keys() if key not in {FILE_FIELD, PROMPT_FIELD}})
            if ignored:
                logger.debug("ingest.fields_ignored", extra={"fields": ignored})

            data = b""
            filename = DEFAULT_FILENAME
            mime = DEFAULT_CONTENT_TYPE
            if isinstance(upload, UploadFile):
                data = await upload.read()
                filename = upload.filename or filename
                mime = upload.content_type or mime
        finally:
            await form.close()

        if not data:
            raise BadRequest("Missing audio file")
        self._enforce_size(len(data))

        prompt = prompt_value if isinstance(prompt_value, str) and prompt_value.strip() else None
        return UploadedAudio(
            data=data,
            content_type=mime,
            filename=filename,
            prompt=prompt,
        )

    def _enforce_size(self, size: int) -> None:
        max_bytes = self._limits.max_bytes
        if max_bytes is not None and size > max_bytes:
            raise BadRequest("audio payload exceeds configured size limit")


class _ClosingBoundaryWatch:
    """Scans the raw body for the closing ``--<boundary>--`` delimiter.

    Starlette's parser finishes without error when the stream ends inside a
    part, so a truncated upload would otherwise look like a form with no file.
    """

    def __init__(self, content_type: str) -> None:
        _, params = parse_options_header(content_type)
        boundary = params.get(b"boundary", b"")
        self._marker = b"--" + boundary + b"--"
        self._window = b""
        self.closed = False

    async def wrap(self, stream: AsyncGenerator[bytes, None]) -> AsyncGenerator[bytes, None]:
        keep = len(self._marker) - 1
        async for chunk in stream:
            if not self.closed and chunk:
                scan = self._window + chunk
                self.closed = self._marker in scan
                self._window = scan[-keep:] if keep else b""
            yield chunk


__all__ = ["IngestLimits", "MultipartIngestor"]
