import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .audio import IngestLimits, MultipartIngestor
from .errors import TranscriptionError, UpstreamHttpError
from .pipeline import TranscriptionPipeline
from .schemas import ErrorResponse, HealthResponse, TranscriptionResponse
from .settings import Settings
from .settings import settings as runtime_settings

logger = logging.getLogger(__name__)

_ALLOWED_METHODS = {"GET", "POST"}


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(ErrorResponse.from_message(message).model_dump(), status_code=status_code)


def create_app(
    cfg: Optional[Settings] = None,
    *,
    pipeline: Optional[TranscriptionPipeline] = None,
    ingestor: Optional[MultipartIngestor] = None,
) -> FastAPI:
    cfg = cfg or runtime_settings
    app = FastAPI(title="openrouter-audio-proxy")
    app.state.settings = cfg
    app.state.pipeline = pipeline or TranscriptionPipeline.from_settings(cfg)
    app.state.ingestor = ingestor or MultipartIngestor(limits=IngestLimits(max_bytes=cfg.ingest.max_bytes))

    @app.exception_handler(TranscriptionError)
    async def _on_transcription_error(request: Request, exc: TranscriptionError) -> JSONResponse:
        extra = {"status": exc.status_code, "error_type": type(exc).__name__, "path": request.url.path}
        if isinstance(exc, UpstreamHttpError):
            extra.update(upstream_status=exc.upstream_status, upstream_body=exc.body[:500])
        logger.warning("transcribe.rejected", extra=extra)
        return _error_response(exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def _on_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if request.method.upper() not in _ALLOWED_METHODS:
            return _error_response(405, "Method not allowed")
        if exc.status_code in (404, 405):
            return _error_response(404, "Not found")
        return _error_response(exc.status_code, str(exc.detail))

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        upstream = cfg.upstream
        return HealthResponse(
            ok=True,
            model=upstream.model,
            base_url=upstream.base_url,
            has_key=bool(upstream.api_key),
        )

    @app.post("/v1/audio/transcriptions", response_model=TranscriptionResponse)
    @app.post("/audio/transcriptions", response_model=TranscriptionResponse)
    async def transcriptions(request: Request):
        upload = await request.app.state.ingestor.from_request(headers=request.headers, stream=request.stream())
        try:
            result = await request.app.state.pipeline.run(upload)
        except TranscriptionError:
            raise
        except Exception as exc:
            logger.exception("transcribe.failed", extra={"path": request.url.path})
            return _error_response(500, str(exc) or type(exc).__name__)
        return TranscriptionResponse(text=result.text)

    @app.on_event("shutdown")
    async def _on_shutdown() -> None:
        await app.state.pipeline.upstream.close()

    return app


app = create_app()
