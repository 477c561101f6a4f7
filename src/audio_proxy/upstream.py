from __future__ import annotations

"""Chat-completions client that turns inline audio into a transcript."""

import logging
from typing import Any, Dict, List, Optional

import httpx
import openai
from openai import AsyncOpenAI

from .audio.types import AudioFormat
from .errors import UpstreamAuthError, UpstreamHttpError, UpstreamSchemaError
from .settings import UpstreamSettings

logger = logging.getLogger(__name__)

DEFAULT_PROMPT = (
    "Transcribe the audio verbatim. Preserve punctuation. Do not add commentary. "
    "Output only the transcript."
)

ChatMessage = Dict[str, Any]


def build_messages(*, audio_b64: str, fmt: AudioFormat | str, prompt: Optional[str] = None) -> List[ChatMessage]:
    """Build the single user message carrying the instruction and the audio."""

    fmt_value = fmt.value if isinstance(fmt, AudioFormat) else str(fmt)
    return [
        {
            "role": "user",
            "content": [
                {"type": "text", "text": prompt or DEFAULT_PROMPT},
                {
                    "type": "input_audio",
                    # Provider schema expects snake_case here.
                    "input_audio": {"data": audio_b64, "format": fmt_value},
                },
            ],
        }
    ]


class OpenRouterClient:
    """Thin wrapper around AsyncOpenAI pointed at an OpenRouter-compatible base URL."""

    def __init__(self, cfg: UpstreamSettings, *, http_client: Optional[httpx.AsyncClient] = None) -> None:
        self._cfg = cfg
        self._http_client = http_client
        self._client: Optional[AsyncOpenAI] = None

    def _ensure_client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self._cfg.api_key,
                base_url=self._cfg.base_url,
                default_headers={
                    "HTTP-Referer": self._cfg.referer,
                    "X-Title": self._cfg.title,
                },
                max_retries=0,
                timeout=self._cfg.timeout,
                http_client=self._http_client,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None

    async def transcribe(self, *, audio_b64: str, fmt: AudioFormat | str, prompt: Optional[str] = None) -> str:
        if not self._cfg.api_key:
            raise UpstreamAuthError("OPENROUTER_API_KEY is not set in environment")

        client = self._ensure_client()
        messages = build_messages(audio_b64=audio_b64, fmt=fmt, prompt=prompt)
        logger.info(
            "upstream.request",
            extra={"model": self._cfg.model, "format": messages[0]["content"][1]["input_audio"]["format"]},
        )

        try:
            completion = await client.chat.completions.create(model=self._cfg.model, messages=messages)
        except openai.APIStatusError as exc:
            body = _response_text(exc)
            logger.warning("upstream.http_error", extra={"status": exc.status_code})
            raise UpstreamHttpError(
                f"OpenRouter error (HTTP {exc.status_code}): {body or exc.response.reason_phrase}",
                upstream_status=exc.status_code,
                body=body,
            ) from exc
        except openai.APIConnectionError as exc:
            logger.warning("upstream.connection_error", extra={"error": repr(exc)})
            raise UpstreamHttpError(f"OpenRouter request failed: {exc}") from exc
        except (openai.APIResponseValidationError, ValueError) as exc:
            raise UpstreamSchemaError("OpenRouter response missing transcript text") from exc

        transcript = _extract_transcript(completion)
        if transcript is None:
            logger.warning("upstream.empty", extra={"model": self._cfg.model})
            raise UpstreamSchemaError("OpenRouter response missing transcript text")
        return transcript


def _response_text(exc: openai.APIStatusError) -> str:
    try:
        return exc.response.text
    except Exception:  # pragma: no cover - body already consumed or undecodable
        return ""


def _extract_transcript(completion: Any) -> Optional[str]:
    choices = getattr(completion, "choices", None)
    if not isinstance(choices, (list, tuple)) or not choices:
        return None
    message = getattr(choices[0], "message", None)
    content = getattr(message, "content", None)
    if not isinstance(content, str) or not content.strip():
        return None
    return content.strip()


__all__ = ["OpenRouterClient", "DEFAULT_PROMPT", "build_messages"]
