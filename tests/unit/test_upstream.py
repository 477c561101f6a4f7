import json

import httpx
import pytest

from audio_proxy.audio.types import AudioFormat
from audio_proxy.errors import UpstreamAuthError, UpstreamHttpError, UpstreamSchemaError
from audio_proxy.upstream import DEFAULT_PROMPT, OpenRouterClient, build_messages


def _completion(content):
    return {
        "id": "gen-1",
        "object": "chat.completion",
        "created": 0,
        "model": "openai/gpt-audio-mini",
        "choices": [
            {
                "index": 0,
                "finish_reason": "stop",
                "message": {"role": "assistant", "content": content},
            }
        ],
    }


class RecordingTransport:
    def __init__(self, response: httpx.Response | Exception) -> None:
        self.response = response
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


def _client(cfg, transport: RecordingTransport) -> OpenRouterClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(transport))
    return OpenRouterClient(cfg, http_client=http_client)


def test_build_messages_uses_default_prompt_and_snake_case_audio():
    messages = build_messages(audio_b64="QUJD", fmt=AudioFormat.WAV)

    assert messages == [
        {
            "role": "user",
            "content": [
                {"type": "text", "text": DEFAULT_PROMPT},
                {"type": "input_audio", "input_audio": {"data": "QUJD", "format": "wav"}},
            ],
        }
    ]


@pytest.mark.asyncio
async def test_transcribe_sends_chat_completion_request(settings):
    transport = RecordingTransport(httpx.Response(200, json=_completion("  hello world \n")))
    client = _client(settings.upstream, transport)

    text = await client.transcribe(audio_b64="UklGRg==", fmt=AudioFormat.WAV, prompt="Only digits")
    await client.close()

    assert text == "hello world"
    assert len(transport.requests) == 1
    request = transport.requests[0]
    assert request.method == "POST"
    assert str(request.url) == "https://openrouter.test/api/v1/chat/completions"
    assert request.headers["authorization"] == "Bearer test-key"
    assert request.headers["http-referer"] == "https://openclaw.ai"
    assert request.headers["x-title"] == "OpenClaw Audio Proxy"
    assert request.headers["content-type"].startswith("application/json")

    body = json.loads(request.content)
    assert body["model"] == "openai/gpt-audio-mini"
    assert body["messages"] == [
        {
            "role": "user",
            "content": [
                {"type": "text", "text": "Only digits"},
                {"type": "input_audio", "input_audio": {"data": "UklGRg==", "format": "wav"}},
            ],
        }
    ]


@pytest.mark.asyncio
async def test_transcribe_without_key_never_touches_network(keyless_settings):
    transport = RecordingTransport(httpx.Response(200, json=_completion("unused")))
    client = _client(keyless_settings.upstream, transport)

    with pytest.raises(UpstreamAuthError, match="OPENROUTER_API_KEY is not set"):
        await client.transcribe(audio_b64="QUJD", fmt=AudioFormat.WAV)

    assert transport.requests == []


@pytest.mark.asyncio
async def test_transcribe_maps_error_status_with_body(settings):
    transport = RecordingTransport(httpx.Response(500, text="provider exploded"))
    client = _client(settings.upstream, transport)

    with pytest.raises(UpstreamHttpError) as excinfo:
        await client.transcribe(audio_b64="QUJD", fmt=AudioFormat.WAV)

    assert excinfo.value.upstream_status == 500
    assert excinfo.value.message == "OpenRouter error (HTTP 500): provider exploded"
    assert excinfo.value.status_code == 500
    assert len(transport.requests) == 1


@pytest.mark.asyncio
async def test_transcribe_error_status_without_body_uses_reason(settings):
    transport = RecordingTransport(httpx.Response(429))
    client = _client(settings.upstream, transport)

    with pytest.raises(UpstreamHttpError, match=r"HTTP 429\): Too Many Requests"):
        await client.transcribe(audio_b64="QUJD", fmt=AudioFormat.WAV)


@pytest.mark.asyncio
async def test_transcribe_connection_failure(settings):
    transport = RecordingTransport(httpx.ConnectError("connection refused"))
    client = _client(settings.upstream, transport)

    with pytest.raises(UpstreamHttpError, match="OpenRouter request failed") as excinfo:
        await client.transcribe(audio_b64="QUJD", fmt=AudioFormat.WAV)

    assert excinfo.value.upstream_status is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        _completion("   "),
        _completion(None),
        {"id": "gen-1", "object": "chat.completion", "created": 0, "model": "m", "choices": []},
        {"id": "gen-1", "object": "chat.completion", "created": 0, "model": "m"},
        {"id": "gen-1", "object": "chat.completion", "created": 0, "model": "m", "choices": {"a": 1}},
    ],
)
async def test_transcribe_rejects_missing_transcript(settings, payload):
    transport = RecordingTransport(httpx.Response(200, json=payload))
    client = _client(settings.upstream, transport)

    with pytest.raises(UpstreamSchemaError, match="missing transcript text"):
        await client.transcribe(audio_b64="QUJD", fmt=AudioFormat.WAV)
