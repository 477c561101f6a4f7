from __future__ import annotations

"""Runtime configuration helpers for the audio proxy."""

import os
from dataclasses import dataclass

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_MODEL = "openai/gpt-audio-mini"


def _env_str(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _env_optional_int(name: str) -> int | None:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return None
    return parsed if parsed > 0 else None


def _env_optional_float(name: str) -> float | None:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return None
    return parsed if parsed > 0 else None


@dataclass(frozen=True)
class ServerSettings:
    bind: str
    port: int
    log_level: str


@dataclass(frozen=True)
class UpstreamSettings:
    api_key: str | None
    base_url: str
    model: str
    referer: str
    title: str
    timeout: float | None


@dataclass(frozen=True)
class TranscodeSettings:
    ffmpeg_binary: str
    timeout: float | None


@dataclass(frozen=True)
class IngestSettings:
    max_bytes: int | None


@dataclass(frozen=True)
class Settings:
    server: ServerSettings
    upstream: UpstreamSettings
    transcode: TranscodeSettings
    ingest: IngestSettings


def load_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""

    server_settings = ServerSettings(
        bind=_env_str("AUDIO_PROXY_BIND", "127.0.0.1"),
        port=_env_int("AUDIO_PROXY_PORT", 18793),
        log_level=_env_str("AUDIO_PROXY_LOG_LEVEL", "INFO").upper(),
    )

    upstream_settings = UpstreamSettings(
        api_key=os.getenv("OPENROUTER_API_KEY") or None,
        base_url=_env_str("OPENROUTER_BASE_URL", DEFAULT_BASE_URL).rstrip("/"),
        model=_env_str("AUDIO_PROXY_MODEL", DEFAULT_MODEL),
        referer=_env_str("AUDIO_PROXY_REFERER", "https://openclaw.ai"),
        title=_env_str("AUDIO_PROXY_TITLE", "OpenClaw Audio Proxy"),
        timeout=_env_optional_float("AUDIO_PROXY_UPSTREAM_TIMEOUT"),
    )

    transcode_settings = TranscodeSettings(
        ffmpeg_binary=_env_str("AUDIO_PROXY_FFMPEG", "ffmpeg"),
        timeout=_env_optional_float("AUDIO_PROXY_TRANSCODE_TIMEOUT"),
    )

    ingest_settings = IngestSettings(
        max_bytes=_env_optional_int("AUDIO_PROXY_MAX_BYTES"),
    )

    return Settings(
        server=server_settings,
        upstream=upstream_settings,
        transcode=transcode_settings,
        ingest=ingest_settings,
    )


settings = load_settings()

__all__ = [
    "Settings",
    "ServerSettings",
    "UpstreamSettings",
    "TranscodeSettings",
    "IngestSettings",
    "settings",
    "load_settings",
]
