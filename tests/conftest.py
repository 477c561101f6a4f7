"""
Shared fixtures for the audio proxy test suite.
"""

import dataclasses
import stat
import sys
import textwrap
from pathlib import Path
from typing import Sequence

import pytest

from audio_proxy.settings import (
    IngestSettings,
    ServerSettings,
    Settings,
    TranscodeSettings,
    UpstreamSettings,
)


def _default_settings() -> Settings:
    return Settings(
        server=ServerSettings(bind="127.0.0.1", port=18793, log_level="INFO"),
        upstream=UpstreamSettings(
            api_key="test-key",
            base_url="https://openrouter.test/api/v1",
            model="openai/gpt-audio-mini",
            referer="https://openclaw.ai",
            title="OpenClaw Audio Proxy",
            timeout=None,
        ),
        transcode=TranscodeSettings(ffmpeg_binary="ffmpeg", timeout=None),
        ingest=IngestSettings(max_bytes=None),
    )


@pytest.fixture
def settings() -> Settings:
    return _default_settings()


@pytest.fixture
def keyless_settings() -> Settings:
    cfg = _default_settings()
    return dataclasses.replace(cfg, upstream=dataclasses.replace(cfg.upstream, api_key=None))


_FAKE_FFMPEG = textwrap.dedent(
    """
    import os
    import shutil
    import sys
    import time

    args = sys.argv[1:]
    src = args[args.index("-i") + 1]
    dst = args[-1]
    log_path = os.environ.get("FAKE_FFMPEG_LOG")
    if log_path:
        with open(log_path, "a", encoding="utf-8") as fh:
            fh.write(os.path.dirname(src) + "\\n")
    mode = os.environ.get("FAKE_FFMPEG_MODE", "copy")
    if mode == "fail":
        sys.stderr.write("  in.ogg: Invalid data found when processing input  \\n")
        sys.exit(1)
    if mode == "silent-fail":
        sys.exit(3)
    if mode == "no-output":
        sys.exit(0)
    time.sleep(float(os.environ.get("FAKE_FFMPEG_DELAY", "0")))
    shutil.copyfile(src, dst)
    """
)


@pytest.fixture
def fake_ffmpeg(tmp_path: Path) -> Path:
    """Executable stand-in for ffmpeg that copies its input to its output."""

    script = tmp_path / "fake-ffmpeg"
    script.write_text(f"#!{sys.executable}\n{_FAKE_FFMPEG}", encoding="utf-8")
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return script


@pytest.fixture
def scratch_root(tmp_path: Path) -> Path:
    root = tmp_path / "scratch"
    root.mkdir()
    return root


def build_multipart(
    *,
    files: Sequence[tuple[str, str, str, bytes]] = (),
    fields: dict[str, str] | None = None,
    boundary: str = "audioproxyboundary",
) -> tuple[bytes, str]:
    """Encode a multipart/form-data body; returns (body, content_type)."""

    chunks: list[bytes] = []
    for name, value in (fields or {}).items():
        chunks.append(
            (
                f"--{boundary}\r\n"
                f'Content-Disposition: form-data; name="{name}"\r\n\r\n'
                f"{value}\r\n"
            ).encode("utf-8")
        )
    for name, filename, content_type, data in files:
        chunks.append(
            (
                f"--{boundary}\r\n"
                f'Content-Disposition: form-data; name="{name}"; filename="{filename}"\r\n'
                f"Content-Type: {content_type}\r\n\r\n"
            ).encode("utf-8")
            + data
            + b"\r\n"
        )
    chunks.append(f"--{boundary}--\r\n".encode("utf-8"))
    return b"".join(chunks), f"multipart/form-data; boundary={boundary}"


@pytest.fixture
def multipart():
    return build_multipart
