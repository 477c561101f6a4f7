"""OpenRouter-backed audio transcription proxy."""

__version__ = "0.1.0"
