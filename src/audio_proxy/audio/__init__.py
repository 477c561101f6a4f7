"""Audio ingestion, classification and normalization."""

from .formats import infer_format
from .ingest import IngestLimits, MultipartIngestor
from .transcoder import AudioNormalizer, FfmpegNormalizer, scratch_workspace
from .types import AudioFormat, TranscodeOutcome, UploadedAudio

__all__ = [
    "infer_format",
    "IngestLimits",
    "MultipartIngestor",
    "AudioNormalizer",
    "FfmpegNormalizer",
    "scratch_workspace",
    "AudioFormat",
    "TranscodeOutcome",
    "UploadedAudio",
]
