"""Audio transcription via LiteLLM (Whisper-compatible models).

The file size is checked before any API call and the provider API key is
validated up front, so an oversized or unauthenticated file fails fast.
"""

from __future__ import annotations

import logging
from pathlib import Path

import litellm

from notesync.index.embeddings import validate_api_key
from notesync.loaders.base import BaseLoader

logger = logging.getLogger(__name__)

_DEFAULT_MODEL = "openai/whisper-1"


class AudioLoader(BaseLoader):
    """Transcribe an audio file and return the transcript text.

    Args:
        model: LiteLLM transcription model string (provider/model format).
        max_mb: Upload limit in megabytes; larger files are rejected.
        num_retries: Retries on transient API errors.
    """

    extensions = frozenset({".mp3", ".wav", ".m4a", ".ogg", ".flac", ".mp4", ".webm", ".mpga"})

    def __init__(
        self,
        model: str = _DEFAULT_MODEL,
        max_mb: float = 25.0,
        num_retries: int = 3,
    ) -> None:
        self.model = model
        self.max_mb = max_mb
        self.num_retries = num_retries

    def load(self, path: Path) -> str:
        size_mb = path.stat().st_size / (1024 * 1024)
        if size_mb > self.max_mb:
            raise ValueError(
                f"audio file is {size_mb:.1f} MB, over the {self.max_mb:.0f} MB limit"
            )
        validate_api_key(self.model)

        logger.info("Transcribing %s with %s", path.name, self.model)
        with path.open("rb") as audio_file:
            response = litellm.transcription(
                model=self.model,
                file=audio_file,
                num_retries=self.num_retries,
            )
        return response.text or ""
