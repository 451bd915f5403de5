"""
Purpose: speech-to-text integration. Allow voice-based inputs.
Optional capability: without an API key the app simply offers no recorder.
"""

from __future__ import annotations
import io
import logging
from typing import Optional

from openai import OpenAI, OpenAIError

logger = logging.getLogger(__name__)


class WhisperTranscriber:
    def __init__(self, client: OpenAI, *, model: str = "whisper-1"):
        self.client = client
        self.model = model

    def transcribe(self, wav_bytes: bytes) -> str:
        """Transcribe WAV audio bytes; recognition errors are logged, not raised."""
        try:
            with io.BytesIO(wav_bytes) as buf:
                buf.name = "input.wav"
                resp = self.client.audio.transcriptions.create(
                    model=self.model, file=buf
                )
        except OpenAIError:
            logger.exception("Speech recognition failed")
            return ""
        return (resp.text or "").strip()


def make_transcriber(
    api_key: Optional[str],
    *,
    api_base: Optional[str] = None,
    model: str = "whisper-1",
) -> Optional[WhisperTranscriber]:
    if not api_key:
        logger.info("No API key configured, voice input disabled")
        return None
    return WhisperTranscriber(OpenAI(api_key=api_key, base_url=api_base), model=model)
