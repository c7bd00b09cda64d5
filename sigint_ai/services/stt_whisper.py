"""Whisper-based STT adapter."""

from __future__ import annotations

import logging
from typing import List, Optional

import numpy as np

from ..exceptions import TranscriptionError
from ..interfaces import SpeechToText
from ..models import Segment

logger = logging.getLogger(__name__)


class WhisperSpeechToText(SpeechToText):
    """
    Speech-to-text implementation using OpenAI Whisper.

    Args:
        model: Whisper model name (e.g., "tiny.en", "base") or path to a checkpoint file.
        device: Device string passed to whisper (e.g., "cpu", "cuda").
        language: Language code used for decoding; None lets Whisper detect it.

    Notes:
        - Requires the `openai-whisper` package.
        - Expects mono float32 samples at 16 kHz in [-1.0, 1.0].
        - Decoding is greedy (temperature 0) and never translates.
    """

    def __init__(self, *, model: str = "tiny.en", device: Optional[str] = None, language: Optional[str] = "en") -> None:
        self.model_name = model
        self.device = device
        self.language = language
        self._model = None

    @property
    def model(self):
        if self._model is None:
            self.load()
        return self._model

    def load(self) -> None:
        if self._model is not None:
            return
        whisper = _lazy_import_whisper()
        self._model = whisper.load_model(self.model_name, device=self.device)
        logger.info("Loaded Whisper model %s", self.model_name)

    def transcribe(self, samples: np.ndarray) -> List[Segment]:
        if samples.size == 0:
            return []

        audio = np.ascontiguousarray(samples, dtype=np.float32)
        try:
            result = self.model.transcribe(
                audio,
                language=self.language,
                task="transcribe",
                temperature=0.0,
                fp16=False,
                verbose=None,
                condition_on_previous_text=False,
            )
        except (RuntimeError, ValueError) as exc:
            raise TranscriptionError(f"Whisper failed on a {audio.size}-sample chunk: {exc}") from exc

        return [
            Segment(start=float(seg["start"]), end=float(seg["end"]), text=str(seg["text"]))
            for seg in result.get("segments", [])
        ]

    def close(self) -> None:
        self._model = None


def _lazy_import_whisper():
    try:
        import whisper  # type: ignore
    except ImportError as exc:  # pragma: no cover - runtime dependency
        raise RuntimeError("whisper package is required for WhisperSpeechToText. Install via pip.") from exc
    return whisper
