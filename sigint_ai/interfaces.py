"""Protocol interfaces for dependency injection."""

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Protocol, Sequence

import numpy as np

from .models import ChatResponse, Message, Segment


class SpeechToText(Protocol):
    """Transcribes mono float32 audio into timestamped segments."""

    def load(self) -> None:
        """Load the engine context. Called once before the first transcription."""

    def transcribe(self, samples: np.ndarray) -> List[Segment]:
        """
        Run one inference pass over ``samples``.

        Raises:
            TranscriptionError: When the engine fails on this chunk.
        """

    def close(self) -> None:
        """Release the engine context. Called once at shutdown."""


class ChatService(Protocol):
    """Talks to the external chat service (Ollama-compatible)."""

    def is_reachable(self) -> bool:
        """Return True when the service accepts connections."""

    def list_models(self) -> List[str]:
        """Return the model identifiers the service can load."""

    def chat(
        self,
        model: str,
        messages: Sequence[Message],
        *,
        options: Optional[Mapping[str, Any]] = None,
    ) -> ChatResponse:
        """Send a non-streaming chat request and return the assistant reply."""

    def unload(self, model: str) -> None:
        """Ask the service to evict ``model`` from memory."""


class AudioSink(Protocol):
    """Receives captured audio from an audio source."""

    def __call__(self, samples: np.ndarray) -> None:
        """Accept a block of mono float32 samples."""
