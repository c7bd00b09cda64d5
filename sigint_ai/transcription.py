"""Background worker that turns buffered audio into transcripts."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from .audio import AudioAccumulator
from .event_log import EventLog
from .exceptions import TranscriptionError
from .interfaces import SpeechToText

logger = logging.getLogger(__name__)


class TranscriptionWorker:
    """
    Periodically drains the accumulator and runs speech-to-text on the chunk.

    Each iteration is Idle -> Draining -> Inferring -> Idle. A chunk is only
    taken once more than ``threshold`` samples are buffered. Engine failures
    drop the chunk silently. Segment texts are joined and stripped before the
    length check, so transcripts whose stripped text is no longer than
    ``min_chars`` are discarded (a lone " a" counts as one character). Kept
    transcripts are logged as ``[WHISPER] <text>`` and handed to
    ``on_transcript``.

    Usage:
        worker = TranscriptionWorker(acc, stt, log, conversation.ingest_transcript, threshold=80000)
        worker.start()
        ...
        worker.stop()
    """

    def __init__(
        self,
        accumulator: AudioAccumulator,
        stt: SpeechToText,
        event_log: EventLog,
        on_transcript: Optional[Callable[[str], object]] = None,
        *,
        threshold: int = 80000,
        interval: float = 0.5,
        min_chars: int = 1,
    ) -> None:
        self._accumulator = accumulator
        self._stt = stt
        self._log = event_log
        self._on_transcript = on_transcript
        self._threshold = threshold
        self._interval = interval
        self._min_chars = min_chars
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="transcription-worker", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        """Signal the loop to exit and wait for the current iteration to finish."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            if not self._thread.is_alive():
                self._thread = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_once(self) -> Optional[str]:
        """Drain and transcribe once. Returns the emitted transcript, if any."""
        samples = self._accumulator.drain_if_ready(self._threshold)
        if samples is None:
            return None

        try:
            segments = self._stt.transcribe(samples)
        except TranscriptionError as exc:
            logger.debug("Dropping %d samples after inference failure: %s", samples.size, exc)
            return None

        transcript = "".join(segment.text for segment in segments).strip()
        if len(transcript) <= self._min_chars:
            return None

        self._log.append(f"[WHISPER] {transcript}")
        if self._on_transcript is not None:
            self._on_transcript(transcript)
        return transcript

    def _run(self) -> None:
        logger.debug("Transcription worker started")
        while not self._stop.is_set():
            try:
                self.run_once()
            except Exception as exc:  # pragma: no cover
                logger.exception("Unexpected error in transcription worker: %s", exc)
            self._stop.wait(self._interval)
        logger.debug("Transcription worker stopped")
