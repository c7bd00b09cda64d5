"""Core session: wires audio, transcription, chat, monitoring and model switching."""

from __future__ import annotations

import logging
import threading
from typing import List, Optional

from .audio import AudioAccumulator, Samples
from .catalog import ModelCatalog
from .config import AppConfig
from .conversation import ConversationManager
from .event_log import EventLog
from .exceptions import ChatClientError
from .interfaces import ChatService, SpeechToText
from .model_switch import ModelSwitcher
from .monitor import ServiceMonitor
from .transcription import TranscriptionWorker

logger = logging.getLogger(__name__)


class SigintSession:
    """
    Owns every component of one listening/chat session.

    The control surface talks only to this class: it toggles listening and
    auto-chat, selects models, sends operator messages, and reads state for
    display. Audio sources push samples through :meth:`push_audio`, which
    drops them while listening is off.

    Usage:
        session = SigintSession(
            AppConfig.from_env(),
            chat_service=OllamaHttpClient("http://localhost:11434"),
            stt=WhisperSpeechToText(model="tiny.en"),
        )
        with session:
            session.set_listening(True)
            session.set_auto_chat_enabled(True)
            ...
    """

    def __init__(
        self,
        config: AppConfig,
        *,
        chat_service: ChatService,
        stt: SpeechToText,
        event_log: Optional[EventLog] = None,
    ) -> None:
        self._config = config
        self._stt = stt
        self._log = event_log or EventLog()
        self._listening = threading.Event()
        self._service_available = threading.Event()
        self._select_lock = threading.Lock()
        self._started = False
        self._stt_loaded = False

        self._accumulator = AudioAccumulator()
        self._catalog = ModelCatalog()
        self._conversation = ConversationManager(
            chat_service,
            self._catalog,
            self._log,
            service_available=self._service_available,
            system_prompt=config.system_prompt,
            max_history=config.max_history,
            temperature=config.temperature,
            num_predict=config.num_predict,
        )
        self._worker = TranscriptionWorker(
            self._accumulator,
            stt,
            self._log,
            self._conversation.ingest_transcript,
            threshold=config.chunk_samples,
            interval=config.worker_interval,
            min_chars=config.min_transcript_chars,
        )
        self._monitor = ServiceMonitor(
            chat_service,
            self._catalog,
            self._log,
            self._service_available,
            poll_interval=config.poll_interval,
            default_model=config.default_model,
        )
        self._switcher = ModelSwitcher(
            chat_service,
            self._catalog,
            self._log,
            settle_delay=config.settle_delay,
        )
        self._log.append("SIGINT AI session initialized.")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def start(self) -> None:
        """Load the speech engine and start the monitor and worker threads."""
        if self._started:
            return
        self._log.append(f"Loading Whisper model: {self._config.whisper_model}")
        try:
            self._stt.load()
        except (OSError, RuntimeError) as exc:
            self._log.error(f"Error: Failed to load Whisper model: {exc}")
        else:
            self._stt_loaded = True
            self._log.append("Whisper model loaded successfully.")
            self._worker.start()

        self._monitor.start()
        self._started = True

    def stop(self) -> None:
        """Stop every thread, then release the speech engine exactly once."""
        self._listening.clear()
        self._monitor.stop()
        self._worker.stop()
        self._switcher.stop()
        if self._stt_loaded:
            self._stt.close()
            self._stt_loaded = False
        self._started = False

    def __enter__(self) -> "SigintSession":
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def push_audio(self, samples: Samples) -> None:
        """Audio source entrypoint; samples are only buffered while listening."""
        if not self._listening.is_set():
            return
        self._accumulator.push(samples)

    def set_listening(self, enabled: bool) -> None:
        if enabled:
            self._listening.set()
        else:
            self._listening.clear()
            self._accumulator.clear()

    def set_auto_chat_enabled(self, enabled: bool) -> None:
        self._conversation.enabled = enabled

    def select_model(self, index: int) -> bool:
        """
        Select the model at ``index`` and start the unload/warm switch.

        Returns:
            True if a switch was started. False when a switch is already in
            flight, the index is out of range, or it is already selected.
        """
        with self._select_lock:
            if self._switcher.busy:
                return False
            try:
                previous = self._catalog.select(index)
            except IndexError as exc:
                logger.warning("Ignoring model selection: %s", exc)
                return False
            if previous == index:
                return False
            return self._switcher.switch_model(index, previous)

    def send_message(self, text: str) -> Optional[str]:
        """
        Send an operator chat message.

        Request failures are already logged by the conversation manager, so
        they are reported here only as a None result.
        """
        if self._switcher.busy:
            self._log.append("[AI] Model switch in progress; message not sent.", level=logging.WARNING)
            return None
        try:
            return self._conversation.send_user_message(text)
        except ChatClientError:
            return None

    def reset_conversation(self) -> None:
        self._conversation.reset()
        self._log.append("Conversation history cleared.")

    # ------------------------------------------------------------------
    # State for the control surface
    # ------------------------------------------------------------------
    def log_lines(self) -> List[str]:
        return self._log.lines()

    def available_models(self) -> List[str]:
        return self._catalog.models

    def selected_model(self) -> Optional[str]:
        return self._catalog.selected_model

    def service_available(self) -> bool:
        return self._service_available.is_set()

    def models_loaded(self) -> bool:
        return self._catalog.loaded

    def switch_busy(self) -> bool:
        return self._switcher.busy

    def status_message(self) -> str:
        return self._switcher.status_message

    def listening(self) -> bool:
        return self._listening.is_set()

    def auto_chat_enabled(self) -> bool:
        return self._conversation.enabled

    @property
    def event_log(self) -> EventLog:
        return self._log

    @property
    def accumulator(self) -> AudioAccumulator:
        return self._accumulator

    @property
    def conversation(self) -> ConversationManager:
        return self._conversation

    @property
    def monitor(self) -> ServiceMonitor:
        return self._monitor

    @property
    def worker(self) -> TranscriptionWorker:
        return self._worker

    @property
    def switcher(self) -> ModelSwitcher:
        return self._switcher
