"""Bounded chat history and the exchanges that grow it."""

from __future__ import annotations

import logging
import threading
from typing import Dict, List, Optional, Sequence, Tuple, Union

from .catalog import ModelCatalog
from .event_log import EventLog
from .exceptions import ChatClientError
from .interfaces import ChatService
from .models import Message, Role

logger = logging.getLogger(__name__)

TRANSCRIPT_TEMPLATE = 'Intercepted Transmission (HEARD): "{text}"'


class ConversationManager:
    """
    Owns the conversation history and sends it to the chat service.

    Two entry points feed the same pipeline: :meth:`ingest_transcript` for
    speech picked up by the transcription worker and :meth:`send_user_message`
    for operator input. Each exchange appends the user turn under the history
    lock, releases it for the network call, then re-acquires it to commit the
    reply. Concurrent exchanges therefore interleave in commit order.

    Both entry points do nothing unless the feature is enabled, the service is
    available and the model catalog is loaded.

    The history never holds more than ``max_history`` turns; the oldest
    non-system turn is evicted first and the system turn always stays first.
    """

    def __init__(
        self,
        chat_service: ChatService,
        catalog: ModelCatalog,
        event_log: EventLog,
        *,
        service_available: threading.Event,
        system_prompt: Optional[str] = None,
        max_history: int = 10,
        temperature: float = 0.4,
        num_predict: int = 80,
        enabled: bool = False,
    ) -> None:
        if max_history < 2:
            raise ValueError("max_history must allow a system turn and one more turn")
        self._service = chat_service
        self._catalog = catalog
        self._log = event_log
        self._available = service_available
        self._system_prompt = system_prompt
        self._max_history = max_history
        self._options: Dict[str, Union[float, int]] = {
            "temperature": temperature,
            "num_predict": num_predict,
        }
        self._enabled = threading.Event()
        if enabled:
            self._enabled.set()

        self._lock = threading.Lock()
        self._history: List[Message] = []
        self._seeded = False

    @property
    def enabled(self) -> bool:
        return self._enabled.is_set()

    @enabled.setter
    def enabled(self, value: bool) -> None:
        if value:
            self._enabled.set()
        else:
            self._enabled.clear()

    @property
    def ready(self) -> bool:
        """True when an exchange would actually reach the chat service."""
        return self._enabled.is_set() and self._available.is_set() and self._catalog.loaded

    @property
    def history(self) -> Sequence[Message]:
        """Read-only snapshot of the current history."""
        with self._lock:
            return tuple(self._history)

    def reset(self) -> None:
        """Forget the conversation; the system prompt is re-seeded on the next turn."""
        with self._lock:
            self._history = []
            self._seeded = False

    def ingest_transcript(self, text: str) -> Optional[str]:
        """
        Forward an intercepted transcript to the model.

        Returns:
            The assistant reply, or None when gated off or the request failed.
            Failures are logged, never raised.
        """
        exchange = self._begin_exchange(TRANSCRIPT_TEMPLATE.format(text=text))
        if exchange is None:
            return None

        model, messages = exchange
        try:
            reply = self._request(model, messages)
        except ChatClientError as exc:
            self._log.error(f"[AI Error] HTTP or JSON error: {exc}")
            return None

        self._commit_reply(reply)
        self._log.append(f"[RADAR] {reply}")
        return reply

    def send_user_message(self, text: str) -> Optional[str]:
        """
        Send an operator message and return the reply.

        Returns:
            The assistant reply, or None when the message is empty or the
            conversation is gated off.

        Raises:
            ChatClientError: If the request failed. The user turn stays in history.
        """
        text = text.strip()
        if not text:
            return None

        self._log.append(f"OPERATOR: {text}")
        exchange = self._begin_exchange(text)
        if exchange is None:
            return None

        model, messages = exchange
        try:
            reply = self._request(model, messages)
        except ChatClientError as exc:
            self._log.error(f"[AI Error] HTTP or JSON error: {exc}")
            raise

        self._commit_reply(reply)
        self._log.append(f"[AI] {reply}")
        return reply

    def _begin_exchange(self, content: str) -> Optional[Tuple[str, List[Message]]]:
        if not self.ready:
            return None
        model = self._catalog.selected_model
        if model is None:
            return None

        with self._lock:
            if not self._seeded:
                if self._system_prompt:
                    self._history.insert(0, Message(role="system", content=self._system_prompt))
                self._seeded = True
            self._append("user", content)
            return model, list(self._history)

    def _request(self, model: str, messages: List[Message]) -> str:
        logger.debug("Sending %d turns to %s", len(messages), model)
        response = self._service.chat(model, messages, options=self._options)
        return response.text

    def _commit_reply(self, reply: str) -> None:
        with self._lock:
            self._append("assistant", reply)

    def _append(self, role: Role, content: str) -> None:
        # Caller holds self._lock.
        self._history.append(Message(role=role, content=content))
        while len(self._history) > self._max_history:
            self._history.pop(self._oldest_evictable())

    def _oldest_evictable(self) -> int:
        for index, message in enumerate(self._history):
            if message.role != "system":
                return index
        raise RuntimeError("history holds only system turns")
