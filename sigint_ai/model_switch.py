"""Unload-then-warm protocol for changing the active chat model."""

from __future__ import annotations

import logging
import threading
from typing import Optional

from .catalog import ModelCatalog
from .event_log import EventLog
from .exceptions import ChatClientError
from .interfaces import ChatService
from .models import Message

logger = logging.getLogger(__name__)

WARMUP_MESSAGES = (Message(role="user", content="Hello"),)


class ModelSwitcher:
    """
    Runs at most one model switch at a time on a background thread.

    The protocol is strictly sequential: unload the previous model (if it was
    a valid catalog entry), warm the new one with a throwaway chat request,
    then stay busy for ``settle_delay`` seconds. Step failures are logged and
    the remaining steps still run. A switch requested while another is in
    flight is rejected.

    Usage:
        switcher = ModelSwitcher(client, catalog, log, settle_delay=2.0)
        if switcher.switch_model(new_index, old_index):
            ...  # disable model selection while switcher.busy
    """

    def __init__(
        self,
        chat_service: ChatService,
        catalog: ModelCatalog,
        event_log: EventLog,
        *,
        settle_delay: float = 2.0,
    ) -> None:
        self._service = chat_service
        self._catalog = catalog
        self._log = event_log
        self._settle_delay = settle_delay
        self._lock = threading.Lock()
        self._busy = False
        self._status = ""
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def busy(self) -> bool:
        with self._lock:
            return self._busy

    @property
    def status_message(self) -> str:
        with self._lock:
            return self._status

    def switch_model(self, new_index: Optional[int], old_index: Optional[int]) -> bool:
        """
        Start switching from ``old_index`` to ``new_index`` in the background.

        Both indices are resolved against the catalog now, so later catalog
        refreshes do not change which models the protocol touches.

        Returns:
            True if the switch was started, False if one is already running.
        """
        with self._lock:
            if self._busy:
                logger.info("Model switch already in progress; request ignored")
                return False
            self._busy = True
            self._stop.clear()
            new_name = self._catalog.name_at(new_index)
            old_name = self._catalog.name_at(old_index)
            self._thread = threading.Thread(
                target=self.run_protocol,
                args=(new_name, old_name),
                kwargs={"claimed": True},
                name="model-switch",
                daemon=True,
            )
            thread = self._thread
        thread.start()
        return True

    def run_protocol(self, new_model: Optional[str], old_model: Optional[str], *, claimed: bool = False) -> bool:
        """
        Execute the switch synchronously on the calling thread.

        Returns:
            False if another switch held the busy flag, True otherwise.
        """
        if not claimed:
            with self._lock:
                if self._busy:
                    return False
                self._busy = True
                self._stop.clear()

        try:
            if old_model is not None:
                self._unload(old_model)
            if new_model is None:
                return True
            self._warm(new_model)
            self._stop.wait(self._settle_delay)
        finally:
            with self._lock:
                self._status = ""
                self._busy = False
        return True

    def join(self, timeout: Optional[float] = None) -> None:
        thread = self._thread
        if thread is not None:
            thread.join(timeout)

    def stop(self, timeout: Optional[float] = None) -> None:
        """Cut the settle delay short and wait for an in-flight switch."""
        self._stop.set()
        self.join(timeout)

    def _unload(self, model: str) -> None:
        self._set_status(f"Unloading model: {model}...")
        try:
            self._service.unload(model)
        except ChatClientError as exc:
            self._log.error(f"[OLLAMA Error] Failed to unload model: {model} - {exc}")
            return
        self._log.append(f"[OLLAMA] Model '{model}' unloaded.")

    def _warm(self, model: str) -> None:
        self._set_status(f"Warming model: {model}...")
        try:
            self._service.chat(model, WARMUP_MESSAGES)
        except ChatClientError as exc:
            with self._lock:
                self._status = f"Failed to warm model: {model}"
            self._log.error(f"[OLLAMA Error] Failed to warm model: {model} - {exc}")
            return
        with self._lock:
            self._status = f"Model '{model}' is ready."
        self._log.append(f"[OLLAMA] Model '{model}' is ready.")

    def _set_status(self, status: str) -> None:
        with self._lock:
            self._status = status
        self._log.append(f"[OLLAMA] {status}")
