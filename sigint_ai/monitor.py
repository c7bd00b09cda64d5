"""Polling loop that tracks chat service availability and its model catalog."""

from __future__ import annotations

import logging
import threading
from typing import Optional

from .catalog import ModelCatalog
from .event_log import EventLog
from .exceptions import ChatClientError
from .interfaces import ChatService

logger = logging.getLogger(__name__)


class ServiceMonitor:
    """
    Watches whether the chat service is up and loads its model list.

    Each tick probes reachability and updates the shared ``available`` flag.
    Transitions are logged once per edge, not on every poll. While the
    service is up and the catalog is not loaded, the model list is fetched;
    a failed fetch is retried on the next tick. When the service goes away
    the catalog is marked unloaded so it is fetched again on reconnection.
    """

    def __init__(
        self,
        chat_service: ChatService,
        catalog: ModelCatalog,
        event_log: EventLog,
        available: threading.Event,
        *,
        poll_interval: float = 1.0,
        default_model: Optional[str] = None,
    ) -> None:
        self._service = chat_service
        self._catalog = catalog
        self._log = event_log
        self._available = available
        self._poll_interval = poll_interval
        self._default_model = default_model
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def available(self) -> bool:
        return self._available.is_set()

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="service-monitor", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            if not self._thread.is_alive():
                self._thread = None

    def poll_once(self) -> bool:
        """Run one monitor tick and return the current availability."""
        reachable = self._service.is_reachable()

        if reachable and not self._available.is_set():
            self._available.set()
            self._log.append("[OLLAMA Status Check] Ollama detected as running.")
        elif not reachable and self._available.is_set():
            self._available.clear()
            self._catalog.mark_unloaded()
            self._log.append("[OLLAMA Status Check] Ollama not detected as running.", level=logging.WARNING)

        if reachable and not self._catalog.loaded:
            self.fetch_catalog()
        return reachable

    def fetch_catalog(self) -> bool:
        """Fetch the model list into the catalog. Returns True if any model was found."""
        try:
            names = self._service.list_models()
        except ChatClientError as exc:
            self._log.error(f"[OLLAMA Error] Failed to fetch models: {exc}")
            self._catalog.mark_unloaded()
            return False

        if not names:
            self._log.append("[OLLAMA] No models found.", level=logging.WARNING)
            self._catalog.replace([], default_model=self._default_model)
            return False

        self._log.append("[OLLAMA] Detected models:")
        for name in names:
            self._log.append(f"  - {name}")
        snapshot = self._catalog.replace(names, default_model=self._default_model)
        logger.debug("Catalog loaded, selected %s", snapshot.selected_model)
        return True

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                self.poll_once()
            except Exception as exc:  # pragma: no cover
                logger.exception("Unexpected error in service monitor: %s", exc)
            self._stop.wait(self._poll_interval)
