"""Shared fakes and fixtures for the test suite."""

from __future__ import annotations

import threading
import time
from typing import Any, Callable, List, Mapping, Optional, Sequence, Union

import numpy as np
import pytest

from sigint_ai.config import AppConfig
from sigint_ai.event_log import EventLog
from sigint_ai.models import ChatResponse, Message, Segment


class FakeChatService:
    """Records every network call; probes are counted separately."""

    def __init__(self, *, reachable: bool = True, models: Optional[List[str]] = None) -> None:
        self.reachable = reachable
        self.models: Union[List[str], Exception] = list(models or [])
        self.reply = "Copy that. OVER."
        self.chat_error: Optional[Exception] = None
        self.unload_error: Optional[Exception] = None
        self.calls: List[tuple] = []
        self.probes = 0
        self.chat_entered = threading.Event()
        self.release_chat: Optional[threading.Event] = None
        self._lock = threading.Lock()

    def is_reachable(self) -> bool:
        self.probes += 1
        return self.reachable

    def list_models(self) -> List[str]:
        self._record(("tags",))
        if isinstance(self.models, Exception):
            raise self.models
        return list(self.models)

    def chat(
        self,
        model: str,
        messages: Sequence[Message],
        *,
        options: Optional[Mapping[str, Any]] = None,
    ) -> ChatResponse:
        self._record(("chat", model, list(messages), dict(options) if options else None))
        self.chat_entered.set()
        if self.release_chat is not None:
            self.release_chat.wait(5)
        if self.chat_error is not None:
            raise self.chat_error
        return ChatResponse(text=self.reply, raw={"message": {"content": self.reply}})

    def unload(self, model: str) -> None:
        self._record(("unload", model))
        if self.unload_error is not None:
            raise self.unload_error

    def network_calls(self, kind: Optional[str] = None) -> List[tuple]:
        with self._lock:
            return [call for call in self.calls if kind is None or call[0] == kind]

    def _record(self, call: tuple) -> None:
        with self._lock:
            self.calls.append(call)


class FakeSpeechToText:
    """Returns scripted results, one per transcribe call."""

    def __init__(self, *results: Union[List[Segment], Exception]) -> None:
        self.results = list(results)
        self.chunks: List[np.ndarray] = []
        self.loads = 0
        self.closes = 0
        self.load_error: Optional[Exception] = None

    def load(self) -> None:
        self.loads += 1
        if self.load_error is not None:
            raise self.load_error

    def transcribe(self, samples: np.ndarray) -> List[Segment]:
        self.chunks.append(samples)
        result = self.results.pop(0) if self.results else []
        if isinstance(result, Exception):
            raise result
        return result

    def close(self) -> None:
        self.closes += 1


def segments(*texts: str) -> List[Segment]:
    return [Segment(start=float(i), end=float(i + 1), text=text) for i, text in enumerate(texts)]


def wait_for(predicate: Callable[[], bool], timeout: float = 2.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


@pytest.fixture()
def chat_service() -> FakeChatService:
    return FakeChatService(models=["llama3:8b"])


@pytest.fixture()
def event_log() -> EventLog:
    return EventLog()


@pytest.fixture()
def fast_config() -> AppConfig:
    return AppConfig(
        system_prompt="You are RADAR.",
        worker_interval=0.01,
        poll_interval=0.01,
        settle_delay=0.05,
        log_file=None,
    )
