"""Tests for the service availability monitor and catalog fetching."""

import threading
import time

import pytest

from conftest import FakeChatService, wait_for
from sigint_ai.catalog import ModelCatalog
from sigint_ai.exceptions import ChatClientError
from sigint_ai.monitor import ServiceMonitor

RUNNING = "[OLLAMA Status Check] Ollama detected as running."
STOPPED = "[OLLAMA Status Check] Ollama not detected as running."


@pytest.fixture()
def catalog():
    return ModelCatalog()


@pytest.fixture()
def available():
    return threading.Event()


def make_monitor(service, catalog, event_log, available, **kwargs):
    kwargs.setdefault("default_model", "llama3:8b")
    return ServiceMonitor(service, catalog, event_log, available, **kwargs)


def test_rising_edge_logged_once(catalog, event_log, available):
    service = FakeChatService(reachable=False, models=["llama3:8b"])
    monitor = make_monitor(service, catalog, event_log, available)

    assert monitor.poll_once() is False
    service.reachable = True
    for _ in range(5):
        monitor.poll_once()

    assert event_log.lines().count(RUNNING) == 1
    assert monitor.available


def test_falling_edge_logged_once_and_catalog_marked_unloaded(catalog, event_log, available):
    service = FakeChatService(models=["llama3:8b"])
    monitor = make_monitor(service, catalog, event_log, available)
    monitor.poll_once()
    assert catalog.loaded

    service.reachable = False
    for _ in range(3):
        monitor.poll_once()

    assert event_log.lines().count(STOPPED) == 1
    assert not available.is_set()
    assert not catalog.loaded


def test_catalog_fetch_selects_default_model(catalog, event_log, available):
    service = FakeChatService(models=["llama3:8b"])
    monitor = make_monitor(service, catalog, event_log, available)
    monitor.poll_once()

    assert catalog.loaded
    assert catalog.selected_model == "llama3:8b"
    lines = event_log.lines()
    assert "[OLLAMA] Detected models:" in lines
    assert "  - llama3:8b" in lines


def test_catalog_not_refetched_once_loaded(catalog, event_log, available):
    service = FakeChatService(models=["mistral:7b", "llama3:8b"])
    monitor = make_monitor(service, catalog, event_log, available)
    for _ in range(4):
        monitor.poll_once()
    assert len(service.network_calls("tags")) == 1
    assert catalog.selected_index == 1


def test_no_fetch_while_unreachable(catalog, event_log, available):
    service = FakeChatService(reachable=False, models=["llama3:8b"])
    monitor = make_monitor(service, catalog, event_log, available)
    monitor.poll_once()
    monitor.poll_once()
    assert service.network_calls() == []
    assert event_log.lines() == []


def test_fetch_failure_is_logged_and_retried(catalog, event_log, available):
    service = FakeChatService()
    service.models = ChatClientError("Response was not valid JSON")
    monitor = make_monitor(service, catalog, event_log, available)

    monitor.poll_once()
    assert not catalog.loaded
    assert any(line.startswith("[OLLAMA Error] Failed to fetch models") for line in event_log.lines())

    service.models = ["llama3:8b"]
    monitor.poll_once()
    assert len(service.network_calls("tags")) == 2
    assert catalog.loaded


def test_empty_model_list_leaves_catalog_unloaded(catalog, event_log, available):
    service = FakeChatService(models=[])
    monitor = make_monitor(service, catalog, event_log, available)
    monitor.poll_once()
    assert not catalog.loaded
    assert "[OLLAMA] No models found." in event_log.lines()


def test_catalog_refetched_after_reconnect(catalog, event_log, available):
    service = FakeChatService(models=["llama3:8b"])
    monitor = make_monitor(service, catalog, event_log, available)
    monitor.poll_once()
    service.reachable = False
    monitor.poll_once()
    service.reachable = True
    service.models = ["llama3:8b", "phi3"]
    monitor.poll_once()
    assert catalog.models == ["llama3:8b", "phi3"]
    assert len(service.network_calls("tags")) == 2


def test_background_loop_starts_and_stops(catalog, event_log, available):
    service = FakeChatService(models=["llama3:8b"])
    monitor = make_monitor(service, catalog, event_log, available, poll_interval=0.01)
    monitor.start()
    try:
        assert wait_for(lambda: catalog.loaded)
    finally:
        monitor.stop(timeout=2)
    probes = service.probes
    assert probes >= 1
    time.sleep(0.05)
    assert service.probes == probes
