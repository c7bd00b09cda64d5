"""Tests for environment-driven configuration."""

import os

import pytest

from sigint_ai.config import DEFAULT_SYSTEM_PROMPT, AppConfig


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    # keep any developer .env out of the tests
    monkeypatch.chdir(tmp_path)
    for name in list(os.environ):
        if name.startswith("SIGINT_"):
            monkeypatch.delenv(name)


def test_defaults():
    config = AppConfig.from_env()
    assert config.ollama_url == "http://localhost:11434"
    assert config.system_prompt == DEFAULT_SYSTEM_PROMPT
    assert config.default_model == "llama3:8b"
    assert config.max_history == 10
    assert config.temperature == 0.4
    assert config.num_predict == 80
    assert config.chunk_samples == 80000
    assert config.worker_interval == 0.5
    assert config.poll_interval == 1.0
    assert config.settle_delay == 2.0
    assert config.whisper_model == "tiny.en"
    assert config.language == "en"


def test_overrides(monkeypatch):
    monkeypatch.setenv("SIGINT_OLLAMA_URL", "http://gpu-box:11434/")
    monkeypatch.setenv("SIGINT_CHUNK_SECONDS", "2.5")
    monkeypatch.setenv("SIGINT_MAX_HISTORY", "6")
    monkeypatch.setenv("SIGINT_LOG_FILE", "")
    monkeypatch.setenv("SIGINT_SYSTEM_PROMPT", "")
    config = AppConfig.from_env()
    assert config.ollama_url == "http://gpu-box:11434"
    assert config.chunk_samples == 40000
    assert config.max_history == 6
    assert config.log_file is None
    assert config.system_prompt is None


def test_dotenv_file_is_loaded(tmp_path, monkeypatch):
    # registered so the value load_dotenv writes is removed on teardown
    monkeypatch.setenv("SIGINT_DEFAULT_MODEL", "unset")
    monkeypatch.delenv("SIGINT_DEFAULT_MODEL")
    (tmp_path / ".env").write_text("SIGINT_DEFAULT_MODEL=phi3\n")
    assert AppConfig.from_env().default_model == "phi3"


@pytest.mark.parametrize(
    "name, value",
    [
        ("SIGINT_REQUEST_TIMEOUT", "soon"),
        ("SIGINT_MAX_HISTORY", "ten"),
        ("SIGINT_SAMPLE_RATE", "16k"),
        ("SIGINT_MAX_HISTORY", "1"),
    ],
)
def test_invalid_values(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ValueError):
        AppConfig.from_env()
