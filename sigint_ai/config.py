"""Configuration helpers for the SIGINT AI assistant."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import find_dotenv, load_dotenv

DEFAULT_SYSTEM_PROMPT = (
    "You are a U.S. Navy S.E.A.L. on a covert SIGINT operation. Your callsign is RADAR. "
    "Be brief and professional. Report only significant, actionable intelligence. "
    "Otherwise, learn from the OPERATOR's instructions. When responding to the OPERATOR, "
    "be concise. End all transmissions with OVER."
)


@dataclass
class AppConfig:
    """
    Runtime configuration for the assistant.

    Attributes:
        ollama_url: Root URL of the Ollama server (without trailing slash).
        request_timeout: HTTP timeout in seconds for chat, catalog and switch requests.
        probe_timeout: TCP connect timeout in seconds for the availability probe.
        system_prompt: System message seeded before the first chat turn.
        default_model: Model selected automatically when the catalog first loads.
        max_history: Maximum number of chat turns kept (system turn included).
        temperature: Sampling temperature sent with every chat request.
        num_predict: Maximum number of output tokens per reply.
        sample_rate: Sample rate of the audio delivered to the accumulator (Hz).
        chunk_seconds: Seconds of buffered audio required before a transcription pass.
        min_transcript_chars: Transcripts must be longer than this to be kept.
        worker_interval: Delay between transcription worker iterations (seconds).
        poll_interval: Delay between availability polls (seconds).
        settle_delay: Time the switch stays busy after the warm-up request (seconds).
        whisper_model: Whisper model name or path to a model artifact.
        whisper_device: Device for Whisper ("cpu"/"cuda"/None).
        language: Language passed to the speech engine.
        input_device: Optional sounddevice input device name or index.
        log_file: Path the event log is appended to; None disables the file sink.

    Usage:
        >>> config = AppConfig.from_env()
        >>> config.ollama_url
        'http://localhost:11434'
    """

    ollama_url: str = "http://localhost:11434"
    request_timeout: float = 60.0
    probe_timeout: float = 0.5
    system_prompt: Optional[str] = DEFAULT_SYSTEM_PROMPT
    default_model: str = "llama3:8b"
    max_history: int = 10
    temperature: float = 0.4
    num_predict: int = 80
    sample_rate: int = 16000
    chunk_seconds: float = 5.0
    min_transcript_chars: int = 1
    worker_interval: float = 0.5
    poll_interval: float = 1.0
    settle_delay: float = 2.0
    whisper_model: str = "tiny.en"
    whisper_device: Optional[str] = None
    language: Optional[str] = "en"
    input_device: Optional[str] = None
    log_file: Optional[str] = "/tmp/sigint_ai.log"

    @property
    def chunk_samples(self) -> int:
        """Drain threshold in samples (5 s at 16 kHz is 80,000)."""
        return int(self.sample_rate * self.chunk_seconds)

    @classmethod
    def from_env(cls) -> "AppConfig":
        """
        Build an :class:`AppConfig` from environment variables.

        A ``.env`` file in the working directory is loaded first.

        Supported variables:
            - SIGINT_OLLAMA_URL: Ollama server URL (default: http://localhost:11434)
            - SIGINT_REQUEST_TIMEOUT: HTTP timeout in seconds (float, default: 60).
            - SIGINT_PROBE_TIMEOUT: Availability probe timeout in seconds (default: 0.5).
            - SIGINT_SYSTEM_PROMPT: Seed system message (default: RADAR persona).
            - SIGINT_DEFAULT_MODEL: Model auto-selected on first catalog load (default: llama3:8b).
            - SIGINT_MAX_HISTORY: Chat turns kept in history (default: 10).
            - SIGINT_TEMPERATURE: Chat sampling temperature (default: 0.4).
            - SIGINT_NUM_PREDICT: Max output tokens per reply (default: 80).
            - SIGINT_SAMPLE_RATE: Audio sample rate in Hz (default: 16000).
            - SIGINT_CHUNK_SECONDS: Seconds of audio per transcription pass (default: 5).
            - SIGINT_MIN_TRANSCRIPT_CHARS: Minimum transcript length, exclusive (default: 1).
            - SIGINT_WORKER_INTERVAL: Transcription loop delay in seconds (default: 0.5).
            - SIGINT_POLL_INTERVAL: Availability poll interval in seconds (default: 1).
            - SIGINT_SETTLE_DELAY: Busy time after a model warm-up in seconds (default: 2).
            - SIGINT_WHISPER_MODEL: Whisper model name or file path (default: "tiny.en").
            - SIGINT_WHISPER_DEVICE: Whisper device (e.g., "cuda" or "cpu").
            - SIGINT_LANGUAGE: Transcription language (default: "en").
            - SIGINT_INPUT_DEVICE: sounddevice input device name or index.
            - SIGINT_LOG_FILE: Event log file; empty disables (default: /tmp/sigint_ai.log).
        """

        load_dotenv(find_dotenv(usecwd=True))

        ollama_url = os.environ.get("SIGINT_OLLAMA_URL", "http://localhost:11434").rstrip("/")
        system_prompt = os.environ.get("SIGINT_SYSTEM_PROMPT", DEFAULT_SYSTEM_PROMPT) or None
        default_model = os.environ.get("SIGINT_DEFAULT_MODEL", "llama3:8b").strip()
        whisper_model = os.environ.get("SIGINT_WHISPER_MODEL", "tiny.en")
        whisper_device = os.environ.get("SIGINT_WHISPER_DEVICE") or None
        language = os.environ.get("SIGINT_LANGUAGE", "en") or None
        input_device = os.environ.get("SIGINT_INPUT_DEVICE") or None
        log_file = os.environ.get("SIGINT_LOG_FILE", "/tmp/sigint_ai.log") or None

        config = cls(
            ollama_url=ollama_url,
            request_timeout=_env_float("SIGINT_REQUEST_TIMEOUT", 60.0),
            probe_timeout=_env_float("SIGINT_PROBE_TIMEOUT", 0.5),
            system_prompt=system_prompt,
            default_model=default_model or "llama3:8b",
            max_history=_env_int("SIGINT_MAX_HISTORY", 10),
            temperature=_env_float("SIGINT_TEMPERATURE", 0.4),
            num_predict=_env_int("SIGINT_NUM_PREDICT", 80),
            sample_rate=_env_int("SIGINT_SAMPLE_RATE", 16000),
            chunk_seconds=_env_float("SIGINT_CHUNK_SECONDS", 5.0),
            min_transcript_chars=_env_int("SIGINT_MIN_TRANSCRIPT_CHARS", 1),
            worker_interval=_env_float("SIGINT_WORKER_INTERVAL", 0.5),
            poll_interval=_env_float("SIGINT_POLL_INTERVAL", 1.0),
            settle_delay=_env_float("SIGINT_SETTLE_DELAY", 2.0),
            whisper_model=whisper_model,
            whisper_device=whisper_device,
            language=language,
            input_device=input_device,
            log_file=log_file,
        )
        if config.max_history < 2:
            raise ValueError("SIGINT_MAX_HISTORY must be at least 2")
        return config


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number") from exc


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer") from exc
