"""Console control surface for the SIGINT AI assistant."""

from __future__ import annotations

import argparse
import logging
import threading
from pathlib import Path
from typing import Callable, Optional

from .config import AppConfig
from .event_log import EventLog
from .services.mic_capture import SoundDeviceCapture
from .services.ollama_client import OllamaHttpClient
from .services.stt_whisper import WhisperSpeechToText
from .session import SigintSession

logger = logging.getLogger(__name__)

HELP_TEXT = """Commands:
  /listen on|off   toggle audio capture into the transcriber
  /chat on|off     toggle forwarding transcripts and messages to the model
  /models          list models reported by Ollama
  /model <n>       switch to model number n (unloads the previous one)
  /status          show service, model and switch state
  /reset           clear the conversation history
  /quit            stop everything and exit
Any other line is sent to the model as an OPERATOR message."""


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


class LogFollower:
    """
    Copies new event log lines to stdout and, optionally, a log file.

    Runs on its own thread and reads the log through a cursor so every line
    is written exactly once and the log lock is never held during I/O.
    """

    def __init__(
        self,
        event_log: EventLog,
        *,
        path: Optional[str] = None,
        echo: Callable[[str], None] = print,
        interval: float = 0.2,
    ) -> None:
        self._log = event_log
        self._path = Path(path) if path else None
        self._echo = echo
        self._interval = interval
        self._cursor = 0
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        self._thread = threading.Thread(target=self._run, name="log-follower", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        self.flush()

    def flush(self) -> int:
        """Write every line appended since the previous flush. Returns the count."""
        entries, self._cursor = self._log.since(self._cursor)
        if not entries:
            return 0
        for entry in entries:
            self._echo(entry.format())
        if self._path is not None:
            try:
                with self._path.open("a", encoding="utf-8") as handle:
                    for entry in entries:
                        handle.write(entry.format() + "\n")
            except OSError as exc:
                logger.warning("Could not append to %s: %s", self._path, exc)
        return len(entries)

    def _run(self) -> None:
        while not self._stop.is_set():
            self.flush()
            self._stop.wait(self._interval)


def build_session(config: AppConfig) -> SigintSession:
    """Wire up the session with the Ollama client and the Whisper engine."""
    chat_service = OllamaHttpClient(
        config.ollama_url,
        timeout=config.request_timeout,
        probe_timeout=config.probe_timeout,
    )
    stt = WhisperSpeechToText(
        model=config.whisper_model,
        device=config.whisper_device,
        language=config.language,
    )
    return SigintSession(config, chat_service=chat_service, stt=stt)


def handle_command(session: SigintSession, line: str) -> bool:
    """
    Apply one line of operator input. Returns False when the user asked to quit.
    """
    line = line.strip()
    if not line:
        return True
    if not line.startswith("/"):
        session.send_message(line)
        return True

    command, _, argument = line.partition(" ")
    argument = argument.strip().lower()
    if command in {"/quit", "/exit"}:
        return False
    if command == "/listen" and argument in {"on", "off"}:
        session.set_listening(argument == "on")
        print(f"[cli] Listening {'enabled' if session.listening() else 'disabled'}")
    elif command == "/chat" and argument in {"on", "off"}:
        session.set_auto_chat_enabled(argument == "on")
        print(f"[cli] AI chat {'enabled' if session.auto_chat_enabled() else 'disabled'}")
    elif command == "/models":
        _print_models(session)
    elif command == "/model":
        _select_model(session, argument)
    elif command == "/status":
        _print_status(session)
    elif command == "/reset":
        session.reset_conversation()
    else:
        print(HELP_TEXT)
    return True


def _print_models(session: SigintSession) -> None:
    if not session.service_available():
        print("[cli] Ollama not running. Start server to select models.")
        return
    if not session.models_loaded():
        print("[cli] Loading Ollama models...")
        return
    selected = session.selected_model()
    for index, name in enumerate(session.available_models()):
        marker = "*" if name == selected else " "
        print(f"  {marker} {index}: {name}")


def _select_model(session: SigintSession, argument: str) -> None:
    if session.switch_busy():
        print(f"[cli] {session.status_message() or 'Model switch in progress.'}")
        return
    try:
        index = int(argument)
    except ValueError:
        print("[cli] Usage: /model <number> (see /models)")
        return
    if not session.select_model(index):
        print("[cli] Model not changed.")


def _print_status(session: SigintSession) -> None:
    print(f"  Ollama Server Status: {'Running' if session.service_available() else 'Not Running'}")
    print(f"  AI Model: {session.selected_model() or '-'}")
    print(f"  Listening: {'on' if session.listening() else 'off'}")
    print(f"  AI chat: {'on' if session.auto_chat_enabled() else 'off'}")
    if session.switch_busy():
        print(f"  {session.status_message()}")


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the SIGINT AI transcription and chat console.")
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )
    parser.add_argument(
        "--no-audio",
        action="store_true",
        help="Do not open a microphone stream (chat only).",
    )
    parser.add_argument(
        "--listen",
        action="store_true",
        help="Start with listening enabled.",
    )
    parser.add_argument(
        "--auto-chat",
        action="store_true",
        help="Start with transcripts forwarded to the model.",
    )
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> None:
    args = parse_args(argv)
    _configure_logging(args.verbose)
    config = AppConfig.from_env()
    session = build_session(config)
    follower = LogFollower(session.event_log, path=config.log_file)
    capture: Optional[SoundDeviceCapture] = None

    session.start()
    follower.start()
    try:
        if not args.no_audio:
            capture = SoundDeviceCapture(
                session.push_audio,
                sample_rate=config.sample_rate,
                device=config.input_device,
            )
            try:
                capture.start()
            except (RuntimeError, OSError) as exc:
                session.event_log.error(f"Error: Could not open audio input: {exc}")
                capture = None
        session.set_listening(args.listen)
        session.set_auto_chat_enabled(args.auto_chat)
        print(HELP_TEXT)

        while True:
            try:
                line = input()
            except EOFError:
                break
            if not handle_command(session, line):
                break
    except KeyboardInterrupt:
        print("\n[cli] Interrupted")
    finally:
        if capture is not None:
            capture.stop()
        session.stop()
        follower.stop()


if __name__ == "__main__":
    main()
