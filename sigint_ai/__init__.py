"""
SIGINT AI assistant package.

Buffers a live mono audio feed, transcribes it with Whisper, and forwards the
transcripts into a chat session with a local Ollama server while tracking the
server's availability and swapping its active model on request.
The default entrypoint is ``python main.py`` (or the ``sigint-ai`` script).
"""

__all__ = [
    "audio",
    "catalog",
    "config",
    "conversation",
    "event_log",
    "interfaces",
    "model_switch",
    "models",
    "monitor",
    "session",
    "transcription",
]
