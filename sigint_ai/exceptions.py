"""Custom exceptions for the assistant."""

from __future__ import annotations


class ChatClientError(RuntimeError):
    """Raised when the chat service is unreachable or responds with an invalid payload."""


class TranscriptionError(RuntimeError):
    """Raised when the speech engine fails to transcribe an audio chunk."""
