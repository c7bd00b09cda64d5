"""Shared dataclasses for the assistant."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Literal, Optional, Tuple

Role = Literal["system", "user", "assistant"]


@dataclass(frozen=True)
class Message:
    """Represents a single chat turn."""

    role: Role
    content: str

    def as_dict(self) -> Dict[str, str]:
        """Convert to the API shape expected by the chat endpoint."""
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class Segment:
    """
    One timestamped piece of text produced by the speech engine.

    Attributes:
        start: Segment start offset in seconds.
        end: Segment end offset in seconds.
        text: Recognised text, including any leading space the engine emits.
    """

    start: float
    end: float
    text: str


@dataclass
class ChatResponse:
    """Normalized response returned by the chat service."""

    text: str
    raw: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class LogEntry:
    """A timestamped event log line."""

    timestamp: datetime
    text: str

    def format(self) -> str:
        return f"{self.timestamp:%H:%M:%S} {self.text}"


@dataclass(frozen=True)
class CatalogSnapshot:
    """Immutable view of the model catalog at one instant."""

    models: Tuple[str, ...]
    selected_index: int
    loaded: bool

    @property
    def selected_model(self) -> Optional[str]:
        if 0 <= self.selected_index < len(self.models):
            return self.models[self.selected_index]
        return None
