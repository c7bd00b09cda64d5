"""HTTP client for the Ollama chat service."""

from __future__ import annotations

import http.client
import json
import logging
import socket
import urllib.error
import urllib.request
from typing import Any, Dict, List, Mapping, Optional, Sequence
from urllib.parse import urlsplit

from ..exceptions import ChatClientError
from ..models import ChatResponse, Message

logger = logging.getLogger(__name__)


class OllamaHttpClient:
    """
    Minimal HTTP client for the parts of the Ollama API the assistant uses.

    Endpoints:
        GET  /api/tags      -> {"models": [{"name": "..."}]}
        POST /api/chat      -> {"message": {"content": "..."}}
        POST /api/generate  with keep_alive=0, used only to unload a model

    Usage:
        >>> client = OllamaHttpClient("http://localhost:11434")
        >>> client.list_models()
        ['llama3:8b']
        >>> client.chat("llama3:8b", [Message("user", "Hello")]).text
        'Hello! How can I help?'
    """

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        *,
        timeout: float = 60.0,
        probe_timeout: float = 0.5,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._probe_timeout = probe_timeout
        parts = urlsplit(self._base_url)
        self._host = parts.hostname or "localhost"
        self._port = parts.port or (443 if parts.scheme == "https" else 80)

    @property
    def base_url(self) -> str:
        return self._base_url

    def is_reachable(self) -> bool:
        """Return True if something is listening on the service port."""
        try:
            with socket.create_connection((self._host, self._port), timeout=self._probe_timeout):
                return True
        except OSError:
            return False

    def list_models(self) -> List[str]:
        body = self._request("GET", "/api/tags")
        logger.debug("Raw /api/tags response: %s", body)
        if not body.strip():
            raise ChatClientError("Empty response from Ollama API. Is the server running?")
        payload = _decode_json(body)

        models = payload.get("models")
        if not isinstance(models, list):
            raise ChatClientError("API response did not contain 'models' array or was malformed.")
        names: List[str] = []
        for entry in models:
            if isinstance(entry, dict) and isinstance(entry.get("name"), str):
                names.append(entry["name"])
        return names

    def chat(
        self,
        model: str,
        messages: Sequence[Message],
        *,
        options: Optional[Mapping[str, Any]] = None,
    ) -> ChatResponse:
        """Send the full message history and validate the reply shape."""
        payload: Dict[str, Any] = {
            "model": model,
            "messages": [message.as_dict() for message in messages],
            "stream": False,
        }
        if options:
            payload["options"] = dict(options)

        body = self._request("POST", "/api/chat", payload)
        logger.debug("Raw /api/chat response: %s", body)
        response = _decode_json(body)
        return ChatResponse(text=_extract_assistant_text(response), raw=response)

    def unload(self, model: str) -> None:
        """Ask Ollama to drop ``model`` from memory. The response body is ignored."""
        self._request("POST", "/api/generate", {"model": model, "prompt": "", "keep_alive": 0})

    def _request(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> str:
        url = f"{self._base_url}{path}"
        data = json.dumps(payload).encode("utf-8") if payload is not None else None
        request = urllib.request.Request(url, data=data, headers=self._headers(), method=method)

        try:
            with urllib.request.urlopen(request, timeout=self._timeout) as response:
                return response.read().decode("utf-8", errors="replace")
        except urllib.error.HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="ignore")
            raise ChatClientError(f"{method} {path} failed ({exc.code}): {detail}") from exc
        except urllib.error.URLError as exc:
            raise ChatClientError(f"{method} {path} could not reach the server: {exc.reason}") from exc
        except (TimeoutError, socket.timeout) as exc:
            raise ChatClientError(f"{method} {path} timed out after {self._timeout}s") from exc
        except (OSError, http.client.HTTPException) as exc:
            raise ChatClientError(f"{method} {path} connection failed: {exc!r}") from exc

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }


def _decode_json(body: str) -> Dict[str, Any]:
    try:
        payload = json.loads(body)
    except json.JSONDecodeError as exc:
        raise ChatClientError("Response was not valid JSON") from exc
    if not isinstance(payload, dict):
        raise ChatClientError("Response JSON was not an object")
    return payload


def _extract_assistant_text(payload: Dict[str, Any]) -> str:
    """Pull ``message.content`` out of a non-streaming /api/chat reply."""
    error = payload.get("error")
    if isinstance(error, str):
        raise ChatClientError(f"Ollama returned an error: {error}")

    message = payload.get("message")
    if isinstance(message, dict):
        content = message.get("content")
        if isinstance(content, str):
            return content

    raise ChatClientError("Chat response did not contain assistant content")
