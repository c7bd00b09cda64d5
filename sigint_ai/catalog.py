"""Model catalog shared by the monitor, the switcher and the chat path."""

from __future__ import annotations

import threading
from typing import Iterable, List, Optional

from .models import CatalogSnapshot


class ModelCatalog:
    """
    Lock-guarded list of model identifiers plus the current selection.

    The selected index is always valid while the list is non-empty. The
    ``loaded`` flag is true only after a fetch produced at least one model,
    and is what the conversation gate and the monitor's re-fetch check read.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._models: List[str] = []
        self._selected = 0
        self._explicit = False
        self._loaded = False

    def replace(self, models: Iterable[str], *, default_model: Optional[str] = None) -> CatalogSnapshot:
        """
        Install a freshly fetched model list.

        With an explicit selection, the same model name stays selected if it
        survived the refresh. Otherwise ``default_model`` is selected when
        present, falling back to the first model.
        """
        names = list(models)
        with self._lock:
            previous = self._current_name()
            self._models = names
            if self._explicit and previous in names:
                self._selected = names.index(previous)
            else:
                self._explicit = False
                self._selected = names.index(default_model) if default_model in names else 0
            self._loaded = bool(names)
            return self._snapshot()

    def mark_unloaded(self) -> None:
        with self._lock:
            self._loaded = False

    def select(self, index: int) -> int:
        """
        Make ``index`` the selected model and return the previous index.

        Raises:
            IndexError: If ``index`` is outside the current list.
        """
        with self._lock:
            if not 0 <= index < len(self._models):
                raise IndexError(f"model index {index} out of range ({len(self._models)} models)")
            previous = self._selected
            self._selected = index
            self._explicit = True
            return previous

    def name_at(self, index: Optional[int]) -> Optional[str]:
        with self._lock:
            if index is None or not 0 <= index < len(self._models):
                return None
            return self._models[index]

    @property
    def loaded(self) -> bool:
        with self._lock:
            return self._loaded

    @property
    def models(self) -> List[str]:
        with self._lock:
            return list(self._models)

    @property
    def selected_index(self) -> int:
        with self._lock:
            return self._selected

    @property
    def selected_model(self) -> Optional[str]:
        with self._lock:
            return self._current_name()

    def _current_name(self) -> Optional[str]:
        if 0 <= self._selected < len(self._models):
            return self._models[self._selected]
        return None

    def _snapshot(self) -> CatalogSnapshot:
        return CatalogSnapshot(
            models=tuple(self._models),
            selected_index=self._selected,
            loaded=self._loaded,
        )
