"""Thread-safe accumulator for mono float32 audio."""

from __future__ import annotations

import threading
from typing import List, Optional, Sequence, Union

import numpy as np

Samples = Union[np.ndarray, Sequence[float]]


class AudioAccumulator:
    """
    Growable buffer of mono float32 samples shared by producer and consumer.

    The capture path calls :meth:`push`; the transcription worker calls
    :meth:`drain_if_ready`, which hands over everything buffered in one piece
    and leaves the buffer empty. Both operations take the same lock, so a
    drain never observes a half-appended block.

    There is no backpressure: if nobody drains, the buffer keeps growing.

    Usage:
        >>> acc = AudioAccumulator()
        >>> acc.push(np.zeros(16000, dtype=np.float32))
        >>> acc.drain_if_ready(80000) is None
        True
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        # Blocks are concatenated lazily on drain to keep push cheap.
        self._blocks: List[np.ndarray] = []
        self._size = 0

    def push(self, samples: Samples) -> int:
        """Append ``samples`` and return how many were added."""
        block = np.asarray(samples, dtype=np.float32).reshape(-1)
        if block.size == 0:
            return 0
        with self._lock:
            self._blocks.append(block.copy())
            self._size += int(block.size)
        return int(block.size)

    def drain_if_ready(self, threshold: int) -> Optional[np.ndarray]:
        """
        Remove and return all samples if more than ``threshold`` are buffered.

        Returns:
            A 1-D float32 array with every buffered sample in push order, or
            ``None`` when the buffer holds ``threshold`` samples or fewer (the
            buffer is left untouched in that case).
        """
        with self._lock:
            if self._size == 0 or self._size <= threshold:
                return None
            blocks, self._blocks = self._blocks, []
            self._size = 0
        return np.concatenate(blocks)

    def clear(self) -> None:
        with self._lock:
            self._blocks = []
            self._size = 0

    def __len__(self) -> int:
        with self._lock:
            return self._size
