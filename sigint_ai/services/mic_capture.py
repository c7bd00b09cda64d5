"""Microphone capture backed by sounddevice."""

from __future__ import annotations

import logging
from typing import Optional, Union

import numpy as np

from ..interfaces import AudioSink

logger = logging.getLogger(__name__)


class SoundDeviceCapture:
    """
    Streams audio from an input device into an :class:`AudioSink`.

    The stream is opened at the transcription rate in float32; multi-channel
    input is averaged down to mono before it is forwarded. Whether the samples
    are kept is up to the sink (the session drops them while listening is off).

    Args:
        sink: Callable receiving 1-D float32 blocks.
        sample_rate: Target sample rate (Hz).
        channels: Number of channels to open on the device.
        device: Optional sounddevice device name or index.
        blocksize: Frames per callback; 0 lets PortAudio choose.

    Usage:
        with SoundDeviceCapture(session.push_audio, sample_rate=16000):
            ...
    """

    def __init__(
        self,
        sink: AudioSink,
        *,
        sample_rate: int = 16000,
        channels: int = 1,
        device: Optional[Union[str, int]] = None,
        blocksize: int = 0,
    ) -> None:
        self._sink = sink
        self.sample_rate = sample_rate
        self.channels = channels
        self.device = device
        self.blocksize = blocksize
        self._stream = None

    def start(self) -> None:
        if self._stream is not None:
            return
        sd = _lazy_import_sounddevice()
        try:
            stream = sd.InputStream(
                samplerate=self.sample_rate,
                channels=self.channels,
                dtype="float32",
                device=self.device,
                blocksize=self.blocksize,
                callback=self._callback,
            )
            stream.start()
        except sd.PortAudioError as exc:
            raise RuntimeError(f"Could not open input stream: {exc}") from exc
        self._stream = stream
        logger.info("Capturing audio at %d Hz from %s", self.sample_rate, self.device or "default device")

    def stop(self) -> None:
        if self._stream is None:
            return
        stream, self._stream = self._stream, None
        stream.stop()
        stream.close()

    def _callback(self, indata, frames, time_info, status) -> None:
        if status:
            logger.debug("Input stream status: %s", status)
        self._sink(to_mono(indata))

    def __enter__(self) -> "SoundDeviceCapture":
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()


def to_mono(block: np.ndarray) -> np.ndarray:
    """Average a (frames, channels) block down to a 1-D float32 array."""
    data = np.asarray(block, dtype=np.float32)
    if data.ndim == 2:
        data = data.mean(axis=1) if data.shape[1] > 1 else data[:, 0]
    return np.ascontiguousarray(data, dtype=np.float32)


def _lazy_import_sounddevice():
    try:
        import sounddevice as sd  # type: ignore
    except ImportError as exc:  # pragma: no cover - runtime dependency
        raise RuntimeError("sounddevice is required for microphone capture. Install via pip.") from exc
    return sd
