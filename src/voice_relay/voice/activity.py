"""Speaking detection from live microphone energy."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

import numpy as np

DEFAULT_SPEECH_THRESHOLD = 10.0
DEFAULT_SAMPLE_INTERVAL_SECONDS = 0.1

# Byte-scale mapping used by browser analysers.
_MIN_DECIBELS = -100.0
_MAX_DECIBELS = -30.0


def frequency_energy(frame: bytes, *, fft_size: int = 2048) -> float:
    """Average spectral magnitude of 16-bit PCM on a 0-255 scale."""
    samples = np.frombuffer(frame[: len(frame) - len(frame) % 2], dtype=np.int16)
    if samples.size == 0:
        return 0.0

    window = samples[-fft_size:].astype(np.float64) / 32768.0
    spectrum = np.abs(np.fft.rfft(window * np.blackman(window.size))) / window.size
    with np.errstate(divide="ignore"):
        decibels = 20.0 * np.log10(spectrum)
    scaled = 255.0 * (decibels - _MIN_DECIBELS) / (_MAX_DECIBELS - _MIN_DECIBELS)
    return float(np.clip(scaled, 0.0, 255.0).mean())


class SpeechActivityMonitor:
    """Periodically samples the newest audio frame and reports whether the user is speaking."""

    def __init__(
        self,
        *,
        threshold: float = DEFAULT_SPEECH_THRESHOLD,
        interval_seconds: float = DEFAULT_SAMPLE_INTERVAL_SECONDS,
        fft_size: int = 2048,
        on_change: Callable[[bool], None] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.threshold = threshold
        self._interval_seconds = interval_seconds
        self._fft_size = fft_size
        self._on_change = on_change
        self._logger = logger or logging.getLogger("voice_relay.voice.activity")

        self._latest_frame = b""
        self._speaking = False
        self._active = False
        self._task: asyncio.Task[None] | None = None

    @property
    def speaking(self) -> bool:
        return self._speaking

    @property
    def active(self) -> bool:
        return self._active

    def start(self) -> None:
        if self._active:
            return
        self._active = True
        self._latest_frame = b""
        self._task = asyncio.get_running_loop().create_task(self._sample_loop(), name="speech-activity-monitor")

    def stop(self) -> None:
        """Tear down the sampling loop; nothing is reported after this returns."""
        self._active = False
        if self._task is not None:
            self._task.cancel()
            self._task = None
        self._latest_frame = b""
        self._set_speaking(False)

    def feed(self, frame: bytes) -> None:
        if self._active:
            self._latest_frame = frame

    def sample(self) -> bool:
        """Take one energy reading and update the speaking signal."""
        if not self._active:
            return False
        level = frequency_energy(self._latest_frame, fft_size=self._fft_size)
        self._set_speaking(level > self.threshold)
        return self._speaking

    async def _sample_loop(self) -> None:
        while self._active:
            await asyncio.sleep(self._interval_seconds)
            self.sample()

    def _set_speaking(self, speaking: bool) -> None:
        if speaking == self._speaking:
            return
        self._speaking = speaking
        self._logger.debug("speech_activity_changed", extra={"speaking": speaking})
        if self._on_change is not None:
            self._on_change(speaking)
