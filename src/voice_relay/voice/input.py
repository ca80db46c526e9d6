"""Microphone capture producing one audio artifact per recording."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Callable

from voice_relay.errors import CaptureError
from voice_relay.models import AudioArtifact

from .activity import SpeechActivityMonitor
from .interfaces import MicrophoneSource, MicrophoneStream


class CaptureState(str, Enum):
    """Lifecycle states for the capture controller."""

    IDLE = "idle"
    STARTING = "starting"
    RECORDING = "recording"


class AudioCaptureController:
    """Owns the microphone stream while recording and buffers its chunks."""

    def __init__(
        self,
        microphone: MicrophoneSource,
        *,
        monitor: SpeechActivityMonitor | None = None,
        on_fault: Callable[[str], None] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._microphone = microphone
        self._monitor = monitor or SpeechActivityMonitor()
        self.on_fault = on_fault
        self._logger = logger or logging.getLogger("voice_relay.voice.input")

        self._state = CaptureState.IDLE
        self._stream: MicrophoneStream | None = None
        self._chunks: list[bytes] = []

    @property
    def state(self) -> CaptureState:
        return self._state

    @property
    def recording(self) -> bool:
        return self._state == CaptureState.RECORDING

    @property
    def monitor(self) -> SpeechActivityMonitor:
        return self._monitor

    @property
    def speech_detected(self) -> bool:
        return self.recording and self._monitor.speaking

    async def start(self) -> None:
        """Acquire the microphone and begin buffering audio."""
        if self._state != CaptureState.IDLE:
            return

        self._state = CaptureState.STARTING
        self._chunks = []
        loop = asyncio.get_running_loop()

        def _chunk_threadsafe(chunk: bytes) -> None:
            loop.call_soon_threadsafe(self._on_chunk, chunk)

        def _fault_threadsafe(message: str) -> None:
            loop.call_soon_threadsafe(self._on_fault, message)

        try:
            stream = await asyncio.to_thread(self._microphone.open, _chunk_threadsafe, _fault_threadsafe)
        except Exception as exc:  # noqa: BLE001
            self._state = CaptureState.IDLE
            self._logger.warning("capture_start_failed", extra={"error": str(exc)})
            raise CaptureError(str(exc) or "Unable to start recording") from exc

        if self._state != CaptureState.STARTING:
            # Stopped while the device was being acquired.
            stream.close()
            return

        self._stream = stream
        self._state = CaptureState.RECORDING
        self._monitor.start()
        self._logger.info("capture_started", extra={"sample_rate": self._microphone.sample_rate})

    def stop(self) -> AudioArtifact | None:
        """Release the microphone and return the assembled recording."""
        if self._state == CaptureState.STARTING:
            self._state = CaptureState.IDLE
            return None
        if self._state != CaptureState.RECORDING:
            return None

        self._release()
        artifact = AudioArtifact(
            data=b"".join(self._chunks),
            sample_rate=self._microphone.sample_rate,
            sample_width=self._microphone.sample_width,
            channels=self._microphone.channels,
        )
        self._chunks = []
        self._logger.info(
            "capture_stopped",
            extra={"bytes": len(artifact.data), "duration_seconds": round(artifact.duration_seconds, 2)},
        )
        return artifact

    def discard(self) -> None:
        """Release the microphone and drop anything buffered."""
        if self._state == CaptureState.RECORDING:
            self._release()
        self._state = CaptureState.IDLE
        self._chunks = []

    def _release(self) -> None:
        self._state = CaptureState.IDLE
        self._monitor.stop()
        stream, self._stream = self._stream, None
        if stream is not None:
            stream.close()

    def _on_chunk(self, chunk: bytes) -> None:
        if self._state != CaptureState.RECORDING or not chunk:
            return
        self._chunks.append(chunk)
        self._monitor.feed(chunk)

    def _on_fault(self, message: str) -> None:
        if self._state != CaptureState.RECORDING:
            return
        self._logger.warning("capture_fault", extra={"error": message})
        if self.on_fault is not None:
            self.on_fault(message)
