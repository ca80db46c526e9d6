"""Microphone and speaker devices powered by ``sounddevice``."""

from __future__ import annotations

import asyncio
import io
import logging
import threading
import wave
from typing import Callable

import numpy as np

from voice_relay.models import SynthesizedAudio

_INSTALL_HINT = "Install extras with: pip install 'voice-relay[audio]'"


def _import_sounddevice():
    try:
        import sounddevice as sd
    except (ImportError, OSError) as exc:  # pragma: no cover - import guard
        raise RuntimeError(f"Audio device backend unavailable. {_INSTALL_HINT}") from exc
    return sd


def decode_wav(data: bytes) -> tuple[np.ndarray, int]:
    """Decode 16-bit WAV bytes into ``(frames x channels)`` int16 samples and the sample rate."""
    with wave.open(io.BytesIO(data), "rb") as wav_file:
        if wav_file.getsampwidth() != 2:
            raise ValueError(f"Unsupported sample width: {wav_file.getsampwidth() * 8} bits")
        sample_rate = wav_file.getframerate()
        channels = wav_file.getnchannels()
        frames = wav_file.readframes(wav_file.getnframes())
    samples = np.frombuffer(frames, dtype=np.int16).reshape(-1, channels)
    return samples, sample_rate


class _InputStreamHandle:
    def __init__(self, stream) -> None:
        self._stream = stream

    def close(self) -> None:
        stream, self._stream = self._stream, None
        if stream is not None:
            stream.stop()
            stream.close()


class SoundDeviceMicrophone:
    """Capture raw 16-bit PCM from the default input device."""

    sample_width = 2

    def __init__(
        self,
        *,
        sample_rate: int = 16_000,
        channels: int = 1,
        block_size: int = 1024,
        device: int | str | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._sd = _import_sounddevice()
        self.sample_rate = sample_rate
        self.channels = channels
        self._block_size = block_size
        self._device = device
        self._logger = logger or logging.getLogger("voice_relay.voice.audio_sounddevice")

    def open(self, on_chunk: Callable[[bytes], None], on_fault: Callable[[str], None]) -> _InputStreamHandle:
        def _callback(indata, frames, time_info, status) -> None:
            if status:
                self._logger.debug("input_stream_status", extra={"status": str(status)})
            on_chunk(bytes(indata))

        def _finished() -> None:
            if handle._stream is not None:
                on_fault("The microphone stream ended unexpectedly")

        stream = self._sd.RawInputStream(
            samplerate=self.sample_rate,
            channels=self.channels,
            dtype="int16",
            blocksize=self._block_size,
            device=self._device,
            callback=_callback,
            finished_callback=_finished,
        )
        handle = _InputStreamHandle(stream)
        stream.start()
        return handle


class SoundDevicePlayer:
    """Single playback element backed by one ``sounddevice.OutputStream`` at a time.

    Stream callbacks run on the audio thread; completion is handed back to the
    event loop that started playback.
    """

    def __init__(self, *, device: int | str | None = None, logger: logging.Logger | None = None) -> None:
        self._sd = _import_sounddevice()
        self._device = device
        self._logger = logger or logging.getLogger("voice_relay.voice.audio_sounddevice")
        self._stream = None
        self._paused = False
        self._lock = threading.Lock()

    @property
    def active(self) -> bool:
        return self._stream is not None

    def play(
        self,
        audio: SynthesizedAudio,
        *,
        on_finished: Callable[[], None],
        on_error: Callable[[str], None],
    ) -> None:
        self.stop()
        samples, sample_rate = decode_wav(audio.data)
        loop = asyncio.get_running_loop()
        position = 0
        sd = self._sd

        def _callback(outdata, frames, time_info, status) -> None:
            nonlocal position
            chunk = samples[position : position + frames]
            outdata[: len(chunk)] = chunk
            if len(chunk) < frames:
                outdata[len(chunk) :] = 0
                raise sd.CallbackStop
            position += frames

        def _finished() -> None:
            with self._lock:
                if self._stream is not stream or self._paused:
                    return
            loop.call_soon_threadsafe(on_finished)

        stream = sd.OutputStream(
            samplerate=sample_rate,
            channels=samples.shape[1],
            dtype="int16",
            device=self._device,
            callback=_callback,
            finished_callback=_finished,
        )
        with self._lock:
            self._stream = stream
            self._paused = False
        try:
            stream.start()
        except sd.PortAudioError as exc:
            self.stop()
            on_error(f"Audio playback failed: {exc}")

    def stop(self) -> None:
        with self._lock:
            stream, self._stream = self._stream, None
        if stream is not None:
            stream.abort()
            stream.close()

    def pause(self) -> None:
        stream = self._stream
        if stream is not None and stream.active:
            self._paused = True
            stream.stop()

    def resume(self) -> None:
        stream = self._stream
        if stream is not None and self._paused:
            self._paused = False
            stream.start()
