"""Contracts for audio devices, speech recognition and synthesis."""

from typing import Callable, Protocol

from voice_relay.models import SynthesizedAudio


class MicrophoneStream(Protocol):
    """An open microphone stream; closing it releases the device."""

    def close(self) -> None:
        """Stop delivering chunks and release the device."""


class MicrophoneSource(Protocol):
    """Opens exclusive microphone streams."""

    sample_rate: int
    channels: int
    sample_width: int

    def open(self, on_chunk: Callable[[bytes], None], on_fault: Callable[[str], None]) -> MicrophoneStream:
        """Start capture; ``on_chunk`` receives raw PCM, ``on_fault`` device failures."""


class SpeechRecognizer(Protocol):
    """Converts buffered audio into text."""

    @property
    def configured(self) -> bool:
        """Whether a service credential is available."""

    async def transcribe(self, audio: bytes, *, filename: str, mime_type: str, language: str | None) -> str:
        """Return recognized text from an encoded audio file."""


class SpeechSynthesizer(Protocol):
    """Converts text responses into playable audio."""

    @property
    def configured(self) -> bool:
        """Whether a service credential is available."""

    async def synthesize(self, text: str) -> SynthesizedAudio:
        """Return playable audio for the given text."""


class AudioPlayer(Protocol):
    """The single playback element; owns at most one playing clip."""

    def play(
        self,
        audio: SynthesizedAudio,
        *,
        on_finished: Callable[[], None],
        on_error: Callable[[str], None],
    ) -> None:
        """Start playback, replacing nothing; callers stop the previous clip first."""

    def stop(self) -> None:
        """Halt playback and release the clip."""

    def pause(self) -> None:
        """Pause without releasing the clip."""

    def resume(self) -> None:
        """Resume a paused clip."""

    @property
    def active(self) -> bool:
        """Whether a clip is currently allocated."""
