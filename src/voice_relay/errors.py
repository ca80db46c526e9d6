"""Typed failures raised across the voice relay pipeline."""

from __future__ import annotations

from enum import Enum


class VoiceRelayError(RuntimeError):
    """Base class for every failure surfaced to the user."""

    title = "Voice relay error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigError(VoiceRelayError):
    """Raised when a required service credential is not configured."""

    title = "Missing configuration"


class CaptureError(VoiceRelayError):
    """Raised when the microphone cannot be opened or fails while recording."""

    title = "Could not start recording"


class TranscriptionError(VoiceRelayError):
    """Raised when the speech-to-text service fails or returns no text."""

    title = "Transcription failed"


class SynthesisError(VoiceRelayError):
    """Raised when speech synthesis or playback fails."""

    title = "Speech playback failed"


class RelayErrorKind(str, Enum):
    """Failure classes for relay requests."""

    NETWORK = "network"
    HTTP = "http"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"


_RELAY_TITLES = {
    RelayErrorKind.NETWORK: "Network unavailable",
    RelayErrorKind.HTTP: "Server responded with an error",
    RelayErrorKind.TIMEOUT: "Connection timed out",
    RelayErrorKind.UNKNOWN: "Sending failed",
}


class RelayError(VoiceRelayError):
    """Relay endpoint failure tagged with its kind and, for HTTP errors, the status."""

    def __init__(self, kind: RelayErrorKind, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.status = status

    @property
    def title(self) -> str:  # type: ignore[override]
        return _RELAY_TITLES[self.kind]

    def __repr__(self) -> str:
        return f"RelayError(kind={self.kind.value!r}, message={self.message!r}, status={self.status!r})"


class InvalidTransition(ValueError):
    """Raised when a session event is not allowed in the current phase."""
