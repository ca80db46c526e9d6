from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from uuid import uuid4

from voice_relay.errors import VoiceRelayError


class SessionPhase(str, Enum):
    IDLE = "idle"
    RECORDING = "recording"
    TRANSCRIBING = "transcribing"
    RELAYING = "relaying"
    SYNTHESIZING = "synthesizing"


@dataclass(frozen=True, slots=True)
class AudioArtifact:
    """Finalized recording handed from capture to transcription."""

    data: bytes
    mime_type: str = "audio/L16"
    sample_rate: int = 16_000
    sample_width: int = 2
    channels: int = 1

    @property
    def is_raw_pcm(self) -> bool:
        return self.mime_type.split(";", 1)[0].strip().lower() == "audio/l16"

    @property
    def duration_seconds(self) -> float:
        frame_size = self.sample_width * self.channels
        if not frame_size or not self.sample_rate:
            return 0.0
        return len(self.data) / (frame_size * self.sample_rate)


@dataclass(slots=True)
class Transcript:
    text: str
    confidence: float | None = None
    timestamp: float | None = None


@dataclass(slots=True)
class RelayRequest:
    msg: str
    session_id: str

    def to_json(self) -> dict[str, str]:
        return {"msg": self.msg, "sessionId": self.session_id}


@dataclass(slots=True)
class RelayResponse:
    payload: Any
    display_text: str


@dataclass(frozen=True, slots=True)
class SynthesizedAudio:
    data: bytes
    mime_type: str = "audio/wav"


@dataclass(slots=True)
class Session:
    """Mutable context for the current voice turn."""

    session_id: str = field(default_factory=lambda: uuid4().hex)
    phase: SessionPhase = SessionPhase.IDLE
    pending_text: str = ""
    displayed_transcript: Transcript | None = None
    last_error: VoiceRelayError | None = None

    def reset_turn(self) -> None:
        self.pending_text = ""
        self.displayed_transcript = None
        self.last_error = None
