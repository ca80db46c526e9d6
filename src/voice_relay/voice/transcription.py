"""Transcription of finished recordings."""

from __future__ import annotations

import logging
import time

import speech_recognition as sr

from voice_relay.errors import ConfigError, TranscriptionError
from voice_relay.models import AudioArtifact, Transcript

from .interfaces import SpeechRecognizer

_LANGUAGE_CODES: dict[str, str] = {
    "thai": "th",
}


def language_code(language: str | None) -> str | None:
    """Map a human-readable language name to the service's two-letter hint."""
    if not language:
        return None
    return _LANGUAGE_CODES.get(language.strip().lower(), language)


def to_wav(artifact: AudioArtifact) -> bytes:
    """Wrap raw PCM in a WAV container; other containers pass through."""
    if not artifact.is_raw_pcm:
        return artifact.data
    audio = sr.AudioData(artifact.data, sample_rate=artifact.sample_rate, sample_width=artifact.sample_width)
    return audio.get_wav_data()


class TranscriptionClient:
    """Single-attempt speech-to-text over a pluggable recognizer."""

    def __init__(
        self,
        recognizer: SpeechRecognizer,
        *,
        language: str | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._recognizer = recognizer
        self._language = language
        self._logger = logger or logging.getLogger("voice_relay.voice.transcription")
        self._transcribing = False

    @property
    def transcribing(self) -> bool:
        return self._transcribing

    @property
    def language(self) -> str | None:
        return self._language

    async def transcribe(self, artifact: AudioArtifact) -> Transcript:
        if not self._recognizer.configured:
            raise ConfigError("A speech-to-text API key is required")

        self._transcribing = True
        try:
            if not artifact.data:
                raise TranscriptionError("Recorded audio is empty")

            if artifact.is_raw_pcm:
                audio, filename, mime_type = to_wav(artifact), "recording.wav", "audio/wav"
            else:
                audio, filename, mime_type = artifact.data, "recording.webm", artifact.mime_type

            try:
                text = await self._recognizer.transcribe(
                    audio,
                    filename=filename,
                    mime_type=mime_type,
                    language=language_code(self._language),
                )
            except (ConfigError, TranscriptionError):
                raise
            except Exception as exc:  # noqa: BLE001
                message = getattr(exc, "message", None) or str(exc) or "Transcription failed"
                self._logger.warning("transcription_failed", extra={"error": message})
                raise TranscriptionError(message) from exc

            text = (text or "").strip()
            if not text:
                raise TranscriptionError("The transcription service returned no text")

            self._logger.info("transcription_succeeded", extra={"chars": len(text)})
            return Transcript(text=text, timestamp=time.time())
        finally:
            self._transcribing = False
