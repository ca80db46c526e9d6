"""Text-to-speech backend using Google Cloud Text-to-Speech."""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass, field

import httpx

from voice_relay.errors import ConfigError, SynthesisError
from voice_relay.models import SynthesizedAudio

GOOGLE_TTS_URL = "https://texttospeech.googleapis.com/v1/text:synthesize"


def google_voice(voice_name: str | None, language: str | None) -> tuple[str, str]:
    """Return ``(voice name, language code)``; Thai picks a Thai voice, anything else US English."""
    lang = (language or "th-th").lower()
    if "th" in lang:
        return voice_name or "th-TH-Chirp3-HD-Achernar", "th-TH"
    return "en-US-Standard-A", "en-US"


@dataclass(slots=True)
class GoogleSpeechSynthesizer:
    """Bytes-back provider returning base64 LINEAR16 audio."""

    api_key: str | None
    voice_name: str | None = None
    language: str | None = "th-TH"
    url: str = GOOGLE_TTS_URL
    timeout_seconds: float = 30.0
    client: httpx.AsyncClient | None = field(default=None, repr=False)

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def synthesize(self, text: str) -> SynthesizedAudio:
        if not self.api_key:
            raise ConfigError("A Google Cloud API key is required for speech synthesis")

        name, language_code = google_voice(self.voice_name, self.language)
        body = {
            "input": {"text": text},
            "voice": {"languageCode": language_code, "name": name},
            "audioConfig": {"audioEncoding": "LINEAR16"},
        }

        client = self.client or httpx.AsyncClient(timeout=self.timeout_seconds)
        try:
            response = await client.post(self.url, params={"key": self.api_key}, json=body)
        finally:
            if self.client is None:
                await client.aclose()

        if response.status_code != 200:
            try:
                detail = response.json().get("error", {}).get("message")
            except (ValueError, AttributeError):
                detail = None
            raise SynthesisError(f"Google TTS API Error: {response.status_code} - {detail or response.reason_phrase}")

        audio_content = response.json().get("audioContent")
        if not audio_content:
            raise SynthesisError("No audio was returned by Google TTS")
        try:
            audio = base64.b64decode(audio_content, validate=True)
        except binascii.Error as exc:
            raise SynthesisError("Google TTS returned malformed audio") from exc
        return SynthesizedAudio(data=audio, mime_type="audio/wav")
