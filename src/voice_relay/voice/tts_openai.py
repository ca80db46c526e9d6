"""Text-to-speech backend using the OpenAI speech endpoint."""

from __future__ import annotations

from dataclasses import dataclass, field

import httpx

from voice_relay.errors import ConfigError, SynthesisError
from voice_relay.models import SynthesizedAudio

_VOICE_MAP: dict[str, str] = {
    "Puck": "alloy",
    "Kore": "echo",
    "Nova": "nova",
    "Shimmer": "shimmer",
    "Onyx": "onyx",
    "Fable": "fable",
    "Sage": "sage",
}


def openai_voice(voice_name: str | None) -> str:
    return _VOICE_MAP.get(voice_name or "Sage", "alloy")


@dataclass(slots=True)
class OpenAISpeechSynthesizer:
    """Bytes-back provider: the response body is the WAV clip."""

    api_key: str | None
    voice_name: str | None = "Sage"
    model: str = "tts-1"
    base_url: str = "https://api.openai.com"
    timeout_seconds: float = 60.0
    client: httpx.AsyncClient | None = field(default=None, repr=False)

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def synthesize(self, text: str) -> SynthesizedAudio:
        if not self.api_key:
            raise ConfigError("An OpenAI API key is required for speech synthesis")

        client = self.client or httpx.AsyncClient(timeout=self.timeout_seconds)
        try:
            response = await client.post(
                f"{self.base_url.rstrip('/')}/v1/audio/speech",
                headers={"Authorization": f"Bearer {self.api_key}"},
                json={
                    "model": self.model,
                    "voice": openai_voice(self.voice_name),
                    "input": text,
                    "response_format": "wav",
                },
            )
        finally:
            if self.client is None:
                await client.aclose()

        if response.status_code != 200:
            raise SynthesisError(f"OpenAI TTS request failed: {response.status_code} {response.reason_phrase}")
        if not response.content:
            raise SynthesisError("No audio was returned by OpenAI")
        return SynthesizedAudio(data=response.content, mime_type=response.headers.get("Content-Type", "audio/wav"))
