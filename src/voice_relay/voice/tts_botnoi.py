"""Text-to-speech backend using the Botnoi Voice API."""

from __future__ import annotations

from dataclasses import dataclass, field

import httpx

from voice_relay.errors import ConfigError, SynthesisError
from voice_relay.models import SynthesizedAudio

BOTNOI_TTS_URL = "https://api-voice.botnoi.ai/openapi/v1/generate_audio"


@dataclass(slots=True)
class BotnoiSpeechSynthesizer:
    """URL-back provider: the API answers with an audio URL that is fetched afterwards."""

    api_key: str | None
    speaker: str = "1"
    volume: str = "1"
    speed: float = 1.0
    language: str = "th"
    url: str = BOTNOI_TTS_URL
    timeout_seconds: float = 30.0
    client: httpx.AsyncClient | None = field(default=None, repr=False)

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def synthesize(self, text: str) -> SynthesizedAudio:
        if not self.api_key:
            raise ConfigError("A Botnoi API key is required for speech synthesis")

        body = {
            "text": text,
            "speaker": self.speaker,
            "volume": self.volume,
            "speed": self.speed,
            "type_media": "wav",
            "save_file": "true",
            "language": self.language,
        }

        client = self.client or httpx.AsyncClient(timeout=self.timeout_seconds, follow_redirects=True)
        try:
            response = await client.post(self.url, headers={"Botnoi-Token": self.api_key}, json=body)
            if response.status_code != 200:
                raise SynthesisError(f"HTTP {response.status_code}: {response.reason_phrase}")

            data = response.json()
            audio_url = data.get("audio_url") or data.get("url")
            if not audio_url:
                raise SynthesisError("No audio URL was returned by Botnoi")

            audio_response = await client.get(audio_url)
            if audio_response.status_code != 200:
                raise SynthesisError(f"Could not fetch Botnoi audio: HTTP {audio_response.status_code}")
        finally:
            if self.client is None:
                await client.aclose()

        return SynthesizedAudio(
            data=audio_response.content,
            mime_type=audio_response.headers.get("Content-Type", "audio/wav"),
        )
