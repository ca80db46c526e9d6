"""Speech-to-text backend using the OpenAI transcription endpoint."""

from __future__ import annotations

from dataclasses import dataclass, field

import httpx

from voice_relay.errors import ConfigError, TranscriptionError


@dataclass(slots=True)
class OpenAIWhisperRecognizer:
    """Send WAV audio to ``/v1/audio/transcriptions`` and return the text."""

    api_key: str | None
    model: str = "whisper-1"
    base_url: str = "https://api.openai.com"
    timeout_seconds: float = 60.0
    client: httpx.AsyncClient | None = field(default=None, repr=False)

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def transcribe(self, audio: bytes, *, filename: str, mime_type: str, language: str | None) -> str:
        if not self.api_key:
            raise ConfigError("An OpenAI API key is required for transcription")

        data = {"model": self.model, "response_format": "json"}
        if language:
            data["language"] = language

        client = self.client or httpx.AsyncClient(timeout=self.timeout_seconds)
        try:
            response = await client.post(
                f"{self.base_url.rstrip('/')}/v1/audio/transcriptions",
                headers={"Authorization": f"Bearer {self.api_key}"},
                files={"file": (filename, audio, mime_type)},
                data=data,
            )
        finally:
            if self.client is None:
                await client.aclose()

        if response.status_code != 200:
            raise TranscriptionError(_error_message(response))
        return str(response.json().get("text") or "")


def _error_message(response: httpx.Response) -> str:
    try:
        detail = response.json().get("error", {}).get("message")
    except (ValueError, AttributeError):
        detail = None
    return detail or f"HTTP {response.status_code}: {response.reason_phrase}"
