"""Runtime configuration for the voice relay."""

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-driven runtime settings."""

    model_config = SettingsConfigDict(env_prefix="VOICE_RELAY_", extra="ignore")

    app_name: str = "voice-relay"
    log_level: str = "INFO"

    openai_api_key: SecretStr | None = None
    google_api_key: SecretStr | None = None
    botnoi_api_key: SecretStr | None = None
    openai_base_url: str = "https://api.openai.com"

    transcription_model: str = "whisper-1"
    language: str | None = Field(
        default="Thai",
        description="Human-readable language name used as the transcription hint.",
    )

    relay_url: str = Field(
        default="http://127.0.0.1:5678/webhook/voice-relay",
        description="Automation endpoint that receives transcripts.",
    )
    relay_timeout_seconds: float = 300.0

    tts_provider: str = "openai"
    tts_model: str = "tts-1"
    tts_voice: str = Field(default="Sage", description="OpenAI voice name; see tts_openai.openai_voice.")
    google_tts_voice: str | None = Field(
        default=None,
        description="Google voice name; a Thai Chirp3 voice is chosen when unset.",
    )
    botnoi_speaker: str = "1"
    tts_language: str = "th-TH"
    auto_playback: bool = True

    speech_threshold: float = 10.0
    speech_sample_interval_seconds: float = 0.1
    sample_rate: int = 16_000
    channels: int = 1
    block_size: int = 1024


settings = Settings()
