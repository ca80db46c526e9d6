"""CLI startup entrypoint for the voice relay."""

from __future__ import annotations

import asyncio
from typing import Callable

import typer
from rich import print

from voice_relay.adapters import RelayDispatcher
from voice_relay.config import Settings, settings
from voice_relay.models import Session
from voice_relay.notices import NoticeBoard
from voice_relay.session import SessionOrchestrator
from voice_relay.telemetry.logging import configure_logging
from voice_relay.voice import (
    AudioCaptureController,
    SpeechActivityMonitor,
    SpeechSynthesisController,
    TranscriptionClient,
)
from voice_relay.voice.interfaces import AudioPlayer, MicrophoneSource, SpeechSynthesizer
from voice_relay.voice.stt_openai import OpenAIWhisperRecognizer
from voice_relay.voice.tts_botnoi import BotnoiSpeechSynthesizer
from voice_relay.voice.tts_google import GoogleSpeechSynthesizer
from voice_relay.voice.tts_openai import OpenAISpeechSynthesizer

app = typer.Typer(help="Voice relay: record, transcribe, relay, and speak the response")

TTS_PROVIDERS = ("openai", "google", "botnoi")


def _secret(value) -> str | None:
    return value.get_secret_value() if value is not None else None


def _build_synthesizer(config: Settings) -> SpeechSynthesizer:
    provider = config.tts_provider.lower()
    if provider == "google":
        return GoogleSpeechSynthesizer(
            api_key=_secret(config.google_api_key),
            voice_name=config.google_tts_voice,
            language=config.tts_language,
        )
    if provider == "botnoi":
        return BotnoiSpeechSynthesizer(api_key=_secret(config.botnoi_api_key), speaker=config.botnoi_speaker)
    if provider == "openai":
        return OpenAISpeechSynthesizer(
            api_key=_secret(config.openai_api_key),
            voice_name=config.tts_voice,
            model=config.tts_model,
            base_url=config.openai_base_url,
        )
    raise typer.BadParameter(f"Unsupported TTS provider {provider!r}; expected one of {', '.join(TTS_PROVIDERS)}")


def _build_orchestrator(
    config: Settings,
    *,
    microphone: MicrophoneSource,
    player: AudioPlayer,
    notices: NoticeBoard | None = None,
    on_change: Callable[[Session], None] | None = None,
) -> SessionOrchestrator:
    monitor = SpeechActivityMonitor(
        threshold=config.speech_threshold,
        interval_seconds=config.speech_sample_interval_seconds,
    )
    recognizer = OpenAIWhisperRecognizer(
        api_key=_secret(config.openai_api_key),
        model=config.transcription_model,
        base_url=config.openai_base_url,
    )
    return SessionOrchestrator(
        capture=AudioCaptureController(microphone, monitor=monitor),
        transcriber=TranscriptionClient(recognizer, language=config.language),
        relay=RelayDispatcher(config.relay_url, timeout_seconds=config.relay_timeout_seconds),
        synthesis=SpeechSynthesisController(_build_synthesizer(config), player),
        notices=notices,
        auto_playback=config.auto_playback,
        on_change=on_change,
    )


@app.command()
def start() -> None:
    """Show runtime configuration (credentials are only reported as set/unset)."""
    print(
        {
            "app_name": settings.app_name,
            "relay_url": settings.relay_url,
            "relay_timeout_seconds": settings.relay_timeout_seconds,
            "language": settings.language,
            "tts_provider": settings.tts_provider,
            "auto_playback": settings.auto_playback,
            "openai_api_key": settings.openai_api_key is not None,
            "google_api_key": settings.google_api_key is not None,
            "botnoi_api_key": settings.botnoi_api_key is not None,
        }
    )


@app.command("voice-chat")
def voice_chat(
    tts_provider: str = typer.Option(None, help="Speech provider: openai, google or botnoi"),
    auto_playback: bool = typer.Option(None, help="Read each response aloud before showing it"),
    language: str = typer.Option(None, help="Language name used as the transcription hint"),
) -> None:
    """Run an interactive voice session against the configured relay endpoint."""
    from voice_relay.cli import ConsoleControls

    overrides = {
        key: value
        for key, value in {"tts_provider": tts_provider, "auto_playback": auto_playback, "language": language}.items()
        if value is not None
    }
    config = settings.model_copy(update=overrides)
    configure_logging(config.log_level)

    try:
        from voice_relay.voice.audio_sounddevice import SoundDeviceMicrophone, SoundDevicePlayer

        microphone = SoundDeviceMicrophone(
            sample_rate=config.sample_rate,
            channels=config.channels,
            block_size=config.block_size,
        )
        player = SoundDevicePlayer()
    except RuntimeError as exc:
        print({"error": str(exc)})
        raise typer.Exit(code=1)

    notices = NoticeBoard()

    async def _run() -> None:
        def _render(session: Session) -> None:
            controls.render(session)

        orchestrator = _build_orchestrator(
            config,
            microphone=microphone,
            player=player,
            notices=notices,
            on_change=_render,
        )
        controls = ConsoleControls(orchestrator)
        notices.subscribe(controls.show_notice)
        try:
            await controls.run()
        finally:
            await orchestrator.aclose()

    print({"voice_chat": "started", "tts_provider": config.tts_provider, "auto_playback": config.auto_playback})
    asyncio.run(_run())
    print({"voice_chat": "stopped"})


if __name__ == "__main__":
    app()
