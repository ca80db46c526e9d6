from __future__ import annotations

import sys
import types

import pytest

from voice_relay.config import Settings


def test_voice_chat_reports_actionable_error_when_audio_backend_missing(monkeypatch) -> None:
    typer_testing = pytest.importorskip("typer.testing")
    from voice_relay.main import app

    fake_devices = types.ModuleType("voice_relay.voice.audio_sounddevice")

    class _MissingBackend:
        def __init__(self, *args, **kwargs) -> None:
            raise RuntimeError("sounddevice missing, install voice-relay[audio]")

    fake_devices.SoundDeviceMicrophone = _MissingBackend
    fake_devices.SoundDevicePlayer = _MissingBackend
    monkeypatch.setitem(sys.modules, "voice_relay.voice.audio_sounddevice", fake_devices)

    result = typer_testing.CliRunner().invoke(app, ["voice-chat", "--no-auto-playback"], catch_exceptions=False)

    assert result.exit_code == 1
    assert "sounddevice missing" in result.stdout


def test_start_reports_credentials_without_leaking_them(monkeypatch) -> None:
    typer_testing = pytest.importorskip("typer.testing")
    from voice_relay import main

    monkeypatch.setattr(main, "settings", Settings(openai_api_key="sk-secret-value", relay_url="https://relay.test/hook"))

    result = typer_testing.CliRunner().invoke(main.app, ["start"], catch_exceptions=False)

    assert result.exit_code == 0
    assert "relay.test" in result.stdout
    assert "openai_api_key" in result.stdout
    assert "sk-secret-value" not in result.stdout


def test_build_synthesizer_selects_provider() -> None:
    typer = pytest.importorskip("typer")
    from voice_relay.main import _build_synthesizer
    from voice_relay.voice.tts_botnoi import BotnoiSpeechSynthesizer
    from voice_relay.voice.tts_google import GoogleSpeechSynthesizer
    from voice_relay.voice.tts_openai import OpenAISpeechSynthesizer

    google = _build_synthesizer(Settings(tts_provider="google", google_api_key="g-key"))
    botnoi = _build_synthesizer(Settings(tts_provider="Botnoi", botnoi_api_key="b-key"))
    openai = _build_synthesizer(Settings(tts_provider="openai", openai_api_key=None))

    assert isinstance(google, GoogleSpeechSynthesizer) and google.api_key == "g-key"
    assert isinstance(botnoi, BotnoiSpeechSynthesizer) and botnoi.configured
    assert isinstance(openai, OpenAISpeechSynthesizer) and not openai.configured

    with pytest.raises(typer.BadParameter):
        _build_synthesizer(Settings(tts_provider="festival"))


def test_build_synthesizer_passes_provider_voice_settings() -> None:
    pytest.importorskip("typer")
    from voice_relay.main import _build_synthesizer

    google = _build_synthesizer(
        Settings(tts_provider="google", google_api_key="g-key", google_tts_voice="th-TH-Standard-A")
    )
    botnoi = _build_synthesizer(Settings(tts_provider="botnoi", botnoi_api_key="b-key", botnoi_speaker="26"))
    openai = _build_synthesizer(Settings(tts_provider="openai", openai_api_key="sk", tts_voice="Kore"))
    default_google = _build_synthesizer(Settings(tts_provider="google", google_api_key="g-key"))

    assert google.voice_name == "th-TH-Standard-A"
    assert botnoi.speaker == "26"
    assert openai.voice_name == "Kore"
    assert default_google.voice_name is None


def test_settings_read_prefixed_environment(monkeypatch) -> None:
    monkeypatch.setenv("VOICE_RELAY_RELAY_URL", "https://relay.test/env")
    monkeypatch.setenv("VOICE_RELAY_AUTO_PLAYBACK", "false")
    monkeypatch.setenv("VOICE_RELAY_OPENAI_API_KEY", "sk-env")

    config = Settings()

    assert config.relay_url == "https://relay.test/env"
    assert config.auto_playback is False
    assert config.openai_api_key.get_secret_value() == "sk-env"
    assert "sk-env" not in repr(config)
