from __future__ import annotations

import importlib

import pytest


def test_console_entrypoint_exposes_app() -> None:
    pytest.importorskip("typer")

    module = importlib.import_module("voice_relay.main")

    assert hasattr(module, "app")
    assert module.app is not None


def test_app_registers_start_and_voice_chat() -> None:
    typer = pytest.importorskip("typer")
    from voice_relay.main import app

    command = typer.main.get_command(app)

    assert {"start", "voice-chat"} <= set(command.commands)
    voice_chat_options = {opt for param in command.commands["voice-chat"].params for opt in param.opts}
    assert {"--tts-provider", "--auto-playback", "--language"} <= voice_chat_options
