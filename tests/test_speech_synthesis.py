from __future__ import annotations

import asyncio

from voice_relay.errors import ConfigError, SynthesisError, VoiceRelayError
from voice_relay.models import SynthesizedAudio
from voice_relay.voice.output import CancellationToken, SpeechSynthesisController


class FakePlayer:
    def __init__(self) -> None:
        self.clip: SynthesizedAudio | None = None
        self.callbacks = None
        self.played: list[SynthesizedAudio] = []
        self.stops = 0
        self.overlaps = 0
        self.paused = False

    @property
    def active(self) -> bool:
        return self.clip is not None

    def play(self, audio, *, on_finished, on_error) -> None:
        if self.clip is not None:
            self.overlaps += 1
        self.clip = audio
        self.callbacks = (on_finished, on_error)
        self.played.append(audio)

    def stop(self) -> None:
        self.stops += 1
        self.clip = None

    def pause(self) -> None:
        self.paused = True

    def resume(self) -> None:
        self.paused = False

    def finish(self) -> None:
        self.callbacks[0]()

    def fail(self, message: str) -> None:
        self.callbacks[1](message)


class FakeSynthesizer:
    def __init__(self, *, configured: bool = True, error: Exception | None = None) -> None:
        self._configured = configured
        self.error = error
        self.calls: list[str] = []
        self.gate: asyncio.Event | None = None

    @property
    def configured(self) -> bool:
        return self._configured

    async def synthesize(self, text: str) -> SynthesizedAudio:
        self.calls.append(text)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return SynthesizedAudio(data=f"wav:{text}".encode())


class LateSynthesizer(FakeSynthesizer):
    """Answers even after its request was cancelled, like a response already in flight."""

    async def synthesize(self, text: str) -> SynthesizedAudio:
        self.calls.append(text)
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            pass
        return SynthesizedAudio(data=b"late")


class Recorder:
    def __init__(self) -> None:
        self.successes = 0
        self.errors: list[VoiceRelayError] = []

    def success(self) -> None:
        self.successes += 1

    def error(self, error: VoiceRelayError) -> None:
        self.errors.append(error)


def _controller(synthesizer=None, player=None):
    synthesizer = synthesizer or FakeSynthesizer()
    player = player or FakePlayer()
    recorder = Recorder()
    controller = SpeechSynthesisController(
        synthesizer,
        player,
        on_success=recorder.success,
        on_error=recorder.error,
    )
    return controller, synthesizer, player, recorder


def test_cancellation_token_starts_live() -> None:
    token = CancellationToken()
    assert token.cancelled is False
    token.cancel()
    assert token.cancelled is True


def test_blank_text_reports_error_without_provider_call() -> None:
    async def _run():
        controller, synthesizer, player, recorder = _controller()
        task = controller.speak("   ")
        return task, synthesizer, recorder

    task, synthesizer, recorder = asyncio.run(_run())

    assert task is None
    assert synthesizer.calls == []
    assert len(recorder.errors) == 1
    assert isinstance(recorder.errors[0], SynthesisError)


def test_missing_credential_reports_config_error() -> None:
    async def _run():
        controller, synthesizer, player, recorder = _controller(FakeSynthesizer(configured=False))
        task = controller.speak("hello")
        return task, synthesizer, recorder, controller

    task, synthesizer, recorder, controller = asyncio.run(_run())

    assert task is None
    assert synthesizer.calls == []
    assert [type(error) for error in recorder.errors] == [ConfigError]
    assert controller.speaking is False


def test_successful_playback_reports_once_and_releases_player() -> None:
    async def _run():
        controller, synthesizer, player, recorder = _controller()
        await controller.speak("hello")
        playing = controller.playing
        speaking = controller.speaking
        player.finish()
        player.finish()
        return controller, player, recorder, playing, speaking

    controller, player, recorder, playing, speaking = asyncio.run(_run())

    assert playing is True
    assert speaking is True
    assert player.played[0].data == b"wav:hello"
    assert recorder.successes == 1
    assert recorder.errors == []
    assert controller.speaking is False
    assert player.active is False


def test_player_error_reports_once() -> None:
    async def _run():
        controller, synthesizer, player, recorder = _controller()
        await controller.speak("hello")
        player.fail("device lost")
        player.fail("device lost again")
        player.finish()
        return controller, player, recorder

    controller, player, recorder = asyncio.run(_run())

    assert recorder.successes == 0
    assert [error.message for error in recorder.errors] == ["device lost"]
    assert player.active is False


def test_provider_failure_is_reported_as_synthesis_error() -> None:
    async def _run():
        controller, synthesizer, player, recorder = _controller(FakeSynthesizer(error=RuntimeError("quota exceeded")))
        await controller.speak("hello")
        return controller, player, recorder

    controller, player, recorder = asyncio.run(_run())

    assert len(recorder.errors) == 1
    assert isinstance(recorder.errors[0], SynthesisError)
    assert recorder.errors[0].message == "quota exceeded"
    assert player.played == []
    assert controller.speaking is False


def test_stop_during_request_is_silent() -> None:
    async def _run():
        controller, synthesizer, player, recorder = _controller()
        synthesizer.gate = asyncio.Event()
        task = controller.speak("hello")
        await asyncio.sleep(0)
        controller.stop()
        await asyncio.sleep(0)
        return controller, player, recorder, task

    controller, player, recorder, task = asyncio.run(_run())

    assert task.cancelled()
    assert recorder.successes == 0
    assert recorder.errors == []
    assert player.played == []
    assert controller.speaking is False


def test_late_response_after_stop_is_discarded() -> None:
    async def _run():
        controller, synthesizer, player, recorder = _controller(LateSynthesizer())
        task = controller.speak("hello")
        await asyncio.sleep(0)
        controller.stop()
        await task
        return player, recorder

    player, recorder = asyncio.run(_run())

    assert player.played == []
    assert recorder.successes == 0
    assert recorder.errors == []


def test_stop_while_playing_releases_player_immediately() -> None:
    async def _run():
        controller, synthesizer, player, recorder = _controller()
        await controller.speak("hello")
        finished, _ = player.callbacks
        controller.stop()
        active = player.active
        finished()
        return controller, active, recorder

    controller, active, recorder = asyncio.run(_run())

    assert active is False
    assert controller.speaking is False
    assert recorder.successes == 0


def test_new_request_preempts_previous_playback() -> None:
    async def _run():
        controller, synthesizer, player, recorder = _controller()
        await controller.speak("one")
        old_finished, old_error = player.callbacks
        second = controller.speak("two")
        released = player.active is False
        await second
        old_finished()
        old_error("stale")
        success_before = recorder.successes
        player.finish()
        return player, recorder, released, success_before

    player, recorder, released, success_before = asyncio.run(_run())

    assert released is True
    assert player.overlaps == 0
    assert [clip.data for clip in player.played] == [b"wav:one", b"wav:two"]
    assert success_before == 0
    assert recorder.successes == 1
    assert recorder.errors == []


def test_pause_and_resume_only_touch_an_active_player() -> None:
    async def _run():
        controller, synthesizer, player, recorder = _controller()
        controller.pause()
        untouched = player.paused
        await controller.speak("hello")
        controller.pause()
        paused = player.paused
        controller.resume()
        return untouched, paused, player.paused

    untouched, paused, resumed = asyncio.run(_run())

    assert untouched is False
    assert paused is True
    assert resumed is False
