"""Text-to-speech orchestration for spoken relay responses."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from voice_relay.errors import ConfigError, SynthesisError, VoiceRelayError

from .interfaces import AudioPlayer, SpeechSynthesizer


class CancellationToken:
    """Marks one synthesis attempt; once cancelled, its results are discarded."""

    __slots__ = ("_cancelled",)

    def __init__(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


class SpeechSynthesisController:
    """Synthesizes text and plays it on the single audio player.

    Only one attempt is live at a time. Each attempt carries its own
    ``CancellationToken``; callbacks and late responses from a cancelled
    attempt are dropped, so ``on_success`` and ``on_error`` fire at most once
    and only for the attempt that is still current.
    """

    def __init__(
        self,
        synthesizer: SpeechSynthesizer,
        player: AudioPlayer,
        *,
        on_success: Callable[[], None] | None = None,
        on_error: Callable[[VoiceRelayError], None] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._synthesizer = synthesizer
        self._player = player
        self.on_success = on_success
        self.on_error = on_error
        self._logger = logger or logging.getLogger("voice_relay.voice.output")

        self._token: CancellationToken | None = None
        self._task: asyncio.Task[None] | None = None
        self._speaking = False

    @property
    def speaking(self) -> bool:
        return self._speaking

    @property
    def playing(self) -> bool:
        return self._player.active

    def speak(self, text: str) -> asyncio.Task[None] | None:
        """Start a new attempt, preempting any previous one."""
        if not text.strip():
            self._report(SynthesisError("There is no text to read aloud"))
            return None
        if not self._synthesizer.configured:
            self._report(ConfigError("A text-to-speech API key is required"))
            return None

        self._release()
        token = CancellationToken()
        self._token = token
        self._speaking = True
        self._task = asyncio.get_running_loop().create_task(self._run(text, token), name="speech-synthesis")
        self._logger.info("synthesis_started", extra={"chars": len(text)})
        return self._task

    def stop(self) -> None:
        """Cancel the in-flight attempt silently and release the player."""
        was_speaking = self._speaking
        self._release()
        if was_speaking:
            self._logger.info("synthesis_stopped")

    def pause(self) -> None:
        if self._player.active:
            self._player.pause()

    def resume(self) -> None:
        if self._player.active:
            self._player.resume()

    async def _run(self, text: str, token: CancellationToken) -> None:
        try:
            audio = await self._synthesizer.synthesize(text)
        except Exception as exc:  # noqa: BLE001
            if token.cancelled:
                return
            self._finish(token, SynthesisError(getattr(exc, "message", None) or str(exc) or "Speech synthesis failed"))
            return

        if token.cancelled:
            self._logger.debug("synthesis_result_discarded")
            return

        try:
            self._player.play(
                audio,
                on_finished=lambda: self._finish(token),
                on_error=lambda message: self._finish(token, SynthesisError(message or "Audio playback failed")),
            )
        except Exception as exc:  # noqa: BLE001
            self._finish(token, SynthesisError(f"Audio playback failed: {exc}"))

    def _finish(self, token: CancellationToken, error: SynthesisError | None = None) -> None:
        if token.cancelled or token is not self._token:
            return
        token.cancel()
        self._token = None
        self._task = None
        self._speaking = False
        self._player.stop()

        if error is None:
            self._logger.info("synthesis_finished")
            if self.on_success is not None:
                self.on_success()
        else:
            self._report(error)

    def _release(self) -> None:
        if self._token is not None:
            self._token.cancel()
            self._token = None
        if self._task is not None:
            if not self._task.done() and self._task is not asyncio.current_task():
                self._task.cancel()
            self._task = None
        self._player.stop()
        self._speaking = False

    def _report(self, error: VoiceRelayError) -> None:
        self._logger.warning("synthesis_failed", extra={"error": error.message})
        if self.on_error is not None:
            self.on_error(error)
