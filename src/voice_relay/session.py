"""Session orchestration: record, transcribe, relay, then speak the response."""

from __future__ import annotations

import asyncio
import logging
import time
from enum import Enum
from typing import Callable

from voice_relay.adapters.relay import RelayDispatcher
from voice_relay.errors import CaptureError, InvalidTransition, VoiceRelayError
from voice_relay.models import AudioArtifact, RelayRequest, Session, SessionPhase, Transcript
from voice_relay.notices import Notice, NoticeBoard, NoticeLevel, NoticeSink
from voice_relay.voice.input import AudioCaptureController
from voice_relay.voice.output import SpeechSynthesisController
from voice_relay.voice.transcription import TranscriptionClient


class SessionEvent(str, Enum):
    """Inputs that move the session between phases."""

    RECORD_STARTED = "record_started"
    RECORD_STOPPED = "record_stopped"
    CAPTURE_FAULT = "capture_fault"
    TRANSCRIBED = "transcribed"
    RELAYED_FOR_PLAYBACK = "relayed_for_playback"
    RELAYED_FOR_DISPLAY = "relayed_for_display"
    PLAYBACK_ENDED = "playback_ended"
    PLAYBACK_FAILED = "playback_failed"
    FAILED = "failed"
    INTERRUPTED = "interrupted"


_TRANSITIONS: dict[tuple[SessionPhase, SessionEvent], SessionPhase] = {
    (SessionPhase.IDLE, SessionEvent.RECORD_STARTED): SessionPhase.RECORDING,
    (SessionPhase.RECORDING, SessionEvent.RECORD_STOPPED): SessionPhase.TRANSCRIBING,
    (SessionPhase.RECORDING, SessionEvent.CAPTURE_FAULT): SessionPhase.TRANSCRIBING,
    (SessionPhase.TRANSCRIBING, SessionEvent.TRANSCRIBED): SessionPhase.RELAYING,
    (SessionPhase.RELAYING, SessionEvent.RELAYED_FOR_PLAYBACK): SessionPhase.SYNTHESIZING,
    (SessionPhase.RELAYING, SessionEvent.RELAYED_FOR_DISPLAY): SessionPhase.IDLE,
    (SessionPhase.SYNTHESIZING, SessionEvent.PLAYBACK_ENDED): SessionPhase.IDLE,
    (SessionPhase.SYNTHESIZING, SessionEvent.PLAYBACK_FAILED): SessionPhase.IDLE,
}

# Accepted from every phase.
_RESET_EVENTS = frozenset({SessionEvent.FAILED, SessionEvent.INTERRUPTED})


def transition(phase: SessionPhase, event: SessionEvent) -> SessionPhase:
    """Return the phase that follows ``event``; raises ``InvalidTransition`` otherwise."""
    if event in _RESET_EVENTS:
        return SessionPhase.IDLE
    try:
        return _TRANSITIONS[(phase, event)]
    except KeyError:
        raise InvalidTransition(f"{event.value} is not allowed while {phase.value}") from None


class SessionOrchestrator:
    """Owns one ``Session`` and sequences capture, transcription, relay and synthesis.

    All transitions run on the event loop. Toggle requests are serialized, a
    turn in ``TRANSCRIBING`` or ``RELAYING`` cannot be restarted, and every
    failure lands back in ``IDLE`` with ``last_error`` set and a single error
    notice published. Cancellation is silent.
    """

    def __init__(
        self,
        *,
        capture: AudioCaptureController,
        transcriber: TranscriptionClient,
        relay: RelayDispatcher,
        synthesis: SpeechSynthesisController,
        notices: NoticeSink | None = None,
        auto_playback: bool = True,
        on_change: Callable[[Session], None] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._capture = capture
        self._transcriber = transcriber
        self._relay = relay
        self._synthesis = synthesis
        self._notices = notices or NoticeBoard()
        self._auto_playback = auto_playback
        self._on_change = on_change
        self._logger = logger or logging.getLogger("voice_relay.session")

        self._session = Session()
        self._lock = asyncio.Lock()
        self._turn_task: asyncio.Task[None] | None = None

        self._capture.on_fault = self._on_capture_fault
        self._synthesis.on_success = self._on_synthesis_success
        self._synthesis.on_error = self._on_synthesis_error

    @property
    def session(self) -> Session:
        return self._session

    @property
    def phase(self) -> SessionPhase:
        return self._session.phase

    @property
    def auto_playback(self) -> bool:
        return self._auto_playback

    @property
    def notices(self) -> NoticeSink:
        return self._notices

    @property
    def turn_task(self) -> asyncio.Task[None] | None:
        return self._turn_task

    @property
    def speaking(self) -> bool:
        """True while the user is audibly speaking or the response is being narrated."""
        return self._capture.speech_detected or self._synthesis.speaking

    @property
    def playback_active(self) -> bool:
        return self._synthesis.speaking

    async def toggle_record(self) -> bool:
        """Start recording when idle, or finish the recording in progress.

        Returns ``False`` when the request was rejected or recording could not start.
        """
        async with self._lock:
            phase = self._session.phase
            if phase == SessionPhase.RECORDING:
                self._finish_recording(SessionEvent.RECORD_STOPPED)
                return True

            if phase in (SessionPhase.TRANSCRIBING, SessionPhase.RELAYING):
                self._logger.info("toggle_record_ignored", extra={"phase": phase.value})
                return False

            if phase == SessionPhase.SYNTHESIZING:
                self._synthesis.stop()
                self._advance(SessionEvent.INTERRUPTED)
            elif self._synthesis.speaking:
                self._synthesis.stop()

            self._session.reset_turn()
            self._notify()
            try:
                await self._capture.start()
            except CaptureError as exc:
                self._fail(exc)
                return False

            if not self._capture.recording:
                # Cancelled while the microphone was being acquired.
                return False

            self._advance(SessionEvent.RECORD_STARTED)
            self._logger.info("recording_started", extra={"session_id": self._session.session_id})
            return True

    def toggle_playback(self) -> bool:
        """Stop narration if it is playing, otherwise replay the displayed transcript.

        Returns whether narration is running afterwards.
        """
        if self._synthesis.speaking:
            self._synthesis.stop()
            if self._session.phase == SessionPhase.SYNTHESIZING:
                self._reveal_pending(SessionEvent.INTERRUPTED)
            return False

        displayed = self._session.displayed_transcript
        if self._session.phase == SessionPhase.IDLE and displayed is not None and displayed.text:
            self._synthesis.speak(displayed.text)
            self._notify()
        return self._synthesis.speaking

    def toggle_auto_playback(self) -> bool:
        self._auto_playback = not self._auto_playback
        self._logger.info("auto_playback_changed", extra={"enabled": self._auto_playback})
        self._notify()
        return self._auto_playback

    def cancel(self) -> None:
        """Abandon whatever is in flight and return to idle without reporting an error."""
        self._capture.discard()
        if self._turn_task is not None and not self._turn_task.done():
            self._turn_task.cancel()
        self._synthesis.stop()
        self._session.pending_text = ""
        if self._session.phase != SessionPhase.IDLE:
            self._advance(SessionEvent.INTERRUPTED)
            self._logger.info("session_cancelled", extra={"session_id": self._session.session_id})

    async def aclose(self) -> None:
        task = self._turn_task
        self.cancel()
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._turn_task = None
        await self._relay.aclose()

    def _finish_recording(self, event: SessionEvent) -> None:
        artifact = self._capture.stop()
        self._advance(event)
        if artifact is None:
            self._fail(CaptureError("No audio was recorded"))
            return
        self._turn_task = asyncio.get_running_loop().create_task(self._run_turn(artifact), name="voice-turn")

    async def _run_turn(self, artifact: AudioArtifact) -> None:
        try:
            transcript = await self._transcriber.transcribe(artifact)
            self._advance(SessionEvent.TRANSCRIBED)

            response = await self._relay.send(RelayRequest(msg=transcript.text, session_id=self._session.session_id))
        except VoiceRelayError as exc:
            self._fail(exc)
            return
        except Exception as exc:  # noqa: BLE001
            self._logger.exception("turn_failed", extra={"session_id": self._session.session_id})
            self._fail(VoiceRelayError(f"{type(exc).__name__}: {exc}"))
            return

        text = response.display_text
        self._publish(NoticeLevel.SUCCESS, "Message sent", _preview(text), duration_seconds=3.0)

        if self._auto_playback and text.strip():
            self._session.pending_text = text
            self._advance(SessionEvent.RELAYED_FOR_PLAYBACK)
            self._synthesis.speak(text)
            return

        self._display(SessionEvent.RELAYED_FOR_DISPLAY, text)

    def _on_capture_fault(self, message: str) -> None:
        if self._session.phase != SessionPhase.RECORDING:
            return
        self._publish(NoticeLevel.WARNING, "Recording interrupted", message)
        self._finish_recording(SessionEvent.CAPTURE_FAULT)

    def _on_synthesis_success(self) -> None:
        if self._session.phase == SessionPhase.SYNTHESIZING:
            self._reveal_pending(SessionEvent.PLAYBACK_ENDED)
            self._publish(NoticeLevel.SUCCESS, "Playback finished", "The response is now shown", duration_seconds=2.0)
        else:
            self._publish(NoticeLevel.SUCCESS, "Playback finished", duration_seconds=2.0)

    def _on_synthesis_error(self, error: VoiceRelayError) -> None:
        self._session.last_error = error
        self._publish(NoticeLevel.ERROR, error.title, error.message, duration_seconds=4.0)
        if self._session.phase == SessionPhase.SYNTHESIZING:
            # The response text is still worth showing when narration fails.
            self._reveal_pending(SessionEvent.PLAYBACK_FAILED)
        else:
            self._notify()

    def _reveal_pending(self, event: SessionEvent) -> None:
        text, self._session.pending_text = self._session.pending_text, ""
        self._display(event, text)

    def _display(self, event: SessionEvent, text: str) -> None:
        self._advance(event, notify=False)
        if text:
            self._session.displayed_transcript = Transcript(text=text, timestamp=time.time())
        self._notify()

    def _fail(self, error: VoiceRelayError) -> None:
        self._session.last_error = error
        self._session.pending_text = ""
        self._logger.warning(
            "turn_failed",
            extra={"phase": self._session.phase.value, "error_type": type(error).__name__, "error": error.message},
        )
        self._advance(SessionEvent.FAILED, notify=False)
        self._publish(NoticeLevel.ERROR, error.title, error.message, duration_seconds=4.0)
        self._notify()

    def _advance(self, event: SessionEvent, *, notify: bool = True) -> None:
        previous = self._session.phase
        self._session.phase = transition(previous, event)
        self._logger.debug(
            "session_transition",
            extra={"from": previous.value, "to": self._session.phase.value, "event": event.value},
        )
        if notify:
            self._notify()

    def _publish(
        self,
        level: NoticeLevel,
        title: str,
        description: str | None = None,
        *,
        duration_seconds: float = 3.0,
    ) -> None:
        self._notices.publish(
            Notice(level=level, title=title, description=description, duration_seconds=duration_seconds)
        )

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change(self._session)


def _preview(text: str, limit: int = 50) -> str:
    return f'Received: "{text[:limit]}{"..." if len(text) > limit else ""}"'
