"""Console presentation and key controls for an interactive voice session."""

from __future__ import annotations

import asyncio

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from voice_relay.models import Session, SessionPhase
from voice_relay.notices import Notice, NoticeLevel
from voice_relay.session import SessionOrchestrator

CONTROLS_HINT = "[r] record/stop  [p] play/stop response  [a] auto playback  [c] cancel  [q] quit"

_NOTICE_STYLES = {
    NoticeLevel.INFO: "cyan",
    NoticeLevel.SUCCESS: "green",
    NoticeLevel.WARNING: "yellow",
    NoticeLevel.ERROR: "bold red",
}


def status_badge(orchestrator: SessionOrchestrator) -> str | None:
    """Short badge describing what the session is doing right now."""
    phase = orchestrator.phase
    if orchestrator.playback_active:
        return "Reading response"
    if phase == SessionPhase.RELAYING:
        return "Sending"
    if phase == SessionPhase.TRANSCRIBING:
        return "Transcribing"
    if phase == SessionPhase.RECORDING:
        return "Speaking" if orchestrator.speaking else "Listening"
    return None


def button_caption(orchestrator: SessionOrchestrator) -> str:
    phase = orchestrator.phase
    if phase == SessionPhase.TRANSCRIBING:
        return "Transcribing..."
    if phase == SessionPhase.RELAYING:
        return "Sending..."
    if orchestrator.playback_active:
        return "Reading response..."
    if phase == SessionPhase.RECORDING:
        return "Stop recording"
    return "Start recording"


def waveform(active: bool, width: int = 24) -> Text:
    if active:
        return Text("▁▃▅▇▅▃" * (width // 6), style="magenta")
    return Text("▁" * width, style="dim")


class ConsoleControls:
    """Maps typed keys onto the orchestrator's toggles and renders its state."""

    def __init__(self, orchestrator: SessionOrchestrator, console: Console | None = None) -> None:
        self._orchestrator = orchestrator
        self._console = console or Console()

    async def handle(self, key: str) -> bool:
        """Apply one control key; returns ``False`` when the session should end."""
        key = key.strip().lower()
        if key in ("q", "quit", "exit"):
            self._orchestrator.cancel()
            return False
        if key in ("r", ""):
            await self._orchestrator.toggle_record()
        elif key == "p":
            self._orchestrator.toggle_playback()
        elif key == "a":
            enabled = self._orchestrator.toggle_auto_playback()
            self._console.print(f"Auto playback {'on' if enabled else 'off'}")
        elif key == "c":
            self._orchestrator.cancel()
        else:
            self._console.print(f"[dim]{CONTROLS_HINT}[/dim]")
        return True

    def render(self, session: Session | None = None) -> None:
        session = session or self._orchestrator.session
        line = Text.assemble(waveform(self._orchestrator.speaking), "  ", button_caption(self._orchestrator))
        badge = status_badge(self._orchestrator)
        if badge:
            line.append(f"  [{badge}]", style="bold")
        self._console.print(line)

        transcript = session.displayed_transcript
        if transcript is not None and transcript.text:
            words = len(transcript.text.split(" "))
            self._console.print(
                Panel(
                    transcript.text,
                    title="Transcript",
                    subtitle=f"{words} words · auto playback {'on' if self._orchestrator.auto_playback else 'off'}",
                )
            )

    def show_notice(self, notice: Notice) -> None:
        style = _NOTICE_STYLES[notice.level]
        message = Text(notice.title, style=style)
        if notice.description:
            message.append(f" {notice.description}", style="default")
        self._console.print(message)

    async def run(self) -> None:
        """Read control keys until the user quits."""
        self._console.print(CONTROLS_HINT)
        self.render()
        while True:
            key = await asyncio.to_thread(input, "> ")
            if not await self.handle(key):
                break
