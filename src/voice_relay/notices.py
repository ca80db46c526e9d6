"""Transient user-facing notices, kept apart from the transcript panel."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Protocol
from uuid import uuid4


class NoticeLevel(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(slots=True)
class Notice:
    level: NoticeLevel
    title: str
    description: str | None = None
    duration_seconds: float = 3.0
    id: str = field(default_factory=lambda: uuid4().hex)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class NoticeSink(Protocol):
    """Receives notices for display."""

    def publish(self, notice: Notice) -> None:
        """Show ``notice`` to the user."""


class NoticeBoard:
    """Bounded list of active notices with optional listeners."""

    def __init__(self, max_notices: int = 20) -> None:
        self._notices: deque[Notice] = deque(maxlen=max_notices)
        self._listeners: list[Callable[[Notice], None]] = []

    def subscribe(self, listener: Callable[[Notice], None]) -> None:
        self._listeners.append(listener)

    def publish(self, notice: Notice) -> None:
        self._notices.append(notice)
        for listener in self._listeners:
            listener(notice)

    def dismiss(self, notice_id: str) -> bool:
        for notice in self._notices:
            if notice.id == notice_id:
                self._notices.remove(notice)
                return True
        return False

    def active(self) -> list[Notice]:
        return list(self._notices)

    def clear(self) -> None:
        self._notices.clear()
