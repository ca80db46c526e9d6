"""Console logging setup for interactive runs."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler


class _ExtraFieldsFilter(logging.Filter):
    """Append structured ``extra`` fields to the rendered message."""

    _STANDARD = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {"message", "asctime"}

    def filter(self, record: logging.LogRecord) -> bool:
        fields = {key: value for key, value in record.__dict__.items() if key not in self._STANDARD}
        if fields and not getattr(record, "_fields_rendered", False):
            rendered = " ".join(f"{key}={value!r}" for key, value in fields.items())
            record.msg = f"{record.msg} {rendered}"
            record._fields_rendered = True
        return True


def configure_logging(level: str = "INFO", *, console: Console | None = None) -> None:
    """Route ``voice_relay`` loggers through a rich console handler."""
    handler = RichHandler(console=console, show_path=False, rich_tracebacks=True, markup=False)
    handler.addFilter(_ExtraFieldsFilter())

    logger = logging.getLogger("voice_relay")
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(level.upper())
    logger.propagate = False
