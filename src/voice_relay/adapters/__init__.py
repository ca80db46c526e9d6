"""Adapters for external endpoints (e.g., the automation relay)."""

from .relay import DISPLAY_TEXT_FIELDS, RelayDispatcher, resolve_display_text

__all__ = [
    "DISPLAY_TEXT_FIELDS",
    "RelayDispatcher",
    "resolve_display_text",
]
