"""Relay of transcripts to the downstream automation endpoint."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import httpx

from voice_relay.errors import RelayError, RelayErrorKind
from voice_relay.models import RelayRequest, RelayResponse

DEFAULT_RELAY_TIMEOUT_SECONDS = 300.0

DISPLAY_TEXT_FIELDS: tuple[str, ...] = ("output", "response", "text", "message")


def resolve_display_text(payload: Any, fallback: str) -> str:
    """Pick the narratable text out of a relay payload, echoing the input when nothing fits."""
    if isinstance(payload, Mapping):
        for key in DISPLAY_TEXT_FIELDS:
            value = payload.get(key)
            if value:
                return value if isinstance(value, str) else str(value)
    return fallback


class RelayDispatcher:
    """Posts one transcript at a time to the automation webhook."""

    def __init__(
        self,
        url: str,
        *,
        timeout_seconds: float = DEFAULT_RELAY_TIMEOUT_SECONDS,
        client: httpx.AsyncClient | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._url = url
        self._timeout_seconds = timeout_seconds
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout_seconds))
        self._logger = logger or logging.getLogger("voice_relay.adapters.relay")
        self._pending = False

    @property
    def url(self) -> str:
        return self._url

    @property
    def pending(self) -> bool:
        return self._pending

    async def send(self, request: RelayRequest) -> RelayResponse:
        """Send the transcript; raises ``RelayError`` classified by failure kind."""
        self._pending = True
        self._logger.info("relay_started", extra={"session_id": request.session_id, "chars": len(request.msg)})
        try:
            response = await self._client.post(
                self._url,
                json=request.to_json(),
                headers={"Content-Type": "application/json"},
                timeout=self._timeout_seconds,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise self._failed(
                RelayError(
                    RelayErrorKind.HTTP,
                    f"HTTP {exc.response.status_code}: {exc.response.reason_phrase}",
                    status=exc.response.status_code,
                )
            ) from exc
        except httpx.TimeoutException as exc:
            raise self._failed(
                RelayError(
                    RelayErrorKind.TIMEOUT,
                    f"Relay request timed out after {self._timeout_seconds:g} seconds",
                )
            ) from exc
        except httpx.TransportError as exc:
            raise self._failed(
                RelayError(RelayErrorKind.NETWORK, "Could not connect to the relay endpoint")
            ) from exc
        except Exception as exc:  # noqa: BLE001
            raise self._failed(RelayError(RelayErrorKind.UNKNOWN, str(exc) or type(exc).__name__)) from exc
        finally:
            self._pending = False

        try:
            payload: Any = response.json()
        except ValueError:
            payload = response.text

        display_text = resolve_display_text(payload, request.msg)
        self._logger.info("relay_succeeded", extra={"status": response.status_code, "chars": len(display_text)})
        return RelayResponse(payload=payload, display_text=display_text)

    async def aclose(self) -> None:
        await self._client.aclose()

    def _failed(self, error: RelayError) -> RelayError:
        self._logger.warning(
            "relay_failed",
            extra={"kind": error.kind.value, "status": error.status, "error": error.message},
        )
        return error
