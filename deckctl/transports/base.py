"""Transport interfaces."""

from __future__ import annotations

from typing import Protocol

from deckctl.core.model import TransportState


class Transport(Protocol):
    @property
    def state(self) -> TransportState:
        """Current connection state, polled by the receive loop."""

    def connect(self, url: str, *, timeout_s: float = 10.0) -> None:
        """Open the connection or raise TransportConnectError."""

    def send(self, message: str) -> None:
        """Write one complete text message."""

    def receive(self, timeout_s: float | None = None) -> str | bytes | None:
        """Return the next message, or None if none arrived within the timeout."""

    def close(self) -> None:
        """Release the connection. Calling it more than once is allowed."""
