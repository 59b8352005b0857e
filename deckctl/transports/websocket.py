"""WebSocket transport implementation using the websockets sync client."""

from __future__ import annotations

import logging
import threading
from contextlib import ExitStack

from websockets.exceptions import (
    ConnectionClosed,
    ConnectionClosedError,
    InvalidHandshake,
    InvalidURI,
)
from websockets.sync.client import ClientConnection, connect

from deckctl.core.errors import (
    MessageTooLargeError,
    TransportConnectError,
    TransportReceiveError,
    TransportSendError,
)
from deckctl.core.model import TransportState

DEFAULT_MAX_MESSAGE_BYTES = 65536
LOGGER = logging.getLogger(__name__)


class WebSocketTransport:
    """One full-duplex WebSocket connection.

    A single thread may call :meth:`receive` while any number of threads call
    :meth:`send`; sends are serialized by a lock.
    """

    def __init__(self, *, max_message_bytes: int = DEFAULT_MAX_MESSAGE_BYTES) -> None:
        self.max_message_bytes = max_message_bytes
        self._connection: ClientConnection | None = None
        self._send_lock = threading.Lock()
        self._closed_state: TransportState | None = None
        self._exit_stack = ExitStack()

    @property
    def state(self) -> TransportState:
        if self._closed_state is not None:
            return self._closed_state
        if self._connection is None:
            return TransportState.UNOPENED
        # The library state turns CLOSED while received messages may still be
        # buffered; only a ConnectionClosed from recv() means they are drained.
        return TransportState.OPEN

    def connect(self, url: str, *, timeout_s: float = 10.0) -> None:
        if self._connection is not None:
            raise TransportConnectError("Transport is already connected")
        try:
            # The host is always local, so environment proxies are ignored. Size is
            # enforced in receive() so oversized messages do not close the connection.
            self._connection = self._exit_stack.enter_context(
                connect(url, open_timeout=timeout_s, max_size=None, proxy=None)
            )
        except TimeoutError as exc:
            raise TransportConnectError(f"WebSocket connect to {url} timed out") from exc
        except (OSError, InvalidHandshake, InvalidURI) as exc:
            raise TransportConnectError(f"WebSocket connect to {url} failed: {exc}") from exc
        LOGGER.debug("Connected to %s", url)

    def send(self, message: str) -> None:
        connection = self._connection
        if connection is None or self.state is not TransportState.OPEN:
            raise TransportSendError(f"Cannot send on a connection in state '{self.state.value}'")
        with self._send_lock:
            try:
                connection.send(message)
            except (ConnectionClosed, OSError) as exc:
                raise TransportSendError(f"WebSocket send failed: {exc}") from exc

    def receive(self, timeout_s: float | None = None) -> str | bytes | None:
        connection = self._connection
        if connection is None:
            raise TransportReceiveError("Cannot receive before the connection is opened")
        if self._closed_state is not None:
            return None
        try:
            message = connection.recv(timeout=timeout_s)
        except TimeoutError:
            return None
        except ConnectionClosed as exc:
            self._mark_closed(exc)
            return None

        size = len(message.encode("utf-8")) if isinstance(message, str) else len(message)
        if size > self.max_message_bytes:
            raise MessageTooLargeError(
                f"Inbound message of {size} bytes exceeds limit of {self.max_message_bytes} bytes"
            )
        return message

    def close(self) -> None:
        if self._connection is None:
            return
        self._exit_stack.close()
        if self._closed_state is None:
            self._closed_state = TransportState.CLOSED

    def _mark_closed(self, exc: ConnectionClosed) -> None:
        if isinstance(exc, ConnectionClosedError):
            self._closed_state = TransportState.ABORTED
        else:
            self._closed_state = TransportState.CLOSED
        LOGGER.debug("Connection closed: %s", exc)
