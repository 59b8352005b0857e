"""Connection lifecycle and receive loop for a Stream Deck plugin."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping
from typing import Any

from deckctl.core.codec import decode_envelope, encode_command, encode_registration
from deckctl.core.dispatch import dispatch
from deckctl.core.errors import ConnectionStateError, MessageTooLargeError, PluginNotBoundError
from deckctl.core.model import ConnectionState, RegistrationInfo, SetTitle, TargetType
from deckctl.core.plugin import PluginHandlers
from deckctl.core.settings import Settings
from deckctl.transports.base import Transport
from deckctl.transports.websocket import WebSocketTransport

LOGGER = logging.getLogger(__name__)

ErrorCallback = Callable[[BaseException], None]


class ConnectionManager:
    """Owns the host connection and relays events to one plugin.

    Typical use::

        manager = ConnectionManager.initialize(port, uuid, register_event, info)
        manager.set_plugin(MyPlugin()).start()
        manager.join()

    The run sequence (connect, register, receive loop) executes on a
    dedicated thread. Failures there never propagate to :meth:`start`; they
    are logged, stored in :attr:`error`, and passed to ``on_error`` if given.
    """

    def __init__(
        self,
        registration: RegistrationInfo,
        *,
        settings: Settings | None = None,
        transport: Transport | None = None,
        on_error: ErrorCallback | None = None,
    ) -> None:
        self._registration = registration
        self._settings = settings or Settings()
        self._transport = transport or WebSocketTransport(max_message_bytes=self._settings.max_message_bytes)
        self._on_error = on_error
        self._plugin: PluginHandlers | None = None
        self._state = ConnectionState.UNCONNECTED
        self._state_lock = threading.Lock()
        self._stop_event: threading.Event | None = None
        self._thread: threading.Thread | None = None
        self._error: BaseException | None = None

    @classmethod
    def initialize(
        cls,
        port: int | str,
        plugin_uuid: str,
        register_event: str,
        info: Mapping[str, Any] | None = None,
        *,
        settings: Settings | None = None,
        transport: Transport | None = None,
        on_error: ErrorCallback | None = None,
    ) -> ConnectionManager:
        registration = RegistrationInfo(
            port=int(port),
            plugin_uuid=plugin_uuid,
            register_event=register_event,
            info=dict(info or {}),
        )
        return cls(registration, settings=settings, transport=transport, on_error=on_error)

    @property
    def registration(self) -> RegistrationInfo:
        return self._registration

    @property
    def info(self) -> dict[str, Any]:
        return self._registration.info

    @property
    def url(self) -> str:
        return f"ws://{self._settings.host}:{self._registration.port}"

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def error(self) -> BaseException | None:
        return self._error

    @property
    def plugin(self) -> PluginHandlers | None:
        return self._plugin

    def set_plugin(self, plugin: PluginHandlers) -> ConnectionManager:
        with self._state_lock:
            if self._state is not ConnectionState.UNCONNECTED:
                raise ConnectionStateError("Plugin must be bound before the connection is started")
            plugin.attach(self)
            self._plugin = plugin
        return self

    def start(self, stop_event: threading.Event | None = None) -> ConnectionManager:
        with self._state_lock:
            if self._plugin is None:
                raise PluginNotBoundError("Call set_plugin() before start()")
            if self._state is not ConnectionState.UNCONNECTED:
                raise ConnectionStateError(f"Connection already started (state '{self._state.value}')")
            self._state = ConnectionState.CONNECTING

        self._stop_event = stop_event or threading.Event()
        self._thread = threading.Thread(
            target=self._run,
            args=(self._stop_event, self._plugin),
            name="deckctl-receive",
            daemon=True,
        )
        self._thread.start()
        return self

    def set_title(
        self,
        context: str,
        title: str,
        target: TargetType = TargetType.HARDWARE_AND_SOFTWARE,
    ) -> None:
        self.send_command(SetTitle(context=context, title=title, target=target))

    def send_command(self, command: SetTitle) -> None:
        LOGGER.debug("Sending %s", command)
        self._transport.send(encode_command(command))

    def stop(self) -> None:
        if self._stop_event is not None:
            self._stop_event.set()

    def join(self, timeout: float | None = None) -> bool:
        """Wait for the run thread. Returns True once it has finished."""
        thread = self._thread
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()

    def close(self, timeout: float | None = 5.0) -> None:
        self.stop()
        self.join(timeout)
        self._transport.close()
        if self._thread is None:
            self._set_state(ConnectionState.CLOSED)

    def __enter__(self) -> ConnectionManager:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _set_state(self, state: ConnectionState) -> None:
        with self._state_lock:
            self._state = state
        LOGGER.info("Connection state -> %s", state.value)

    def _run(self, stop_event: threading.Event, plugin: PluginHandlers) -> None:
        try:
            self._open()
            self._receive_loop(stop_event, plugin)
        except Exception as exc:
            self._error = exc
            LOGGER.exception("Connection to %s failed", self.url)
            if self._on_error is not None:
                self._on_error(exc)
        finally:
            self._set_state(ConnectionState.CLOSING)
            self._transport.close()
            self._set_state(ConnectionState.CLOSED)

    def _open(self) -> None:
        LOGGER.info("Connecting to %s", self.url)
        self._transport.connect(self.url, timeout_s=self._settings.open_timeout_s)
        self._transport.send(encode_registration(self._registration))
        self._set_state(ConnectionState.REGISTERED)

    def _receive_loop(self, stop_event: threading.Event, plugin: PluginHandlers) -> None:
        self._set_state(ConnectionState.RUNNING)

        while not stop_event.is_set():
            transport_state = self._transport.state
            if transport_state.is_terminal:
                LOGGER.info("Transport is %s, leaving receive loop", transport_state.value)
                break

            try:
                message = self._transport.receive(self._settings.receive_poll_s)
            except MessageTooLargeError as exc:
                LOGGER.warning("Dropping inbound message: %s", exc)
                message = None

            if message and message.strip():
                envelope = decode_envelope(message)
                LOGGER.debug("Dispatching '%s' for context %s", envelope.event, envelope.context)
                dispatch(envelope, plugin)

            if self._settings.idle_delay_s > 0:
                stop_event.wait(self._settings.idle_delay_s)
