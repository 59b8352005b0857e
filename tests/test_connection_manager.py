from __future__ import annotations

import json
import threading
import time
from collections.abc import Callable

import pytest

from deckctl.core.connection import ConnectionManager
from deckctl.core.errors import (
    ConnectionStateError,
    MessageDecodeError,
    MessageTooLargeError,
    PluginNotBoundError,
    TransportConnectError,
    TransportSendError,
)
from deckctl.core.model import ConnectionState, TargetType, TransportState
from deckctl.core.plugin import StreamDeckPlugin
from deckctl.core.settings import Settings

FAST = Settings(idle_delay_s=0.0, receive_poll_s=0.01)


class ScriptedTransport:
    """Replays scripted inbound messages, then reports the host closed."""

    def __init__(
        self,
        messages: list[str | Exception] | None = None,
        *,
        close_when_drained: bool = True,
        connect_error: Exception | None = None,
    ) -> None:
        self.messages = list(messages or [])
        self.close_when_drained = close_when_drained
        self.connect_error = connect_error
        self.sent: list[str] = []
        self.url: str | None = None
        self.close_calls = 0
        self._state = TransportState.UNOPENED

    @property
    def state(self) -> TransportState:
        return self._state

    def connect(self, url: str, *, timeout_s: float = 10.0) -> None:
        if self.connect_error is not None:
            raise self.connect_error
        self.url = url
        self._state = TransportState.OPEN

    def send(self, message: str) -> None:
        if self._state is not TransportState.OPEN:
            raise TransportSendError("connection is not open")
        self.sent.append(message)

    def receive(self, timeout_s: float | None = None) -> str | bytes | None:
        if self.messages:
            item = self.messages.pop(0)
            if isinstance(item, Exception):
                raise item
            return item
        if self.close_when_drained:
            self._state = TransportState.CLOSED
        else:
            time.sleep(timeout_s or 0.0)
        return None

    def close(self) -> None:
        self.close_calls += 1
        if not self._state.is_terminal:
            self._state = TransportState.CLOSED


class RecordingPlugin(StreamDeckPlugin):
    def __init__(self) -> None:
        super().__init__()
        self.calls: list[tuple] = []

    def on_key_down(self, action, context, payload, device) -> None:
        self.calls.append(("on_key_down", action, context, payload, device))

    def on_key_up(self, action, context, payload, device) -> None:
        self.calls.append(("on_key_up", action, context, payload, device))

    def on_will_appear(self, action, context, payload, device) -> None:
        self.calls.append(("on_will_appear", action, context, payload, device))

    def on_will_disappear(self, action, context, payload, device) -> None:
        self.calls.append(("on_will_disappear", action, context, payload, device))


def _event(name: str, context: str = "c1") -> str:
    return json.dumps({"event": name, "action": "a1", "context": context, "device": "d1", "payload": {}})


def _manager(transport: ScriptedTransport, **kwargs) -> ConnectionManager:
    return ConnectionManager.initialize(
        28196,
        "plugin-uuid",
        "registerPlugin",
        {"application": {"platform": "mac"}},
        settings=FAST,
        transport=transport,
        **kwargs,
    )


def _wait_for(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not met in time")
        time.sleep(0.005)


def test_initialize_performs_no_io() -> None:
    transport = ScriptedTransport()
    manager = _manager(transport)

    assert manager.state is ConnectionState.UNCONNECTED
    assert manager.url == "ws://localhost:28196"
    assert manager.registration.plugin_uuid == "plugin-uuid"
    assert manager.info == {"application": {"platform": "mac"}}
    assert transport.url is None
    assert transport.sent == []


def test_set_plugin_is_fluent_and_attaches_manager() -> None:
    manager = _manager(ScriptedTransport())
    plugin = RecordingPlugin()

    assert manager.set_plugin(plugin) is manager
    assert plugin.manager is manager
    assert manager.plugin is plugin


def test_start_without_plugin_fails_fast() -> None:
    transport = ScriptedTransport([_event("keyDown")])
    manager = _manager(transport)

    with pytest.raises(PluginNotBoundError):
        manager.start()

    assert manager.state is ConnectionState.UNCONNECTED
    assert transport.url is None


def test_key_down_then_close_dispatches_once() -> None:
    transport = ScriptedTransport([_event("keyDown")])
    plugin = RecordingPlugin()
    manager = _manager(transport).set_plugin(plugin)

    assert manager.start() is manager
    assert manager.join(timeout=2.0)

    assert plugin.calls == [("on_key_down", "a1", "c1", {}, "d1")]
    assert manager.state is ConnectionState.CLOSED
    assert manager.error is None
    assert transport.url == "ws://localhost:28196"
    assert json.loads(transport.sent[0]) == {"event": "registerPlugin", "uuid": "plugin-uuid"}
    assert transport.close_calls >= 1


def test_messages_are_dispatched_in_arrival_order() -> None:
    transport = ScriptedTransport(
        [
            _event("willAppear"),
            _event("keyDown"),
            _event("deviceDidConnect"),
            _event("keyUp"),
            "",
            "   ",
            _event("willDisappear"),
        ]
    )
    plugin = RecordingPlugin()
    manager = _manager(transport).set_plugin(plugin).start()
    assert manager.join(timeout=2.0)

    assert [call[0] for call in plugin.calls] == [
        "on_will_appear",
        "on_key_down",
        "on_key_up",
        "on_will_disappear",
    ]
    assert manager.error is None


def test_set_title_sends_exact_payload() -> None:
    transport = ScriptedTransport(close_when_drained=False)
    manager = _manager(transport).set_plugin(RecordingPlugin()).start()
    _wait_for(lambda: manager.state is ConnectionState.RUNNING)

    manager.set_title("ctx-1", "Hello")
    manager.set_title("ctx-2", "Hw", TargetType.HARDWARE)

    assert json.loads(transport.sent[1]) == {"context": "ctx-1", "payload": {"title": "Hello", "target": 0}}
    assert json.loads(transport.sent[2]) == {"context": "ctx-2", "payload": {"title": "Hw", "target": 1}}

    manager.close()
    assert manager.state is ConnectionState.CLOSED


def test_set_title_from_handler_on_receive_thread() -> None:
    class EchoPlugin(RecordingPlugin):
        def on_key_down(self, action, context, payload, device) -> None:
            self.manager.set_title(context, "pressed")

    transport = ScriptedTransport([_event("keyDown", context="c9")])
    manager = _manager(transport).set_plugin(EchoPlugin()).start()
    assert manager.join(timeout=2.0)

    assert manager.error is None
    assert json.loads(transport.sent[-1]) == {"context": "c9", "payload": {"title": "pressed", "target": 0}}


def test_set_title_before_connect_raises_send_error() -> None:
    manager = _manager(ScriptedTransport()).set_plugin(RecordingPlugin())
    with pytest.raises(TransportSendError):
        manager.set_title("ctx-1", "Hello")


def test_oversized_message_is_rejected_and_skipped() -> None:
    transport = ScriptedTransport(
        [
            MessageTooLargeError("Inbound message of 70000 bytes exceeds limit of 65536 bytes"),
            _event("keyDown"),
        ]
    )
    plugin = RecordingPlugin()
    manager = _manager(transport).set_plugin(plugin).start()
    assert manager.join(timeout=2.0)

    assert plugin.calls == [("on_key_down", "a1", "c1", {}, "d1")]
    assert manager.error is None


def test_decode_failure_ends_run_and_is_reported() -> None:
    errors: list[BaseException] = []
    transport = ScriptedTransport(["{not json", _event("keyDown")])
    plugin = RecordingPlugin()
    manager = _manager(transport, on_error=errors.append).set_plugin(plugin).start()
    assert manager.join(timeout=2.0)

    assert isinstance(manager.error, MessageDecodeError)
    assert errors == [manager.error]
    assert plugin.calls == []
    assert manager.state is ConnectionState.CLOSED


def test_connect_failure_is_not_raised_from_start() -> None:
    errors: list[BaseException] = []
    transport = ScriptedTransport(connect_error=TransportConnectError("refused"))
    plugin = RecordingPlugin()
    manager = _manager(transport, on_error=errors.append).set_plugin(plugin)

    assert manager.start() is manager
    assert manager.join(timeout=2.0)

    assert isinstance(manager.error, TransportConnectError)
    assert len(errors) == 1
    assert transport.sent == []
    assert manager.state is ConnectionState.CLOSED


def test_stop_event_cancels_loop() -> None:
    stop_event = threading.Event()
    transport = ScriptedTransport(close_when_drained=False)
    manager = _manager(transport).set_plugin(RecordingPlugin()).start(stop_event)
    _wait_for(lambda: manager.state is ConnectionState.RUNNING)

    stop_event.set()

    assert manager.join(timeout=2.0)
    assert manager.state is ConnectionState.CLOSED
    assert manager.error is None
    assert transport.close_calls >= 1


def test_start_twice_and_rebinding_are_rejected() -> None:
    manager = _manager(ScriptedTransport()).set_plugin(RecordingPlugin()).start()
    try:
        with pytest.raises(ConnectionStateError):
            manager.start()
        with pytest.raises(ConnectionStateError):
            manager.set_plugin(RecordingPlugin())
    finally:
        manager.close()


def test_context_manager_closes_transport() -> None:
    transport = ScriptedTransport(close_when_drained=False)
    with _manager(transport) as manager:
        manager.set_plugin(RecordingPlugin()).start()
        _wait_for(lambda: manager.state is ConnectionState.RUNNING)

    assert manager.state is ConnectionState.CLOSED
    assert transport.state is TransportState.CLOSED
    manager.close()


def test_plugin_cannot_be_attached_to_two_managers() -> None:
    plugin = RecordingPlugin()
    _manager(ScriptedTransport()).set_plugin(plugin)
    with pytest.raises(ConnectionStateError):
        _manager(ScriptedTransport()).set_plugin(plugin)


def test_malformed_unhandled_event_does_not_end_run() -> None:
    transport = ScriptedTransport(
        [
            json.dumps({"event": "sendToPlugin", "context": "c1", "payload": "not-an-object"}),
            _event("keyUp"),
        ]
    )
    plugin = RecordingPlugin()
    manager = _manager(transport).set_plugin(plugin).start()
    assert manager.join(timeout=2.0)

    assert manager.error is None
    assert plugin.calls == [("on_key_up", "a1", "c1", {}, "d1")]
