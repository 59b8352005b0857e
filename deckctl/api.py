"""Stable public API for writing Stream Deck plugins with deckctl.

This module is the supported integration surface for plugin authors. Avoid
importing from private/internal modules unless intentionally depending on
non-stable internals.
"""

from __future__ import annotations

from deckctl.core.codec import decode_envelope, encode_registration, encode_set_title
from deckctl.core.connection import ConnectionManager
from deckctl.core.dispatch import dispatch
from deckctl.core.errors import (
    ConnectionStateError,
    DeckctlError,
    MessageDecodeError,
    MessageTooLargeError,
    PluginLoadError,
    PluginNotBoundError,
    SettingsError,
    TransportConnectError,
    TransportError,
    TransportReceiveError,
    TransportSendError,
)
from deckctl.core.model import (
    ConnectionState,
    EventKind,
    InboundEnvelope,
    RegistrationInfo,
    SetTitle,
    TargetType,
    TransportState,
)
from deckctl.core.plugin import PluginHandlers, StreamDeckPlugin
from deckctl.core.settings import Settings, load_settings
from deckctl.transports.base import Transport
from deckctl.transports.websocket import WebSocketTransport

__all__ = [
    "DeckctlError",
    "ConnectionStateError",
    "MessageDecodeError",
    "MessageTooLargeError",
    "PluginLoadError",
    "PluginNotBoundError",
    "SettingsError",
    "TransportError",
    "TransportConnectError",
    "TransportReceiveError",
    "TransportSendError",
    "ConnectionState",
    "EventKind",
    "InboundEnvelope",
    "RegistrationInfo",
    "SetTitle",
    "TargetType",
    "TransportState",
    "PluginHandlers",
    "StreamDeckPlugin",
    "Settings",
    "load_settings",
    "Transport",
    "WebSocketTransport",
    "ConnectionManager",
    "decode_envelope",
    "dispatch",
    "encode_registration",
    "encode_set_title",
    "run_plugin",
]


def run_plugin(
    plugin: PluginHandlers,
    port: int | str,
    plugin_uuid: str,
    register_event: str,
    info: dict | None = None,
    *,
    settings: Settings | None = None,
    transport: Transport | None = None,
) -> ConnectionManager:
    """Connect ``plugin`` to the host and block until the connection ends.

    Returns the finished manager so callers can inspect ``manager.error``.
    """
    manager = ConnectionManager.initialize(
        port,
        plugin_uuid,
        register_event,
        info,
        settings=settings,
        transport=transport,
    )
    with manager:
        manager.set_plugin(plugin).start()
        manager.join()
    return manager
