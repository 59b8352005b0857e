"""Core data models shared by codec, dispatcher, and connection manager."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any


class EventKind(str, Enum):
    KEY_DOWN = "keyDown"
    KEY_UP = "keyUp"
    WILL_APPEAR = "willAppear"
    WILL_DISAPPEAR = "willDisappear"


class TargetType(IntEnum):
    """Which representation of a key a display update applies to."""

    HARDWARE_AND_SOFTWARE = 0
    HARDWARE = 1
    SOFTWARE = 2


class ConnectionState(Enum):
    UNCONNECTED = "unconnected"
    CONNECTING = "connecting"
    REGISTERED = "registered"
    RUNNING = "running"
    CLOSING = "closing"
    CLOSED = "closed"


class TransportState(Enum):
    UNOPENED = "unopened"
    OPEN = "open"
    CLOSE_RECEIVED = "close_received"
    CLOSED = "closed"
    ABORTED = "aborted"

    @property
    def is_terminal(self) -> bool:
        return self in (TransportState.CLOSE_RECEIVED, TransportState.CLOSED, TransportState.ABORTED)


@dataclass(frozen=True)
class RegistrationInfo:
    port: int
    plugin_uuid: str
    register_event: str
    info: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class InboundEnvelope:
    event: str
    action: str | None = None
    context: str | None = None
    payload: dict[str, Any] = field(default_factory=dict)
    device: str | None = None


@dataclass(frozen=True)
class SetTitle:
    context: str
    title: str
    target: TargetType = TargetType.HARDWARE_AND_SOFTWARE
