"""JSON wire codec for the Stream Deck plugin protocol.

All functions here are pure. Encoders take well-formed in-memory values and
never fail; decoders raise :class:`MessageDecodeError` on malformed input.
"""

from __future__ import annotations

import json
from typing import Any

from deckctl.core.errors import MessageDecodeError
from deckctl.core.model import EventKind, InboundEnvelope, RegistrationInfo, SetTitle, TargetType

_OPTIONAL_STRING_FIELDS = ("action", "context", "device")
_HANDLED_EVENTS = frozenset(kind.value for kind in EventKind)


def encode_registration(registration: RegistrationInfo) -> str:
    return json.dumps({"event": registration.register_event, "uuid": registration.plugin_uuid})


def decode_registration(raw: str | bytes) -> tuple[str, str]:
    """Decode a registration message into ``(register_event, uuid)``."""
    doc = _load_object(raw)
    event = doc.get("event")
    uuid = doc.get("uuid")
    if not isinstance(event, str) or not isinstance(uuid, str):
        raise MessageDecodeError("Registration message requires string 'event' and 'uuid'")
    return event, uuid


def encode_set_title(
    context: str,
    title: str,
    target: TargetType = TargetType.HARDWARE_AND_SOFTWARE,
) -> str:
    return json.dumps(
        {
            "context": context,
            "payload": {"title": title, "target": int(target)},
        }
    )


def encode_command(command: SetTitle) -> str:
    if isinstance(command, SetTitle):
        return encode_set_title(command.context, command.title, command.target)
    raise TypeError(f"Unsupported outbound command {type(command).__name__}")


def decode_envelope(raw: str | bytes) -> InboundEnvelope:
    doc = _load_object(raw)

    event = doc.get("event")
    if not isinstance(event, str):
        raise MessageDecodeError("Inbound message is missing a string 'event' field")

    # Events without a handler are dropped later, so their fields are not checked.
    strict = event in _HANDLED_EVENTS

    fields: dict[str, str | None] = {}
    for name in _OPTIONAL_STRING_FIELDS:
        value = doc.get(name)
        if value is not None and not isinstance(value, str):
            if strict:
                raise MessageDecodeError(f"Inbound field '{name}' must be a string")
            value = None
        fields[name] = value

    payload = doc.get("payload")
    if payload is None:
        payload = {}
    elif not isinstance(payload, dict):
        if strict:
            raise MessageDecodeError("Inbound field 'payload' must be an object")
        payload = {}

    return InboundEnvelope(
        event=event,
        action=fields["action"],
        context=fields["context"],
        payload=payload,
        device=fields["device"],
    )


def parse_info(raw: str | None) -> dict[str, Any]:
    """Parse the application-info JSON handed to the plugin at launch."""
    if raw is None or not raw.strip():
        return {}
    return _load_object(raw)


def _load_object(raw: str | bytes) -> dict[str, Any]:
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise MessageDecodeError(f"Message is not valid UTF-8: {exc}") from exc
    try:
        loaded = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise MessageDecodeError(f"Invalid JSON message: {exc}") from exc
    if not isinstance(loaded, dict):
        raise MessageDecodeError("Message must contain a JSON object at root")
    return loaded
