"""Route decoded envelopes to plugin handler methods."""

from __future__ import annotations

import logging

from deckctl.core.model import EventKind, InboundEnvelope
from deckctl.core.plugin import PluginHandlers

LOGGER = logging.getLogger(__name__)


def event_kind(name: str) -> EventKind | None:
    try:
        return EventKind(name)
    except ValueError:
        return None


def dispatch(envelope: InboundEnvelope, handlers: PluginHandlers) -> bool:
    """Invoke the handler matching ``envelope.event``.

    Returns ``False`` when the event name is not one of the recognized kinds;
    such messages are dropped without error.
    """
    kind = event_kind(envelope.event)
    if kind is None:
        LOGGER.debug("Ignoring unhandled event '%s'", envelope.event)
        return False

    args = (envelope.action, envelope.context, envelope.payload, envelope.device)
    if kind is EventKind.KEY_DOWN:
        handlers.on_key_down(*args)
    elif kind is EventKind.KEY_UP:
        handlers.on_key_up(*args)
    elif kind is EventKind.WILL_APPEAR:
        handlers.on_will_appear(*args)
    elif kind is EventKind.WILL_DISAPPEAR:
        handlers.on_will_disappear(*args)
    return True
