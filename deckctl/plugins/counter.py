"""Sample plugin: each key shows how many times it has been pressed."""

from __future__ import annotations

import logging
import threading
from typing import Any

from deckctl.core.plugin import StreamDeckPlugin

LOGGER = logging.getLogger(__name__)


class CounterPlugin(StreamDeckPlugin):
    def __init__(self) -> None:
        super().__init__()
        self._counts: dict[str, int] = {}
        self._lock = threading.Lock()

    def count(self, context: str) -> int:
        with self._lock:
            return self._counts.get(context, 0)

    def on_will_appear(self, action: str | None, context: str | None, payload: dict[str, Any], device: str | None) -> None:
        if context is None:
            return
        with self._lock:
            self._counts.setdefault(context, 0)
        self.manager.set_title(context, str(self.count(context)))

    def on_key_up(self, action: str | None, context: str | None, payload: dict[str, Any], device: str | None) -> None:
        if context is None:
            return
        with self._lock:
            self._counts[context] = self._counts.get(context, 0) + 1
            count = self._counts[context]
        LOGGER.debug("Key %s on %s pressed %d time(s)", context, device, count)
        self.manager.set_title(context, str(count))

    def on_will_disappear(
        self, action: str | None, context: str | None, payload: dict[str, Any], device: str | None
    ) -> None:
        if context is None:
            return
        with self._lock:
            self._counts.pop(context, None)
