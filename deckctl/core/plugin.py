"""Plugin handler interface."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

from deckctl.core.errors import ConnectionStateError

if TYPE_CHECKING:
    from deckctl.core.connection import ConnectionManager


class PluginHandlers(Protocol):
    def attach(self, manager: ConnectionManager) -> None:
        """Receive the manager used to send commands back to the host."""

    def on_key_down(self, action: str | None, context: str | None, payload: dict[str, Any], device: str | None) -> None:
        ...

    def on_key_up(self, action: str | None, context: str | None, payload: dict[str, Any], device: str | None) -> None:
        ...

    def on_will_appear(self, action: str | None, context: str | None, payload: dict[str, Any], device: str | None) -> None:
        ...

    def on_will_disappear(
        self, action: str | None, context: str | None, payload: dict[str, Any], device: str | None
    ) -> None:
        ...


class StreamDeckPlugin:
    """Convenience base class with no-op handlers.

    Subclasses override the handlers they care about and use ``self.manager``
    to send commands. The manager is attached once by
    :meth:`ConnectionManager.set_plugin` and cannot be replaced afterwards.
    """

    def __init__(self) -> None:
        self._manager: ConnectionManager | None = None

    @property
    def manager(self) -> ConnectionManager:
        if self._manager is None:
            raise ConnectionStateError(f"{type(self).__name__} is not attached to a connection manager")
        return self._manager

    def attach(self, manager: ConnectionManager) -> None:
        if self._manager is not None and self._manager is not manager:
            raise ConnectionStateError(f"{type(self).__name__} is already attached to another manager")
        self._manager = manager

    def on_key_down(self, action: str | None, context: str | None, payload: dict[str, Any], device: str | None) -> None:
        pass

    def on_key_up(self, action: str | None, context: str | None, payload: dict[str, Any], device: str | None) -> None:
        pass

    def on_will_appear(self, action: str | None, context: str | None, payload: dict[str, Any], device: str | None) -> None:
        pass

    def on_will_disappear(
        self, action: str | None, context: str | None, payload: dict[str, Any], device: str | None
    ) -> None:
        pass
