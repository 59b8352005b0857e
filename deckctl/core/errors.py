"""Domain-specific errors for deckctl."""


class DeckctlError(Exception):
    """Base error for deckctl."""


class SettingsError(DeckctlError):
    """Raised when the settings file cannot be read or fails validation."""


class PluginLoadError(DeckctlError):
    """Raised when a plugin class cannot be imported or instantiated."""


class PluginNotBoundError(DeckctlError):
    """Raised when the connection is started without a plugin bound."""


class ConnectionStateError(DeckctlError):
    """Raised when an operation is not allowed in the current connection state."""


class MessageDecodeError(DeckctlError):
    """Raised when an inbound message is not a valid event envelope."""


class TransportError(DeckctlError):
    """Base transport error."""


class TransportConnectError(TransportError):
    """Raised when the WebSocket connection cannot be opened."""


class TransportSendError(TransportError):
    """Raised when a message cannot be written to the connection."""


class TransportReceiveError(TransportError):
    """Raised when reading from the connection fails unexpectedly."""


class MessageTooLargeError(TransportError):
    """Raised when an inbound message exceeds the configured size limit."""
