"""Connection health reported to the viewer."""

from enum import Enum


class ConnectionState(Enum):
    """Backend connection state; values are the status banner texts."""

    CONNECTED = "Connected"
    RECONNECTING = "Reconnecting..."
    FAILED = "Failed to connect"

    @property
    def label(self) -> str:
        """Return the status text for this state."""
        return self.value
