"""
Error types for the linechat server.
"""


class ChatError(Exception):
    """Base class for all linechat errors."""


class NameTakenError(ChatError):
    """Raised when a display name is already held by an active session."""

    def __init__(self, name: str):
        super().__init__(f"Name '{name}' is already taken")
        self.name = name


class BindError(ChatError):
    """Raised when the listening socket cannot be bound. Fatal at startup."""

    def __init__(self, host: str, port: int, cause: Exception):
        super().__init__(f"Cannot listen on {host}:{port}: {cause}")
        self.host = host
        self.port = port
        self.cause = cause


class DeliveryError(ChatError):
    """Raised by an output channel that can no longer accept data."""
