"""
IPC Exception Hierarchy.

Defines all exceptions raised while talking to the window manager
over its IPC socket.
"""

from enum import Enum


class IPCErrorCode(str, Enum):
    """Error codes for IPC operations."""

    # Framing errors
    INVALID_MAGIC = "INVALID_MAGIC"
    TRUNCATED_FRAME = "TRUNCATED_FRAME"
    MESSAGE_TOO_LARGE = "MESSAGE_TOO_LARGE"

    # Exchange errors
    UNEXPECTED_REPLY = "UNEXPECTED_REPLY"
    MISSING_EVENT_BIT = "MISSING_EVENT_BIT"
    SUBSCRIPTION_FAILED = "SUBSCRIPTION_FAILED"
    UNSUPPORTED_SUBSCRIPTION = "UNSUPPORTED_SUBSCRIPTION"

    # Payload errors
    MALFORMED_JSON = "MALFORMED_JSON"
    INVALID_PAYLOAD = "INVALID_PAYLOAD"

    # Connection errors
    CONNECTION_FAILED = "CONNECTION_FAILED"
    CONNECTION_LOST = "CONNECTION_LOST"
    CONNECTION_REFUSED = "CONNECTION_REFUSED"
    SOCKET_ERROR = "SOCKET_ERROR"

    # Handle misuse
    INVALID_STATE = "INVALID_STATE"

    # System errors
    TIMEOUT = "TIMEOUT"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class IPCError(Exception):
    """Base exception for all IPC-related errors."""

    def __init__(
        self,
        message: str,
        code: IPCErrorCode = IPCErrorCode.INTERNAL_ERROR,
        details: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert exception to dictionary for serialization."""
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


class IPCConnectionError(IPCError):
    """Raised when the socket cannot be reached, breaks, or reaches EOF."""

    def __init__(
        self,
        message: str,
        code: IPCErrorCode = IPCErrorCode.CONNECTION_FAILED,
        details: dict | None = None,
    ) -> None:
        super().__init__(message, code, details)


class IPCProtocolError(IPCError):
    """Raised when the framing or exchange contract is violated."""

    def __init__(
        self,
        message: str,
        code: IPCErrorCode = IPCErrorCode.UNEXPECTED_REPLY,
        details: dict | None = None,
    ) -> None:
        super().__init__(message, code, details)


class IPCDecodeError(IPCError):
    """Raised when a frame payload cannot be parsed into its typed value."""

    def __init__(
        self,
        message: str,
        code: IPCErrorCode = IPCErrorCode.MALFORMED_JSON,
        details: dict | None = None,
    ) -> None:
        super().__init__(message, code, details)


class IPCStateError(IPCError):
    """Raised when a connection handle is driven out of order."""

    def __init__(
        self,
        message: str,
        code: IPCErrorCode = IPCErrorCode.INVALID_STATE,
        details: dict | None = None,
    ) -> None:
        super().__init__(message, code, details)


class IPCTimeoutError(IPCError):
    """Raised when a socket deadline set by the caller expires."""

    def __init__(
        self,
        message: str = "Operation timed out",
        code: IPCErrorCode = IPCErrorCode.TIMEOUT,
        details: dict | None = None,
    ) -> None:
        super().__init__(message, code, details)


class IPCValidationError(IPCError):
    """Raised when a request argument is not valid for this client."""

    def __init__(
        self,
        message: str,
        code: IPCErrorCode = IPCErrorCode.UNSUPPORTED_SUBSCRIPTION,
        details: dict | None = None,
    ) -> None:
        super().__init__(message, code, details)
