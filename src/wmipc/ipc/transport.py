"""
Unix Socket Transport Layer.

Locates the window manager's IPC socket and provides the blocking
byte-stream operations the frame codec reads from and writes to.
"""

from __future__ import annotations

import contextlib
import logging
import os
import socket
import subprocess
from pathlib import Path

from wmipc.ipc.exceptions import (
    IPCConnectionError,
    IPCErrorCode,
    IPCTimeoutError,
)

logger = logging.getLogger(__name__)

# Environment variables holding the socket path, checked in order
SOCKET_ENV_VARS = ("I3SOCK", "SWAYSOCK")

# Asks the running window manager for its socket path
SOCKETPATH_COMMAND = ("i3", "--get-socketpath")

DEFAULT_DISCOVERY_TIMEOUT = 5.0


def discover_socket_path() -> Path:
    """
    Locate the window manager's IPC socket.

    Search order:
    1. $I3SOCK
    2. $SWAYSOCK
    3. Output of ``i3 --get-socketpath``

    Raises:
        IPCConnectionError: If no socket path can be determined
    """
    for var in SOCKET_ENV_VARS:
        value = os.environ.get(var)
        if value:
            logger.debug(f"Using socket path from ${var}: {value}")
            return Path(value)

    try:
        result = subprocess.run(
            list(SOCKETPATH_COMMAND),
            capture_output=True,
            text=True,
            timeout=DEFAULT_DISCOVERY_TIMEOUT,
            check=False,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        raise IPCConnectionError(
            f"Could not run {' '.join(SOCKETPATH_COMMAND)}: {e}",
            code=IPCErrorCode.CONNECTION_FAILED,
        ) from e

    if result.returncode != 0:
        message = f"{' '.join(SOCKETPATH_COMMAND)} exited with {result.returncode}"
        if result.stderr:
            message += f". stderr: {result.stderr.strip()}"
        raise IPCConnectionError(message, code=IPCErrorCode.CONNECTION_FAILED)

    path = result.stdout.strip()
    if not path:
        raise IPCConnectionError(
            f"{' '.join(SOCKETPATH_COMMAND)} returned an empty path",
            code=IPCErrorCode.CONNECTION_FAILED,
        )
    return Path(path)


class UnixSocketTransport:
    """
    Client side of a Unix stream socket.

    Handles:
    - Connecting to the window manager's socket
    - Blocking reads and writes with error translation
    - Closing the connection

    Timeouts default to None, meaning reads block until data arrives.
    Closing the transport from another thread makes a pending read fail.
    """

    def __init__(
        self,
        socket_path: str | Path,
        connection_timeout: float | None = None,
        receive_timeout: float | None = None,
    ) -> None:
        self.socket_path = Path(socket_path)
        self.connection_timeout = connection_timeout
        self.receive_timeout = receive_timeout
        self._socket: socket.socket | None = None

    @property
    def is_connected(self) -> bool:
        """Check if transport is connected."""
        return self._socket is not None

    def connect(self) -> None:
        """
        Connect to the socket.

        Raises:
            IPCConnectionError: If connection fails
            IPCTimeoutError: If connecting exceeds the connection timeout
        """
        if not self.socket_path.exists():
            raise IPCConnectionError(
                f"Socket does not exist: {self.socket_path}",
                code=IPCErrorCode.CONNECTION_FAILED,
                details={"path": str(self.socket_path)},
            )

        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            sock.settimeout(self.connection_timeout)
            sock.connect(str(self.socket_path))
            sock.settimeout(self.receive_timeout)
        except TimeoutError as e:
            sock.close()
            raise IPCTimeoutError(
                f"Connection timed out: {self.socket_path}",
                details={"path": str(self.socket_path)},
            ) from e
        except ConnectionRefusedError as e:
            sock.close()
            raise IPCConnectionError(
                f"Connection refused: {self.socket_path}",
                code=IPCErrorCode.CONNECTION_REFUSED,
                details={"path": str(self.socket_path)},
            ) from e
        except OSError as e:
            sock.close()
            raise IPCConnectionError(
                f"Failed to connect: {e}",
                code=IPCErrorCode.CONNECTION_FAILED,
                details={"path": str(self.socket_path)},
            ) from e

        self._socket = sock
        logger.debug(f"Connected to {self.socket_path}")

    @classmethod
    def from_socket(cls, sock: socket.socket, socket_path: str | Path = "") -> UnixSocketTransport:
        """Wrap an already connected socket."""
        transport = cls(socket_path)
        transport._socket = sock
        return transport

    def read(self, n: int) -> bytes:
        """
        Read up to `n` bytes, blocking until at least one is available.

        Returns:
            The bytes read; empty at end of stream

        Raises:
            IPCConnectionError: If not connected or the read fails
            IPCTimeoutError: If the receive timeout expires
        """
        sock = self._require_socket()
        try:
            return sock.recv(n)
        except TimeoutError as e:
            raise IPCTimeoutError("Receive operation timed out") from e
        except OSError as e:
            raise IPCConnectionError(
                f"Receive failed: {e}",
                code=IPCErrorCode.SOCKET_ERROR,
            ) from e

    def write(self, data: bytes) -> None:
        """
        Write all of `data`.

        Raises:
            IPCConnectionError: If not connected or the send fails
            IPCTimeoutError: If the receive timeout expires while sending
        """
        sock = self._require_socket()
        try:
            sock.sendall(data)
        except TimeoutError as e:
            raise IPCTimeoutError("Send operation timed out") from e
        except BrokenPipeError as e:
            raise IPCConnectionError(
                "Connection lost during send",
                code=IPCErrorCode.CONNECTION_LOST,
            ) from e
        except OSError as e:
            raise IPCConnectionError(
                f"Send failed: {e}",
                code=IPCErrorCode.SOCKET_ERROR,
            ) from e

    def close(self) -> None:
        """Close the socket connection."""
        if self._socket is not None:
            with contextlib.suppress(OSError):
                self._socket.shutdown(socket.SHUT_RDWR)
            with contextlib.suppress(OSError):
                self._socket.close()
            self._socket = None

    def _require_socket(self) -> socket.socket:
        if self._socket is None:
            raise IPCConnectionError(
                "Transport is not connected",
                code=IPCErrorCode.CONNECTION_LOST,
            )
        return self._socket

    def __enter__(self) -> UnixSocketTransport:
        """Context manager entry."""
        return self

    def __exit__(self, *args: object) -> None:
        """Context manager exit - close socket."""
        self.close()


def open_transport(
    socket_path: str | Path | None = None,
    connection_timeout: float | None = None,
    receive_timeout: float | None = None,
) -> UnixSocketTransport:
    """
    Create and connect a transport, discovering the socket path if not given.

    Raises:
        IPCConnectionError: If the socket cannot be located or reached
    """
    path = Path(socket_path) if socket_path else discover_socket_path()
    transport = UnixSocketTransport(path, connection_timeout, receive_timeout)
    transport.connect()
    return transport
