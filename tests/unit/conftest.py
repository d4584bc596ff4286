"""Shared fixtures for IPC tests."""

from __future__ import annotations

import io
import json
import socket
from collections.abc import Iterator
from typing import Any

import pytest

from wmipc.ipc import EVENT_BIT, Frame, UnixSocketTransport, decode_frame, encode_frame


def payload_bytes(payload: Any) -> bytes:
    """Encode a test payload: bytes as-is, str as UTF-8, anything else as JSON."""
    if isinstance(payload, bytes):
        return payload
    if isinstance(payload, str):
        return payload.encode("utf-8")
    return json.dumps(payload).encode("utf-8")


def reply_frame(type_code: int, payload: Any) -> bytes:
    return encode_frame(type_code, payload_bytes(payload))


def event_frame(event_code: int, payload: Any) -> bytes:
    return encode_frame(EVENT_BIT | event_code, payload_bytes(payload))


class FakeTransport:
    """In-memory transport: reads from preloaded frames, records writes."""

    def __init__(self, incoming: bytes = b"") -> None:
        self._incoming = io.BytesIO(incoming)
        self.written = bytearray()
        self.closed = False
        self.on_write: Any = None
        self.socket_path = "<fake>"

    @property
    def is_connected(self) -> bool:
        return not self.closed

    def feed(self, data: bytes) -> None:
        position = self._incoming.tell()
        self._incoming.seek(0, io.SEEK_END)
        self._incoming.write(data)
        self._incoming.seek(position)

    def read(self, n: int) -> bytes:
        return self._incoming.read(n)

    def write(self, data: bytes) -> None:
        self.written.extend(data)
        if self.on_write is not None:
            self.on_write(data)

    def close(self) -> None:
        self.closed = True

    def sent_frames(self) -> list[Frame]:
        """Decode everything written so far."""
        stream = io.BytesIO(bytes(self.written))
        frames = []
        while stream.tell() < len(self.written):
            frames.append(decode_frame(stream))
        return frames


class FakeWindowManager:
    """Server end of a socket pair, speaking the wire format."""

    def __init__(self, sock: socket.socket) -> None:
        self.transport = UnixSocketTransport.from_socket(sock)

    def reply(self, type_code: int, payload: Any) -> None:
        self.transport.write(reply_frame(type_code, payload))

    def event(self, event_code: int, payload: Any) -> None:
        self.transport.write(event_frame(event_code, payload))

    def read_request(self) -> Frame:
        return decode_frame(self.transport)

    def close(self) -> None:
        self.transport.close()


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def socket_pair() -> Iterator[tuple[UnixSocketTransport, FakeWindowManager]]:
    """A connected client transport and the fake window manager on the other end."""
    client_sock, server_sock = socket.socketpair(socket.AF_UNIX, socket.SOCK_STREAM)
    client = UnixSocketTransport.from_socket(client_sock)
    server = FakeWindowManager(server_sock)
    yield client, server
    client.close()
    server.close()
