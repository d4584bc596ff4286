"""
IPC Frame Codec.

Defines the wire frame exchanged with the window manager:

    offset 0..6    magic "i3-ipc"
    offset 6..10   payload length (uint32, little-endian)
    offset 10..14  type code (uint32, little-endian), high bit marks events
    offset 14..    payload bytes

The codec knows nothing about what a payload means.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Protocol

from wmipc.ipc.exceptions import IPCConnectionError, IPCErrorCode, IPCProtocolError

MAGIC = b"i3-ipc"

# Length and type code: two unsigned 4-byte integers, little-endian
HEADER_FORMAT = "<II"
HEADER_SIZE = len(MAGIC) + struct.calcsize(HEADER_FORMAT)

EVENT_BIT = 1 << 31
MAX_PAYLOAD_SIZE = 0xFFFFFFFF


class ByteReader(Protocol):
    """Anything with a blocking ``read(n)`` returning at most n bytes."""

    def read(self, n: int) -> bytes: ...


@dataclass(frozen=True)
class Frame:
    """One length-prefixed, type-tagged unit of wire data."""

    type_code: int
    payload: bytes = b""

    @property
    def is_event(self) -> bool:
        """Check if the frame carries the event bit."""
        return bool(self.type_code & EVENT_BIT)

    @property
    def kind(self) -> int:
        """Type code with the event bit stripped."""
        return self.type_code & ~EVENT_BIT


def encode_frame(type_code: int, payload: bytes = b"") -> bytes:
    """
    Serialize a frame.

    Raises:
        IPCProtocolError: If the payload does not fit the length field
    """
    if len(payload) > MAX_PAYLOAD_SIZE:
        raise IPCProtocolError(
            f"Payload too large: {len(payload)} bytes",
            code=IPCErrorCode.MESSAGE_TOO_LARGE,
            details={"size": len(payload), "max": MAX_PAYLOAD_SIZE},
        )
    return MAGIC + struct.pack(HEADER_FORMAT, len(payload), type_code & 0xFFFFFFFF) + payload


def decode_frame(reader: ByteReader) -> Frame:
    """
    Read exactly one frame from a byte stream.

    Leaves the stream positioned at the start of the next frame.

    Raises:
        IPCConnectionError: If the stream ends before any byte of the frame
        IPCProtocolError: If the magic is wrong or the frame is cut short
    """
    header = _read_exact(reader, HEADER_SIZE, allow_eof=True)
    if header is None:
        raise IPCConnectionError(
            "Connection closed by window manager",
            code=IPCErrorCode.CONNECTION_LOST,
        )

    magic = header[: len(MAGIC)]
    if magic != MAGIC:
        raise IPCProtocolError(
            f"Unexpected magic: expected {MAGIC!r} but got {magic!r}",
            code=IPCErrorCode.INVALID_MAGIC,
            details={"magic": magic.hex()},
        )

    length, type_code = struct.unpack(HEADER_FORMAT, header[len(MAGIC) :])
    payload = _read_exact(reader, length) or b""
    return Frame(type_code=type_code, payload=payload)


def _read_exact(reader: ByteReader, length: int, allow_eof: bool = False) -> bytes | None:
    """
    Read exactly `length` bytes.

    Returns:
        The bytes, or None if `allow_eof` and the stream ended before any byte
    """
    data = bytearray()

    while len(data) < length:
        chunk = reader.read(min(length - len(data), 65536))
        if not chunk:
            if allow_eof and not data:
                return None
            raise IPCProtocolError(
                f"Truncated frame: stream ended after {len(data)}/{length} bytes",
                code=IPCErrorCode.TRUNCATED_FRAME,
                details={"received": len(data), "expected": length},
            )
        data.extend(chunk)

    return bytes(data)
