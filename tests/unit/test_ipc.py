"""
Unit tests for IPC module.

Tests:
- Exception hierarchy
- Frame codec encoding/decoding
- Transport layer basics
"""

import io
import socket
import struct
import tempfile
import threading
from pathlib import Path

import pytest

from wmipc.ipc import (
    EVENT_BIT,
    HEADER_SIZE,
    MAGIC,
    EventType,
    Frame,
    IPCConnectionError,
    IPCDecodeError,
    IPCError,
    IPCErrorCode,
    IPCProtocolError,
    IPCStateError,
    IPCTimeoutError,
    MessageType,
    Subscription,
    UnixSocketTransport,
    decode_frame,
    encode_frame,
)


class TestIPCExceptions:
    """Tests for IPC exception hierarchy."""

    def test_ipc_error_base(self) -> None:
        """IPCError should store message, code, and details."""
        err = IPCError("test error", IPCErrorCode.INTERNAL_ERROR, {"key": "value"})
        assert err.message == "test error"
        assert err.code == IPCErrorCode.INTERNAL_ERROR
        assert err.details == {"key": "value"}

    def test_ipc_error_to_dict(self) -> None:
        """IPCError should serialize to dictionary."""
        err = IPCError("test", IPCErrorCode.TIMEOUT, {"timeout": 30})
        d = err.to_dict()
        assert d["code"] == "TIMEOUT"
        assert d["message"] == "test"
        assert d["details"]["timeout"] == 30

    def test_connection_error(self) -> None:
        """IPCConnectionError should default to CONNECTION_FAILED."""
        err = IPCConnectionError("connection failed")
        assert err.code == IPCErrorCode.CONNECTION_FAILED

    def test_protocol_error(self) -> None:
        """IPCProtocolError should default to UNEXPECTED_REPLY."""
        err = IPCProtocolError("bad reply")
        assert err.code == IPCErrorCode.UNEXPECTED_REPLY

    def test_decode_error(self) -> None:
        """IPCDecodeError should default to MALFORMED_JSON."""
        err = IPCDecodeError("bad json")
        assert err.code == IPCErrorCode.MALFORMED_JSON

    def test_state_error(self) -> None:
        """IPCStateError should default to INVALID_STATE."""
        err = IPCStateError("busy")
        assert err.code == IPCErrorCode.INVALID_STATE

    def test_timeout_error(self) -> None:
        """IPCTimeoutError should have default message."""
        err = IPCTimeoutError()
        assert err.code == IPCErrorCode.TIMEOUT
        assert "timed out" in err.message.lower()

    def test_all_errors_are_ipc_errors(self) -> None:
        """Every IPC exception should be catchable as IPCError."""
        for cls in (IPCConnectionError, IPCProtocolError, IPCDecodeError, IPCStateError):
            assert isinstance(cls("x"), IPCError)


class TestFrameCodec:
    """Tests for the wire frame codec."""

    def test_encode_layout(self) -> None:
        """Frame should be magic, LE length, LE type, then payload."""
        data = encode_frame(7, b'{"a":1}')

        assert data[:6] == b"i3-ipc"
        assert struct.unpack("<I", data[6:10])[0] == 7  # payload length
        assert struct.unpack("<I", data[10:14])[0] == 7  # type code
        assert data[14:] == b'{"a":1}'
        assert len(data) == HEADER_SIZE + 7

    def test_encode_empty_payload(self) -> None:
        """Empty payload should produce a bare header."""
        data = encode_frame(4)
        assert data == MAGIC + struct.pack("<II", 0, 4)

    @pytest.mark.parametrize(
        ("type_code", "payload"),
        [
            (0, b"fullscreen toggle"),
            (11, b""),
            (EVENT_BIT | 5, '{"change":"run","symbol":"é"}'.encode()),
        ],
    )
    def test_roundtrip(self, type_code: int, payload: bytes) -> None:
        """decode(encode(x)) should reproduce the frame exactly."""
        frame = decode_frame(io.BytesIO(encode_frame(type_code, payload)))
        assert frame == Frame(type_code=type_code, payload=payload)

    @pytest.mark.parametrize("position", range(6))
    def test_magic_mismatch(self, position: int) -> None:
        """Corrupting any magic byte should raise a protocol error."""
        data = bytearray(encode_frame(1, b"[]"))
        data[position] ^= 0xFF

        with pytest.raises(IPCProtocolError) as exc_info:
            decode_frame(io.BytesIO(bytes(data)))
        assert exc_info.value.code == IPCErrorCode.INVALID_MAGIC

    def test_truncated_payload(self) -> None:
        """A stream ending inside the payload should raise a protocol error."""
        data = encode_frame(7, b'{"major":4}')[:-3]

        with pytest.raises(IPCProtocolError) as exc_info:
            decode_frame(io.BytesIO(data))
        assert exc_info.value.code == IPCErrorCode.TRUNCATED_FRAME
        assert exc_info.value.details["expected"] == 11

    def test_truncated_header(self) -> None:
        """A stream ending inside the header should raise a protocol error."""
        data = encode_frame(7, b"{}")[:9]

        with pytest.raises(IPCProtocolError) as exc_info:
            decode_frame(io.BytesIO(data))
        assert exc_info.value.code == IPCErrorCode.TRUNCATED_FRAME

    def test_eof_between_frames(self) -> None:
        """A stream ending on a frame boundary is a lost connection."""
        with pytest.raises(IPCConnectionError) as exc_info:
            decode_frame(io.BytesIO(b""))
        assert exc_info.value.code == IPCErrorCode.CONNECTION_LOST

    def test_consumes_exactly_one_frame(self) -> None:
        """Decoding should leave the stream at the next frame."""
        stream = io.BytesIO(encode_frame(1, b"[]") + encode_frame(5, b'["m"]'))

        first = decode_frame(stream)
        second = decode_frame(stream)

        assert first == Frame(1, b"[]")
        assert second == Frame(5, b'["m"]')

    def test_event_bit(self) -> None:
        """Frame should expose the event bit and the stripped kind."""
        frame = Frame(type_code=EVENT_BIT | 3)
        assert frame.is_event
        assert frame.kind == 3
        assert not Frame(type_code=3).is_event


class TestUnixSocketTransport:
    """Tests for Unix socket transport layer."""

    def test_transport_initialization(self) -> None:
        """Transport should start disconnected with blocking defaults."""
        transport = UnixSocketTransport("/tmp/custom.sock")
        assert transport.socket_path == Path("/tmp/custom.sock")
        assert transport.is_connected is False
        assert transport.receive_timeout is None

    def test_connect_nonexistent_socket(self) -> None:
        """connect should fail for nonexistent socket."""
        transport = UnixSocketTransport("/tmp/nonexistent-wmipc.sock")
        with pytest.raises(IPCConnectionError) as exc_info:
            transport.connect()
        assert exc_info.value.code == IPCErrorCode.CONNECTION_FAILED

    def test_read_when_closed(self) -> None:
        """Reading from a closed transport should be a connection error."""
        transport = UnixSocketTransport("/tmp/unused.sock")
        with pytest.raises(IPCConnectionError):
            transport.read(14)

    def test_server_client_communication(self) -> None:
        """Client should exchange frames with a server over a real socket."""
        with tempfile.TemporaryDirectory() as tmpdir:
            socket_path = Path(tmpdir) / "wm.sock"
            server = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
            server.bind(str(socket_path))
            server.listen(1)

            received: list[Frame] = []

            def server_handler() -> None:
                conn, _ = server.accept()
                with conn:
                    wm = UnixSocketTransport.from_socket(conn)
                    received.append(decode_frame(wm))
                    wm.write(encode_frame(MessageType.GET_MARKS, b'["a"]'))

            server_thread = threading.Thread(target=server_handler)
            server_thread.start()

            with UnixSocketTransport(socket_path, receive_timeout=5.0) as client:
                client.connect()
                assert client.is_connected
                client.write(encode_frame(MessageType.GET_MARKS))
                response = decode_frame(client)

            server_thread.join(timeout=2)
            server.close()

            assert received == [Frame(MessageType.GET_MARKS, b"")]
            assert response == Frame(MessageType.GET_MARKS, b'["a"]')
            assert not client.is_connected

    def test_receive_timeout(self) -> None:
        """An expired receive deadline should raise IPCTimeoutError."""
        client_sock, server_sock = socket.socketpair()
        client_sock.settimeout(0.05)
        transport = UnixSocketTransport.from_socket(client_sock)

        with pytest.raises(IPCTimeoutError):
            transport.read(14)

        transport.close()
        server_sock.close()

    def test_peer_close_reads_eof(self) -> None:
        """A closed peer should surface as a lost connection on decode."""
        client_sock, server_sock = socket.socketpair()
        transport = UnixSocketTransport.from_socket(client_sock)
        server_sock.close()

        with pytest.raises(IPCConnectionError):
            decode_frame(transport)
        transport.close()


class TestEnums:
    """Tests for protocol code tables."""

    def test_message_type_values(self) -> None:
        """Request codes should match the window manager's protocol."""
        assert MessageType.RUN_COMMAND == 0
        assert MessageType.SUBSCRIBE == 2
        assert MessageType.GET_VERSION == 7
        assert MessageType.SYNC == 11
        assert len(MessageType) == 12

    def test_event_type_values(self) -> None:
        """Event codes should match the window manager's protocol."""
        assert EventType.WORKSPACE == 0
        assert EventType.BINDING == 5
        assert EventType.TICK == 7
        assert EventType.INPUT == 0x15

    def test_subscription_event_types(self) -> None:
        """Every subscription should map to its event code."""
        assert Subscription.BARCONFIG_UPDATE.event_type == EventType.BARCONFIG_UPDATE
        assert {sub.event_type for sub in Subscription} == set(EventType)

    def test_error_code_values(self) -> None:
        """Error codes should be string enums."""
        assert IPCErrorCode.TIMEOUT.value == "TIMEOUT"
        assert IPCErrorCode.CONNECTION_LOST.value == "CONNECTION_LOST"
