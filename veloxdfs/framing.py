"""Length-prefixed framing of serialized messages over stream sockets."""

from __future__ import annotations

import socket
from typing import Any

from .codec import decode, encode
from .messages import Message

HEADER_SIZE = 16
DEFAULT_SERIALIZATION = "binary"


class FramingError(ValueError):
    """Raised on a malformed header, a truncated stream or an unexpected reply."""


def save_message(message: Any, serialization: str = DEFAULT_SERIALIZATION) -> bytes:
    """Serialize a message behind a zero-padded decimal length header."""
    body = encode(message, serialization)
    header = f"{len(body):0{HEADER_SIZE}d}"
    if len(header) > HEADER_SIZE:
        raise FramingError(f"message of {len(body)} bytes does not fit the header")
    return header.encode("ascii") + body


def load_message(payload: bytes, serialization: str = DEFAULT_SERIALIZATION) -> Any:
    """Deserialize a message body (the part after the header)."""
    return decode(payload, serialization)


def parse_header(header: bytes) -> int:
    """Return the body length announced by a header."""
    raw = bytes(header)
    if len(raw) != HEADER_SIZE:
        raise FramingError(f"header must be {HEADER_SIZE} bytes, got {len(raw)}")
    if not raw.isdigit():
        raise FramingError(f"header is not a decimal length: {raw!r}")
    return int(raw)


def _recv_exactly(sock: socket.socket, size: int) -> bytes:
    data = bytearray()
    while len(data) < size:
        chunk = sock.recv(size - len(data))
        if not chunk:
            raise FramingError(
                f"connection closed after {len(data)} of {size} bytes"
            )
        data.extend(chunk)
    return bytes(data)


def send_message(
    sock: socket.socket, message: Any, serialization: str = DEFAULT_SERIALIZATION
) -> None:
    """Frame and send a message, disabling Nagle's algorithm on TCP sockets."""
    if sock.family in (socket.AF_INET, socket.AF_INET6):
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
    sock.sendall(save_message(message, serialization))


def read_reply(
    sock: socket.socket,
    expected_type: type = Message,
    serialization: str = DEFAULT_SERIALIZATION,
) -> Any:
    """Read one framed message and check that it is of the expected type."""
    size = parse_header(_recv_exactly(sock, HEADER_SIZE))
    message = load_message(_recv_exactly(sock, size), serialization)
    if not isinstance(message, expected_type):
        raise FramingError(
            f"expected {expected_type.__name__}, got {type(message).__name__}"
        )
    return message