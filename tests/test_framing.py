import socket

import pytest

from veloxdfs.codec import CodecError
from veloxdfs.framing import (
    HEADER_SIZE,
    FramingError,
    load_message,
    parse_header,
    read_reply,
    save_message,
    send_message,
)
from veloxdfs.messages import FileDel, FileExist, FileInfo, Reply


@pytest.mark.parametrize("serialization", ["binary", "xml"])
def test_header_announces_body_length(serialization):
    framed = save_message(Reply(message="OK", details="d"), serialization)
    header = framed[:HEADER_SIZE]
    assert header.isdigit()
    assert parse_header(header) == len(framed) - HEADER_SIZE


@pytest.mark.parametrize("serialization", ["binary", "xml"])
def test_save_then_load(serialization):
    msg = FileInfo(name="test.txt", size=1, num_block=1, replica=3)
    framed = save_message(msg, serialization)
    assert load_message(framed[HEADER_SIZE:], serialization) == msg


def test_parse_header_value():
    assert parse_header(b"0000000000000012") == 12


def test_parse_header_wrong_length():
    with pytest.raises(FramingError):
        parse_header(b"12")


def test_parse_header_not_digits():
    with pytest.raises(FramingError):
        parse_header(b"00000000000000xy")


def test_load_message_garbage():
    with pytest.raises(CodecError):
        load_message(b"\xc1")


@pytest.mark.parametrize("serialization", ["binary", "xml"])
def test_send_and_read_reply(serialization):
    left, right = socket.socketpair()
    with left, right:
        msg = FileExist(origin=1, destination=2, name="test3.txt")
        send_message(left, msg, serialization)
        assert read_reply(right, FileExist, serialization) == msg


def test_read_reply_several_messages_in_order():
    left, right = socket.socketpair()
    with left, right:
        send_message(left, FileDel(name="a"))
        send_message(left, FileDel(name="b"))
        assert read_reply(right, FileDel).name == "a"
        assert read_reply(right, FileDel).name == "b"


def test_read_reply_wrong_type():
    left, right = socket.socketpair()
    with left, right:
        send_message(left, FileDel(name="a"))
        with pytest.raises(FramingError):
            read_reply(right, Reply)


def test_read_reply_truncated_header():
    left, right = socket.socketpair()
    with right:
        left.sendall(b"0000")
        left.close()
        with pytest.raises(FramingError):
            read_reply(right, Reply)


def test_read_reply_truncated_body():
    left, right = socket.socketpair()
    with right:
        framed = save_message(Reply(message="OK"))
        left.sendall(framed[:-1])
        left.close()
        with pytest.raises(FramingError):
            read_reply(right, Reply)