"""Unit tests for request framing and response writing over real sockets."""

import socket
import threading
import time

import pytest

from config import MAX_BODY_BYTES, MAX_HEADER_BYTES
from response import HTTPResponse
from socket_handler import (
    ConnectionClosedError,
    HeaderTooLargeError,
    MalformedFramingError,
    PayloadTooLargeError,
    SocketTimeoutError,
    expected_request_length,
    read_http_request,
    write_http_response_message,
)


def _send_in_pieces(sock: socket.socket, pieces: list[bytes], delay: float = 0.05) -> threading.Thread:
    def run() -> None:
        for piece in pieces:
            sock.sendall(piece)
            time.sleep(delay)

    thread = threading.Thread(target=run, daemon=True)
    thread.start()
    return thread


def test_reads_request_without_body() -> None:
    server_side, client_side = socket.socketpair()
    with server_side, client_side:
        client_side.sendall(b"GET / HTTP/1.1\r\nHost: localhost\r\n\r\n")

        assert read_http_request(server_side) == b"GET / HTTP/1.1\r\nHost: localhost\r\n\r\n"


def test_reads_body_split_across_writes() -> None:
    head = b"POST /files/x HTTP/1.1\r\nContent-Length: 10\r\n\r\n"
    server_side, client_side = socket.socketpair()
    with server_side, client_side:
        sender = _send_in_pieces(client_side, [head[:7], head[7:], b"01234", b"56789"])

        raw = read_http_request(server_side)
        sender.join(timeout=2)

    assert raw == head + b"0123456789"


def test_body_larger_than_buffer_is_fully_read() -> None:
    body = bytes(range(256)) * 40
    payload = f"POST / HTTP/1.1\r\nContent-Length: {len(body)}\r\n\r\n".encode("ascii") + body
    server_side, client_side = socket.socketpair()
    with server_side, client_side:
        sender = _send_in_pieces(client_side, [payload], delay=0)

        raw = read_http_request(server_side)
        sender.join(timeout=2)

    assert raw.endswith(body)
    assert len(raw) == len(payload)


def test_trailing_bytes_beyond_content_length_are_dropped() -> None:
    server_side, client_side = socket.socketpair()
    with server_side, client_side:
        client_side.sendall(b"POST / HTTP/1.1\r\nContent-Length: 2\r\n\r\nabGET")

        assert read_http_request(server_side).endswith(b"\r\n\r\nab")


def test_immediate_eof_returns_empty_bytes() -> None:
    server_side, client_side = socket.socketpair()
    with server_side:
        client_side.close()

        assert read_http_request(server_side) == b""


def test_eof_mid_request_raises() -> None:
    server_side, client_side = socket.socketpair()
    with server_side:
        client_side.sendall(b"POST / HTTP/1.1\r\nContent-Length: 5\r\n\r\nab")
        client_side.close()

        with pytest.raises(ConnectionClosedError):
            read_http_request(server_side)


def test_read_timeout_raises() -> None:
    server_side, client_side = socket.socketpair()
    with server_side, client_side:
        server_side.settimeout(0.1)
        client_side.sendall(b"GET / HTTP/1.1\r\n")

        with pytest.raises(SocketTimeoutError):
            read_http_request(server_side)


def test_expected_length_waits_for_header_terminator() -> None:
    assert expected_request_length(b"GET / HTTP/1.1\r\nHost: x\r\n") is None
    assert expected_request_length(b"GET / HTTP/1.1\r\n\r\n") == 18


def test_invalid_content_length_raises_framing_error() -> None:
    with pytest.raises(MalformedFramingError):
        expected_request_length(b"POST / HTTP/1.1\r\nContent-Length: -1\r\n\r\n")


def test_oversized_headers_raise() -> None:
    buffer = b"GET / HTTP/1.1\r\nX-Fill: " + b"a" * MAX_HEADER_BYTES

    with pytest.raises(HeaderTooLargeError):
        expected_request_length(buffer)


def test_oversized_body_raises() -> None:
    head = f"POST / HTTP/1.1\r\nContent-Length: {MAX_BODY_BYTES + 1}\r\n\r\n".encode("ascii")

    with pytest.raises(PayloadTooLargeError):
        expected_request_length(head)


def test_write_sends_every_byte() -> None:
    body = b"\x00" * 200_000
    response = HTTPResponse(status_code=200, body=body)
    expected = response.to_bytes()
    received = bytearray()

    server_side, client_side = socket.socketpair()
    with server_side, client_side:
        def drain() -> None:
            while len(received) < len(expected):
                chunk = client_side.recv(65536)
                if not chunk:
                    break
                received.extend(chunk)

        reader = threading.Thread(target=drain, daemon=True)
        reader.start()
        bytes_sent = write_http_response_message(server_side, response)
        reader.join(timeout=5)

    assert bytes_sent == len(expected)
    assert bytes(received) == expected
