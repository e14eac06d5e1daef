"""Low-level socket read/write utilities."""

from __future__ import annotations

import socket

from config import BUFFER_SIZE, MAX_BODY_BYTES, MAX_HEADER_BYTES
from request import MalformedRequestError, parse_content_length
from response import HTTPResponse


class HTTPReadError(Exception):
    """Raised when a client request cannot be safely read from the socket."""


class MalformedFramingError(HTTPReadError):
    """Raised when request headers cannot be used to frame the body."""


class ConnectionClosedError(HTTPReadError):
    """Raised when the client disconnects before the request is complete."""


class HeaderTooLargeError(HTTPReadError):
    """Raised when HTTP headers exceed configured maximum size."""


class PayloadTooLargeError(HTTPReadError):
    """Raised when request body exceeds configured maximum size."""


class SocketTimeoutError(HTTPReadError):
    """Raised when a client times out while sending request bytes."""


def _extract_content_length(header_bytes: bytes) -> int:
    content_length = 0
    headers = header_bytes.decode("iso-8859-1").split("\r\n")
    # Last occurrence wins, matching HTTPRequest.from_bytes.
    for line in headers[1:]:
        name, separator, value = line.partition(":")
        if separator and name.strip().lower() == "content-length":
            try:
                content_length = parse_content_length(value)
            except MalformedRequestError as exc:
                raise MalformedFramingError(str(exc)) from exc
    return content_length


def expected_request_length(buffer: bytes) -> int | None:
    """Return the full request length once the head is buffered, else None."""
    header_end_index = buffer.find(b"\r\n\r\n")
    if header_end_index == -1:
        if len(buffer) > MAX_HEADER_BYTES:
            raise HeaderTooLargeError("Headers exceeded MAX_HEADER_BYTES")
        return None

    body_start = header_end_index + 4
    if body_start > MAX_HEADER_BYTES:
        raise HeaderTooLargeError("Headers exceeded MAX_HEADER_BYTES")

    expected_body_length = _extract_content_length(buffer[:header_end_index])
    if expected_body_length > MAX_BODY_BYTES:
        raise PayloadTooLargeError("Body exceeded MAX_BODY_BYTES")
    return body_start + expected_body_length


def read_http_request(client_socket: socket.socket) -> bytes:
    """Read one HTTP request, framed by the header terminator and Content-Length.

    Returns ``b""`` when the client disconnects without sending anything.
    """
    buffer = bytearray()
    request_length: int | None = None

    while request_length is None or len(buffer) < request_length:
        try:
            chunk = client_socket.recv(BUFFER_SIZE)
        except socket.timeout as exc:
            raise SocketTimeoutError("Timed out waiting for request bytes") from exc

        if not chunk:
            if not buffer:
                return b""
            raise ConnectionClosedError("Connection closed before request completed")

        buffer.extend(chunk)
        if request_length is None:
            request_length = expected_request_length(bytes(buffer))

    return bytes(buffer[:request_length])


def write_http_response_message(
    client_socket: socket.socket,
    response: HTTPResponse,
    *,
    include_body: bool = True,
) -> int:
    """Write the complete serialized response and return the bytes written."""
    payload = response.to_bytes(include_body=include_body)
    client_socket.sendall(payload)
    return len(payload)
