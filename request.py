"""HTTP request model and parser."""

from dataclasses import dataclass, field

ALLOWED_HTTP_VERSIONS = {"HTTP/1.1", "HTTP/1.0"}
KNOWN_METHODS = {
    "GET",
    "HEAD",
    "POST",
    "PUT",
    "DELETE",
    "OPTIONS",
    "PATCH",
    "TRACE",
    "CONNECT",
}


class MalformedRequestError(ValueError):
    """Request parse error carrying an HTTP status code."""

    def __init__(self, message: str, *, status_code: int = 400) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(slots=True)
class HTTPRequest:
    method: str
    path: str
    http_version: str
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes | None = None

    def header(self, name: str, default: str | None = None) -> str | None:
        """Case-insensitive header lookup."""
        return self.headers.get(name.lower(), default)

    @classmethod
    def from_bytes(cls, raw: bytes) -> "HTTPRequest":
        """Parse raw HTTP request bytes into a structured request object.

        Parsing happens in two stages: the start line is split into exactly
        three tokens, then each header line is split on its first colon.
        Anything that does not fit fails with ``MalformedRequestError``.
        """
        header_bytes, separator, trailing = raw.partition(b"\r\n\r\n")
        if not separator:
            trailing = b""

        start_line, _, header_block = header_bytes.partition(b"\r\n")
        method, path, http_version = _parse_start_line(start_line)
        headers = _parse_header_lines(header_block.decode("iso-8859-1").split("\r\n"))

        body: bytes | None = None
        if "content-length" in headers:
            expected_body_length = parse_content_length(headers["content-length"])
            if len(trailing) < expected_body_length:
                raise MalformedRequestError("Body length does not match Content-Length")
            body = trailing[:expected_body_length]

        return cls(
            method=method,
            path=path,
            http_version=http_version,
            headers=headers,
            body=body,
        )


def parse_content_length(value: str) -> int:
    try:
        content_length = int(value.strip())
    except ValueError as exc:
        raise MalformedRequestError("Invalid Content-Length") from exc
    if content_length < 0:
        raise MalformedRequestError("Negative Content-Length is invalid")
    return content_length


def _parse_start_line(start_line: bytes) -> tuple[str, str, str]:
    if not start_line:
        raise MalformedRequestError("Missing request line")

    # bytes.split() only breaks on ASCII whitespace.
    parts = start_line.split()
    if len(parts) != 3:
        raise MalformedRequestError("Invalid request line")

    method, path, http_version = (part.decode("iso-8859-1") for part in parts)
    normalized_method = method.upper()
    if normalized_method not in KNOWN_METHODS:
        raise MalformedRequestError("Method not implemented", status_code=501)

    if http_version not in ALLOWED_HTTP_VERSIONS:
        raise MalformedRequestError("Unsupported HTTP version", status_code=505)

    return normalized_method, path, http_version


def _parse_header_lines(lines: list[str]) -> dict[str, str]:
    headers: dict[str, str] = {}
    for line in lines:
        if not line:
            break
        if ":" not in line:
            raise MalformedRequestError("Malformed header line")
        name, value = line.split(":", 1)
        header_name = name.strip().lower()
        if not header_name:
            raise MalformedRequestError("Header name cannot be empty")
        headers[header_name] = value.strip(" \t")
    return headers
