"""HTTP response model and serializer."""

from dataclasses import dataclass, field

from config import HTTP_VERSION

REASON_PHRASES: dict[int, str] = {
    200: "OK",
    400: "Bad Request",
    404: "Not Found",
    405: "Method Not Allowed",
    408: "Request Timeout",
    413: "Payload Too Large",
    431: "Request Header Fields Too Large",
    500: "Internal Server Error",
    501: "Not Implemented",
    505: "HTTP Version Not Supported",
}


@dataclass(slots=True)
class HTTPResponse:
    status_code: int
    reason_phrase: str | None = None
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes | str | None = None
    http_version: str = HTTP_VERSION

    def __post_init__(self) -> None:
        if isinstance(self.body, str):
            self.body = self.body.encode("utf-8")

    @property
    def reason(self) -> str:
        return self.reason_phrase or REASON_PHRASES.get(self.status_code, "Unknown")

    def to_bytes(self, *, include_body: bool = True) -> bytes:
        """Serialize the response into HTTP/1.1 wire format bytes.

        With ``include_body=False`` (HEAD) the head still advertises the
        body's Content-Length but the body bytes are omitted.
        """
        normalized_headers = {
            key: value
            for key, value in self.headers.items()
            if key.lower() != "content-length"
        }
        if self.body is not None:
            normalized_headers["Content-Length"] = str(len(self.body))

        header_lines = [f"{self.http_version} {self.status_code} {self.reason}"]
        header_lines.extend(f"{key}: {value}" for key, value in normalized_headers.items())
        head = "\r\n".join(header_lines).encode("iso-8859-1") + b"\r\n\r\n"
        if self.body is None or not include_body:
            return head
        return head + self.body
