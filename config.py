"""Configuration constants for the custom HTTP server."""

from dataclasses import dataclass
from pathlib import Path

HOST: str = "0.0.0.0"
PORT: int = 4221
HTTP_VERSION: str = "HTTP/1.1"
BUFFER_SIZE: int = 1024
LISTEN_BACKLOG: int = 128
ACCEPT_TIMEOUT_SECS: float = 0.2
SOCKET_TIMEOUT_SECS: float | None = None
DRAIN_TIMEOUT_SECS: float = 2.0
MAX_HEADER_BYTES: int = 16_384
MAX_BODY_BYTES: int = 10_485_760
LOG_FORMAT: str = "plain"
LOG_LEVEL: str = "INFO"


@dataclass(frozen=True, slots=True)
class ServerConfig:
    """Process-wide, read-only settings shared by every connection."""

    files_directory: Path | None = None
