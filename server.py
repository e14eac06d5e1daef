"""Main HTTP server entry point and connection lifecycle orchestration."""

from __future__ import annotations

import argparse
import json
import logging
import socket
import sys
import time
from pathlib import Path

from config import (
    ACCEPT_TIMEOUT_SECS,
    DRAIN_TIMEOUT_SECS,
    HOST,
    LISTEN_BACKLOG,
    LOG_FORMAT,
    LOG_LEVEL,
    PORT,
    SOCKET_TIMEOUT_SECS,
    ServerConfig,
)
from connection_workers import ConnectionWorkers
from handlers.route_handlers import build_default_router
from request import HTTPRequest, MalformedRequestError
from response import REASON_PHRASES, HTTPResponse
from router import Router
from socket_handler import (
    ConnectionClosedError,
    HeaderTooLargeError,
    MalformedFramingError,
    PayloadTooLargeError,
    SocketTimeoutError,
    read_http_request,
    write_http_response_message,
)

logger = logging.getLogger(__name__)

READ_ERROR_STATUS: dict[type[Exception], int] = {
    MalformedFramingError: 400,
    SocketTimeoutError: 408,
    PayloadTooLargeError: 413,
    HeaderTooLargeError: 431,
}


class HTTPServer:
    def __init__(
        self,
        host: str = HOST,
        port: int = PORT,
        config: ServerConfig | None = None,
        router: Router | None = None,
        *,
        socket_timeout_secs: float | None = SOCKET_TIMEOUT_SECS,
        drain_timeout_secs: float = DRAIN_TIMEOUT_SECS,
        log_format: str = LOG_FORMAT,
    ) -> None:
        self.host = host
        self.port = port
        self.config = config or ServerConfig()
        self.router = router or build_default_router()
        self.socket_timeout_secs = socket_timeout_secs
        self.drain_timeout_secs = drain_timeout_secs
        self.log_format = log_format

        self._server_socket: socket.socket | None = None
        self._workers = ConnectionWorkers(handler=self._handle_client)
        self._running = False

    @property
    def workers(self) -> ConnectionWorkers:
        return self._workers

    def start(self) -> None:
        """Bind, listen and hand every accepted connection to its own thread."""
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as server_socket:
            self._server_socket = server_socket
            server_socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            server_socket.bind((self.host, self.port))
            server_socket.listen(LISTEN_BACKLOG)
            server_socket.settimeout(ACCEPT_TIMEOUT_SECS)
            self.port = server_socket.getsockname()[1]
            logger.info("Listening on %s:%s", self.host, self.port)

            self._running = True
            try:
                while self._running:
                    try:
                        client_socket, address = server_socket.accept()
                    except socket.timeout:
                        continue
                    except OSError:
                        if not self._running:
                            break
                        logger.exception("Failed to accept connection")
                        continue

                    try:
                        self._workers.spawn(client_socket, address)
                    except RuntimeError:
                        logger.exception("Could not start worker for %s", address[0])
                        client_socket.close()
            finally:
                self._running = False
                if not self._workers.wait_for_drain(timeout=self.drain_timeout_secs):
                    logger.warning(
                        "Stopped with %s connection(s) still in flight",
                        self._workers.active_count,
                    )

    def stop(self) -> None:
        self._running = False
        if self._server_socket is not None:
            self._server_socket.close()
            self._server_socket = None

    def _handle_client(self, client_socket: socket.socket, address: tuple[str, int]) -> None:
        with client_socket:
            client_socket.settimeout(self.socket_timeout_secs)
            started_at = time.perf_counter()

            try:
                raw_request = read_http_request(client_socket)
            except ConnectionClosedError as exc:
                logger.debug("Dropping connection from %s: %s", address[0], exc)
                return
            except (
                MalformedFramingError,
                SocketTimeoutError,
                PayloadTooLargeError,
                HeaderTooLargeError,
            ) as exc:
                logger.debug("Rejecting request from %s: %s", address[0], exc)
                self._reject(
                    client_socket,
                    address,
                    status_code=READ_ERROR_STATUS[type(exc)],
                    bytes_in=0,
                    started_at=started_at,
                )
                return
            except OSError as exc:
                logger.debug("Read failed for %s: %s", address[0], exc)
                return

            if not raw_request:
                return

            try:
                request = HTTPRequest.from_bytes(raw_request)
            except MalformedRequestError as exc:
                logger.debug("Malformed request from %s: %s", address[0], exc)
                self._reject(
                    client_socket,
                    address,
                    status_code=exc.status_code,
                    bytes_in=len(raw_request),
                    started_at=started_at,
                )
                return

            response = self._dispatch(request)
            try:
                bytes_sent = write_http_response_message(
                    client_socket,
                    response,
                    include_body=request.method != "HEAD",
                )
            except OSError as exc:
                logger.debug("Write failed for %s: %s", address[0], exc)
                return

            self._record_and_log(
                address=address,
                method=request.method,
                path=request.path,
                response=response,
                payload_size=bytes_sent,
                bytes_in=len(raw_request),
                started_at=started_at,
            )

    def _reject(
        self,
        client_socket: socket.socket,
        address: tuple[str, int],
        *,
        status_code: int,
        bytes_in: int,
        started_at: float,
    ) -> None:
        response = HTTPResponse(
            status_code=status_code,
            headers={"Connection": "close"},
            body=REASON_PHRASES.get(status_code, "Bad Request"),
        )
        try:
            bytes_sent = write_http_response_message(client_socket, response)
        except OSError as exc:
            logger.debug("Write failed for %s: %s", address[0], exc)
            return
        self._record_and_log(
            address=address,
            method="-",
            path="-",
            response=response,
            payload_size=bytes_sent,
            bytes_in=bytes_in,
            started_at=started_at,
        )

    def _dispatch(self, request: HTTPRequest) -> HTTPResponse:
        handler = self.router.resolve(request)
        try:
            return handler(request, self.config)
        except Exception:
            logger.exception("Unhandled error in route handler")
            return HTTPResponse(status_code=500)

    def _record_and_log(
        self,
        *,
        address: tuple[str, int],
        method: str,
        path: str,
        response: HTTPResponse,
        payload_size: int,
        bytes_in: int,
        started_at: float,
    ) -> None:
        duration_ms = (time.perf_counter() - started_at) * 1000
        event = {
            "client": address[0],
            "method": method,
            "path": path,
            "status": response.status_code,
            "bytes_in": bytes_in,
            "bytes_out": payload_size,
            "duration_ms": round(duration_ms, 3),
        }
        if self.log_format == "json":
            logger.info(json.dumps(event, sort_keys=True))
            return

        logger.info(
            "client=%s method=%s path=%s status=%s bytes_in=%s bytes_out=%s duration_ms=%.2f",
            event["client"],
            event["method"],
            event["path"],
            event["status"],
            event["bytes_in"],
            event["bytes_out"],
            duration_ms,
        )


def _existing_directory(value: str) -> Path:
    path = Path(value)
    if not path.is_dir():
        raise argparse.ArgumentTypeError(f"{value!r} is not a directory")
    return path


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run custom HTTP server")
    parser.add_argument("--host", default=HOST)
    parser.add_argument("--port", type=int, default=PORT)
    parser.add_argument(
        "--directory",
        type=_existing_directory,
        default=None,
        help="root directory served under /files/",
    )
    parser.add_argument("--log-format", choices=["plain", "json"], default=LOG_FORMAT)
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=LOG_LEVEL,
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    server = HTTPServer(
        host=args.host,
        port=args.port,
        config=ServerConfig(files_directory=args.directory),
        log_format=args.log_format,
    )
    try:
        server.start()
    except KeyboardInterrupt:
        server.stop()
    except OSError:
        logger.exception("Could not listen on %s:%s", args.host, args.port)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
