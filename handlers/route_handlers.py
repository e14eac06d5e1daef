"""Route handlers and the default routing table."""

import logging

from config import ServerConfig
from request import HTTPRequest
from response import HTTPResponse
from router import Router
from utils import resolve_served_file

logger = logging.getLogger(__name__)

ECHO_PREFIX = "/echo/"
USER_AGENT_PREFIX = "/user-agent"
FILES_PREFIX = "/files/"


def root(request: HTTPRequest, config: ServerConfig) -> HTTPResponse:
    _ = request, config
    return HTTPResponse(status_code=200)


def echo(request: HTTPRequest, config: ServerConfig) -> HTTPResponse:
    _ = config
    return HTTPResponse(
        status_code=200,
        headers={"Content-Type": "text/plain"},
        body=request.path.removeprefix(ECHO_PREFIX).encode("iso-8859-1"),
    )


def user_agent(request: HTTPRequest, config: ServerConfig) -> HTTPResponse:
    _ = config
    agent = request.header("User-Agent", "")
    return HTTPResponse(
        status_code=200,
        headers={"Content-Type": "text/plain"},
        body=agent.encode("iso-8859-1"),
    )


def serve_file(request: HTTPRequest, config: ServerConfig) -> HTTPResponse:
    """Return the raw bytes of a file under the configured files directory."""
    if request.method != "GET":
        return HTTPResponse(status_code=405, headers={"Allow": "GET"})

    if config.files_directory is None:
        logger.warning("File requested but no --directory was configured")
        return HTTPResponse(status_code=500)

    name = request.path.removeprefix(FILES_PREFIX)
    # Names the OS cannot represent (NUL bytes, over-long) are missing files.
    try:
        file_path = resolve_served_file(name, config.files_directory)
        if file_path is None or not file_path.is_file():
            return HTTPResponse(status_code=404)
    except (ValueError, OSError) as exc:
        logger.debug("Unresolvable file name %r: %s", name, exc)
        return HTTPResponse(status_code=404)

    try:
        content = file_path.read_bytes()
    except FileNotFoundError:
        return HTTPResponse(status_code=404)
    except OSError:
        logger.exception("Could not read %s", file_path)
        return HTTPResponse(status_code=500)

    return HTTPResponse(
        status_code=200,
        headers={"Content-Type": "application/octet-stream"},
        body=content,
    )


def not_found(request: HTTPRequest, config: ServerConfig) -> HTTPResponse:
    _ = request, config
    return HTTPResponse(status_code=404)


def build_default_router() -> Router:
    router = Router(default_handler=not_found)
    router.add_exact("/", root)
    router.add_prefix(ECHO_PREFIX, echo)
    router.add_prefix(USER_AGENT_PREFIX, user_agent)
    router.add_prefix(FILES_PREFIX, serve_file)
    return router
