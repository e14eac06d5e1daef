"""Ordered routing table for path handlers."""

from collections.abc import Callable
from dataclasses import dataclass

from config import ServerConfig
from request import HTTPRequest
from response import HTTPResponse

Handler = Callable[[HTTPRequest, ServerConfig], HTTPResponse]


@dataclass(frozen=True, slots=True)
class Route:
    pattern: str
    handler: Handler
    exact: bool = False

    def matches(self, path: str) -> bool:
        if self.exact:
            return path == self.pattern
        return path.startswith(self.pattern)


class Router:
    """Routes are tried in declaration order; the first match wins."""

    def __init__(self, default_handler: Handler) -> None:
        self._routes: list[Route] = []
        self._default_handler = default_handler

    @property
    def routes(self) -> tuple[Route, ...]:
        return tuple(self._routes)

    def add_exact(self, path: str, handler: Handler) -> None:
        self._add(Route(pattern=path, handler=handler, exact=True))

    def add_prefix(self, prefix: str, handler: Handler) -> None:
        self._add(Route(pattern=prefix, handler=handler, exact=False))

    def resolve(self, request: HTTPRequest) -> Handler:
        for route in self._routes:
            if route.matches(request.path):
                return route.handler
        return self._default_handler

    def _add(self, route: Route) -> None:
        if not route.pattern.startswith("/"):
            raise ValueError("path must start with '/'")
        self._routes.append(route)
