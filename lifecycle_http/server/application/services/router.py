"""
Router - Single Responsibility: exact-path dispatch of requests to routes

The dispatch table is built once from the routes handed to the constructor
and never changes afterwards, so it can be read from any number of requests
at the same time without locking.
"""

import logging
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Tuple

from fastapi import FastAPI
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response

from lifecycle_http.core.constants import (
    HTTP_INTERNAL_SERVER_ERROR,
    HTTP_NOT_FOUND,
    INTERNAL_SERVER_ERROR_MESSAGE,
    NOT_FOUND_MESSAGE,
)
from lifecycle_http.interfaces.route_interface import IRoute
from lifecycle_http.lifecycle import Deadline, Hook, Lifecycle
from lifecycle_http.logger import log_fields
from lifecycle_http.server.domain.exceptions import (
    DuplicateRouteError,
    InvalidRoutePatternError,
)


class RouteEndpoint:
    """ASGI endpoint handing requests of any method to a router."""

    def __init__(self, router: "Router"):
        self.router = router

    async def __call__(self, scope, receive, send):
        response = await self.router.dispatch(Request(scope, receive, send))
        await response(scope, receive, send)


class Router:
    """
    Immutable dispatch table from exact path pattern to route.

    Construction fails with ``DuplicateRouteError`` when two routes claim the
    same pattern and with ``InvalidRoutePatternError`` for unusable patterns,
    so configuration mistakes surface at startup rather than on a request.
    """

    def __init__(self, routes: Iterable[IRoute], logger: logging.Logger):
        self.logger = logger

        table = {}
        for route in routes:
            pattern = self._validate_pattern(route.pattern())
            if pattern in table:
                raise DuplicateRouteError(pattern)
            table[pattern] = route
            self.logger.debug(
                "Registered route",
                extra=log_fields(pattern=pattern, route=type(route).__name__),
            )

        self._table: Mapping[str, IRoute] = MappingProxyType(table)
        self.app = self._build_app()

    @staticmethod
    def _validate_pattern(pattern: object) -> str:
        if not isinstance(pattern, str):
            raise InvalidRoutePatternError(pattern, "pattern must be a string")
        if not pattern:
            raise InvalidRoutePatternError(pattern, "pattern must not be empty")
        if not pattern.startswith("/"):
            raise InvalidRoutePatternError(pattern, "pattern must start with '/'")
        return pattern

    @property
    def patterns(self) -> Tuple[str, ...]:
        """Registered patterns in registration order."""
        return tuple(self._table)

    def resolve(self, path: str) -> Optional[IRoute]:
        """Exact-match lookup; ``None`` when no route owns the path."""
        return self._table.get(path)

    def __len__(self) -> int:
        return len(self._table)

    def __contains__(self, path: object) -> bool:
        return path in self._table

    async def dispatch(self, request: Request) -> Response:
        """
        Serve ``request`` with the route owning its path.

        Unknown paths get a plain 404. Exceptions escaping a route are logged
        and answered with a generic 500; their detail never reaches the caller.
        """
        route = self.resolve(request.url.path)
        if route is None:
            return self._not_found()

        try:
            return await route.handle(request)
        except Exception as e:
            self.logger.error(
                "Route failed to handle request",
                extra=log_fields(path=request.url.path, err=repr(e)),
            )
            return PlainTextResponse(
                INTERNAL_SERVER_ERROR_MESSAGE, status_code=HTTP_INTERNAL_SERVER_ERROR
            )

    def register_hooks(self, lifecycle: Lifecycle) -> None:
        lifecycle.append(
            Hook(on_start=self._on_start, on_stop=self._on_stop, name="router")
        )

    def _on_start(self, deadline: Deadline) -> None:
        self.logger.info("starting router", extra=log_fields(patterns=self.patterns))

    def _on_stop(self, deadline: Deadline) -> None:
        self.logger.info("stopping router")

    @staticmethod
    def _not_found() -> Response:
        return PlainTextResponse(NOT_FOUND_MESSAGE, status_code=HTTP_NOT_FOUND)

    def _build_app(self) -> FastAPI:
        app = FastAPI(
            title="lifecycle-http",
            docs_url=None,
            redoc_url=None,
            openapi_url=None,
            redirect_slashes=False,
        )

        # An ASGI endpoint with no method list matches every request method
        endpoint = RouteEndpoint(self)
        for pattern in self._table:
            app.add_route(pattern, endpoint, include_in_schema=False)

        @app.exception_handler(StarletteHTTPException)
        async def http_exception_handler(request: Request, exc: StarletteHTTPException):
            if exc.status_code == HTTP_NOT_FOUND:
                return self._not_found()
            return PlainTextResponse(f"{exc.detail}\n", status_code=exc.status_code)

        return app
