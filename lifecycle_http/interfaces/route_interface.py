"""
Interface for an HTTP route.

A route pairs a static, exact-match path pattern with the handler serving
that path. The router reads ``pattern()`` once while it is built; after that
only ``handle()`` is called, possibly from many requests at once.
"""

from abc import ABC, abstractmethod

from starlette.requests import Request
from starlette.responses import Response


class IRoute(ABC):
    """Abstract interface for a routable request handler."""

    @abstractmethod
    def pattern(self) -> str:
        """
        Returns the exact path this route serves (e.g. ``/echo``).

        The value must be non-empty, start with ``/`` and never change.
        """
        pass

    @abstractmethod
    async def handle(self, request: Request) -> Response:
        """
        Handles one request addressed to ``pattern()``.

        Args:
            request: The incoming request (method, path, headers, body stream).

        Returns:
            The response to send. Failures should be turned into a response
            here; anything that still escapes is answered with a generic 500
            by the router.
        """
        pass
