"""
HelloHandler - Single Responsibility: greet the caller with the request body
"""

import logging

from starlette.requests import ClientDisconnect, Request
from starlette.responses import PlainTextResponse, Response

from lifecycle_http.core.constants import (
    HELLO_PATTERN,
    HTTP_INTERNAL_SERVER_ERROR,
    INTERNAL_SERVER_ERROR_MESSAGE,
    TEXT_PLAIN,
)
from lifecycle_http.interfaces.route_interface import IRoute
from lifecycle_http.logger import log_fields


class HelloHandler(IRoute):
    """Route that prints a greeting built from the request body."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def pattern(self) -> str:
        return HELLO_PATTERN

    async def handle(self, request: Request) -> Response:
        try:
            body = await request.body()
        except ClientDisconnect as e:
            # Error detail stays in the log, the caller only sees a generic 500
            self.logger.error("Failed to read request", extra=log_fields(err=repr(e)))
            return PlainTextResponse(
                INTERNAL_SERVER_ERROR_MESSAGE, status_code=HTTP_INTERNAL_SERVER_ERROR
            )

        return Response(content=b"Hello, " + body + b"\n", media_type=TEXT_PLAIN)
