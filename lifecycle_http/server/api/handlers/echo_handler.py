"""
EchoHandler - Single Responsibility: copy the request body back to the caller
"""

import logging

from starlette.requests import ClientDisconnect, Request
from starlette.responses import PlainTextResponse, Response

from lifecycle_http.core.constants import (
    ECHO_PATTERN,
    HTTP_INTERNAL_SERVER_ERROR,
    INTERNAL_SERVER_ERROR_MESSAGE,
)
from lifecycle_http.interfaces.route_interface import IRoute
from lifecycle_http.logger import log_fields


class EchoHandler(IRoute):
    """Route that answers with the exact bytes it received."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def pattern(self) -> str:
        return ECHO_PATTERN

    async def handle(self, request: Request) -> Response:
        self.logger.info("Handling request", extra=log_fields(path=request.url.path))

        body = bytearray()
        try:
            async for chunk in request.stream():
                body.extend(chunk)
        except ClientDisconnect as e:
            self.logger.error(
                "Failed to handle request", extra=log_fields(err=repr(e))
            )
            return PlainTextResponse(
                INTERNAL_SERVER_ERROR_MESSAGE, status_code=HTTP_INTERNAL_SERVER_ERROR
            )

        return Response(
            content=bytes(body), media_type=request.headers.get("content-type")
        )
