import pytest

from lifecycle_http.server.api.handlers import EchoHandler, HelloHandler
from lifecycle_http.server.application.services.router import Router
from lifecycle_http.server.domain.exceptions import ServerError
from lifecycle_http.server.infrastructure.http_server import HTTPServer


@pytest.fixture
def make_server(settings, logger):
    servers = []

    def _make(extra_routes=(), server_settings=None):
        routes = [EchoHandler(logger), HelloHandler(logger), *extra_routes]
        server = HTTPServer(server_settings or settings, Router(routes, logger), logger)
        servers.append(server)
        return server

    yield _make

    for server in servers:
        try:
            server.stop()
        except ServerError:
            pass
