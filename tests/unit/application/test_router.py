import logging
from concurrent.futures import ThreadPoolExecutor

import pytest
from fastapi.testclient import TestClient
from starlette.responses import PlainTextResponse

from lifecycle_http.interfaces.route_interface import IRoute
from lifecycle_http.lifecycle import Lifecycle
from lifecycle_http.server.api.handlers import EchoHandler, HelloHandler
from lifecycle_http.server.application.services.router import Router
from lifecycle_http.server.domain.exceptions import (
    DuplicateRouteError,
    InvalidRoutePatternError,
    StartupError,
)


class StaticRoute(IRoute):
    def __init__(self, pattern, text="ok"):
        self._pattern = pattern
        self.text = text
        self.pattern_calls = 0

    def pattern(self):
        self.pattern_calls += 1
        return self._pattern

    async def handle(self, request):
        return PlainTextResponse(self.text)


class ExplodingRoute(IRoute):
    def pattern(self):
        return "/boom"

    async def handle(self, request):
        raise RuntimeError("database password is hunter2")


@pytest.fixture
def router(logger):
    return Router([EchoHandler(logger), HelloHandler(logger)], logger)


@pytest.fixture
def client(router):
    return TestClient(router.app)


class TestRouterConstruction:
    def test_registers_patterns_in_order(self, router):
        assert router.patterns == ("/echo", "/hello")
        assert len(router) == 2
        assert "/echo" in router
        assert "/missing" not in router

    def test_duplicate_pattern_fails_at_build_time(self, logger):
        with pytest.raises(DuplicateRouteError) as excinfo:
            Router([EchoHandler(logger), EchoHandler(logger)], logger)

        assert isinstance(excinfo.value, StartupError)
        assert excinfo.value.context == {"pattern": "/echo"}

    def test_duplicate_pattern_from_different_routes(self, logger):
        with pytest.raises(DuplicateRouteError):
            Router([StaticRoute("/echo"), EchoHandler(logger)], logger)

    @pytest.mark.parametrize("pattern", ["", "echo", None, 42])
    def test_invalid_patterns_are_rejected(self, logger, pattern):
        with pytest.raises(InvalidRoutePatternError):
            Router([StaticRoute(pattern)], logger)

    def test_pattern_is_read_once(self, logger):
        route = StaticRoute("/static")
        Router([route], logger)
        assert route.pattern_calls == 1

    def test_empty_router_is_allowed(self, logger):
        client = TestClient(Router([], logger).app)
        assert client.get("/echo").status_code == 404

    def test_table_is_read_only(self, router):
        with pytest.raises(TypeError):
            router._table["/new"] = StaticRoute("/new")

    def test_resolve(self, router):
        assert isinstance(router.resolve("/hello"), HelloHandler)
        assert router.resolve("/hello/") is None


class TestRouterDispatch:
    @pytest.mark.parametrize(
        "path", ["/", "/missing", "/echo/", "/hello/world", "/ECHO", "/echoes"]
    )
    def test_unknown_paths_get_404(self, client, path):
        response = client.post(path, content=b"body")

        assert response.status_code == 404
        assert response.text == "404 page not found\n"

    @pytest.mark.parametrize("method", ["GET", "TRACE", "PROPFIND"])
    def test_unknown_path_is_404_for_every_method(self, client, method):
        response = client.request(method, "/missing")

        assert response.status_code == 404

    def test_no_method_is_rejected_on_a_registered_pattern(self, client):
        for method in ("TRACE", "PROPFIND", "MKCOL", "X-CUSTOM"):
            assert client.request(method, "/hello").status_code == 200

    def test_dispatches_to_matching_route(self, client):
        assert client.post("/echo", content=b"abc").content == b"abc"
        assert client.post("/hello", content=b"abc").content == b"Hello, abc\n"

    def test_query_string_does_not_affect_match(self, client):
        response = client.post("/hello?name=x", content=b"q")
        assert response.content == b"Hello, q\n"

    def test_route_exception_becomes_generic_500(self, logger, caplog):
        client = TestClient(Router([ExplodingRoute()], logger).app)

        with caplog.at_level(logging.ERROR):
            response = client.get("/boom")

        assert response.status_code == 500
        assert response.text == "Internal server error\n"
        assert "hunter2" not in response.text
        record = next(
            r for r in caplog.records if r.getMessage() == "Route failed to handle request"
        )
        assert "hunter2" in record.fields["err"]

    @pytest.mark.asyncio
    async def test_dispatch_directly(self, router, make_request):
        request = make_request(
            "/hello", [{"type": "http.request", "body": b"direct", "more_body": False}]
        )

        response = await router.dispatch(request)

        assert response.body == b"Hello, direct\n"

    @pytest.mark.asyncio
    async def test_dispatch_unknown_path(self, router, make_request):
        response = await router.dispatch(make_request("/nope", []))
        assert response.status_code == 404

    def test_concurrent_requests_get_independent_responses(self, client):
        def call(i):
            path = "/echo" if i % 2 else "/hello"
            body = f"caller-{i}".encode()
            response = client.post(path, content=body)
            expected = body if i % 2 else b"Hello, " + body + b"\n"
            return response.status_code, response.content == expected

        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(call, range(32)))

        assert all(status == 200 and matched for status, matched in results)


class TestRouterHooks:
    def test_register_hooks_logs_start_and_stop(self, router, logger, caplog):
        lifecycle = Lifecycle(logger)
        router.register_hooks(lifecycle)

        with caplog.at_level(logging.INFO):
            lifecycle.start(timeout=1)
            lifecycle.stop(timeout=1)

        messages = [r.getMessage() for r in caplog.records]
        assert "starting router" in messages
        assert "stopping router" in messages
        assert lifecycle.hooks[0].name == "router"
