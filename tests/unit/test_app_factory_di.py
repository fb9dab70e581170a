import logging
from typing import List

from injector import Injector

from lifecycle_http.app_factory_di import AppModule
from lifecycle_http.interfaces.route_interface import IRoute
from lifecycle_http.lifecycle import Lifecycle
from lifecycle_http.server.api.handlers import EchoHandler, HelloHandler
from lifecycle_http.server.application.services.router import Router
from lifecycle_http.server.infrastructure.http_server import HTTPServer, ServerState
from lifecycle_http.settings import Settings


def test_settings_are_bound_as_given(settings):
    injector = Injector(AppModule(settings))
    assert injector.get(Settings) is settings


def test_logger_is_a_process_wide_singleton(settings):
    injector = Injector(AppModule(settings))

    logger = injector.get(logging.Logger)

    assert logger is injector.get(logging.Logger)
    assert logger.name == settings.service_name
    assert injector.get(EchoHandler).logger is logger
    assert injector.get(HelloHandler).logger is logger


def test_route_group_contains_both_handlers(settings):
    injector = Injector(AppModule(settings))

    routes = injector.get(List[IRoute])

    assert sorted(route.pattern() for route in routes) == ["/echo", "/hello"]


def test_router_is_built_from_the_route_group(settings):
    injector = Injector(AppModule(settings))

    router = injector.get(Router)

    assert set(router.patterns) == {"/echo", "/hello"}
    assert router.resolve("/echo") is injector.get(EchoHandler)


def test_server_resolution_registers_hooks_in_dependency_order(settings):
    injector = Injector(AppModule(settings))

    server = injector.get(HTTPServer)
    lifecycle = injector.get(Lifecycle)

    assert server.router is injector.get(Router)
    assert server.state is ServerState.UNSTARTED
    assert [hook.name for hook in lifecycle.hooks] == ["router", "http-server"]


def test_each_injector_builds_its_own_graph(settings):
    first = Injector(AppModule(settings)).get(HTTPServer)
    second = Injector(AppModule(settings)).get(HTTPServer)
    assert first is not second
