"""
Dependency Injection Module
Single Responsibility: Configure all dependency bindings for the application.

Construction order follows the provider arguments:
Settings -> Logger -> Lifecycle -> Handlers -> Router -> HTTPServer.
Components that own a lifecycle register their hooks as they are built,
which puts the router hook ahead of the server hook.
"""

import logging
from typing import List

from injector import Binder, Module, multiprovider, provider, singleton

from lifecycle_http.interfaces.route_interface import IRoute
from lifecycle_http.lifecycle import Lifecycle
from lifecycle_http.logger import new_logger
from lifecycle_http.server.api.handlers.echo_handler import EchoHandler
from lifecycle_http.server.api.handlers.hello_handler import HelloHandler
from lifecycle_http.server.application.services.router import Router
from lifecycle_http.server.infrastructure.http_server import HTTPServer
from lifecycle_http.settings import Settings


class AppModule(Module):
    def __init__(self, settings: Settings):
        self._settings = settings

    def configure(self, binder: Binder):
        binder.bind(Settings, to=self._settings, scope=singleton)

    @singleton
    @provider
    def provide_logger(self, settings: Settings) -> logging.Logger:
        return new_logger(settings)

    @singleton
    @provider
    def provide_lifecycle(self, logger: logging.Logger) -> Lifecycle:
        return Lifecycle(logger)

    @singleton
    @provider
    def provide_echo_handler(self, logger: logging.Logger) -> EchoHandler:
        return EchoHandler(logger)

    @singleton
    @provider
    def provide_hello_handler(self, logger: logging.Logger) -> HelloHandler:
        return HelloHandler(logger)

    # Each handler joins the route group consumed by the router
    @multiprovider
    def provide_echo_route(self, handler: EchoHandler) -> List[IRoute]:
        return [handler]

    @multiprovider
    def provide_hello_route(self, handler: HelloHandler) -> List[IRoute]:
        return [handler]

    @singleton
    @provider
    def provide_router(
        self, routes: List[IRoute], lifecycle: Lifecycle, logger: logging.Logger
    ) -> Router:
        router = Router(routes, logger)
        router.register_hooks(lifecycle)
        return router

    @singleton
    @provider
    def provide_http_server(
        self,
        settings: Settings,
        router: Router,
        lifecycle: Lifecycle,
        logger: logging.Logger,
    ) -> HTTPServer:
        server = HTTPServer(settings, router, logger)
        server.register_hooks(lifecycle)
        return server
