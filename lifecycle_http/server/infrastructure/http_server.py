"""
HTTPServer - Single Responsibility: own the listening socket and serve loop

The server binds its socket synchronously in ``start`` so address problems
abort startup, then serves on a background thread running uvicorn on its own
asyncio loop. ``stop`` closes the listener, lets in-flight requests finish
until the deadline, and severs whatever is left after it.

State machine (no back transitions, no restart):

    UNSTARTED -> LISTENING -> SHUTTING_DOWN -> STOPPED
"""

import asyncio
import logging
import socket
import threading
import time
from enum import Enum
from typing import Optional, Tuple

import uvicorn

from lifecycle_http.core.constants import (
    FORCED_CLOSE_GRACE_SECONDS,
    LISTEN_BACKLOG,
    STARTUP_POLL_INTERVAL_SECONDS,
)
from lifecycle_http.lifecycle import Deadline, Hook, Lifecycle
from lifecycle_http.logger import log_fields
from lifecycle_http.server.application.services.router import Router
from lifecycle_http.server.domain.exceptions import (
    AddressBindError,
    LifecycleStateError,
    ServerStartError,
    ShutdownTimeoutError,
)
from lifecycle_http.server.domain.value_objects import ListenAddress
from lifecycle_http.server.infrastructure.request_tracker import RequestTracker
from lifecycle_http.settings import Settings


class ServerState(Enum):
    """Lifecycle states of an HTTPServer."""

    UNSTARTED = "unstarted"
    LISTENING = "listening"
    SHUTTING_DOWN = "shutting_down"
    STOPPED = "stopped"


class HTTPServer:
    """HTTP server with explicit start and stop lifecycle hooks."""

    def __init__(self, settings: Settings, router: Router, logger: logging.Logger):
        self.settings = settings
        self.router = router
        self.logger = logger
        self.address = settings.address
        self.tracker = RequestTracker(router.app)

        self._state = ServerState.UNSTARTED
        self._state_lock = threading.Lock()
        self._socket: Optional[socket.socket] = None
        self._bound_address: Optional[Tuple[str, int]] = None
        self._server: Optional[uvicorn.Server] = None
        self._thread: Optional[threading.Thread] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._serve_error: Optional[BaseException] = None

    @property
    def state(self) -> ServerState:
        return self._state

    @property
    def bound_address(self) -> Optional[Tuple[str, int]]:
        """Actual (host, port) of the listener, known once bound."""
        return self._bound_address

    @property
    def in_flight(self) -> int:
        return self.tracker.active

    def register_hooks(self, lifecycle: Lifecycle) -> None:
        lifecycle.append(Hook(on_start=self.start, on_stop=self.stop, name="http-server"))

    def start(self, deadline: Optional[Deadline] = None) -> None:
        """
        Bind the listener and spawn the serve loop.

        Raises:
            LifecycleStateError: If the server was already started.
            AddressBindError: If the address cannot be bound.
            ServerStartError: If the serve loop does not come up in time.
        """
        with self._state_lock:
            if self._state is not ServerState.UNSTARTED:
                raise LifecycleStateError("start", self._state.value)
            if deadline is None:
                deadline = Deadline.after(self.settings.start_timeout_seconds)

            self._socket = self._bind()
            self._bound_address = self._socket.getsockname()[:2]
            self._server = uvicorn.Server(
                uvicorn.Config(
                    self.tracker,
                    host=self._bound_address[0],
                    port=self._bound_address[1],
                    lifespan="off",
                    log_config=None,
                    access_log=False,
                )
            )
            self._thread = threading.Thread(
                target=self._serve,
                name=f"http-server-{self._bound_address[1]}",
                daemon=True,
            )
            self._thread.start()

            try:
                self._wait_until_started(deadline)
            except ServerStartError:
                self._server.should_exit = True
                self._thread.join(FORCED_CLOSE_GRACE_SECONDS)
                self._close_socket()
                self._state = ServerState.STOPPED
                raise

            self._state = ServerState.LISTENING

        self.logger.info(
            "Starting HTTP server",
            extra=log_fields(address=self._format_bound_address()),
        )

    def stop(self, deadline: Optional[Deadline] = None) -> None:
        """
        Stop accepting connections and wait for in-flight requests.

        Stopping an unstarted server only marks it stopped; stopping a
        stopped server does nothing.

        Raises:
            ShutdownTimeoutError: If requests were still running at the
                deadline. Their connections have been closed by then.
        """
        with self._state_lock:
            if self._state is ServerState.STOPPED:
                return
            if self._state is ServerState.UNSTARTED:
                self._state = ServerState.STOPPED
                return
            if self._state is ServerState.SHUTTING_DOWN:
                raise LifecycleStateError("stop", self._state.value)
            self._state = ServerState.SHUTTING_DOWN

        if deadline is None:
            deadline = Deadline.after(self.settings.shutdown_timeout_seconds)

        self.logger.info(
            "Stopping HTTP server",
            extra=log_fields(
                address=self._format_bound_address(), in_flight=self.in_flight
            ),
        )
        self._server.should_exit = True
        self._thread.join(deadline.remaining())

        abandoned = 0
        if self._thread.is_alive():
            abandoned = self.tracker.active
            self.logger.warning(
                "Shutdown deadline exceeded, closing connections",
                extra=log_fields(abandoned=abandoned, timeout=deadline.timeout),
            )
            self._force_close()
            self._thread.join(FORCED_CLOSE_GRACE_SECONDS)

        self._close_socket()
        with self._state_lock:
            self._state = ServerState.STOPPED
        self.logger.info(
            "HTTP server stopped",
            extra=log_fields(
                requests_served=self.tracker.total,
                requests_cancelled=self.tracker.cancelled,
            ),
        )

        if abandoned:
            raise ShutdownTimeoutError(deadline.timeout, abandoned)

    def _bind(self) -> socket.socket:
        try:
            return socket.create_server(
                (self.address.host, self.address.port),
                family=self.address.family,
                backlog=LISTEN_BACKLOG,
                dualstack_ipv6=self.address.dual_stack,
            )
        except OSError as e:
            raise AddressBindError(str(self.address), e) from e

    def _serve(self) -> None:
        try:
            asyncio.run(self._serve_async())
        except (Exception, SystemExit) as e:
            # uvicorn exits with SystemExit when its startup fails
            self._serve_error = e
            self.logger.error(
                "HTTP server loop exited with error", extra=log_fields(err=repr(e))
            )

    async def _serve_async(self) -> None:
        self._loop = asyncio.get_running_loop()
        self._loop.set_exception_handler(self._handle_loop_exception)
        await self._server.serve(sockets=[self._socket])

    def _wait_until_started(self, deadline: Deadline) -> None:
        while not self._server.started:
            if not self._thread.is_alive():
                reason = repr(self._serve_error) if self._serve_error else "serve loop exited"
                raise ServerStartError(str(self.address), reason)
            if deadline.expired:
                raise ServerStartError(
                    str(self.address), "timed out waiting for the serve loop"
                )
            time.sleep(STARTUP_POLL_INTERVAL_SECONDS)

    def _handle_loop_exception(self, loop, context) -> None:
        if self._state in (ServerState.SHUTTING_DOWN, ServerState.STOPPED):
            self.logger.debug(
                "Ignoring accept loop error during shutdown",
                extra=log_fields(message=context.get("message")),
            )
            return
        self.logger.error(
            "Unexpected error in accept loop",
            extra=log_fields(
                message=context.get("message"), err=repr(context.get("exception"))
            ),
        )

    def _force_close(self) -> None:
        try:
            self._loop.call_soon_threadsafe(self._sever_connections)
        except RuntimeError:
            # The loop finished between the join timeout and this call
            self.logger.debug("Serve loop already closed")

    def _sever_connections(self) -> None:
        self._server.force_exit = True
        for connection in list(self._server.server_state.connections):
            transport = getattr(connection, "transport", None)
            if transport is not None:
                transport.abort()

    def _close_socket(self) -> None:
        if self._socket is not None:
            self._socket.close()
            self._socket = None

    def _format_bound_address(self) -> str:
        if self._bound_address is None:
            return str(self.address)
        host, port = self._bound_address
        return str(ListenAddress(host, port))
