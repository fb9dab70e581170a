"""
Application Factory
Single Responsibility: Create the application and drive its lifecycle.
"""

import logging
import signal
import threading
from typing import Optional

from injector import Injector

from lifecycle_http.app_factory_di import AppModule
from lifecycle_http.lifecycle import Lifecycle
from lifecycle_http.logger import log_fields
from lifecycle_http.server.domain.exceptions import ServerError
from lifecycle_http.server.infrastructure.http_server import HTTPServer
from lifecycle_http.settings import Settings, get_settings

STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class Application:
    """A fully wired service: its lifecycle, server, logger and settings."""

    def __init__(
        self,
        settings: Settings,
        lifecycle: Lifecycle,
        server: HTTPServer,
        logger: logging.Logger,
    ):
        self.settings = settings
        self.lifecycle = lifecycle
        self.server = server
        self.logger = logger

    def start(self) -> None:
        """Run every start hook; raises the first startup fault."""
        self.lifecycle.start(
            self.settings.start_timeout_seconds,
            rollback_timeout=self.settings.shutdown_timeout_seconds,
        )

    def stop(self) -> None:
        """Run every stop hook; raises the first shutdown fault."""
        self.lifecycle.stop(self.settings.shutdown_timeout_seconds)

    def run(self, stop_event: Optional[threading.Event] = None) -> int:
        """
        Start, block until told to stop, then stop.

        Args:
            stop_event: Event ending the run. When omitted the run ends on
                SIGINT or SIGTERM.

        Returns:
            Process exit code: 0 on a clean run, 1 when startup failed or
            shutdown did not complete in time.
        """
        try:
            self.start()
        except Exception as e:
            self._log_failure("Failed to start application", e)
            return 1

        self.logger.info(
            "Application running",
            extra=log_fields(
                environment=self.settings.environment,
                address=self.settings.listen_address,
            ),
        )

        if stop_event is None:
            self._wait_for_signal()
        else:
            stop_event.wait()

        try:
            self.stop()
        except Exception as e:
            self._log_failure("Failed to stop application cleanly", e)
            return 1
        return 0

    def _wait_for_signal(self) -> None:
        received = threading.Event()

        def handle_signal(signum, frame):
            self.logger.info(
                "Received signal", extra=log_fields(signal=signal.Signals(signum).name)
            )
            received.set()

        previous = {sig: signal.signal(sig, handle_signal) for sig in STOP_SIGNALS}
        try:
            received.wait()
        finally:
            for sig, handler in previous.items():
                signal.signal(sig, handler)

    def _log_failure(self, message: str, error: Exception) -> None:
        if isinstance(error, ServerError):
            self.logger.error(message, extra=log_fields(**error.to_dict()))
        else:
            self.logger.error(message, extra=log_fields(error=repr(error)))


def create_application(settings: Optional[Settings] = None) -> Application:
    """
    Build the dependency graph and return the wired application.

    Construction faults such as duplicate route patterns are raised here,
    before any hook runs.
    """
    settings = settings or get_settings()
    injector = Injector(AppModule(settings))

    # Resolving the server forces construction of everything it depends on
    server = injector.get(HTTPServer)
    return Application(
        settings=settings,
        lifecycle=injector.get(Lifecycle),
        server=server,
        logger=injector.get(logging.Logger),
    )
