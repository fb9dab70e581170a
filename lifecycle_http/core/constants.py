"""
Constants module for the HTTP service.

Centralizes the defaults and wire-level strings shared by the settings,
the handlers and the server lifecycle.
"""

# =============================================================================
# SERVICE CONSTANTS
# =============================================================================

DEFAULT_SERVICE_NAME = "lifecycle-http"
DEFAULT_ENVIRONMENT = "development"

# =============================================================================
# NETWORK CONSTANTS
# =============================================================================

DEFAULT_LISTEN_ADDRESS = ":8098"
MAX_PORT_NUMBER = 65535
LISTEN_BACKLOG = 2048

# =============================================================================
# TIMEOUT CONSTANTS
# =============================================================================

DEFAULT_START_TIMEOUT_SECONDS = 15.0
DEFAULT_SHUTDOWN_TIMEOUT_SECONDS = 15.0

# Extra time given to the serve thread to exit after connections are severed
FORCED_CLOSE_GRACE_SECONDS = 5.0

# Polling interval while waiting for the serve loop to report it is up
STARTUP_POLL_INTERVAL_SECONDS = 0.01

# =============================================================================
# HTTP CONSTANTS
# =============================================================================

HTTP_OK = 200
HTTP_NOT_FOUND = 404
HTTP_INTERNAL_SERVER_ERROR = 500

NOT_FOUND_MESSAGE = "404 page not found\n"
INTERNAL_SERVER_ERROR_MESSAGE = "Internal server error\n"
TEXT_PLAIN = "text/plain; charset=utf-8"

ECHO_PATTERN = "/echo"
HELLO_PATTERN = "/hello"
