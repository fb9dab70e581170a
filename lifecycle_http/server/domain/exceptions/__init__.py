"""
Standardized Exception Hierarchy for the lifecycle HTTP service.

Every error carries a stable error code and a context dictionary so the
composition root can log it in a structured way:
1. Startup faults abort the start sequence before the service is running
2. Lifecycle state errors flag misuse of a server or lifecycle instance
3. Shutdown faults report in-flight requests abandoned at the deadline
"""

from typing import Any, Dict, Optional


class ServerError(Exception):
    """
    Base exception for all server-related errors.

    Provides a standardized interface with error codes and context.
    """

    def __init__(
        self,
        message: str,
        error_code: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}
        self.original_exception = original_exception

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "context": self.context,
            "original_exception": (
                str(self.original_exception) if self.original_exception else None
            ),
        }


# Startup Errors
class StartupError(ServerError):
    """Base class for faults that must abort application startup."""


class AddressBindError(StartupError):
    """Raised when the listening socket cannot be bound."""

    def __init__(self, address: str, original_exception: BaseException, **kwargs):
        super().__init__(
            message=f"Failed to bind {address}: {original_exception}",
            error_code="BIND_FAILED",
            context={"address": address},
            original_exception=original_exception,
            **kwargs,
        )


class DuplicateRouteError(StartupError):
    """Raised when two routes claim the same pattern."""

    def __init__(self, pattern: str, **kwargs):
        super().__init__(
            message=f"Pattern {pattern!r} is already registered",
            error_code="DUPLICATE_ROUTE",
            context={"pattern": pattern},
            **kwargs,
        )


class InvalidRoutePatternError(StartupError):
    """Raised when a route reports an unusable pattern."""

    def __init__(self, pattern: Any, reason: str, **kwargs):
        super().__init__(
            message=f"Invalid route pattern {pattern!r}: {reason}",
            error_code="INVALID_ROUTE_PATTERN",
            context={"pattern": pattern, "reason": reason},
            **kwargs,
        )


class ServerStartError(StartupError):
    """Raised when the serve loop does not come up after a successful bind."""

    def __init__(self, address: str, reason: str, **kwargs):
        super().__init__(
            message=f"HTTP server at {address} failed to start: {reason}",
            error_code="SERVE_LOOP_FAILED",
            context={"address": address, "reason": reason},
            **kwargs,
        )


# Lifecycle Errors
class LifecycleStateError(ServerError):
    """Raised when an operation is invalid for the current lifecycle state."""

    def __init__(self, operation: str, state: str, **kwargs):
        super().__init__(
            message=f"Cannot {operation} while {state}",
            error_code="INVALID_STATE",
            context={"operation": operation, "state": state},
            **kwargs,
        )


# Shutdown Errors
class ShutdownTimeoutError(ServerError):
    """Raised when in-flight requests outlive the shutdown deadline."""

    def __init__(self, timeout: float, abandoned: int, **kwargs):
        super().__init__(
            message=(
                f"Shutdown timed out after {timeout:.2f}s, "
                f"{abandoned} request(s) abandoned"
            ),
            error_code="SHUTDOWN_TIMEOUT",
            context={"timeout": timeout, "abandoned": abandoned},
            **kwargs,
        )
        self.timeout = timeout
        self.abandoned = abandoned
