"""Value objects for the HTTP server domain."""

from .listen_address import ListenAddress

__all__ = ["ListenAddress"]
