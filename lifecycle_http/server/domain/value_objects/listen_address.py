"""
ListenAddress - Single Responsibility: TCP listen address parsing

Turns the configured ``host:port`` string into the pieces needed to bind a
listening socket. An empty host (``":8098"``) means every interface, IPv6
included where the platform supports dual-stack sockets.
"""

import socket
from dataclasses import dataclass

from lifecycle_http.core.constants import MAX_PORT_NUMBER


@dataclass(frozen=True)
class ListenAddress:
    """
    A TCP address the HTTP server binds once at start.

    ``port`` 0 asks the operating system for an ephemeral port.
    """

    host: str
    port: int

    def __post_init__(self):
        if not 0 <= self.port <= MAX_PORT_NUMBER:
            raise ValueError(
                f"Port must be between 0 and {MAX_PORT_NUMBER}, got {self.port}"
            )

    @classmethod
    def parse(cls, value: str) -> "ListenAddress":
        """
        Parse ``host:port``, ``:port`` or ``[ipv6]:port``.

        Raises:
            ValueError: If the value has no port or the port is not a number.
        """
        if not isinstance(value, str) or ":" not in value:
            raise ValueError(f"Listen address must look like 'host:port', got {value!r}")

        host, _, port_text = value.rpartition(":")
        if host.startswith("[") and host.endswith("]"):
            host = host[1:-1]
        elif ":" in host:
            raise ValueError(f"IPv6 hosts must be bracketed, got {value!r}")

        if not port_text.isdigit():
            raise ValueError(f"Invalid port in listen address {value!r}")

        return cls(host=host, port=int(port_text))

    @property
    def family(self) -> socket.AddressFamily:
        """Address family matching the host."""
        if ":" in self.host or self.dual_stack:
            return socket.AF_INET6
        return socket.AF_INET

    @property
    def is_wildcard(self) -> bool:
        return self.host == ""

    @property
    def dual_stack(self) -> bool:
        """
        Whether a wildcard bind should accept both IPv4 and IPv6.

        Holds for an empty host on platforms with dual-stack sockets.
        """
        return self.is_wildcard and socket.has_dualstack_ipv6()

    def __str__(self) -> str:
        if ":" in self.host:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"
