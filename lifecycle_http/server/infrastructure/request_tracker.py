"""
RequestTracker - Single Responsibility: count HTTP requests in flight

Pure ASGI wrapper placed between the server and the router. The server reads
the count when a shutdown deadline expires to report how many requests were
abandoned.
"""

import asyncio


class RequestTracker:
    """ASGI middleware counting active HTTP requests."""

    def __init__(self, app):
        self.app = app
        self.active = 0
        self.total = 0
        self.cancelled = 0

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        self.active += 1
        self.total += 1
        try:
            await self.app(scope, receive, send)
        except asyncio.CancelledError:
            self.cancelled += 1
            raise
        finally:
            self.active -= 1
