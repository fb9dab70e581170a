from .http_server import HTTPServer, ServerState
from .request_tracker import RequestTracker

__all__ = ["HTTPServer", "RequestTracker", "ServerState"]
