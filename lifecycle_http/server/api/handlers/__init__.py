from .echo_handler import EchoHandler
from .hello_handler import HelloHandler

__all__ = ["EchoHandler", "HelloHandler"]
