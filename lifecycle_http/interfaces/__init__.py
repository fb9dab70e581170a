from .route_interface import IRoute

__all__ = ["IRoute"]
