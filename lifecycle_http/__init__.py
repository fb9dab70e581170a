"""HTTP service wired through dependency injection with lifecycle hooks."""

__version__ = "0.1.0"
