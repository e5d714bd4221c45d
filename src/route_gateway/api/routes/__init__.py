"""Route group exports."""

from . import health, route

__all__ = ["health", "route"]
