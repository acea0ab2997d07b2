"""Middleware protocol and the built-in static file middleware."""

from perch.middleware.protocol import AnyResponse, Middleware, Next
from perch.middleware.static import StaticFiles

__all__ = ["AnyResponse", "Middleware", "Next", "StaticFiles"]
