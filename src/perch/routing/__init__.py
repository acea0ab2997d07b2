"""Routing: compiled route table with constraint-gated matching.

Routes are registered during setup through ``RouteBuilder`` objects and
compiled into an immutable lookup structure when the app freezes.
"""

from perch.routing.builder import RouteBuilder, RouteConventionBuilder
from perch.routing.route import Route, RouteConstraint, RouteMatch
from perch.routing.router import Router

__all__ = [
    "Route",
    "RouteBuilder",
    "RouteConstraint",
    "RouteConventionBuilder",
    "RouteMatch",
    "Router",
]
