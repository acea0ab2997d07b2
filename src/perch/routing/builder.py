"""Route builders and conventions.

A ``RouteBuilder`` is the mutable, setup-time form of a route. Callers
attach conventions (callbacks that receive the builder and edit its name
or metadata); the conventions run once, in order, when the app freezes
and the builder is compiled into a frozen ``Route``.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Protocol, TypeAlias

from perch.routing.route import Route, RouteConstraint

Convention: TypeAlias = Callable[["RouteBuilder"], None]


class RouteConventionBuilder(Protocol):
    """Anything that accepts conventions for a registered route."""

    def add(self, convention: Convention) -> None: ...


@dataclass(slots=True)
class RouteBuilder:
    """A route waiting to be compiled.

    ``metadata`` is free-form: conventions store whatever the app's
    middleware later reads from ``request.route.route.metadata``.
    """

    path: str
    handler: Callable[..., Any]
    methods: tuple[str, ...] = ("GET",)
    name: str | None = None
    constraints: dict[str, RouteConstraint] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)
    conventions: list[Convention] = field(default_factory=list)

    def add(self, convention: Convention) -> None:
        """Queue *convention* to run against this builder at freeze time."""
        if convention is None or not callable(convention):
            msg = f"convention must be callable, got {convention!r}"
            raise TypeError(msg)
        self.conventions.append(convention)

    def with_metadata(self, **items: Any) -> RouteBuilder:
        """Shorthand convention: merge *items* into the route metadata."""
        self.add(lambda builder: builder.metadata.update(items))
        return self

    def build(self) -> Route:
        """Apply queued conventions and compile into a frozen ``Route``."""
        for convention in self.conventions:
            convention(self)
        return Route(
            path=self.path,
            handler=self.handler,
            methods=frozenset(m.upper() for m in self.methods),
            name=self.name,
            constraints=_frozen(self.constraints),
            metadata=_frozen(self.metadata),
        )


def _frozen(items: Mapping[str, Any]) -> Mapping[str, Any]:
    return MappingProxyType(dict(items))
