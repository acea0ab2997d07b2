"""Route and RouteMatch frozen dataclasses."""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, TypeAlias

# A route parameter predicate: receives the captured value, accepts or rejects
RouteConstraint: TypeAlias = Callable[[str], bool]


def _empty() -> Mapping[str, Any]:
    return MappingProxyType({})


@dataclass(frozen=True, slots=True)
class PathSegment:
    """A parsed segment of a route path.

    Static:    ``/users``        (is_param=False)
    Param:     ``/{id}``         (is_param=True, param_name="id")
    Typed:     ``/{id:int}``     (is_param=True, param_name="id", param_type="int")
    Catch-all: ``/{**path}``     (is_param=True, param_name="path", param_type="path")
    """

    value: str
    is_param: bool = False
    param_name: str | None = None
    param_type: str = "str"

    @property
    def is_catch_all(self) -> bool:
        return self.is_param and self.param_type == "path"


@dataclass(frozen=True, slots=True)
class Route:
    """A frozen route definition.

    Created from a ``RouteBuilder`` when the app freezes. ``constraints``
    maps parameter names to predicates that must all accept the captured
    values for the route to match. ``metadata`` holds whatever conventions
    attached (policies, limits, tags).
    """

    path: str
    handler: Callable[..., Any]
    methods: frozenset[str]
    name: str | None = None
    constraints: Mapping[str, RouteConstraint] = field(default_factory=_empty)
    metadata: Mapping[str, Any] = field(default_factory=_empty)


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route match."""

    route: Route
    path_params: dict[str, str]
